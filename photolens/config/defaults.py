"""Default configuration values for photolens."""

from pathlib import Path

# Default configuration dictionary
DEFAULT_CONFIG = {
    # Vision Model Configuration
    "vision": {
        "model": "qwen3-vl:8b",
        "endpoint": "http://localhost:11434",
        "api_key": "",
        "temperature": 0.2,
        "timeout": 120,
    },

    # Processing Configuration
    "processing": {
        "preview_dir": str(Path.home() / ".photolens" / "previews"),
    },

    # Privacy Clean Configuration
    "privacy": {
        "clean_prefix": "clean_",
        "format": "jpeg",
        "quality": 95,
    },

    # Prompt Configuration
    "prompts": {
        "analysis": (
            "Analyze this image in detail. Extract visual data, text, and authenticity clues.\n"
            "\n"
            "Strictly follow the JSON schema.\n"
            "- For 'sceneType', use generic terms like Indoor, Outdoor, Nature, Urban, "
            "Office, Home.\n"
            "- For 'imageCategory', choose one of: Selfie, Document, Screenshot, Photo, Other.\n"
            "- For 'faceEmotion', if no face is present, use 'None'.\n"
            "- For 'authenticity', look for artifacts, unnatural lighting, or inconsistencies "
            "that suggest editing.\n"
            "- For 'ocrText', extract all visible text. If no text, return empty string."
        ),
    },

    # Logging Configuration
    "logging": {
        "level": "INFO",
        "file": str(Path.home() / ".photolens" / "photolens.log"),
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    },
}

# Required configuration fields (must be provided by user)
REQUIRED_FIELDS = [
    "vision.api_key",
]

# Environment variables that override configuration fields
ENV_OVERRIDES = {
    "vision.api_key": "OLLAMA_API_KEY",
    "vision.endpoint": "OLLAMA_HOST",
}

# Configuration field descriptions for interactive setup
FIELD_DESCRIPTIONS = {
    "vision.api_key": "Ollama API key (from https://ollama.com/settings/keys)",
}
