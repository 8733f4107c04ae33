"""Ollama-hosted multimodal model implementation."""

import logging
import os
import re
import time
from typing import Any, Dict, List, Optional

import ollama

from photolens.config.defaults import DEFAULT_CONFIG
from photolens.vision.base import AnalysisRecord, VisionModel
from photolens.vision.exceptions import (
    VisionModelConfigurationError,
    VisionModelConnectionError,
    VisionModelError,
    VisionModelImageError,
    VisionModelInvalidResponseError,
    VisionModelTimeoutError,
)
from photolens.vision.schema import ANALYSIS_SCHEMA, parse_analysis_response

logger = logging.getLogger(__name__)

API_KEY_ENV_VAR = "OLLAMA_API_KEY"

DEFAULT_ANALYSIS_PROMPT = DEFAULT_CONFIG["prompts"]["analysis"]


class OllamaVisionModel(VisionModel):
    """Vision model served through the Ollama chat API.

    The image is sent as a base64 ``images`` entry together with a fixed
    instruction, and the JSON schema of the analysis is passed as the
    request ``format`` so the answer can be parsed without free-text
    extraction.

    Attributes:
        model_name: Name of the Ollama model
        endpoint: Ollama API endpoint URL
        timeout: Request timeout in seconds
        temperature: Sampling temperature
        prompt: Instruction sent with every image
    """

    def __init__(
        self,
        model_name: str = "qwen3-vl:8b",
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: int = 120,
        temperature: float = 0.2,
        prompt: Optional[str] = None,
        client: Optional[Any] = None
    ) -> None:
        """Initialize the Ollama vision model.

        Args:
            model_name: Name of the Ollama model
            endpoint: Optional Ollama endpoint URL (default: localhost:11434)
            api_key: Service credential; falls back to $OLLAMA_API_KEY
            timeout: Request timeout in seconds
            temperature: Sampling temperature
            prompt: Instruction text (default: DEFAULT_ANALYSIS_PROMPT)
            client: Preconfigured ollama.AsyncClient (mainly for tests)

        Raises:
            VisionModelConfigurationError: If no credential is configured
        """
        super().__init__(model_name, endpoint)
        self.timeout = timeout
        self.temperature = temperature
        self.prompt = prompt or DEFAULT_ANALYSIS_PROMPT

        api_key = api_key or os.environ.get(API_KEY_ENV_VAR, "")
        if not api_key:
            raise VisionModelConfigurationError(
                f"No API key configured for {model_name}. "
                f"Set vision.api_key in config.yaml or ${API_KEY_ENV_VAR}.",
                model_name=model_name,
            )

        if client is not None:
            self.client = client
        else:
            self.client = ollama.AsyncClient(
                host=endpoint,
                timeout=timeout,
                headers={"Authorization": f"Bearer {api_key}"},
            )
        if endpoint:
            logger.info(f"Using Ollama endpoint: {endpoint}")

    def _strip_thinking_tags(self, content: str) -> str:
        """Strip <think>...</think> blocks and markdown code fences.

        Some models include their reasoning or wrap JSON in ```json fences
        even when a format is requested.

        Args:
            content: Raw content from the model

        Returns:
            Cleaned content
        """
        if not content:
            return content

        cleaned = re.sub(r'<think>.*?</think>', '', content, flags=re.DOTALL | re.IGNORECASE)
        # Unclosed <think> means the model was cut off mid-reasoning
        cleaned = re.sub(r'<think>.*$', '', cleaned, flags=re.DOTALL | re.IGNORECASE)
        cleaned = cleaned.strip()

        fence = re.match(r'^```(?:json)?\s*(.*?)\s*```$', cleaned, flags=re.DOTALL)
        if fence:
            cleaned = fence.group(1).strip()

        if content and not cleaned:
            logger.warning("Content was entirely within <think> tags")

        return cleaned

    @staticmethod
    def _extract_content(response: Any) -> str:
        """Pull the message text out of a chat response object or dict."""
        if response is None:
            return ""

        message = getattr(response, "message", None)
        if message is None and isinstance(response, dict):
            message = response.get("message")
        if message is None:
            raise VisionModelInvalidResponseError(
                f"Invalid response structure from Ollama: {response!r}"
            )

        if hasattr(message, "content"):
            content = message.content
        elif isinstance(message, dict):
            content = message.get("content")
        else:
            content = None
        return (content or "").strip()

    async def _call_ollama(self, image_base64: str) -> str:
        """Call the Ollama chat API with the image and the instruction.

        Args:
            image_base64: Base64-encoded image

        Returns:
            Model response text

        Raises:
            VisionModelTimeoutError: If request times out
            VisionModelConnectionError: If the service cannot be reached
            VisionModelError: For other errors
        """
        messages: List[Dict[str, Any]] = [
            {
                "role": "user",
                "content": self.prompt,
                "images": [image_base64],
            }
        ]

        logger.debug(
            f"Sending request to {self.model_name} "
            f"(temperature={self.temperature}, payload={len(image_base64)} chars)"
        )
        start_time = time.time()

        try:
            response = await self.client.chat(
                model=self.model_name,
                messages=messages,
                format=ANALYSIS_SCHEMA,
                options={"temperature": self.temperature},
            )
        except ollama.ResponseError as e:
            raise VisionModelError(
                f"Ollama returned an error for {self.model_name} "
                f"(status {e.status_code}): {e.error}",
                model_name=self.model_name,
            ) from e
        except TimeoutError as e:
            raise VisionModelTimeoutError(
                f"Request to {self.model_name} timed out after {self.timeout}s",
                model_name=self.model_name,
            ) from e
        except ConnectionError as e:
            raise VisionModelConnectionError(
                f"Cannot connect to Ollama service: {e}",
                model_name=self.model_name,
            ) from e
        except Exception as e:
            if "timeout" in str(e).lower() or "timed out" in str(e).lower():
                raise VisionModelTimeoutError(
                    f"Request to {self.model_name} timed out: {e}",
                    model_name=self.model_name,
                ) from e
            raise VisionModelError(
                f"Error calling Ollama model {self.model_name}: {e}",
                model_name=self.model_name,
            ) from e

        logger.debug(f"Received response in {time.time() - start_time:.2f}s")

        content = self._strip_thinking_tags(self._extract_content(response))
        if not content:
            raise VisionModelInvalidResponseError(
                f"Empty response from {self.model_name}",
                model_name=self.model_name,
            )
        return content

    async def _request_analysis(self, image_base64: str) -> AnalysisRecord:
        if not image_base64:
            raise VisionModelImageError("Empty image payload", model_name=self.model_name)

        content = await self._call_ollama(image_base64)
        logger.debug(f"Raw analysis response: {content[:200]}")
        return parse_analysis_response(content)
