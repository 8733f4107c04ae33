"""Flask application factory for the photolens web API."""

import atexit
import logging
from typing import Optional

from flask import Flask

from ..config import ConfigManager
from ..processing import ProcessingOrchestrator
from .services.session import ImageSessionService

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 50 * 1024 * 1024


def create_app(
    config_path: Optional[str] = None,
    debug: bool = False,
    orchestrator: Optional[ProcessingOrchestrator] = None
) -> Flask:
    """Create and configure the Flask application.

    Args:
        config_path: Optional path to photolens config file
        debug: Enable debug mode
        orchestrator: Pipeline to serve (built from config if not provided)

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)
    app.config["DEBUG"] = debug
    app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_BYTES

    if orchestrator is None:
        try:
            config = ConfigManager.load(config_path=config_path, interactive=False)
            orchestrator = ProcessingOrchestrator.from_config(config)
            app.config["PHOTOLENS_CONFIG"] = config
            logger.info(f"Loaded photolens config from: {config.config_path}")
        except Exception as e:
            logger.error(f"Failed to initialize photolens: {e}")
            raise

    service = ImageSessionService(orchestrator)
    app.config["PHOTOLENS_SESSION"] = service
    atexit.register(service.shutdown)

    from .routes.api import api_bp

    app.register_blueprint(api_bp, url_prefix="/api")

    logger.info("photolens web app created")

    return app
