"""Model-name based construction of vision models."""

import logging
from typing import Dict, List, Optional, Type

from photolens.vision.base import VisionModel
from photolens.vision.ollama import OllamaVisionModel
from photolens.vision.exceptions import VisionModelError

logger = logging.getLogger(__name__)


class VisionModelFactory:
    """Builds a VisionModel from the ``vision.model`` setting.

    Names are looked up by family, the part before the tag, so
    ``qwen3-vl:8b`` and ``qwen3-vl:32b`` share one implementation. Every
    multimodal family served by Ollama maps to OllamaVisionModel.
    """

    _families: Dict[str, Type[VisionModel]] = {
        "qwen3-vl": OllamaVisionModel,
        "qwen2.5vl": OllamaVisionModel,
        "llama3.2-vision": OllamaVisionModel,
        "gemma3": OllamaVisionModel,
        "llava": OllamaVisionModel,
    }

    @staticmethod
    def family_of(model_name: str) -> str:
        """``"Qwen3-VL:8b"`` -> ``"qwen3-vl"``."""
        return model_name.strip().lower().partition(":")[0]

    @classmethod
    def resolve(cls, model_name: str) -> Type[VisionModel]:
        """Implementation class for ``model_name``.

        Raises:
            VisionModelError: If the family is not registered
        """
        model_class = cls._families.get(cls.family_of(model_name))
        if model_class is None:
            raise VisionModelError(
                f"Unsupported model: {model_name}. "
                f"Known families: {', '.join(cls.list_models())}",
                model_name=model_name,
            )
        return model_class

    @classmethod
    def create(
        cls,
        model_name: str,
        endpoint: Optional[str] = None,
        **kwargs
    ) -> VisionModel:
        """Instantiate the model registered for ``model_name``.

        Args:
            model_name: Full model name including tag (e.g. ``qwen3-vl:8b``)
            endpoint: Optional API endpoint URL
            **kwargs: Passed to the model constructor (api_key, timeout, ...)

        Returns:
            VisionModel instance

        Raises:
            VisionModelError: If the family is unknown or construction fails.
                VisionModelError subclasses raised by the constructor, such
                as VisionModelConfigurationError, pass through unchanged.

        Examples:
            >>> model = VisionModelFactory.create(
            ...     "qwen3-vl:8b", endpoint="http://localhost:11434", api_key="..."
            ... )
        """
        model_class = cls.resolve(model_name)
        logger.info(f"Creating {model_class.__name__} for {model_name}")

        try:
            return model_class(model_name=model_name, endpoint=endpoint, **kwargs)
        except VisionModelError:
            raise
        except Exception as e:
            raise VisionModelError(
                f"Could not construct {model_class.__name__} for {model_name}: {e}",
                model_name=model_name,
            ) from e

    @classmethod
    def register_model(cls, family: str, model_class: Type[VisionModel]) -> None:
        """Map a model family to an implementation.

        Raises:
            VisionModelError: If ``model_class`` is not a VisionModel
        """
        if not (isinstance(model_class, type) and issubclass(model_class, VisionModel)):
            raise VisionModelError(f"{model_class!r} is not a VisionModel subclass")
        cls._families[cls.family_of(family)] = model_class
        logger.debug(f"Registered model family {family} -> {model_class.__name__}")

    @classmethod
    def list_models(cls) -> List[str]:
        """Registered model families."""
        return sorted(cls._families)
