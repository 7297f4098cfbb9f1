"""Extensions package: model providers and retrieval sources of assistants.

Importing the package registers the built-in extension kinds.
"""

from .extension import EXTENSIONS, BaseExtension, ExtensionSpec, register_extension
from .extension_service import ExtensionService, configuration_to_json, is_configuration_allowed
from .openai_model import ModelMiddleware, OpenAIChatModel, OpenAIModelExtension
from .sources_api import SourcesApiExtension

__all__ = [
    "EXTENSIONS",
    "BaseExtension",
    "ExtensionSpec",
    "register_extension",
    "ExtensionService",
    "configuration_to_json",
    "is_configuration_allowed",
    "ModelMiddleware",
    "OpenAIChatModel",
    "OpenAIModelExtension",
    "SourcesApiExtension",
]
