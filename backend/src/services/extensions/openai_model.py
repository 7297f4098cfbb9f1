"""Model extension for servers implementing the OpenAI chat completions API."""

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from backend.conf.config import Config
from backend.src.data_classes import ChatMessage, HumanMessage
from backend.src.database import User
from backend.src.services.chat.interfaces import (
    ChatContext,
    ChatMiddleware,
    ChatModel,
    ChatNextDelegate,
)
from backend.src.services.extensions.extension import (
    BaseExtension,
    ExtensionSpec,
    register_extension,
)
from backend.src.services.http import create_retry_session

logger = logging.getLogger(__name__)


class OpenAIChatModel(ChatModel):
    """Client for an OpenAI-compatible server (OpenAI, vLLM, Ollama, ...)."""

    def __init__(
        self,
        api_base_url: str,
        model_name: str,
        api_key: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ):
        """
        Initialize the chat model client.

        Args:
            api_base_url: Base URL of the server (e.g., "http://localhost:8001")
            model_name: Name of the model served
            api_key: Bearer token, if the server requires one
            max_tokens: Maximum number of tokens to generate
            temperature: Sampling temperature
            max_retries: Maximum number of retries for failed requests
            retry_delay: Delay between retries in seconds
        """
        self.api_base_url = api_base_url.rstrip("/")
        self.chat_completions_url = f"{self.api_base_url}/v1/chat/completions"
        self.model_name = model_name
        self.max_tokens = max_tokens or Config.MODEL_MAX_TOKENS
        self.temperature = temperature if temperature is not None else Config.MODEL_TEMPERATURE

        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self.session = create_retry_session(max_retries, retry_delay, headers=headers)

    def generate(self, messages: Sequence[ChatMessage]) -> str:
        """Generate the next message of a chat.

        Raises:
            RuntimeError: If the server returns an error or cannot be reached
        """
        payload: Dict[str, Any] = {
            "model": self.model_name,
            "messages": [message.to_openai() for message in messages],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        logger.debug(f"Sending {len(messages)} messages to {self.chat_completions_url}")

        try:
            response = self.session.post(
                self.chat_completions_url,
                json=payload,
                timeout=Config.MODEL_REQUEST_TIMEOUT,
            )
        except requests.exceptions.Timeout:
            raise RuntimeError(f"Request to {self.chat_completions_url} timed out")
        except requests.exceptions.ConnectionError:
            raise RuntimeError(f"Could not connect to model server at {self.api_base_url}")

        if response.status_code != 200:
            error_msg = f"Model server error: {response.status_code} - {response.text[:500]}"
            logger.error(error_msg)
            raise RuntimeError(error_msg)

        result = response.json()
        return result["choices"][0]["message"]["content"] or ""


class ModelMiddleware(ChatMiddleware):
    """Set the model of the assistant on the context."""

    def __init__(self, model: ChatModel) -> None:
        self.model = model
        self.order = 0

    def invoke(self, context: ChatContext, next: ChatNextDelegate) -> None:
        context.llm = self.model
        next(context)


@register_extension("openai-model")
class OpenAIModelExtension(BaseExtension):
    spec = ExtensionSpec(
        name="openai-model",
        title="OpenAI compatible model",
        type="llm",
        description="Generates answers with an OpenAI compatible chat completions API.",
        arguments={"endpoint": True, "modelName": True, "apiKey": False, "temperature": False},
    )

    def __init__(self, external_id: str, values: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(external_id, values)
        temperature = self.values.get("temperature")
        self.model = OpenAIChatModel(
            api_base_url=str(self.values["endpoint"]),
            model_name=str(self.values["modelName"]),
            api_key=self.values.get("apiKey"),
            temperature=float(temperature) if temperature is not None else None,
        )

    def test(self) -> bool:
        try:
            self.model.generate([HumanMessage(content="Hi")])
            return True
        except RuntimeError as e:
            logger.warning(f"Model extension {self.external_id} failed its test: {str(e)}")
            return False

    def get_middlewares(self, user: User) -> List[ChatMiddleware]:
        return [ModelMiddleware(self.model)]
