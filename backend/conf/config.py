"""Configuration module for the backend."""

import os
from pathlib import Path
from typing import Dict, List


class ConfigMeta(type):
    """Metaclass to prevent direct instantiation and enforce singleton attributes."""

    def __call__(cls, *args: object, **kwargs: object) -> None:
        """Prevent direct instantiation."""
        raise TypeError("Config cannot be instantiated directly. Use class attributes.")


class Config(metaclass=ConfigMeta):
    """Singleton configuration class. Access attributes directly via the class."""

    # =========================================================================
    # Path Configuration
    # =========================================================================
    BASE_DIR: Path = Path(__file__).parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"

    # =========================================================================
    # Server Configuration
    # =========================================================================
    FLASK_PORT: int = int(os.getenv("FLASK_PORT", "5000"))
    FLASK_HOST: str = os.getenv("FLASK_HOST", "0.0.0.0")
    CORS_ORIGINS: List[str] = os.getenv(
        "CORS_ORIGINS", "http://localhost:3000"
    ).split(",")

    # Header carrying the id of the authenticated user (set by the auth proxy)
    USER_ID_HEADER: str = "X-User-Id"

    # =========================================================================
    # Database Configuration
    # =========================================================================
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL", f"sqlite:///{DATA_DIR / 'assistant.db'}"
    )
    DATABASE_ECHO: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"

    # =========================================================================
    # Localization
    # =========================================================================
    LOCALE: str = os.getenv("LOCALE", "en")
    FALLBACK_LOCALE: str = "en"

    # =========================================================================
    # Files / Retrieval Service Configuration
    # =========================================================================
    FILES_API_TIMEOUT: float = float(os.getenv("FILES_API_TIMEOUT", "60"))
    FILES_API_MAX_RETRIES: int = 3
    FILES_API_RETRY_DELAY: float = 1.0
    PROCESS_FILE_CHUNK_SIZE: int = 100_000  # Characters per processed chunk

    # Always rejected, images are handled by the model extensions
    IMAGE_FILE_EXTENSIONS: List[str] = [".png", ".jpg", ".jpeg", ".webp"]
    # Rejected with a hint to use the modern (x) format
    OUTDATED_FILE_EXTENSIONS: List[str] = [".doc", ".ppt", ".xls"]

    # Bucket path templates used by the retrieval service
    BUCKET_PATHS: Dict[str, str] = {
        "general": "{bucket_id}",
        "user": "{bucket_id}/user/{user_id}",
        "conversation": "{bucket_id}/conversation/{conversation_id}",
    }

    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 1000

    # =========================================================================
    # Chat Configuration
    # =========================================================================
    SSE_POLL_INTERVAL: float = 0.1  # Seconds between result channel polls
    CHAT_MAX_SOURCES: int = 5
    MODEL_REQUEST_TIMEOUT: float = float(os.getenv("MODEL_REQUEST_TIMEOUT", "120"))
    MODEL_MAX_TOKENS: int = 2048
    MODEL_TEMPERATURE: float = 0.3
    DEFAULT_SYSTEM_PROMPT: str = "You are a helpful assistant."
