"""
Pydantic-based configuration models for the chat relay server.

Listen address, allowed browser origins, logging and history settings are
read from the environment or a .env file.
"""

import json
from typing import Annotated, Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

from ..structured_logging.enhanced_logging_config import VALID_ENVIRONMENTS, detect_environment, get_logger

logger = get_logger(__name__)


def _parse_env_list(candidate: Any) -> list[str]:
    """Parse a value from the environment as JSON list or CSV."""
    if candidate is None:
        return []
    if isinstance(candidate, (list, tuple)):
        return [str(item).strip() for item in candidate if str(item).strip()]
    s = str(candidate).strip()
    if not s:
        return []
    try:
        loaded = json.loads(s)
        if isinstance(loaded, list):
            return [str(item).strip() for item in loaded if str(item).strip()]
    except json.JSONDecodeError:
        pass
    return [item.strip() for item in s.split(",") if item.strip()]


class ServerConfig(BaseSettings):
    """Server network configuration."""

    host: str = Field(default="127.0.0.1", description="Server bind address")
    port: int = Field(default=3001, description="Server listen port")

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port is in valid range."""
        if not 1 <= v <= 65535:
            logger.error("Invalid server port", port=v, valid_range="1-65535")
            raise ValueError("Port must be between 1 and 65535")
        return v

    model_config = {"env_prefix": "SERVER_", "case_sensitive": False, "extra": "ignore"}


class CORSConfig(BaseSettings):
    """Cross-origin configuration shared by Socket.IO and the HTTP routes."""

    allow_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:5173"],
        validation_alias=AliasChoices("allow_origins", "cors_allow_origins", "cors_origins"),
        description="Browser origins permitted to connect",
    )
    allow_credentials: bool = Field(default=True, description="Whether credentialed requests are accepted")
    allow_methods: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["GET", "POST"],
        description="HTTP methods permitted by CORS responses",
    )

    @field_validator("allow_origins", "allow_methods", mode="before")
    @classmethod
    def parse_list(cls, v: Any) -> list[str]:
        """Accept JSON lists as well as comma-separated strings."""
        return _parse_env_list(v)

    @field_validator("allow_origins")
    @classmethod
    def validate_origins(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("At least one allowed origin is required")
        return v

    @field_validator("allow_methods")
    @classmethod
    def normalize_methods(cls, v: list[str]) -> list[str]:
        return [method.upper() for method in v]

    model_config = {"env_prefix": "CORS_", "case_sensitive": False, "extra": "ignore"}


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    environment: str = Field(default_factory=detect_environment, description="Logging environment")
    level: str = Field(default="INFO", description="Log level")
    log_base: str = Field(default="logs", description="Base log directory")
    max_bytes: int = Field(default=10 * 1024 * 1024, description="Log file size before rotation")
    backup_count: int = Field(default=5, description="Number of backup log files")
    disable_logging: bool = Field(default=False, description="Disable file logging")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate logging environment."""
        if v not in VALID_ENVIRONMENTS:
            raise ValueError(f"Environment must be one of {VALID_ENVIRONMENTS}, got '{v}'")
        return v

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}, got '{v}'")
        return v_upper

    model_config = {"env_prefix": "LOGGING_", "case_sensitive": False, "extra": "ignore"}

    def to_legacy_dict(self) -> dict[str, Any]:
        """Return the dict shape setup_enhanced_logging() expects."""
        return {
            "environment": self.environment,
            "level": self.level,
            "log_base": self.log_base,
            "max_bytes": self.max_bytes,
            "backup_count": self.backup_count,
            "disable_logging": self.disable_logging,
        }


class ChatConfig(BaseSettings):
    """Chat relay configuration."""

    history_limit: int = Field(default=100, description="Relayed messages kept for GET /api/messages (0 disables)")
    system_author: str = Field(default="System", description="Author name used for presence announcements")

    @field_validator("history_limit")
    @classmethod
    def validate_history_limit(cls, v: int) -> int:
        if v < 0:
            raise ValueError("History limit cannot be negative")
        return v

    @field_validator("system_author")
    @classmethod
    def validate_system_author(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("System author cannot be empty")
        return v.strip()

    model_config = {"env_prefix": "CHAT_", "case_sensitive": False, "extra": "ignore"}


class AppConfig(BaseSettings):
    """
    Composite application configuration.

    This is the main configuration class that aggregates all other configs.
    Access via get_config().
    """

    server: ServerConfig = Field(default_factory=ServerConfig)
    cors: CORSConfig = Field(default_factory=CORSConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    chat: ChatConfig = Field(default_factory=ChatConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "case_sensitive": False, "extra": "ignore"}

    def to_legacy_dict(self) -> dict[str, Any]:
        """Flatten the configuration into the dict consumed by logging setup."""
        return {
            "host": self.server.host,
            "port": self.server.port,
            "logging": self.logging.to_legacy_dict(),
            "chat": {
                "history_limit": self.chat.history_limit,
                "system_author": self.chat.system_author,
            },
            "cors": {
                "allow_origins": self.cors.allow_origins,
                "allow_credentials": self.cors.allow_credentials,
                "allow_methods": self.cors.allow_methods,
            },
        }
