"""Configuration management for the inference client."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any, Self

import yaml
from dotenv import load_dotenv

DEFAULT_BASE_URL = "https://api.vultrinference.com/v1"
DEFAULT_TIMEOUT = 30.0
API_KEY_ENV = "INFERENCE_API_KEY"


class Configuration:
    """Manages configuration and environment variables for the client."""

    def __init__(self, config_path: str | None = None) -> None:
        """Initialize configuration from YAML and environment variables."""
        self.load_env()  # Load .env for the API key
        self._config_path = config_path or os.path.join(
            os.path.dirname(__file__), "config.yaml"
        )
        self._config = self._load_yaml_config()

    @staticmethod
    def load_env() -> None:
        """Load environment variables from .env file."""
        load_dotenv()

    def _load_yaml_config(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        with open(self._config_path) as file:
            config = yaml.safe_load(file)
            if not isinstance(config, dict):
                raise ValueError(
                    f"Config file must be YAML dict, got {type(config)}"
                )
            return config

    @property
    def api_key(self) -> str:
        """Get the API key from the environment.

        Raises:
            ValueError: If the API key is not set.
        """
        api_key = os.getenv(API_KEY_ENV)
        if not api_key:
            raise ValueError(
                f"API key '{API_KEY_ENV}' not found in environment variables"
            )
        return api_key

    def get_config_dict(self) -> dict[str, Any]:
        return self._config

    def get_client_config(self) -> dict[str, Any]:
        """Get HTTP client configuration from YAML.

        Returns:
            Client configuration dictionary with validated values.

        Raises:
            ValueError: If required client parameters are missing or invalid.
        """
        client_config = self._config.get("client", {})

        required_keys = ["base_url", "timeout", "connect_timeout"]
        for key in required_keys:
            if key not in client_config:
                raise ValueError(
                    f"client.{key} must be explicitly configured in config.yaml"
                )

        base_url = client_config["base_url"]
        timeout = client_config["timeout"]
        connect_timeout = client_config["connect_timeout"]

        if not isinstance(base_url, str) or not base_url.startswith(
            ("http://", "https://")
        ):
            raise ValueError("client.base_url must be an http(s) URL")
        if timeout <= 0:
            raise ValueError("client.timeout must be positive")
        if connect_timeout <= 0:
            raise ValueError("client.connect_timeout must be positive")
        if connect_timeout > timeout:
            raise ValueError("client.connect_timeout must be <= client.timeout")

        return {
            "base_url": base_url,
            "timeout": timeout,
            "connect_timeout": connect_timeout,
        }

    def get_streaming_config(self) -> dict[str, Any]:
        """Get streaming configuration from YAML.

        Raises:
            ValueError: If required streaming parameters are missing or invalid.
        """
        streaming_config = self._config.get("streaming", {})

        if "require_sentinel" not in streaming_config:
            raise ValueError(
                "streaming.require_sentinel must be explicitly configured "
                "in config.yaml"
            )
        if not isinstance(streaming_config["require_sentinel"], bool):
            raise ValueError("streaming.require_sentinel must be a boolean")

        deadline = streaming_config.get("deadline")
        if deadline is not None and deadline <= 0:
            raise ValueError("streaming.deadline must be positive when set")

        return {
            "require_sentinel": streaming_config["require_sentinel"],
            "deadline": deadline,
        }

    def get_logging_config(self) -> dict[str, Any]:
        return self._config.get("logging", {})


@dataclass(frozen=True)
class ClientConfig:
    """Immutable client settings; defaults are explicit, not process-wide."""
    api_key: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    connect_timeout: float = 10.0
    require_sentinel: bool = True
    stream_deadline: float | None = None

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ValueError("api_key must not be empty")
        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got {self.base_url!r}")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.connect_timeout <= 0:
            raise ValueError("connect_timeout must be positive")
        if self.stream_deadline is not None and self.stream_deadline <= 0:
            raise ValueError("stream_deadline must be positive when set")
        # Normalize once so path joins never double the slash
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    def with_options(self, **changes: Any) -> Self:
        """Return a validated copy with ``changes`` applied."""
        return replace(self, **changes)

    @classmethod
    def from_configuration(cls, configuration: Configuration) -> ClientConfig:
        client_config = configuration.get_client_config()
        streaming_config = configuration.get_streaming_config()
        return cls(
            api_key=configuration.api_key,
            base_url=client_config["base_url"],
            timeout=client_config["timeout"],
            connect_timeout=client_config["connect_timeout"],
            require_sentinel=streaming_config["require_sentinel"],
            stream_deadline=streaming_config["deadline"],
        )
