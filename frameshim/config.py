import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError

#: Environment variable -> config field.
ENV_FIELDS = {
    "HOSTHOST": "host_address",
    "HOSTADDR": "host_port",
    "FRAMESHIM_REQUEST_TIMEOUT": "request_timeout",
    "FRAMESHIM_EVENT_HOST": "event_host",
    "FRAMESHIM_EVENT_PORT": "event_port",
}


class RuntimeConfig(BaseModel):
    """
    Connection settings for the host runtime process.

    * ``host_address`` / ``host_port`` → TCP endpoint answering requests
    * ``request_timeout`` → seconds to wait for a single response
    * ``event_host`` / ``event_port`` → websocket bind for host events
    """

    model_config = ConfigDict(frozen=True)

    host_address: str = "127.0.0.1"
    host_port: int = Field(9000, ge=1, le=65535)
    request_timeout: float = Field(10.0, gt=0)
    event_host: str = "localhost"
    event_port: int = Field(8765, ge=0, le=65535)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RuntimeConfig":
        """
        Build a config from environment variables.

        Unset variables keep their defaults.

        :param environ: Mapping to read instead of ``os.environ``.
        :return: The parsed config.
        :raises ConfigurationError: If a variable holds an invalid value.
        """
        environ = os.environ if environ is None else environ
        values = {field: environ[key] for key, field in ENV_FIELDS.items() if environ.get(key)}
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid runtime configuration: {e}") from e
