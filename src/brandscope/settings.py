"""Client configuration loaded from the environment"""

import os
import typing as t

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

ENV_PREFIX = "BRANDSCOPE_"
DEFAULT_API_URL = "http://localhost:3000/api/admin"


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_url: str = Field(default=DEFAULT_API_URL, description="backend REST base URL")
    api_token: str | None = Field(
        default=None, description="optional bearer token sent with every request", repr=False
    )
    timeout_seconds: float = Field(default=30.0, gt=0, description="per-request HTTP timeout")
    poll_interval_seconds: float = Field(
        default=10.0, gt=0, description="delay between two batch status polls"
    )
    max_poll_attempts: int = Field(
        default=30, gt=0, description="poll budget before giving up on a batch execution"
    )
    prompt_set_timeout_seconds: float = Field(
        default=30.0, gt=0, description="how long to wait for a prompt set to be generated"
    )
    prompt_set_interval_seconds: float = Field(
        default=2.0, gt=0, description="delay between two prompt set lookups"
    )

    @field_validator("api_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, value: t.Any):
        if isinstance(value, str):
            stripped = value.strip().rstrip("/")
            if not stripped:
                raise ValueError("api_url cannot be empty")
            return stripped
        return value

    @property
    def headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers


_ENV_FIELDS = {
    "api_url": "API_URL",
    "api_token": "API_TOKEN",
    "timeout_seconds": "TIMEOUT_SECONDS",
    "poll_interval_seconds": "POLL_INTERVAL_SECONDS",
    "max_poll_attempts": "MAX_POLL_ATTEMPTS",
}


def load_settings(**overrides: t.Any) -> Settings:
    """Build settings from ``.env``/environment variables, explicit overrides win.

    Args:
        **overrides: field values taking precedence over the environment, ``None`` is ignored

    Returns:
        Settings: the validated settings
    """
    load_dotenv(override=False)
    values: dict[str, t.Any] = {}
    for field_name, env_suffix in _ENV_FIELDS.items():
        env_value = os.getenv(f"{ENV_PREFIX}{env_suffix}")
        if env_value:
            values[field_name] = env_value
    values.update({key: value for key, value in overrides.items() if value is not None})
    return Settings.model_validate(values)
