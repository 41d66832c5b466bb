"""Runtime configuration read from the environment (and an optional .env file)."""

from __future__ import annotations

from collections.abc import Mapping
import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from quiz_studio.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_studio.constants.quiz_constants import DEFAULT_APP_ID

BACKEND_CONFIG_ENV = "QUIZ_STUDIO_BACKEND_CONFIG"
APP_ID_ENV = "QUIZ_STUDIO_APP_ID"
AUTH_TOKEN_ENV = "QUIZ_STUDIO_AUTH_TOKEN"
HOST_ENV = "QUIZ_STUDIO_HOST"
PORT_ENV = "QUIZ_STUDIO_PORT"
HEADLESS_ENV = "QUIZ_STUDIO_HEADLESS"


def parse_flag(value: str | None) -> bool:
    """Interpret an environment flag such as ``1``, ``true`` or ``yes``."""
    return (value or "").strip().lower() in {"1", "true", "yes"}


class ConfigurationError(Exception):
    """Raised when the application cannot be configured. Fatal at startup."""


class BackendConfig(BaseModel):
    """Connection blob for the storage and identity backend."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    backend: Literal["memory", "file"] = "memory"
    data_dir: Path | None = Field(default=None, alias="dataDir")
    custom_tokens: dict[str, str] = Field(default_factory=dict, alias="customTokens")

    @model_validator(mode="after")
    def _check_data_dir(self) -> BackendConfig:
        if self.backend == "file" and self.data_dir is None:
            raise ValueError("dataDir is required for the file backend")
        return self


class Settings(BaseModel):
    backend: BackendConfig
    app_id: str = DEFAULT_APP_ID
    initial_auth_token: str | None = None
    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, gt=0, lt=65536)
    headless: bool = False


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build settings from ``environ`` (defaults to ``os.environ`` plus .env)."""
    if environ is None:
        load_dotenv()
        environ = os.environ

    raw_backend = environ.get(BACKEND_CONFIG_ENV, "").strip()
    if not raw_backend:
        raise ConfigurationError(f"{BACKEND_CONFIG_ENV} is not set.")
    try:
        backend = BackendConfig.model_validate_json(raw_backend)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid {BACKEND_CONFIG_ENV}: {exc}") from exc

    app_id = environ.get(APP_ID_ENV, "").strip() or DEFAULT_APP_ID
    try:
        return Settings(
            backend=backend,
            app_id=app_id,
            initial_auth_token=environ.get(AUTH_TOKEN_ENV, "").strip() or None,
            host=environ.get(HOST_ENV, "").strip() or DEFAULT_HOST,
            port=environ.get(PORT_ENV, "").strip() or DEFAULT_PORT,
            headless=parse_flag(environ.get(HEADLESS_ENV)),
        )
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid settings: {exc}") from exc
