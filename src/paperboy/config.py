"""Configuration model and environment loading for paperboy."""

from __future__ import annotations

import os
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from paperboy.errors import InvalidRequestError

DEFAULT_BASE_URL = "https://content.guardianapis.com"
DEFAULT_PAGE_SIZE = 20


class ClientConfig(BaseModel):
    """Settings needed to talk to the content API."""

    base_url: str = DEFAULT_BASE_URL
    api_key: str
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=200)
    timeout_seconds: float = Field(default=30.0, gt=0)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(f"base_url must be an absolute http(s) URL, got '{value}'")
        return value.rstrip("/")

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("api_key must not be empty")
        return value.strip()


def load_config(env: dict[str, str] | None = None) -> ClientConfig:
    """Build a ClientConfig from the environment.

    A ``.env`` file in the working directory is loaded first unless an explicit
    mapping is passed. A missing API key is a startup error, so this raises
    InvalidRequestError instead of returning a half-usable config.
    """

    if env is None:
        load_dotenv()
        env = dict(os.environ)

    api_key = env.get("GUARDIAN_API_KEY", "")
    if not api_key.strip():
        raise InvalidRequestError("GUARDIAN_API_KEY is not configured. Set it in the environment or .env")

    values: dict[str, object] = {
        "api_key": api_key,
        "base_url": env.get("GUARDIAN_API_BASE_URL") or DEFAULT_BASE_URL,
    }
    if env.get("PAPERBOY_PAGE_SIZE"):
        values["page_size"] = env["PAPERBOY_PAGE_SIZE"]
    if env.get("PAPERBOY_TIMEOUT_SECONDS"):
        values["timeout_seconds"] = env["PAPERBOY_TIMEOUT_SECONDS"]

    try:
        return ClientConfig.model_validate(values)
    except ValidationError as exc:
        raise InvalidRequestError(f"Invalid configuration: {exc}") from exc
