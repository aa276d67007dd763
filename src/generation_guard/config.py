"""Function profile: the fixed constants the guard runs with."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict

DEFAULT_REGION = "us-west-2"
DEFAULT_TTL_SECONDS = 60


class FunctionProfile(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    profile_id: str = "default"
    region: str = DEFAULT_REGION
    endpoint_url: str | None = None
    secret_name: str = "aws-creds"
    secret_field: str = "credentials"
    credentials_section: str = "default"
    access_key_field: str = "aws_access_key_id"
    secret_key_field: str = "aws_secret_access_key"
    response_ttl_seconds: int = DEFAULT_TTL_SECONDS


def load_profile(path: Path | None) -> FunctionProfile:
    if path is None:
        return FunctionProfile()
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"profile invalid: {path}")
    return FunctionProfile(**data)
