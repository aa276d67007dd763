"""Function request/response envelope models."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import RequestEnvelopeError


class Severity(str, Enum):
    NORMAL = "SEVERITY_NORMAL"
    WARNING = "SEVERITY_WARNING"
    FATAL = "SEVERITY_FATAL"


class RequestMeta(BaseModel):
    tag: str = ""


class DesiredState(BaseModel):
    composite: Optional[dict[str, Any]] = None
    # Entries are checked by desired_resources() so a bad entry becomes a fatal result.
    resources: dict[str, Any] = Field(default_factory=dict)


class CredentialData(BaseModel):
    # Base64 text; decoded only when the guard actually needs the secret.
    data: dict[str, str] = Field(default_factory=dict)


class CredentialSource(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    credential_data: Optional[CredentialData] = Field(default=None, alias="credentialData")


class FunctionRequest(BaseModel):
    meta: RequestMeta = Field(default_factory=RequestMeta)
    observed: dict[str, Any] = Field(default_factory=dict)
    desired: DesiredState = Field(default_factory=DesiredState)
    credentials: dict[str, CredentialSource] = Field(default_factory=dict)


class Result(BaseModel):
    severity: Severity
    message: str


class ResponseMeta(BaseModel):
    tag: str = ""
    ttl: str


class FunctionResponse(BaseModel):
    meta: ResponseMeta
    desired: DesiredState
    results: list[Result] = Field(default_factory=list)

    @classmethod
    def to(cls, request: FunctionRequest, ttl_seconds: int) -> "FunctionResponse":
        """Start a response that carries the request's desired state through unchanged."""
        return cls(
            meta=ResponseMeta(tag=request.meta.tag, ttl=f"{ttl_seconds}s"),
            desired=request.desired.model_copy(deep=True),
        )

    def fatal(self, message: str) -> "FunctionResponse":
        self.results.append(Result(severity=Severity.FATAL, message=message))
        return self

    @property
    def is_fatal(self) -> bool:
        return any(item.severity == Severity.FATAL for item in self.results)

    @property
    def fatal_message(self) -> str | None:
        for item in self.results:
            if item.severity == Severity.FATAL:
                return item.message
        return None


def desired_resources(request: FunctionRequest) -> dict[str, dict[str, Any]]:
    """Return the desired composed resource documents keyed by name, in request order."""
    documents: dict[str, dict[str, Any]] = {}
    for name, entry in request.desired.resources.items():
        if not isinstance(entry, dict):
            raise RequestEnvelopeError(f"desired resource {name} is not an object")
        resource = entry.get("resource", {})
        if not isinstance(resource, dict):
            raise RequestEnvelopeError(f"desired resource {name} has no resource object")
        documents[str(name)] = resource
    return documents
