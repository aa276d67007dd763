"""Generation guard error taxonomy and helpers."""

from __future__ import annotations


class GenerationGuardError(RuntimeError):
    """Stable error surfaced as a reason code plus an optional detail."""

    code = "INTERNAL_ERROR"

    def __init__(self, detail: str | None = None, *, code: str | None = None) -> None:
        if code:
            self.code = code
        self.detail = detail
        message = f"{self.code}:{detail}" if detail else self.code
        super().__init__(message)


class CredentialRetrievalError(GenerationGuardError):
    code = "CREDENTIAL_RETRIEVAL_FAILED"


class CredentialParseError(GenerationGuardError):
    code = "CREDENTIAL_PARSE_FAILED"


class AuthenticationError(GenerationGuardError):
    code = "PROVIDER_AUTH_REJECTED"


class RemoteListingError(GenerationGuardError):
    code = "INSTANCE_TYPE_LISTING_FAILED"


class ExtractionError(GenerationGuardError):
    code = "INSTANCE_TYPE_MALFORMED"


class PolicyViolationError(GenerationGuardError):
    code = "INSTANCE_TYPE_NOT_CURRENT_GEN"

    def __init__(self, resource_name: str, instance_type: str) -> None:
        self.resource_name = resource_name
        self.instance_type = instance_type
        super().__init__(
            f"desired resource {resource_name} must use a current generation instance type"
            f" - ({instance_type} is not current gen)"
        )


class RequestEnvelopeError(GenerationGuardError):
    code = "REQUEST_ENVELOPE_INVALID"


def reason_code(exc: Exception) -> str:
    if isinstance(exc, GenerationGuardError):
        return exc.code
    return "INTERNAL_ERROR"


def describe(exc: Exception) -> str:
    """Human-readable text for a fatal result: the detail when present, else the message."""
    if isinstance(exc, GenerationGuardError):
        return exc.detail or exc.code
    return str(exc) or type(exc).__name__
