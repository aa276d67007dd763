"""Secret lookup over the credentials the orchestration engine attaches to a request."""

from __future__ import annotations

import base64
import binascii

from .errors import CredentialRetrievalError
from .models import FunctionRequest


class RequestSecretStore:
    def __init__(self, request: FunctionRequest) -> None:
        self._credentials = request.credentials

    def get_secret(self, name: str, field: str) -> bytes:
        source = self._credentials.get(name)
        if source is None:
            raise CredentialRetrievalError(f"credentials {name!r} not found in request")
        if source.credential_data is None:
            raise CredentialRetrievalError(f"credentials {name!r} carry no credential data")
        value = source.credential_data.data.get(field)
        if value is None:
            raise CredentialRetrievalError(f"credentials {name!r} have no field {field!r}")
        try:
            return base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise CredentialRetrievalError(f"credentials {name!r} field {field!r} is not valid base64: {exc}") from exc
