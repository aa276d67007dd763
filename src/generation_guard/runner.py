"""Generation guard orchestration: catalog bootstrap plus per-resource policy checks."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping

from .catalog import (
    Ec2InstanceTypeLister,
    InstanceTypeCatalog,
    InstanceTypeLister,
    InstanceTypeRecord,
    load_instance_types,
)
from .classifier import is_current_generation
from .config import FunctionProfile
from .credentials import Credentials, parse_credentials
from .errors import (
    AuthenticationError,
    CredentialParseError,
    CredentialRetrievalError,
    ExtractionError,
    GenerationGuardError,
    PolicyViolationError,
    RemoteListingError,
    RequestEnvelopeError,
    describe,
    reason_code,
)
from .models import FunctionRequest, FunctionResponse, desired_resources
from .resources import DesiredResource, extract_instance_type, parse_resource
from .secret_store import RequestSecretStore

logger = logging.getLogger("generation_guard.runner")

ListerFactory = Callable[[Credentials, FunctionProfile], InstanceTypeLister]
Extractor = Callable[[DesiredResource], str]
Classifier = Callable[[str, Iterable[InstanceTypeRecord]], bool]


def ec2_lister_factory(credentials: Credentials, profile: FunctionProfile) -> InstanceTypeLister:
    return Ec2InstanceTypeLister.build(credentials, region=profile.region, endpoint_url=profile.endpoint_url)


class GenerationGuard:
    """Rejects desired EC2 instances that are not on a current generation instance type."""

    def __init__(
        self,
        catalog: InstanceTypeCatalog,
        profile: FunctionProfile | None = None,
        *,
        lister_factory: ListerFactory = ec2_lister_factory,
        extractor: Extractor = extract_instance_type,
        classifier: Classifier = is_current_generation,
    ) -> None:
        self.catalog = catalog
        self.profile = profile or FunctionProfile()
        self._lister_factory = lister_factory
        self._extractor = extractor
        self._classifier = classifier

    def evaluate(self, request: FunctionRequest) -> FunctionResponse:
        tag = request.meta.tag
        logger.info("Running function tag=%s", tag)
        response = FunctionResponse.to(request, self.profile.response_ttl_seconds)

        if not self.catalog.ready:
            try:
                loaded = self.catalog.initialize(lambda: self._load_catalog(request))
            except (CredentialRetrievalError, CredentialParseError) as exc:
                return self._fatal(response, tag, f"cannot get credentials: {describe(exc)}", exc)
            except (AuthenticationError, RemoteListingError) as exc:
                return self._fatal(response, tag, f"cannot load instance types: {describe(exc)}", exc)
            if loaded:
                logger.info("Instance type catalog ready tag=%s records=%s", tag, len(self.catalog))

        try:
            desired = desired_resources(request)
        except RequestEnvelopeError as exc:
            return self._fatal(response, tag, f"cannot get desired composed resources: {describe(exc)}", exc)

        checked = 0
        for name, document in desired.items():
            resource = parse_resource(document)
            if not resource.has_instance_type_field:
                continue
            try:
                instance_type = self._extractor(resource)
            except ExtractionError as exc:
                return self._fatal(
                    response,
                    tag,
                    f"cannot get instance type from desired resource {name}: {describe(exc)}",
                    exc,
                )
            if not self._classifier(instance_type, self.catalog.records):
                exc = PolicyViolationError(name, instance_type)
                return self._fatal(response, tag, f"invalid: {describe(exc)}", exc)
            checked += 1

        logger.info("Accepted tag=%s resources=%s instances_checked=%s", tag, len(desired), checked)
        return response

    def _load_catalog(self, request: FunctionRequest) -> tuple[InstanceTypeRecord, ...]:
        profile = self.profile
        blob = RequestSecretStore(request).get_secret(profile.secret_name, profile.secret_field)
        credentials = parse_credentials(
            blob,
            profile.access_key_field,
            profile.secret_key_field,
            section=profile.credentials_section,
        )
        try:
            lister = self._lister_factory(credentials, profile)
            return load_instance_types(lister)
        except GenerationGuardError:
            raise
        except Exception as exc:
            raise RemoteListingError(f"{type(exc).__name__}: {exc}") from exc

    @staticmethod
    def _fatal(response: FunctionResponse, tag: str, message: str, exc: Exception) -> FunctionResponse:
        logger.warning("Fatal tag=%s code=%s message=%s", tag, reason_code(exc), message)
        return response.fatal(message)

    def health(self) -> dict[str, Any]:
        return {"catalog_state": self.catalog.state.value, "catalog_records": len(self.catalog)}


def evaluate_payload(guard: GenerationGuard, payload: Mapping[str, Any]) -> dict[str, Any]:
    """Validate a JSON request envelope, evaluate it, and return the JSON response envelope."""
    request = FunctionRequest.model_validate(payload)
    response = guard.evaluate(request)
    return response.model_dump(mode="json", by_alias=True)
