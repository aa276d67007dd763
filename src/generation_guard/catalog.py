"""EC2 instance-type catalog: paginated loader and the populate-once cache."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import threading
from typing import Any, Callable, Iterable, Protocol, Sequence

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError, PartialCredentialsError

from .credentials import Credentials
from .errors import AuthenticationError, RemoteListingError

logger = logging.getLogger("generation_guard.catalog")

_AUTH_ERROR_CODES = {
    "AuthFailure",
    "UnauthorizedOperation",
    "InvalidClientTokenId",
    "SignatureDoesNotMatch",
    "UnrecognizedClientException",
    "ExpiredToken",
}


@dataclass(frozen=True)
class InstanceTypeRecord:
    identifier: str
    current_generation: bool

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "InstanceTypeRecord":
        return cls(
            identifier=str(item.get("InstanceType") or ""),
            current_generation=bool(item.get("CurrentGeneration", False)),
        )


class InstanceTypeLister(Protocol):
    def list_instance_types(self, cursor: str | None) -> tuple[list[InstanceTypeRecord], str | None]:
        ...


class Ec2InstanceTypeLister:
    """One ``DescribeInstanceTypes`` page per call, authenticated with static keys."""

    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def build(
        cls,
        credentials: Credentials,
        *,
        region: str,
        endpoint_url: str | None = None,
    ) -> "Ec2InstanceTypeLister":
        try:
            client = boto3.client(
                "ec2",
                region_name=region,
                endpoint_url=endpoint_url,
                aws_access_key_id=credentials.access_key_id,
                aws_secret_access_key=credentials.secret_access_key,
            )
        except (BotoCoreError, ValueError) as exc:
            raise RemoteListingError(f"cannot create ec2 client region={region}: {exc}") from exc
        return cls(client)

    def list_instance_types(self, cursor: str | None) -> tuple[list[InstanceTypeRecord], str | None]:
        kwargs: dict[str, Any] = {}
        if cursor:
            kwargs["NextToken"] = cursor
        try:
            response = self._client.describe_instance_types(**kwargs)
        except (NoCredentialsError, PartialCredentialsError) as exc:
            raise AuthenticationError(str(exc)) from exc
        except ClientError as exc:
            code = _error_code(exc)
            if code in _AUTH_ERROR_CODES:
                raise AuthenticationError(f"{code}: {_error_detail(exc)}") from exc
            raise RemoteListingError(f"DescribeInstanceTypes failed code={code} detail={_error_detail(exc)}") from exc
        except BotoCoreError as exc:
            raise RemoteListingError(f"DescribeInstanceTypes failed: {exc}") from exc
        records = [InstanceTypeRecord.from_api(item) for item in response.get("InstanceTypes", [])]
        return records, response.get("NextToken") or None


def load_instance_types(lister: InstanceTypeLister) -> tuple[InstanceTypeRecord, ...]:
    """Follow the listing cursor until exhausted and return every record.

    Nothing is returned unless every page succeeds.
    """
    records: list[InstanceTypeRecord] = []
    cursor: str | None = None
    pages = 0
    while True:
        page, cursor = lister.list_instance_types(cursor)
        pages += 1
        records.extend(page)
        logger.debug("Instance type page=%s records=%s more=%s", pages, len(page), bool(cursor))
        if not cursor:
            break
    if not records:
        raise RemoteListingError("provider returned an empty instance type catalog")
    logger.info("Loaded instance type catalog pages=%s records=%s", pages, len(records))
    return tuple(records)


class CatalogState(str, Enum):
    UNINITIALIZED = "UNINITIALIZED"
    READY = "READY"


class InstanceTypeCatalog:
    """Process-lifetime catalog: populated once, read many times, never invalidated.

    ``initialize`` is single-flight: concurrent first callers wait on one load.
    A load that raises leaves the catalog UNINITIALIZED so a later call can retry.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: tuple[InstanceTypeRecord, ...] = ()
        self._state = CatalogState.UNINITIALIZED

    @classmethod
    def from_records(cls, records: Iterable[InstanceTypeRecord]) -> "InstanceTypeCatalog":
        catalog = cls()
        catalog.initialize(lambda: tuple(records))
        return catalog

    @property
    def state(self) -> CatalogState:
        return self._state

    @property
    def ready(self) -> bool:
        return self._state is CatalogState.READY

    @property
    def records(self) -> tuple[InstanceTypeRecord, ...]:
        return self._records

    def __len__(self) -> int:
        return len(self._records)

    def initialize(self, loader: Callable[[], Sequence[InstanceTypeRecord]]) -> bool:
        """Populate the catalog from ``loader`` unless already READY.

        Returns True when this call performed the load.
        """
        if self.ready:
            return False
        with self._lock:
            if self.ready:
                return False
            records = tuple(loader())
            self._records = records
            self._state = CatalogState.READY
        return True


def _error_code(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        return str(exc.response.get("Error", {}).get("Code") or "")
    return ""


def _error_detail(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        return str(exc.response.get("Error", {}).get("Message") or "")
    return str(exc)
