from __future__ import annotations

import threading
import time

import boto3
import pytest
from botocore.stub import Stubber

from generation_guard.catalog import (
    CatalogState,
    Ec2InstanceTypeLister,
    InstanceTypeCatalog,
    InstanceTypeRecord,
    load_instance_types,
)
from generation_guard.errors import AuthenticationError, RemoteListingError


class PagedLister:
    def __init__(self, pages: list[list[InstanceTypeRecord]], fail_at: int | None = None) -> None:
        self.pages = pages
        self.fail_at = fail_at
        self.cursors: list[str | None] = []

    def list_instance_types(self, cursor: str | None) -> tuple[list[InstanceTypeRecord], str | None]:
        self.cursors.append(cursor)
        index = 0 if cursor is None else int(cursor.split("-")[1])
        if self.fail_at == index:
            raise RemoteListingError(f"page {index} failed")
        next_cursor = f"page-{index + 1}" if index + 1 < len(self.pages) else None
        return list(self.pages[index]), next_cursor


def _page(prefix: str, size: int) -> list[InstanceTypeRecord]:
    return [InstanceTypeRecord(f"{prefix}.{index}", index % 2 == 0) for index in range(size)]


def _ec2_client():
    return boto3.client(
        "ec2",
        region_name="us-west-2",
        aws_access_key_id="AKIATEST",
        aws_secret_access_key="secret",
    )


def test_load_follows_cursor_until_exhausted() -> None:
    lister = PagedLister([_page("a", 100), _page("b", 100), _page("c", 100), _page("d", 40)])

    records = load_instance_types(lister)

    assert len(records) == 340
    assert len(lister.cursors) == 4
    assert lister.cursors == [None, "page-1", "page-2", "page-3"]
    assert records[0].identifier == "a.0"
    assert records[-1].identifier == "d.39"


def test_load_failure_returns_nothing() -> None:
    lister = PagedLister([_page("a", 100), _page("b", 100), _page("c", 5)], fail_at=2)

    with pytest.raises(RemoteListingError):
        load_instance_types(lister)
    assert len(lister.cursors) == 3


def test_empty_catalog_is_a_listing_failure() -> None:
    with pytest.raises(RemoteListingError):
        load_instance_types(PagedLister([[]]))


def test_catalog_populates_once() -> None:
    catalog = InstanceTypeCatalog()
    assert catalog.state is CatalogState.UNINITIALIZED
    calls: list[int] = []

    def loader() -> tuple[InstanceTypeRecord, ...]:
        calls.append(1)
        return (InstanceTypeRecord("m6i.large", True),)

    assert catalog.initialize(loader) is True
    assert catalog.initialize(loader) is False
    assert catalog.state is CatalogState.READY
    assert len(catalog) == 1
    assert len(calls) == 1


def test_failed_initialize_leaves_catalog_uninitialized() -> None:
    catalog = InstanceTypeCatalog()

    def failing_loader() -> tuple[InstanceTypeRecord, ...]:
        raise AuthenticationError("AuthFailure")

    with pytest.raises(AuthenticationError):
        catalog.initialize(failing_loader)
    assert catalog.state is CatalogState.UNINITIALIZED
    assert catalog.records == ()

    assert catalog.initialize(lambda: (InstanceTypeRecord("m6i.large", True),)) is True
    assert catalog.ready


def test_concurrent_first_calls_load_once() -> None:
    catalog = InstanceTypeCatalog()
    calls: list[int] = []
    barrier = threading.Barrier(4)

    def slow_loader() -> tuple[InstanceTypeRecord, ...]:
        calls.append(1)
        time.sleep(0.05)
        return (InstanceTypeRecord("m6i.large", True),)

    def worker() -> None:
        barrier.wait()
        catalog.initialize(slow_loader)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(calls) == 1
    assert catalog.ready


def test_ec2_lister_pages_with_next_token() -> None:
    client = _ec2_client()
    with Stubber(client) as stubber:
        stubber.add_response(
            "describe_instance_types",
            {
                "InstanceTypes": [
                    {"InstanceType": "t3.micro", "CurrentGeneration": False},
                    {"InstanceType": "m6i.large", "CurrentGeneration": True},
                ],
                "NextToken": "token-1",
            },
            {},
        )
        stubber.add_response(
            "describe_instance_types",
            {"InstanceTypes": [{"InstanceType": "c7g.xlarge", "CurrentGeneration": True}]},
            {"NextToken": "token-1"},
        )

        records = load_instance_types(Ec2InstanceTypeLister(client))
        stubber.assert_no_pending_responses()

    assert records == (
        InstanceTypeRecord("t3.micro", False),
        InstanceTypeRecord("m6i.large", True),
        InstanceTypeRecord("c7g.xlarge", True),
    )


def test_ec2_lister_missing_current_generation_is_legacy() -> None:
    client = _ec2_client()
    with Stubber(client) as stubber:
        stubber.add_response("describe_instance_types", {"InstanceTypes": [{"InstanceType": "m1.small"}]}, {})
        records, cursor = Ec2InstanceTypeLister(client).list_instance_types(None)

    assert records == [InstanceTypeRecord("m1.small", False)]
    assert cursor is None


@pytest.mark.parametrize("code", ["AuthFailure", "UnauthorizedOperation", "InvalidClientTokenId"])
def test_ec2_lister_maps_rejected_credentials(code: str) -> None:
    client = _ec2_client()
    with Stubber(client) as stubber:
        stubber.add_client_error(
            "describe_instance_types",
            service_error_code=code,
            service_message="credentials rejected",
            http_status_code=401,
        )
        with pytest.raises(AuthenticationError) as excinfo:
            Ec2InstanceTypeLister(client).list_instance_types(None)
    assert code in str(excinfo.value)


def test_ec2_lister_maps_other_failures_to_listing_error() -> None:
    client = _ec2_client()
    with Stubber(client) as stubber:
        stubber.add_response(
            "describe_instance_types",
            {"InstanceTypes": [{"InstanceType": "m6i.large", "CurrentGeneration": True}], "NextToken": "t"},
            {},
        )
        stubber.add_client_error(
            "describe_instance_types",
            service_error_code="RequestLimitExceeded",
            service_message="slow down",
            http_status_code=503,
        )
        with pytest.raises(RemoteListingError) as excinfo:
            load_instance_types(Ec2InstanceTypeLister(client))
    assert "RequestLimitExceeded" in str(excinfo.value)


def test_ec2_lister_build_targets_configured_region() -> None:
    from generation_guard.credentials import Credentials

    lister = Ec2InstanceTypeLister.build(
        Credentials(access_key_id="AKIABUILD", secret_access_key="built-secret"),
        region="us-west-2",
    )

    client = lister._client
    assert client.meta.region_name == "us-west-2"
    assert client.meta.service_model.service_name == "ec2"
