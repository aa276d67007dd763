"""Desired resource kinds and instance-type extraction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .errors import ExtractionError

INSTANCE_GROUP = "ec2.aws.upbound.io"
INSTANCE_KIND = "Instance"
INSTANCE_TYPE_PATH = "spec.forProvider.instanceType"


@dataclass(frozen=True)
class GroupVersionKind:
    group: str
    version: str
    kind: str

    @classmethod
    def of(cls, document: Mapping[str, Any]) -> "GroupVersionKind":
        api_version = document.get("apiVersion")
        kind = document.get("kind")
        api_version = api_version if isinstance(api_version, str) else ""
        kind = kind if isinstance(kind, str) else ""
        group, _, version = api_version.rpartition("/")
        return cls(group=group, version=version, kind=kind)


@dataclass(frozen=True)
class InstanceResource:
    gvk: GroupVersionKind
    document: Mapping[str, Any]

    has_instance_type_field = True

    def instance_type(self) -> str:
        return get_string(self.document, INSTANCE_TYPE_PATH)


@dataclass(frozen=True)
class OtherResource:
    gvk: GroupVersionKind
    document: Mapping[str, Any]

    has_instance_type_field = False

    def instance_type(self) -> str:
        return ""


DesiredResource = InstanceResource | OtherResource


def parse_resource(document: Mapping[str, Any]) -> DesiredResource:
    gvk = GroupVersionKind.of(document)
    if gvk.group == INSTANCE_GROUP and gvk.kind == INSTANCE_KIND:
        return InstanceResource(gvk=gvk, document=document)
    return OtherResource(gvk=gvk, document=document)


def extract_instance_type(resource: DesiredResource | Mapping[str, Any]) -> str:
    """Instance type declared by ``resource``, or "" for kinds the guard does not police."""
    if isinstance(resource, Mapping):
        resource = parse_resource(resource)
    return resource.instance_type()


def get_string(document: Mapping[str, Any], path: str) -> str:
    """Read a dotted string field. Absent fields are "", malformed ones raise."""
    node: Any = document
    walked: list[str] = []
    for segment in path.split("."):
        if not isinstance(node, Mapping):
            raise ExtractionError(f"{'.'.join(walked)}: expected an object, got {type(node).__name__}")
        walked.append(segment)
        if segment not in node or node[segment] is None:
            return ""
        node = node[segment]
    if not isinstance(node, str):
        raise ExtractionError(f"{path}: expected a string, got {type(node).__name__}")
    return node
