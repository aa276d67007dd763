"""Current-generation classification against the loaded catalog."""

from __future__ import annotations

from enum import Enum
from typing import Iterable

from .catalog import InstanceTypeRecord


class GenerationStatus(str, Enum):
    CURRENT = "CURRENT"
    LEGACY = "LEGACY"
    UNKNOWN = "UNKNOWN"


def classify(instance_type: str, records: Iterable[InstanceTypeRecord]) -> GenerationStatus:
    if not instance_type:
        return GenerationStatus.UNKNOWN
    # Catalog is a few hundred entries; a scan is fine.
    for record in records:
        if record.identifier == instance_type:
            return GenerationStatus.CURRENT if record.current_generation else GenerationStatus.LEGACY
    return GenerationStatus.UNKNOWN


def is_current_generation(instance_type: str, records: Iterable[InstanceTypeRecord]) -> bool:
    return classify(instance_type, records) is GenerationStatus.CURRENT
