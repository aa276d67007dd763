"""Composition function that only admits current generation EC2 instance types."""

from .catalog import CatalogState, InstanceTypeCatalog, InstanceTypeRecord, load_instance_types
from .classifier import GenerationStatus, classify, is_current_generation
from .credentials import Credentials, parse_credentials
from .models import FunctionRequest, FunctionResponse
from .runner import GenerationGuard

__all__ = [
    "CatalogState",
    "Credentials",
    "FunctionRequest",
    "FunctionResponse",
    "GenerationGuard",
    "GenerationStatus",
    "InstanceTypeCatalog",
    "InstanceTypeRecord",
    "classify",
    "is_current_generation",
    "load_instance_types",
    "parse_credentials",
]
