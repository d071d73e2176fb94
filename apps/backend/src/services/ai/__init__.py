"""Init file for AI services."""

from .exceptions import (
    MalformedResponse,
    NoProviderAvailable,
    PersistenceFailed,
    PipelineError,
    ProviderUnavailable,
)
from .models import InvocationKind, ModelTier, Provider


__all__ = [
    "InvocationKind",
    "MalformedResponse",
    "ModelTier",
    "NoProviderAvailable",
    "PersistenceFailed",
    "PipelineError",
    "Provider",
    "ProviderUnavailable",
]
