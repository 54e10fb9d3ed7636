"""Snapshot, normalize, compare and restore one module directory."""

from .normalizer import (
    Deadline,
    ExternalNormalizer,
    InvocationFailure,
    NormalizationOutcome,
    NormalizationSuccess,
    ToolFailure,
)
from .snapshot import (
    FileState,
    Presence,
    RollbackGuard,
    Snapshot,
    TrackedFilePair,
    capture,
    restore,
)
from .verifier import TidinessVerifier, VerificationResult

__all__ = [
    "Deadline",
    "ExternalNormalizer",
    "FileState",
    "InvocationFailure",
    "NormalizationOutcome",
    "NormalizationSuccess",
    "Presence",
    "RollbackGuard",
    "Snapshot",
    "TidinessVerifier",
    "ToolFailure",
    "TrackedFilePair",
    "VerificationResult",
    "capture",
    "restore",
]
