"""Debug and audit logging utilities."""

from .audit import AuditEvent, JsonlAuditLogger, utc_timestamp
from .debug import NULL_DEBUG_LOG, DebugLog, NullDebugLog, StreamDebugLog

__all__ = [
    "AuditEvent",
    "DebugLog",
    "JsonlAuditLogger",
    "NULL_DEBUG_LOG",
    "NullDebugLog",
    "StreamDebugLog",
    "utc_timestamp",
]
