"""Client-side synchronization of the notification list."""

from .controller import SUBSCRIBE_ERROR, NotificationSyncController, SyncState
from .notices import LoggingNotifier, Notifier
from .session import SIGNED_IN, SIGNED_OUT, AuthSession
from .tracing import LoggingTracer, RecordingTracer, SyncTracer, TraceEvent

__all__ = [
    "NotificationSyncController",
    "SyncState",
    "SUBSCRIBE_ERROR",
    "Notifier",
    "LoggingNotifier",
    "AuthSession",
    "SIGNED_IN",
    "SIGNED_OUT",
    "SyncTracer",
    "LoggingTracer",
    "RecordingTracer",
    "TraceEvent",
]
