"""
Observability Layer — Structured event logging.

Responsibility:
- Log domain events (registry polls, card synthesis, completion calls) as JSON lines
- Time operations and record success/failure
- Carry a component name and trace id across related events
"""

import json
import logging
import time
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger("observability")


class Observability:
    """Structured logger for aggregator events."""

    def __init__(self, component: str, session_id: str | None = None):
        self.component = component
        self.session_id = session_id
        self.trace_id = str(uuid.uuid4())

    def log_event(self, event_type: str, payload: dict[str, Any], level: str = "INFO") -> None:
        """Log a structured event."""
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "component": self.component,
            "trace_id": self.trace_id,
            "event": event_type,
            "level": level,
        }
        if self.session_id:
            entry["session_id"] = self.session_id
        entry.update(payload)

        log_method = getattr(logger, level.lower(), logger.info)
        log_method(json.dumps(entry, ensure_ascii=False, default=str))

    @contextmanager
    def measure(self, operation: str, metadata: dict[str, Any] | None = None):
        """Context manager to measure execution time of an operation.
        The yielded dict can be filled in by the caller and is logged with the metric.
        """
        start_time = time.perf_counter()
        extra: dict[str, Any] = dict(metadata or {})
        success = True
        error = None
        try:
            yield extra
        except Exception as e:
            success = False
            error = str(e)
            raise
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self.log_event(
                "execution_metric",
                {
                    "operation": operation,
                    "duration_ms": round(duration_ms, 2),
                    "success": success,
                    "error": error,
                    **extra,
                },
                level="INFO" if success else "ERROR",
            )

    def for_session(self, session_id: str | None) -> "Observability":
        """Create a logger sharing this component and trace id, scoped to a session."""
        obs = Observability(self.component, session_id)
        obs.trace_id = self.trace_id
        return obs
