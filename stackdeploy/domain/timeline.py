"""Deployment stage timeline helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Final

STAGE_STATUS_STARTED: Final[str] = "started"
STAGE_STATUS_COMPLETED: Final[str] = "completed"
STAGE_STATUS_WARNING: Final[str] = "warning"
STAGE_STATUS_FAILED: Final[str] = "failed"
STAGE_STATUS_SKIPPED: Final[str] = "skipped"


def domain_build_stage_event(
    stage: str,
    status: str,
    details: dict[str, Any] | None = None,
) -> dict[str, object]:
    """Build one structured deployment timeline event.

    Args:
        stage: Deployment stage name (`preflight`, `up`, `database`, ...).
        status: Stage status marker.
        details: Optional structured details object.

    Returns:
        dict[str, object]: Structured timeline event.

    Raises:
        ValueError: Raised when stage or status is blank.
    """

    if not stage.strip():
        raise ValueError("stage must not be blank")
    if not status.strip():
        raise ValueError("status must not be blank")

    event_payload: dict[str, object] = {
        "stage": stage,
        "status": status,
        "at_utc": datetime.now(timezone.utc).isoformat(),
    }
    if details:
        event_payload["details"] = dict(details)
    return event_payload


def domain_timeline_stages_with_status(timeline: list[dict[str, object]], status: str) -> list[str]:
    """Return stage names that recorded the given status, in timeline order.

    Args:
        timeline: Deployment stage timeline.
        status: Status marker to select.

    Returns:
        list[str]: Stage names, duplicates preserved.
    """

    return [str(event["stage"]) for event in timeline if event.get("status") == status]
