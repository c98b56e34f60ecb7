"""Tests for dependency descriptor validation and timeline helpers."""

from __future__ import annotations

import pytest

from stackdeploy.domain import (
    DEPENDENCY_KIND_SOFT,
    STAGE_STATUS_WARNING,
    DependencyDescriptor,
    PollOutcome,
    domain_build_stage_event,
    domain_timeline_stages_with_status,
)


@pytest.mark.parametrize(
    "arguments",
    [
        {"name": ""},
        {"name": "mysql", "max_attempts": 0},
        {"name": "mysql", "delay_seconds": -0.5},
        {"name": "mysql", "kind": "optional"},
        {"name": "mysql", "progress_interval": 0},
    ],
)
def test_dependency_descriptor_rejects_invalid_values(arguments: dict[str, object]) -> None:
    with pytest.raises(ValueError):
        DependencyDescriptor(**arguments)


def test_dependency_descriptor_defaults_to_hard_dependency() -> None:
    assert DependencyDescriptor(name="mysql").dependency_is_hard()
    assert not DependencyDescriptor(name="tileserver", kind=DEPENDENCY_KIND_SOFT).dependency_is_hard()


def test_poll_outcome_ready_flag() -> None:
    assert PollOutcome(dependency_name="mysql", status="ready", attempts=1).poll_outcome_is_ready()
    assert not PollOutcome(dependency_name="mysql", status="exhausted", attempts=3).poll_outcome_is_ready()


def test_domain_timeline_stages_with_status_preserves_order() -> None:
    """Select stages by status marker in timeline order."""

    timeline = [
        domain_build_stage_event(stage="pull", status=STAGE_STATUS_WARNING, details={"message": "pull failed"}),
        domain_build_stage_event(stage="up", status="completed"),
        domain_build_stage_event(stage="tls", status=STAGE_STATUS_WARNING),
    ]

    assert domain_timeline_stages_with_status(timeline, STAGE_STATUS_WARNING) == ["pull", "tls"]
    assert timeline[0]["details"] == {"message": "pull failed"}
    assert "details" not in timeline[1]


def test_domain_build_stage_event_rejects_blank_stage() -> None:
    with pytest.raises(ValueError):
        domain_build_stage_event(stage=" ", status="started")
