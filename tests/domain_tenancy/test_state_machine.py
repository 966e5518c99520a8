"""Unit tests for the tenant provisioning transition table."""

from __future__ import annotations

import pytest

from locatio.domain.tenancy.state_machine import (
    ACCESSIBLE_STATES,
    PROVISIONING_STATES,
    TRANSITIONS,
    can_transition,
    next_state,
    progress_for,
    status_message_for,
)
from locatio.foundation.domain.exceptions import InvalidStateTransitionError
from locatio.foundation.domain.tenant_value_objects import ProvisioningEvent, ProvisioningState

S = ProvisioningState
E = ProvisioningEvent


@pytest.mark.unit
class TestTransitions:
    @pytest.mark.parametrize(
        ("state", "event", "expected"),
        [
            (S.PENDING, E.ALLOCATE_SUBDOMAIN, S.SUBDOMAIN_ALLOCATED),
            (S.SUBDOMAIN_ALLOCATED, E.START_CONFIGURING, S.CONFIGURING),
            (S.CONFIGURING, E.START_SEEDING, S.SEEDING),
            (S.SEEDING, E.MARK_READY, S.READY),
            (S.READY, E.GO_LIVE, S.LIVE),
            (S.LIVE, E.SUSPEND, S.SUSPENDED),
            (S.SUSPENDED, E.REACTIVATE, S.LIVE),
            (S.FAILED, E.RETRY, S.PENDING),
            (S.FAILED, E.TERMINATE, S.TERMINATED),
        ],
    )
    def test_allowed(self, state: S, event: E, expected: S) -> None:
        assert next_state(state, event) is expected

    @pytest.mark.parametrize("state", [S.PENDING, S.SUBDOMAIN_ALLOCATED, S.CONFIGURING, S.SEEDING])
    def test_fail_allowed_before_ready(self, state: S) -> None:
        assert can_transition(state, E.FAIL)

    @pytest.mark.parametrize("state", [S.READY, S.LIVE, S.SUSPENDED, S.TERMINATED, S.FAILED])
    def test_fail_not_allowed_after_ready(self, state: S) -> None:
        assert not can_transition(state, E.FAIL)

    def test_terminated_is_terminal(self) -> None:
        assert not any(state is S.TERMINATED for state, _ in TRANSITIONS)

    def test_accepts_string_state(self) -> None:
        assert next_state("ready", E.GO_LIVE) is S.LIVE

    def test_invalid_transition_message(self) -> None:
        with pytest.raises(InvalidStateTransitionError, match="Cannot go_live: current state is seeding"):
            next_state(S.SEEDING, E.GO_LIVE)


@pytest.mark.unit
class TestProgress:
    @pytest.mark.parametrize(
        ("state", "expected"),
        [
            (S.PENDING, 0),
            (S.SUBDOMAIN_ALLOCATED, 20),
            (S.CONFIGURING, 40),
            (S.SEEDING, 70),
            (S.READY, 95),
            (S.LIVE, 100),
            (S.TERMINATED, 0),
        ],
    )
    def test_progress(self, state: S, expected: int) -> None:
        assert progress_for(state) == expected

    def test_failed_reports_interrupted_stage(self) -> None:
        assert progress_for(S.FAILED, S.SEEDING) == 70

    def test_suspended_reports_interrupted_stage(self) -> None:
        assert progress_for(S.SUSPENDED, "live") == 100

    def test_failed_without_history(self) -> None:
        assert progress_for(S.FAILED) == 0


@pytest.mark.unit
class TestStatusMessages:
    def test_messages(self) -> None:
        assert status_message_for(S.CONFIGURING) == "Configuring your website..."
        assert status_message_for(S.LIVE) == "Your website is live!"

    def test_failed_includes_error(self) -> None:
        assert status_message_for(S.FAILED, "timeout") == "Setup failed: timeout"
        assert status_message_for(S.FAILED) == "Setup failed: Unknown error"


@pytest.mark.unit
class TestStateGroups:
    def test_provisioning_states(self) -> None:
        assert S.READY in PROVISIONING_STATES
        assert S.LIVE not in PROVISIONING_STATES

    def test_accessible_states(self) -> None:
        assert frozenset({S.READY, S.LIVE}) == ACCESSIBLE_STATES
