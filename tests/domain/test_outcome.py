from __future__ import annotations

import pytest

from kickoff.domain.outcome import IllegalTransitionError, ProvisionState, ProvisionTracker
from kickoff.domain.platforms import PlatformId


def test_tracker_follows_create_path() -> None:
    tracker = ProvisionTracker()

    tracker.advance(PlatformId.RECORD_STORE, ProvisionState.CREATING)
    tracker.advance(PlatformId.RECORD_STORE, ProvisionState.CREATED)

    assert tracker.state(PlatformId.RECORD_STORE) is ProvisionState.CREATED
    assert tracker.is_terminal(PlatformId.RECORD_STORE)
    assert not tracker.is_terminal(PlatformId.TASK_BOARD)


def test_terminal_states_are_final() -> None:
    tracker = ProvisionTracker()
    tracker.advance(PlatformId.TASK_BOARD, ProvisionState.SKIPPED)

    with pytest.raises(IllegalTransitionError):
        tracker.advance(PlatformId.TASK_BOARD, ProvisionState.CREATING)


def test_updating_cannot_end_as_created() -> None:
    tracker = ProvisionTracker()
    tracker.advance(PlatformId.DOCUMENT_STORE, ProvisionState.UPDATING)

    with pytest.raises(IllegalTransitionError):
        tracker.advance(PlatformId.DOCUMENT_STORE, ProvisionState.CREATED)
