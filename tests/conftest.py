"""Shared pytest fixtures for all tests."""
import pytest

from inbox_events import InboxReducer, InboxSettings


@pytest.fixture
def settings() -> InboxSettings:
    """Settings pinned to the defaults, independent of the environment."""
    return InboxSettings(
        blocked_users=["John_Doe"],
        blurb_max_length=256,
        compact_dedup_keys=True,
        anomaly_history=1000,
    )


@pytest.fixture
def reducer(settings: InboxSettings) -> InboxReducer:
    return InboxReducer(settings)
