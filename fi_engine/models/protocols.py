"""
Protocol interfaces for the engine's external collaborators.

The engine never reads storage or the wall clock directly. Net-worth history,
scenarios, the user profile and "now" are supplied through the protocols
below so that every projection stays a deterministic function of its inputs.
"""

from datetime import datetime, timezone
from typing import List, Optional, Protocol, runtime_checkable

from fi_engine.models.scenario import NetWorthSample, ScenarioAssumptions, UserProfile


@runtime_checkable
class Clock(Protocol):
    """Source of the current instant."""

    def now(self) -> datetime:
        """Return the current time as a timezone-aware datetime."""
        ...


class NetWorthHistoryReader(Protocol):
    """
    Provides recorded net-worth samples.

    Samples are returned newest-first; the first element is the anchor used by
    real-time estimates and projections.
    """

    def list_samples(self) -> List[NetWorthSample]:
        """Get all net-worth samples, newest first."""
        ...


class ScenarioReader(Protocol):
    """Provides the user's scenario assumptions."""

    def list_scenarios(self) -> List[ScenarioAssumptions]:
        """Get every scenario in display order."""
        ...


class ProfileReader(Protocol):
    """Provides personal information used for age calculations."""

    def get_profile(self) -> Optional[UserProfile]:
        """Get the user profile, or None when none has been saved."""
        ...


class SystemClock:
    """Clock backed by the system time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock frozen at a given instant, for reproducible runs."""

    def __init__(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self.instant = instant

    def now(self) -> datetime:
        return self.instant
