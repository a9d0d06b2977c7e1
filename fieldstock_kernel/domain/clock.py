"""
Injectable time source for transfer timestamps.

TransferCoordinator never calls ``datetime.now()`` itself; it asks the Clock
it was constructed with. Production wiring uses ``SystemClock``. Tests use
``DeterministicClock`` so every record in a scenario carries a known
timestamp.

All clocks return timezone-aware UTC datetimes. The SQL store relies on this
when it normalises timestamps read back from SQLite.
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta


class Clock(ABC):

    @abstractmethod
    def now(self) -> datetime:
        """Current time, timezone-aware UTC."""
        ...


class SystemClock(Clock):

    def now(self) -> datetime:
        return datetime.now(UTC)


DEFAULT_START = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    ``step`` is added after every ``now()`` call, so with a non-zero step
    consecutive transfers get strictly increasing timestamps. The default
    step of zero freezes time.
    """

    def __init__(self, start: datetime = DEFAULT_START, step: timedelta = timedelta(0)):
        if start.tzinfo is None:
            raise ValueError("DeterministicClock start must be timezone-aware")
        self._current = start.astimezone(UTC)
        self._step = step

    def now(self) -> datetime:
        current = self._current
        self._current += self._step
        return current

    def advance(self, **delta: float) -> datetime:
        """Move forward by ``timedelta(**delta)`` and return the new time."""
        self._current += timedelta(**delta)
        return self._current

    def set_time(self, moment: datetime) -> None:
        self._current = moment.astimezone(UTC)
