"""
SLA Clock
=========

Derives a ticket's deadline from its creation time and computes the
remaining time against a given "now".

The clock is a two-state machine (Counting → Breached) plus two
terminal outputs for bad input (NoDeadline, InvalidDeadline). All
calculations are pure functions of (deadline, now); the periodic
recomputation lives in the infrastructure layer (SLACountdown).
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from helpdesk.config import settings
from helpdesk.core import InvalidDeadlineException, NoDeadlineException


class SLAState(str, Enum):
    """Output states of the SLA clock."""
    COUNTING = "counting"
    BREACHED = "breached"
    NO_DEADLINE = "no_deadline"
    INVALID_DEADLINE = "invalid_deadline"


TERMINAL_STATES = frozenset({SLAState.BREACHED, SLAState.NO_DEADLINE, SLAState.INVALID_DEADLINE})


class SLAConfig(BaseModel):
    """
    SLA window settings.

    Loaded from YAML when a policy file is present, otherwise from
    application settings.
    """
    window_minutes: int = Field(default=120, ge=1, description="Minutes from creation to deadline")
    urgency_threshold_minutes: int = Field(
        default=120, ge=0, description="Remaining minutes below which a reading is urgent"
    )
    poll_interval_seconds: float = Field(default=1.0, gt=0, description="Countdown recompute interval")

    @classmethod
    def from_settings(cls) -> "SLAConfig":
        return cls(
            window_minutes=settings.sla_window_minutes,
            urgency_threshold_minutes=settings.sla_urgency_threshold_minutes,
            poll_interval_seconds=settings.sla_poll_interval_seconds,
        )


@dataclass(frozen=True)
class SLAReading:
    """
    Immutable result of one SLA computation.

    hours_left/minutes_left are only meaningful while COUNTING.
    """
    state: SLAState
    deadline: Optional[datetime] = None
    remaining_seconds: float = 0.0
    hours_left: int = 0
    minutes_left: int = 0
    is_urgent: bool = False

    @property
    def is_breached(self) -> bool:
        return self.state == SLAState.BREACHED

    @property
    def is_terminal(self) -> bool:
        """No further recomputation can change this reading."""
        return self.state in TERMINAL_STATES

    @property
    def label(self) -> str:
        if self.state == SLAState.COUNTING:
            return f"{self.hours_left}h {self.minutes_left}m left"
        if self.state == SLAState.BREACHED:
            return "SLA BREACHED"
        if self.state == SLAState.NO_DEADLINE:
            return "No Deadline"
        return "Invalid Deadline"


def _as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SLAClock:
    """
    Pure SLA calculations for a given configuration.

    Stateless apart from its config - two calls with the same
    arguments always return equal readings.
    """

    def __init__(self, config: Optional[SLAConfig] = None):
        self.config = config or SLAConfig.from_settings()

    @property
    def window(self) -> timedelta:
        return timedelta(minutes=self.config.window_minutes)

    def deadline_for(self, created_at: Any) -> datetime:
        """created_at + SLA window."""
        return self.parse_deadline(created_at) + self.window

    @staticmethod
    def parse_deadline(value: Any) -> datetime:
        """
        Coerce a deadline to an aware UTC datetime.

        Accepts datetimes and ISO-8601 strings (a trailing "Z" is UTC).

        Raises:
            NoDeadlineException: If value is None or blank
            InvalidDeadlineException: If value cannot be parsed
        """
        if value is None or (isinstance(value, str) and not value.strip()):
            raise NoDeadlineException()
        if isinstance(value, datetime):
            return _as_utc(value)
        if not isinstance(value, str):
            raise InvalidDeadlineException(value)

        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return _as_utc(datetime.fromisoformat(text))
        except ValueError:
            raise InvalidDeadlineException(value)

    def remaining(self, deadline: Any, now: datetime) -> SLAReading:
        """
        Compute the reading for `deadline` at `now`.

        Never raises on bad deadlines: absent input yields NO_DEADLINE and
        unparsable input INVALID_DEADLINE. Any now >= deadline is
        BREACHED, however far past.
        """
        try:
            parsed = self.parse_deadline(deadline)
        except NoDeadlineException:
            return SLAReading(state=SLAState.NO_DEADLINE)
        except InvalidDeadlineException:
            return SLAReading(state=SLAState.INVALID_DEADLINE)

        remaining = (parsed - _as_utc(now)).total_seconds()
        if remaining <= 0:
            return SLAReading(state=SLAState.BREACHED, deadline=parsed, is_urgent=True)

        total_minutes = int(remaining // 60)
        return SLAReading(
            state=SLAState.COUNTING,
            deadline=parsed,
            remaining_seconds=remaining,
            hours_left=total_minutes // 60,
            minutes_left=total_minutes % 60,
            is_urgent=remaining < self.config.urgency_threshold_minutes * 60,
        )

    def reading_for(self, created_at: Any, now: datetime) -> SLAReading:
        """Reading for a ticket created at `created_at`."""
        try:
            deadline = self.deadline_for(created_at)
        except NoDeadlineException:
            return SLAReading(state=SLAState.NO_DEADLINE)
        except InvalidDeadlineException:
            return SLAReading(state=SLAState.INVALID_DEADLINE)
        return self.remaining(deadline, now)

    def met(self, created_at: datetime, resolved_at: Optional[datetime]) -> bool:
        """Whether a ticket was resolved strictly before its deadline."""
        if resolved_at is None:
            return False
        return _as_utc(resolved_at) < self.deadline_for(created_at)
