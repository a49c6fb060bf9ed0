from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from helpdesk.core import ConfigurationException, InvalidDeadlineException, NoDeadlineException
from helpdesk.tickets.domain import SLAClock, SLAConfig, SLAState
from helpdesk.tickets.infrastructure import SLACountdown, YAMLSLAConfigProvider

T0 = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
CLOCK = SLAClock(SLAConfig(window_minutes=120, urgency_threshold_minutes=120))


# ── SLAClock ─────────────────────────────────────────────────────────


def test_one_minute_before_deadline_is_counting_and_urgent():
    reading = CLOCK.reading_for(T0, T0 + timedelta(hours=1, minutes=59))
    assert reading.state == SLAState.COUNTING
    assert (reading.hours_left, reading.minutes_left) == (0, 1)
    assert reading.is_urgent
    assert reading.label == "0h 1m left"


def test_one_second_past_deadline_is_breached():
    reading = CLOCK.reading_for(T0, T0 + timedelta(hours=2, seconds=1))
    assert reading.state == SLAState.BREACHED
    assert reading.is_breached
    assert reading.label == "SLA BREACHED"


def test_exact_deadline_is_breached():
    assert CLOCK.remaining(T0 + timedelta(hours=2), T0 + timedelta(hours=2)).is_breached


def test_far_past_deadline_is_still_breached():
    assert CLOCK.reading_for(T0, T0 + timedelta(days=400)).state == SLAState.BREACHED


def test_fresh_ticket_is_not_urgent_with_shorter_threshold():
    clock = SLAClock(SLAConfig(window_minutes=120, urgency_threshold_minutes=30))
    reading = clock.reading_for(T0, T0 + timedelta(minutes=5))
    assert (reading.hours_left, reading.minutes_left) == (1, 55)
    assert not reading.is_urgent


@pytest.mark.parametrize("value", [None, "", "   "])
def test_missing_deadline_reads_no_deadline(value):
    reading = CLOCK.remaining(value, T0)
    assert reading.state == SLAState.NO_DEADLINE
    assert reading.is_terminal
    with pytest.raises(NoDeadlineException):
        CLOCK.parse_deadline(value)


@pytest.mark.parametrize("value", ["yesterday", "2024-13-45T99:00", 12345])
def test_garbage_deadline_reads_invalid(value):
    assert CLOCK.remaining(value, T0).state == SLAState.INVALID_DEADLINE
    with pytest.raises(InvalidDeadlineException):
        CLOCK.parse_deadline(value)


def test_iso_strings_with_z_suffix_are_utc():
    assert CLOCK.parse_deadline("2024-01-15T12:00:00Z") == T0 + timedelta(hours=2)
    naive = CLOCK.parse_deadline("2024-01-15T12:00:00")
    assert naive.tzinfo is not None


def test_readings_are_idempotent():
    now = T0 + timedelta(minutes=42)
    assert CLOCK.reading_for(T0, now) == CLOCK.reading_for(T0, now)


def test_met_is_strictly_before_deadline():
    assert CLOCK.met(T0, T0 + timedelta(minutes=119))
    assert not CLOCK.met(T0, T0 + timedelta(minutes=120))
    assert not CLOCK.met(T0, None)


def test_deadline_for_adds_window():
    assert CLOCK.deadline_for("2024-01-15T10:00:00Z") == T0 + timedelta(hours=2)


# ── YAML provider ────────────────────────────────────────────────────


def test_yaml_provider_reads_sla_section(tmp_path):
    path = tmp_path / "sla.yaml"
    path.write_text("sla:\n  window_minutes: 60\n  urgency_threshold_minutes: 15\n")
    config = YAMLSLAConfigProvider(path).get_config()
    assert config.window_minutes == 60
    assert config.urgency_threshold_minutes == 15


def test_yaml_provider_falls_back_to_settings_when_missing(tmp_path):
    config = YAMLSLAConfigProvider(tmp_path / "absent.yaml").get_config()
    assert config.window_minutes == SLAConfig.from_settings().window_minutes


def test_yaml_provider_rejects_bad_values(tmp_path):
    path = tmp_path / "sla.yaml"
    path.write_text("sla:\n  window_minutes: 0\n")
    with pytest.raises(ConfigurationException):
        YAMLSLAConfigProvider(path)


def test_yaml_provider_reload(tmp_path):
    path = tmp_path / "sla.yaml"
    path.write_text("window_minutes: 60\n")
    provider = YAMLSLAConfigProvider(path)
    path.write_text("window_minutes: 90\n")
    provider.reload()
    assert provider.get_config().window_minutes == 90


# ── SLACountdown ─────────────────────────────────────────────────────


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def test_countdown_registers_and_removes_its_job():
    scheduler = MagicMock()
    countdown = SLACountdown(scheduler, T0 + timedelta(hours=2), sla_clock=CLOCK, clock=FakeClock(T0))
    countdown.start()
    assert countdown.is_running
    scheduler.add_job.assert_called_once()
    assert scheduler.add_job.call_args.kwargs["seconds"] == 1.0

    countdown.stop()
    countdown.stop()
    scheduler.remove_job.assert_called_once()
    assert not countdown.is_running


def test_countdown_stops_itself_on_breach():
    scheduler = MagicMock()
    clock = FakeClock(T0)
    countdown = SLACountdown(scheduler, T0 + timedelta(hours=2), sla_clock=CLOCK, clock=clock)
    countdown.start()

    assert countdown.tick().state == SLAState.COUNTING
    assert countdown.is_running

    clock.now = T0 + timedelta(hours=2, seconds=1)
    assert countdown.tick().is_breached
    assert not countdown.is_running
    assert countdown.last_reading.is_breached
    scheduler.remove_job.assert_called_once()


def test_countdown_with_no_deadline_stops_on_first_tick():
    scheduler = MagicMock()
    countdown = SLACountdown(scheduler, None, sla_clock=CLOCK, clock=FakeClock(T0))
    countdown.start()
    assert countdown.tick().state == SLAState.NO_DEADLINE
    assert not countdown.is_running


def test_countdown_job_calls_on_tick():
    import asyncio

    seen = []
    countdown = SLACountdown(
        MagicMock(), T0 + timedelta(hours=2), on_tick=seen.append, sla_clock=CLOCK, clock=FakeClock(T0)
    )
    asyncio.run(countdown._run())
    assert seen[0].state == SLAState.COUNTING
