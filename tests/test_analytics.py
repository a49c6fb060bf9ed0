from datetime import timedelta

import pytest

from helpdesk.config import AnalyticsRange, Priority, Role, TicketStatus
from helpdesk.core import ForbiddenException, ValidationException

from conftest import NOW, run, session


def seed(backend):
    customer = backend.add_user(Role.CUSTOMER)
    alice = backend.add_user(Role.AGENT, name="Alice")
    bob = backend.add_user(Role.AGENT, name="Bob")

    # met SLA, resolved by Alice in 1h
    backend.add_ticket(customer, created_at=NOW - timedelta(hours=5), status=TicketStatus.RESOLVED,
                       resolved_at=NOW - timedelta(hours=4), assigned_agent_id=alice.id)
    # missed SLA, closed by Alice in 3h
    backend.add_ticket(customer, created_at=NOW - timedelta(hours=6), status=TicketStatus.CLOSED,
                       resolved_at=NOW - timedelta(hours=3), assigned_agent_id=alice.id)
    # met SLA, resolved by Bob in 2h minus a minute
    backend.add_ticket(customer, created_at=NOW - timedelta(days=3), status=TicketStatus.RESOLVED,
                       resolved_at=NOW - timedelta(days=3) + timedelta(minutes=119), assigned_agent_id=bob.id)
    # open and breached
    backend.add_ticket(customer, created_at=NOW - timedelta(hours=3))
    # open and counting
    backend.add_ticket(customer, created_at=NOW - timedelta(minutes=10), status=TicketStatus.IN_PROGRESS)
    # ancient open ticket, outside every bounded window
    backend.add_ticket(customer, created_at=NOW - timedelta(days=90))
    return alice, bob


def test_summary_for_all_time(backend):
    alice, bob = seed(backend)
    summary = run(backend.analytics_service().summary(session(Role.MANAGER), None, now=NOW))

    assert summary.range == AnalyticsRange.ALL
    assert summary.since is None
    assert summary.total_tickets == 6
    assert summary.status_counts == {"Open": 2, "In-Progress": 1, "Resolved": 2, "Closed": 1}
    assert summary.resolved_tickets == 3
    assert summary.breached_open_tickets == 2
    assert summary.sla_compliance == 66.7
    assert summary.avg_resolution_hours == pytest.approx((1 + 3 + 119 / 60) / 3, abs=0.01)
    assert summary.agent_performance == [
        {"agent_id": alice.id, "agent_name": "Alice", "resolved_count": 2},
        {"agent_id": bob.id, "agent_name": "Bob", "resolved_count": 1},
    ]


def test_summary_counts_priorities(backend):
    customer = backend.add_user(Role.CUSTOMER)
    backend.add_ticket(customer, created_at=NOW, priority=Priority.CRITICAL)
    backend.add_ticket(customer, created_at=NOW, priority=Priority.CRITICAL, status=TicketStatus.RESOLVED)
    backend.add_ticket(customer, created_at=NOW, priority=Priority.LOW)

    summary = run(backend.analytics_service().summary(session(Role.MANAGER), "all", now=NOW))

    assert summary.priority_counts == {"Low": 1, "Medium": 0, "High": 0, "Critical": 2}
    assert sum(summary.priority_counts.values()) == summary.total_tickets


def test_daily_window_only_counts_recent_tickets(backend):
    seed(backend)
    summary = run(backend.analytics_service().summary(session(Role.ADMIN), "Daily", now=NOW))
    assert summary.range == AnalyticsRange.DAILY
    assert summary.since == NOW - timedelta(days=1)
    assert summary.total_tickets == 4
    assert summary.resolved_tickets == 2
    assert summary.sla_compliance == 50.0


def test_weekly_window(backend):
    seed(backend)
    summary = run(backend.analytics_service().summary(session(Role.SUPER_ADMIN), "weekly", now=NOW))
    assert summary.total_tickets == 5


def test_empty_window_reports_full_compliance(backend):
    summary = run(backend.analytics_service().summary(session(Role.MANAGER), "monthly", now=NOW))
    assert summary.total_tickets == 0
    assert summary.sla_compliance == 100.0
    assert summary.avg_resolution_hours == 0.0
    assert summary.agent_performance == []


def test_resolved_without_timestamp_counts_against_compliance(backend):
    customer = backend.add_user(Role.CUSTOMER)
    backend.add_ticket(customer, created_at=NOW - timedelta(hours=1), status=TicketStatus.RESOLVED)
    summary = run(backend.analytics_service().summary(session(Role.MANAGER), "all", now=NOW))
    assert summary.resolved_tickets == 1
    assert summary.sla_compliance == 0.0
    assert summary.avg_resolution_hours == 0.0


def test_unknown_agent_is_labelled(backend):
    customer = backend.add_user(Role.CUSTOMER)
    backend.add_ticket(customer, created_at=NOW - timedelta(hours=1), status=TicketStatus.RESOLVED,
                       resolved_at=NOW, assigned_agent_id="deleted-agent")
    summary = run(backend.analytics_service().summary(session(Role.MANAGER), now=NOW))
    assert summary.agent_performance[0]["agent_name"] == "Unknown agent"


@pytest.mark.parametrize("role", [Role.CUSTOMER, Role.AGENT])
def test_analytics_requires_reporting_role(backend, role):
    with pytest.raises(ForbiddenException):
        run(backend.analytics_service().summary(session(role), now=NOW))


def test_unknown_range_is_rejected(backend):
    with pytest.raises(ValidationException):
        run(backend.analytics_service().summary(session(Role.MANAGER), "yearly", now=NOW))
