from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from helpdesk.config import Role, TicketStatus
from helpdesk.core import ForbiddenException, InvalidAssigneeException, ResourceNotFoundException, ValidationException
from helpdesk.tickets.application import TicketCreateRequest
from helpdesk.tickets.domain import SLAState

from conftest import NOW, run


@pytest.fixture()
def people(backend):
    return {
        "customer": backend.add_user(Role.CUSTOMER, name="Carl"),
        "other": backend.add_user(Role.CUSTOMER, name="Olga"),
        "agent": backend.add_user(Role.AGENT, name="Alice"),
        "admin": backend.add_user(Role.ADMIN, name="Ada"),
    }


# ── scope and projection ─────────────────────────────────────────────


def test_customer_only_lists_own_tickets(backend, people):
    mine = backend.add_ticket(people["customer"])
    backend.add_ticket(people["other"])
    service = backend.ticket_service()

    tickets, total = run(service.list_tickets(backend.session_for(people["customer"])))
    assert [t.id for t in tickets] == [mine.id]
    assert total == 1

    _, staff_total = run(service.list_tickets(backend.session_for(people["agent"])))
    assert staff_total == 2


def test_foreign_ticket_is_not_found_for_customer(backend, people):
    theirs = backend.add_ticket(people["other"])
    with pytest.raises(ResourceNotFoundException):
        run(backend.ticket_service().get_ticket(backend.session_for(people["customer"]), theirs.id))


def test_assigned_to_me_filter(backend, people):
    backend.add_ticket(people["customer"], assigned_agent_id=people["agent"].id)
    backend.add_ticket(people["customer"])
    tickets, _ = run(backend.ticket_service().list_tickets(
        backend.session_for(people["agent"]), assigned_to_me=True
    ))
    assert len(tickets) == 1


def test_unknown_status_filter_is_rejected(backend, people):
    with pytest.raises(ValidationException):
        run(backend.ticket_service().list_tickets(backend.session_for(people["agent"]), status="Lost"))


def test_projection_hides_agent_columns_for_customer(backend, people):
    ticket = backend.add_ticket(
        people["customer"], created_at=NOW, assigned_agent_id=people["agent"].id, time_spent_minutes=20
    )
    service = backend.ticket_service()

    data = service.project(backend.session_for(people["customer"]), ticket, now=NOW + timedelta(minutes=30))
    assert "assigned_agent_id" not in data
    assert "time_spent_minutes" not in data
    assert data["sla"].state == SLAState.COUNTING
    assert (data["sla"].hours_left, data["sla"].minutes_left) == (1, 30)

    staff = service.project(backend.session_for(people["agent"]), ticket, now=NOW)
    assert staff["assigned_agent_id"] == people["agent"].id


# ── writes ───────────────────────────────────────────────────────────


def test_create_ticket_defaults(backend, people):
    service = backend.ticket_service()
    ticket = run(service.create_ticket(
        backend.session_for(people["customer"]),
        TicketCreateRequest(subject=" Laptop ", description="Won't boot"),
    ))
    assert ticket.subject == "Laptop"
    assert ticket.status == TicketStatus.OPEN
    assert ticket.created_by == people["customer"].id
    assert ticket.id in backend.tickets.tickets


def test_status_change_is_persisted_with_history(backend, people):
    ticket = backend.add_ticket(people["customer"])
    service = backend.ticket_service()

    run(service.change_status(backend.session_for(people["agent"]), ticket.id, "Resolved"))

    stored = backend.tickets.tickets[ticket.id]
    assert stored.status == TicketStatus.RESOLVED
    assert stored.resolved_at is not None
    assert [(e.field, e.new_value) for e in backend.history.entries] == [("status", "Resolved")]


def test_forbidden_status_change_leaves_no_trace(backend, people):
    ticket = backend.add_ticket(people["customer"])
    with pytest.raises(ForbiddenException):
        run(backend.ticket_service().change_status(backend.session_for(people["customer"]), ticket.id, "Closed"))
    assert backend.tickets.tickets[ticket.id].status == TicketStatus.OPEN
    assert backend.history.entries == []
    assert backend.notifications.notifications == {}


def test_assigning_customer_fails_before_role_check(backend, people):
    ticket = backend.add_ticket(people["customer"])
    with pytest.raises(InvalidAssigneeException):
        run(backend.ticket_service().assign(
            backend.session_for(people["agent"]), ticket.id, people["customer"].id
        ))
    assert backend.history.entries == []


def test_admin_assigns_inactive_agent_fails(backend, people):
    sleeper = backend.add_user(Role.AGENT, active=False)
    ticket = backend.add_ticket(people["customer"])
    with pytest.raises(InvalidAssigneeException):
        run(backend.ticket_service().assign(backend.session_for(people["admin"]), ticket.id, sleeper.id))


def test_customer_history_hides_staff_fields(backend, people):
    ticket = backend.add_ticket(people["customer"])
    service = backend.ticket_service()
    admin = backend.session_for(people["admin"])

    run(service.assign(admin, ticket.id, people["agent"].id))
    run(service.change_status(admin, ticket.id, "In-Progress"))
    run(service.log_time(backend.session_for(people["agent"]), ticket.id, 15))

    customer_view = run(service.list_history(backend.session_for(people["customer"]), ticket.id))
    assert [e.field for e in customer_view] == ["status"]
    assert len(run(service.list_history(admin, ticket.id))) == 3


def test_internal_notes_hidden_from_customer(backend, people):
    ticket = backend.add_ticket(people["customer"])
    service = backend.ticket_service()
    run(service.post_reply(backend.session_for(people["agent"]), ticket.id, "Looking into it"))
    run(service.post_reply(backend.session_for(people["agent"]), ticket.id, "Probably DNS", is_internal=True))

    customer_view = run(service.list_replies(backend.session_for(people["customer"]), ticket.id))
    assert [r.message for r in customer_view] == ["Looking into it"]
    assert len(run(service.list_replies(backend.session_for(people["agent"]), ticket.id))) == 2
    assert backend.history.entries == []


def test_event_sink_failure_does_not_undo_change(backend, people):
    sink = AsyncMock()
    sink.publish.side_effect = RuntimeError("queue down")
    ticket = backend.add_ticket(people["customer"])

    run(backend.ticket_service(event_sink=sink).change_status(
        backend.session_for(people["agent"]), ticket.id, "In-Progress"
    ))
    assert backend.tickets.tickets[ticket.id].status == TicketStatus.IN_PROGRESS
    sink.publish.assert_awaited_once()


# ── attachments ──────────────────────────────────────────────────────


def test_attachment_upload_and_download(backend, people):
    ticket = backend.add_ticket(people["customer"])
    service = backend.attachment_service()
    customer = backend.session_for(people["customer"])

    attachment = run(service.upload(customer, ticket.id, "../../etc/screen.PNG", "image/png", b"png-bytes"))
    assert attachment.original_name == "screen.PNG"
    assert attachment.filename.endswith(".png")

    found, path = run(service.download(customer, attachment.filename))
    assert found.id == attachment.id
    assert path.read_bytes() == b"png-bytes"
    assert [a.id for a in run(service.list_for_ticket(customer, ticket.id))] == [attachment.id]


def test_attachment_limits(backend, people):
    ticket = backend.add_ticket(people["customer"])
    service = backend.attachment_service()
    customer = backend.session_for(people["customer"])
    with pytest.raises(ValidationException):
        run(service.upload(customer, ticket.id, "empty.txt", "text/plain", b""))
    with pytest.raises(ValidationException):
        run(service.upload(customer, ticket.id, "big.bin", None, b"x" * 2048))


def test_attachment_of_foreign_ticket_is_not_found(backend, people):
    ticket = backend.add_ticket(people["other"])
    service = backend.attachment_service()
    attachment = run(service.upload(backend.session_for(people["other"]), ticket.id, "a.txt", "text/plain", b"hi"))
    with pytest.raises(ResourceNotFoundException):
        run(service.download(backend.session_for(people["customer"]), attachment.filename))
