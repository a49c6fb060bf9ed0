from datetime import datetime, timedelta, timezone

import pytest

from helpdesk.config import Role, UserStatus
from helpdesk.core import ConflictException, ForbiddenException, UnauthenticatedException, ValidationException
from helpdesk.users.application import RegisterRequest, UserCreateRequest, UserUpdateRequest
from helpdesk.users.infrastructure import PasslibPasswordHasher

from conftest import run


# ── auth ─────────────────────────────────────────────────────────────


def test_register_always_creates_customer(backend):
    result = run(backend.auth_service().register(
        RegisterRequest(email="New@Example.com", password="hunter22", name="Nina")
    ))
    assert result.user.role == Role.CUSTOMER
    assert result.user.email == "new@example.com"
    session = run(backend.auth_service().authenticate(result.token))
    assert session.user_id == result.user.id


def test_register_duplicate_email_conflicts(backend):
    backend.add_user(email="dup@example.com")
    with pytest.raises(ConflictException):
        run(backend.auth_service().register(RegisterRequest(email="dup@example.com", password="hunter22")))


def test_register_short_password(backend):
    with pytest.raises(ValidationException):
        run(backend.auth_service().register(RegisterRequest(email="x@example.com", password="abc")))


def test_login_success_and_failures(backend):
    backend.add_user(email="amy@example.com", password="secret1")
    backend.add_user(email="gone@example.com", password="secret1", active=False)
    auth = backend.auth_service()

    assert run(auth.login(" AMY@example.com ", "secret1")).token
    with pytest.raises(UnauthenticatedException):
        run(auth.login("amy@example.com", "wrong"))
    with pytest.raises(UnauthenticatedException):
        run(auth.login("nobody@example.com", "secret1"))
    with pytest.raises(UnauthenticatedException):
        run(auth.login("gone@example.com", "secret1"))


def test_authenticate_rejects_missing_expired_and_inactive(backend):
    auth = backend.auth_service()
    with pytest.raises(UnauthenticatedException):
        run(auth.authenticate(None))
    with pytest.raises(UnauthenticatedException):
        run(auth.authenticate("made-up"))

    user = backend.add_user()
    backend.tokens.tokens["old"] = (user.id, datetime.now(timezone.utc) - timedelta(seconds=1))
    with pytest.raises(UnauthenticatedException):
        run(auth.authenticate("old"))


def test_change_password(backend):
    user = backend.add_user(password="secret1")
    auth = backend.auth_service()
    session = backend.session_for(user)

    with pytest.raises(ValidationException):
        run(auth.change_password(session, "wrong", "newpass1"))
    run(auth.change_password(session, "secret1", "newpass1"))
    assert run(auth.login(user.email, "newpass1")).user.id == user.id


def test_password_reset_link_is_single_use(backend):
    user = backend.add_user(email="rae@example.com", password="secret1")
    signed_in = backend.token_for(user)
    auth = backend.auth_service()

    grant = run(auth.issue_password_reset(user))
    assert grant.token not in backend.resets.tokens  # only the digest is kept

    run(auth.reset_password("RAE@example.com", grant.token, "brandnew1"))

    assert run(auth.login(user.email, "brandnew1")).user.id == user.id
    assert signed_in not in backend.tokens.tokens
    with pytest.raises(ValidationException):
        run(auth.reset_password(user.email, grant.token, "another1"))


def test_password_reset_rejects_wrong_email_expired_and_replaced_tokens(backend):
    user = backend.add_user(password="secret1")
    other = backend.add_user()
    auth = backend.auth_service()

    first = run(auth.issue_password_reset(user))
    second = run(auth.issue_password_reset(user))
    with pytest.raises(ValidationException):
        run(auth.reset_password(user.email, first.token, "brandnew1"))
    with pytest.raises(ValidationException):
        run(auth.reset_password(other.email, second.token, "brandnew1"))
    with pytest.raises(ValidationException):
        run(auth.reset_password("nobody@example.com", second.token, "brandnew1"))

    for digest, (owner, _) in list(backend.resets.tokens.items()):
        backend.resets.tokens[digest] = (owner, datetime.now(timezone.utc) - timedelta(seconds=1))
    with pytest.raises(ValidationException):
        run(auth.reset_password(user.email, second.token, "brandnew1"))
    assert run(auth.login(user.email, "secret1")).user.id == user.id


def test_password_reset_short_password_keeps_link(backend):
    user = backend.add_user()
    auth = backend.auth_service()
    grant = run(auth.issue_password_reset(user))

    with pytest.raises(ValidationException, match="at least"):
        run(auth.reset_password(user.email, grant.token, "abc"))
    run(auth.reset_password(user.email, grant.token, "longenough"))


def test_reset_link_needs_an_outranking_admin(backend):
    admin = backend.add_user(Role.ADMIN)
    agent = backend.add_user(Role.AGENT)
    peer = backend.add_user(Role.ADMIN)
    inactive = backend.add_user(Role.CUSTOMER, active=False)
    service = backend.user_service()

    assert run(service.authorize_password_reset(backend.session_for(admin), agent.id)).id == agent.id
    with pytest.raises(ForbiddenException):
        run(service.authorize_password_reset(backend.session_for(admin), peer.id))
    with pytest.raises(ForbiddenException):
        run(service.authorize_password_reset(backend.session_for(agent), admin.id))
    with pytest.raises(ValidationException):
        run(service.authorize_password_reset(backend.session_for(admin), inactive.id))


# ── directory administration ─────────────────────────────────────────


def test_only_admins_list_the_directory(backend):
    backend.add_user(Role.CUSTOMER)
    manager = backend.add_user(Role.MANAGER)
    admin = backend.add_user(Role.ADMIN)
    service = backend.user_service()

    with pytest.raises(ForbiddenException):
        run(service.list_users(backend.session_for(manager)))
    assert len(run(service.list_users(backend.session_for(admin)))) == 3
    staff = run(service.list_users(backend.session_for(manager), staff_only=True))
    assert {u.role for u in staff} == {Role.MANAGER, Role.ADMIN}


def test_super_admin_cannot_toggle_another_super_admin(backend):
    boss = backend.add_user(Role.SUPER_ADMIN)
    peer = backend.add_user(Role.SUPER_ADMIN)
    with pytest.raises(ForbiddenException):
        run(backend.user_service().toggle_status(backend.session_for(boss), peer.id))
    assert backend.users.users[peer.id].is_active


def test_deactivation_revokes_tokens(backend):
    admin = backend.add_user(Role.ADMIN)
    agent = backend.add_user(Role.AGENT)
    token = backend.token_for(agent)

    user = run(backend.user_service().toggle_status(backend.session_for(admin), agent.id))
    assert user.status == UserStatus.INACTIVE
    assert token not in backend.tokens.tokens
    with pytest.raises(UnauthenticatedException):
        run(backend.auth_service().authenticate(token))


def test_admin_cannot_create_or_promote_to_admin(backend):
    admin = backend.add_user(Role.ADMIN)
    agent = backend.add_user(Role.AGENT)
    service = backend.user_service()
    session = backend.session_for(admin)

    with pytest.raises(ForbiddenException):
        run(service.create_user(session, UserCreateRequest(email="a2@example.com", password="secret1", role=Role.ADMIN)))
    with pytest.raises(ForbiddenException):
        run(service.update_user(session, agent.id, UserUpdateRequest(role=Role.ADMIN)))

    created = run(service.create_user(session, UserCreateRequest(email="m@example.com", password="secret1", role=Role.MANAGER)))
    assert created.role == Role.MANAGER
    promoted = run(service.update_user(session, agent.id, UserUpdateRequest(role=Role.MANAGER, name="Max")))
    assert (promoted.role, promoted.name) == (Role.MANAGER, "Max")


def test_delete_user(backend):
    admin = backend.add_user(Role.SUPER_ADMIN)
    victim = backend.add_user(Role.ADMIN)
    backend.token_for(victim)
    run(backend.user_service().delete_user(backend.session_for(admin), victim.id))
    assert victim.id not in backend.users.users
    assert all(uid != victim.id for uid, _ in backend.tokens.tokens.values())


def _assigned_ticket(backend, agent):
    customer = backend.add_user(Role.CUSTOMER)
    return backend.add_ticket(customer, assigned_agent_id=agent.id)


def _unassign_entries(backend, ticket):
    return [
        e for e in backend.history.entries
        if e.ticket_id == ticket.id and e.field == "assigned_agent_id"
    ]


def test_demoting_agent_to_customer_unassigns_tickets(backend):
    admin = backend.add_user(Role.ADMIN, name="Ada")
    agent = backend.add_user(Role.AGENT)
    ticket = _assigned_ticket(backend, agent)

    user = run(backend.user_service().update_user(
        backend.session_for(admin), agent.id, UserUpdateRequest(role=Role.CUSTOMER)
    ))

    assert user.role == Role.CUSTOMER
    assert backend.tickets.tickets[ticket.id].assigned_agent_id is None
    [entry] = _unassign_entries(backend, ticket)
    assert entry.old_value == agent.id
    assert entry.actor_name == "Ada"


def test_staff_role_change_keeps_assignments(backend):
    admin = backend.add_user(Role.ADMIN)
    agent = backend.add_user(Role.AGENT)
    ticket = _assigned_ticket(backend, agent)

    run(backend.user_service().update_user(
        backend.session_for(admin), agent.id, UserUpdateRequest(role=Role.MANAGER)
    ))

    assert backend.tickets.tickets[ticket.id].assigned_agent_id == agent.id
    assert _unassign_entries(backend, ticket) == []


def test_deactivating_agent_unassigns_tickets(backend):
    admin = backend.add_user(Role.ADMIN)
    agent = backend.add_user(Role.AGENT)
    first = _assigned_ticket(backend, agent)
    second = _assigned_ticket(backend, agent)
    service = backend.user_service()

    run(service.toggle_status(backend.session_for(admin), agent.id))

    assert backend.tickets.tickets[first.id].assigned_agent_id is None
    assert backend.tickets.tickets[second.id].assigned_agent_id is None
    assert len(_unassign_entries(backend, first)) == 1

    # reactivating does not hand tickets back
    run(service.toggle_status(backend.session_for(admin), agent.id))
    assert backend.tickets.tickets[first.id].assigned_agent_id is None
    assert len(_unassign_entries(backend, first)) == 1


def test_deleting_agent_unassigns_tickets(backend):
    admin = backend.add_user(Role.ADMIN)
    agent = backend.add_user(Role.AGENT)
    other = backend.add_user(Role.AGENT)
    mine = _assigned_ticket(backend, agent)
    theirs = _assigned_ticket(backend, other)

    run(backend.user_service().delete_user(backend.session_for(admin), agent.id))

    assert agent.id not in backend.users.users
    assert backend.tickets.tickets[mine.id].assigned_agent_id is None
    assert backend.tickets.tickets[theirs.id].assigned_agent_id == other.id


# ── password hashing ─────────────────────────────────────────────────


def test_password_hasher_round_trip():
    hasher = PasslibPasswordHasher()
    hashed = hasher.hash("secret1")
    assert hashed != "secret1"
    assert hasher.verify("secret1", hashed)
    assert not hasher.verify("secret2", hashed)
    assert not hasher.verify("secret1", "not-a-hash")
