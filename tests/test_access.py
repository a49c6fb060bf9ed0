import pytest

from helpdesk.access.domain import Action, RolePolicy, SessionContext, VisibilityFilter
from helpdesk.config import ArticleVisibility, Role, RouteId
from helpdesk.core import UnauthenticatedException

STAFF = [Role.AGENT, Role.MANAGER, Role.ADMIN, Role.SUPER_ADMIN]


# ── RolePolicy ───────────────────────────────────────────────────────


def test_roles_form_a_strict_total_order():
    ordered = [Role.CUSTOMER, Role.AGENT, Role.MANAGER, Role.ADMIN, Role.SUPER_ADMIN]
    ranks = [RolePolicy.rank(r) for r in ordered]
    assert ranks == [0, 1, 2, 3, 4]
    assert len(set(ranks)) == len(ranks)


@pytest.mark.parametrize("value", [None, "", "Root", 42, "customer", {"role": "Admin"}])
def test_unknown_roles_resolve_to_customer(value):
    assert RolePolicy.resolve_role(value) == Role.CUSTOMER
    assert RolePolicy.rank(value) == 0
    assert not RolePolicy.is_staff(value)


def test_role_strings_are_accepted():
    assert RolePolicy.resolve_role("Super Admin") == Role.SUPER_ADMIN
    assert RolePolicy.resolve_role(" Agent ") == Role.AGENT


def test_change_status_is_staff_only():
    assert not RolePolicy.can_change_status(Role.CUSTOMER)
    assert all(RolePolicy.can_change_status(r) for r in STAFF)


def test_assign_agent_is_admin_only():
    allowed = {r for r in Role if RolePolicy.can_assign_agent(r)}
    assert allowed == {Role.ADMIN, Role.SUPER_ADMIN}


def test_route_allow_list():
    assert RolePolicy.can_view_route(Role.MANAGER, RouteId.ANALYTICS)
    assert not RolePolicy.can_view_route(Role.AGENT, RouteId.ANALYTICS)
    assert not RolePolicy.can_view_route(Role.MANAGER, RouteId.USERS)
    assert RolePolicy.can_view_route(Role.ADMIN, "users")
    assert all(RolePolicy.can_view_route(r, RouteId.TICKETS) for r in Role)
    assert all(RolePolicy.can_view_route(r, RouteId.KNOWLEDGE_BASE) for r in Role)


def test_unknown_routes_and_actions_are_denied():
    assert not RolePolicy.can_view_route(Role.SUPER_ADMIN, "billing")
    assert not RolePolicy.is_allowed(Role.SUPER_ADMIN, "launch rockets")


def test_internal_notes_and_insights_are_staff_only():
    assert not RolePolicy.is_allowed(Role.CUSTOMER, Action.POST_INTERNAL_NOTE)
    assert not RolePolicy.is_allowed(Role.CUSTOMER, Action.VIEW_INSIGHTS)
    assert RolePolicy.is_allowed(Role.AGENT, Action.POST_INTERNAL_NOTE)
    assert RolePolicy.is_allowed(Role.AGENT, Action.VIEW_INSIGHTS)


def test_super_admin_cannot_manage_another_super_admin():
    assert RolePolicy.can_manage_user(Role.SUPER_ADMIN, Role.SUPER_ADMIN) is False


def test_admin_can_manage_agent():
    assert RolePolicy.can_manage_user(Role.ADMIN, Role.AGENT) is True


def test_manage_user_requires_strictly_higher_rank():
    for actor in Role:
        for target in Role:
            expected = RolePolicy.rank(actor) > RolePolicy.rank(target)
            assert RolePolicy.can_manage_user(actor, target) is expected


def test_policy_queries_are_pure():
    first = [RolePolicy.is_allowed(r, a) for r in Role for a in Action]
    second = [RolePolicy.is_allowed(r, a) for r in Role for a in Action]
    assert first == second


# ── VisibilityFilter ─────────────────────────────────────────────────


REPLIES = [
    {"id": "1", "message": "public", "is_internal": False},
    {"id": "2", "message": "note", "is_internal": True},
    {"id": "3", "message": "legacy row"},
    {"id": "4", "message": "garbage flag", "is_internal": "no"},
]


def test_customer_never_sees_internal_or_unflagged_replies():
    visible = VisibilityFilter.replies(Role.CUSTOMER, REPLIES)
    assert [r["id"] for r in visible] == ["1"]


def test_staff_see_every_reply():
    assert VisibilityFilter.replies(Role.AGENT, REPLIES) == REPLIES


def test_malformed_role_gets_customer_view():
    assert [r["id"] for r in VisibilityFilter.replies("Wizard", REPLIES)] == ["1"]


def test_customer_sees_only_public_articles():
    articles = [
        {"id": "a", "visibility": ArticleVisibility.PUBLIC},
        {"id": "b", "visibility": ArticleVisibility.INTERNAL},
        {"id": "c", "visibility": "public"},
        {"id": "d"},
    ]
    visible = VisibilityFilter.articles(Role.CUSTOMER, articles)
    assert [a["id"] for a in visible] == ["a", "c"]
    assert len(VisibilityFilter.articles(Role.MANAGER, articles)) == 4


def test_filters_accept_empty_input():
    assert VisibilityFilter.replies(Role.CUSTOMER, []) == []
    assert VisibilityFilter.articles(Role.CUSTOMER, None) == []


def test_ticket_projection_hides_staff_columns_from_customers():
    ticket = {"id": "t1", "subject": "VPN", "assigned_agent_id": "a1", "time_spent_minutes": 30}
    projected = VisibilityFilter.project_ticket(Role.CUSTOMER, ticket)
    assert projected == {"id": "t1", "subject": "VPN"}
    assert VisibilityFilter.project_ticket(Role.AGENT, ticket) == ticket


# ── SessionContext ───────────────────────────────────────────────────


def test_session_from_record_downgrades_unknown_role():
    ctx = SessionContext.from_record({"id": "u1", "email": "a@example.com", "role": "Overlord"}, "tok")
    assert ctx.role == Role.CUSTOMER
    assert ctx.token == "tok"
    assert not ctx.is_staff


@pytest.mark.parametrize("record", [None, "junk", {}, {"id": "u1"}, {"email": "a@example.com"}])
def test_session_from_corrupt_record_is_unauthenticated(record):
    with pytest.raises(UnauthenticatedException):
        SessionContext.from_record(record)


def test_session_record_round_trip():
    ctx = SessionContext(user_id="u1", email="a@example.com", role=Role.ADMIN, name="Ada")
    assert SessionContext.from_record(ctx.to_record()) == ctx
    assert ctx.display_name == "Ada"
