from datetime import timedelta

from helpdesk.config import ArticleVisibility, Role, TicketStatus
from helpdesk.knowledge.domain import KBArticle

from conftest import NOW, auth


# ── auth ─────────────────────────────────────────────────────────────


def test_register_login_and_me(client):
    response = client.post("/auth/register", json={"email": "Pat@Example.com", "password": "secret1", "name": "Pat"})
    assert response.status_code == 201
    body = response.json()
    assert body["user"]["role"] == "Customer"
    assert body["token_type"] == "bearer"

    response = client.post("/auth/login", json={"email": "pat@example.com", "password": "secret1"})
    assert response.status_code == 200
    token = response.json()["token"]

    me = client.get("/users/me", headers=auth(token))
    assert me.status_code == 200
    assert me.json()["email"] == "pat@example.com"


def test_missing_or_bad_token_is_401(client):
    response = client.get("/tickets")
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert response.json()["error_type"] == "UnauthenticatedException"
    assert client.get("/tickets", headers=auth("nope")).status_code == 401


def test_bad_login_is_401(client, backend):
    backend.add_user(email="sam@example.com", password="secret1")
    response = client.post("/auth/login", json={"email": "sam@example.com", "password": "nope"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


# ── tickets ──────────────────────────────────────────────────────────


def test_customer_ticket_payload_hides_staff_columns(client, backend):
    customer = backend.add_user(Role.CUSTOMER)
    agent = backend.add_user(Role.AGENT)
    ticket = backend.add_ticket(customer, assigned_agent_id=agent.id, time_spent_minutes=45)

    body = client.get(f"/tickets/{ticket.id}", headers=auth(backend.token_for(customer))).json()
    assert "assigned_agent_id" not in body
    assert "time_spent_minutes" not in body
    assert body["sla"]["state"] == "counting"

    staff_body = client.get(f"/tickets/{ticket.id}", headers=auth(backend.token_for(agent))).json()
    assert staff_body["assigned_agent_id"] == agent.id
    assert staff_body["time_spent_minutes"] == 45


def test_create_and_list_tickets(client, backend):
    customer = backend.add_user(Role.CUSTOMER)
    other = backend.add_user(Role.CUSTOMER)
    backend.add_ticket(other)
    headers = auth(backend.token_for(customer))

    response = client.post("/tickets", json={"subject": "Email bouncing", "description": "All mail bounces"}, headers=headers)
    assert response.status_code == 201
    created = response.json()
    assert created["status"] == "Open"
    assert created["category"] == "General"

    listing = client.get("/tickets", headers=headers).json()
    assert listing["total_count"] == 1
    assert listing["tickets"][0]["id"] == created["id"]


def test_foreign_ticket_is_404(client, backend):
    customer = backend.add_user(Role.CUSTOMER)
    ticket = backend.add_ticket(backend.add_user(Role.CUSTOMER))
    response = client.get(f"/tickets/{ticket.id}", headers=auth(backend.token_for(customer)))
    assert response.status_code == 404


def test_customer_status_change_is_403(client, backend):
    customer = backend.add_user(Role.CUSTOMER)
    ticket = backend.add_ticket(customer)
    response = client.patch(
        f"/tickets/{ticket.id}/status", json={"status": "Closed"}, headers=auth(backend.token_for(customer))
    )
    assert response.status_code == 403
    assert response.json()["error_type"] == "ForbiddenException"
    assert backend.tickets.tickets[ticket.id].status == TicketStatus.OPEN


def test_assign_customer_is_422(client, backend):
    customer = backend.add_user(Role.CUSTOMER)
    admin = backend.add_user(Role.ADMIN)
    ticket = backend.add_ticket(customer)
    response = client.patch(
        f"/tickets/{ticket.id}/assign", json={"assigned_agent_id": customer.id}, headers=auth(backend.token_for(admin))
    )
    assert response.status_code == 422
    assert response.json()["error_type"] == "InvalidAssigneeException"


def test_status_history_and_replies_flow(client, backend):
    customer = backend.add_user(Role.CUSTOMER)
    agent = backend.add_user(Role.AGENT, name="Alice")
    ticket = backend.add_ticket(customer)
    staff = auth(backend.token_for(agent))
    mine = auth(backend.token_for(customer))

    assert client.patch(f"/tickets/{ticket.id}/status", json={"status": "In-Progress"}, headers=staff).status_code == 200
    assert client.post(f"/tickets/{ticket.id}/replies", json={"message": "On it"}, headers=staff).status_code == 201
    client.post(f"/tickets/{ticket.id}/replies", json={"message": "Check DNS", "is_internal": True}, headers=staff)

    replies = client.get(f"/tickets/{ticket.id}/replies", headers=mine).json()
    assert [r["message"] for r in replies] == ["On it"]

    history = client.get(f"/tickets/{ticket.id}/history", headers=mine).json()
    assert [(h["field"], h["new_value"], h["actor_name"]) for h in history] == [("status", "In-Progress", "Alice")]

    feed = client.get("/notifications", headers=mine).json()
    assert feed["unread_count"] == 2


def test_feedback_after_resolution(client, backend):
    customer = backend.add_user(Role.CUSTOMER)
    ticket = backend.add_ticket(customer, status=TicketStatus.RESOLVED)
    response = client.patch(
        f"/tickets/{ticket.id}/feedback",
        json={"happiness_rating": 5, "customer_feedback": "Great"},
        headers=auth(backend.token_for(customer)),
    )
    assert response.status_code == 200
    assert response.json()["happiness_rating"] == 5


def test_sla_endpoint_reports_breach(client, backend):
    customer = backend.add_user(Role.CUSTOMER)
    ticket = backend.add_ticket(customer, created_at=NOW)
    body = client.get(f"/tickets/{ticket.id}/sla", headers=auth(backend.token_for(customer))).json()
    assert body["state"] == "breached"
    assert body["label"] == "SLA BREACHED"


def test_attachment_round_trip(client, backend):
    customer = backend.add_user(Role.CUSTOMER)
    ticket = backend.add_ticket(customer)
    headers = auth(backend.token_for(customer))

    response = client.post(
        f"/attachments/{ticket.id}", files={"file": ("log.txt", b"line one", "text/plain")}, headers=headers
    )
    assert response.status_code == 201
    stored = response.json()

    listing = client.get(f"/attachments/ticket/{ticket.id}", headers=headers).json()
    assert [a["id"] for a in listing] == [stored["id"]]

    download = client.get(f"/attachments/download/{stored['filename']}", headers=headers)
    assert download.status_code == 200
    assert download.content == b"line one"


# ── insights ─────────────────────────────────────────────────────────


def test_insights_for_staff_only(client, backend):
    customer = backend.add_user(Role.CUSTOMER)
    agent = backend.add_user(Role.AGENT)
    ticket = backend.add_ticket(customer, subject="VPN outage", description="Urgent, VPN down for everyone")

    assert client.get(f"/tickets/{ticket.id}/insights", headers=auth(backend.token_for(customer))).status_code == 403

    body = client.get(f"/tickets/{ticket.id}/insights", headers=auth(backend.token_for(agent))).json()
    assert body["source"] == "keyword"
    assert body["priority"]["level"] == "Critical"
    assert body["category"] == "Network"


# ── knowledge base ───────────────────────────────────────────────────


def test_kb_visibility_over_http(client, backend):
    backend.articles.articles.extend([
        KBArticle(id="a1", title="Reset VPN", content="...", author_id="s", category="Network",
                  visibility=ArticleVisibility.PUBLIC, created_at=NOW),
        KBArticle(id="a2", title="On-call runbook", content="...", author_id="s", category="Ops",
                  created_at=NOW + timedelta(minutes=1)),
    ])
    customer = auth(backend.token_for(backend.add_user(Role.CUSTOMER)))
    agent = auth(backend.token_for(backend.add_user(Role.AGENT)))

    assert [a["id"] for a in client.get("/kb", headers=customer).json()] == ["a1"]
    assert [a["id"] for a in client.get("/kb", headers=agent).json()] == ["a2", "a1"]
    assert client.get("/kb/search", params={"q": "runbook"}, headers=customer).json() == []
    assert client.get("/kb/categories", headers=customer).json() == [{"name": "Network", "article_count": 1}]

    response = client.post("/kb", json={"title": "MFA", "content": "Steps", "tags": ["Auth"]}, headers=customer)
    assert response.status_code == 403
    response = client.post("/kb", json={"title": "MFA", "content": "Steps", "tags": ["Auth"]}, headers=agent)
    assert response.status_code == 201
    assert response.json()["tags"] == ["auth"]


# ── users and reports ────────────────────────────────────────────────


def test_user_admin_endpoints(client, backend):
    admin = backend.add_user(Role.ADMIN)
    agent = backend.add_user(Role.AGENT)
    peer = backend.add_user(Role.ADMIN)
    headers = auth(backend.token_for(admin))

    assert len(client.get("/users", headers=headers).json()) == 3
    assert client.get("/users", headers=auth(backend.token_for(agent))).status_code == 403

    response = client.patch(f"/users/{agent.id}/status", headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "Inactive"
    assert client.patch(f"/users/{peer.id}/status", headers=headers).status_code == 403

    assert client.delete(f"/users/{agent.id}", headers=headers).status_code == 204
    assert agent.id not in backend.users.users


def test_admin_issued_reset_link_over_http(client, backend):
    admin = backend.add_user(Role.ADMIN)
    customer = backend.add_user(Role.CUSTOMER, email="cara@example.com", password="secret1")

    response = client.post(f"/users/{customer.id}/password-reset", headers=auth(backend.token_for(admin)))
    assert response.status_code == 201
    link = response.json()
    assert link["reset_path"].startswith("/reset-password?token=")
    assert "email=cara%40example.com" in link["reset_path"]

    blocked = client.post(f"/users/{admin.id}/password-reset", headers=auth(backend.token_for(customer)))
    assert blocked.status_code == 403

    body = {"email": "cara@example.com", "token": link["token"], "newPassword": "brandnew1"}
    reset = client.post("/auth/reset-password", json=body)
    assert reset.status_code == 200
    assert client.post("/auth/reset-password", json=body).status_code == 422
    assert client.post("/auth/login", json={"email": "cara@example.com", "password": "brandnew1"}).status_code == 200


def test_reports_summary(client, backend):
    customer = backend.add_user(Role.CUSTOMER)
    backend.add_ticket(customer)
    manager = auth(backend.token_for(backend.add_user(Role.MANAGER)))

    body = client.get("/reports/summary", params={"range": "weekly"}, headers=manager).json()
    assert body["range"] == "weekly"
    assert body["total_tickets"] == 1
    assert body["status_counts"]["Open"] == 1
    assert body["priority_counts"] == {"Low": 0, "Medium": 1, "High": 0, "Critical": 0}

    assert client.get("/reports/summary", params={"range": "yearly"}, headers=manager).status_code == 422
    agent = auth(backend.token_for(backend.add_user(Role.AGENT)))
    assert client.get("/reports/summary", headers=agent).status_code == 403


# ── ops ──────────────────────────────────────────────────────────────


def test_health_and_root(client):
    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["checks"]["llm_client"] == "not_configured"
    assert health["checks"]["token_sweeper"] == "stopped"

    root = client.get("/").json()
    assert root["modules"]["tickets"] == "/tickets"
    assert "X-Correlation-ID" in client.get("/health").headers
