"""
Helpdesk API entry point.

Wires the bounded contexts (users, tickets, insights, notifications,
knowledge base, analytics) into one FastAPI application and owns the
process-wide resources: database engine, LLM client and the scheduler
that runs the expired-token sweep.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from helpdesk.config import settings
from helpdesk.core import ApplicationException
from helpdesk.infrastructure.database import close_database, create_tables, init_database
from helpdesk.infrastructure.llm import build_llm_client
from helpdesk.shared.api.middleware import (
    RequestContextMiddleware,
    application_exception_handler,
    unhandled_exception_handler,
)
from helpdesk.shared.infrastructure.logging import get_logger, setup_logging
from helpdesk.shared.infrastructure.scheduler import AppScheduler
from helpdesk.users.infrastructure import ExpiredTokenSweeper

from helpdesk.analytics.interfaces import router as analytics_router
from helpdesk.insights.interfaces import router as insights_router
from helpdesk.knowledge.interfaces import router as kb_router
from helpdesk.notifications.interfaces import router as notifications_router
from helpdesk.tickets.interfaces import attachments_router, router as tickets_router
from helpdesk.users.interfaces import auth_router, users_router

logger = get_logger(__name__)

ROUTES = {
    "auth": "/auth",
    "users": "/users",
    "tickets": "/tickets",
    "attachments": "/attachments",
    "knowledge_base": "/kb",
    "notifications": "/notifications",
    "analytics": "/reports",
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    setup_logging(settings.log_level, settings.environment)
    logger.info("Helpdesk starting", extra={"version": settings.app_version})

    init_database()
    try:
        await create_tables()
    except Exception as e:
        # The API still answers /health so orchestrators can see the problem.
        logger.warning("Could not create tables, database unavailable", extra={"error": str(e)})

    scheduler = AppScheduler()
    await scheduler.start()
    token_sweeper = ExpiredTokenSweeper(scheduler.scheduler)
    token_sweeper.start()

    try:
        llm_client = build_llm_client()
    except ApplicationException as e:
        logger.warning("LLM client disabled", extra={"error": e.message})
        llm_client = None
    logger.info(
        "Insight engine selected",
        extra={"engine": type(llm_client).__name__ if llm_client else "keywords"}
    )

    app.state.scheduler = scheduler
    app.state.token_sweeper = token_sweeper
    app.state.llm_client = llm_client

    yield

    token_sweeper.stop()
    await scheduler.stop()
    if hasattr(llm_client, "close"):
        await llm_client.close()
    await close_database()
    logger.info("Helpdesk stopped")


app = FastAPI(
    title="Helpdesk API",
    description="""
Support ticket lifecycle with role-based access control.

| Role | Rank | Tickets | Change status | Assign | Manage users | Reports |
|------|------|---------|---------------|--------|--------------|---------|
| Customer | 0 | own only | no | no | no | no |
| Agent | 1 | all | yes | no | no | no |
| Manager | 2 | all | yes | no | no | yes |
| Admin | 3 | all | yes | yes | lower ranks | yes |
| Super Admin | 4 | all | yes | yes | lower ranks | yes |

Customers never see internal notes, INTERNAL articles, assignment or
time-spent fields. Each ticket's SLA deadline is `created_at` plus the
configured window (120 minutes by default).
""",
    version=settings.app_version,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestContextMiddleware)
app.add_exception_handler(ApplicationException, application_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

for router in (
    auth_router,
    users_router,
    tickets_router,
    insights_router,
    attachments_router,
    kb_router,
    notifications_router,
    analytics_router,
):
    app.include_router(router)


@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    scheduler = getattr(request.app.state, "scheduler", None)
    token_sweeper = getattr(request.app.state, "token_sweeper", None)
    llm_client = getattr(request.app.state, "llm_client", None)
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": {
            "scheduler": "running" if scheduler and scheduler.is_running else "stopped",
            "token_sweeper": "running" if token_sweeper and token_sweeper.is_running else "stopped",
            "llm_client": "available" if llm_client else "not_configured",
        },
    }


@app.get("/", tags=["Root"])
async def root():
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "health": "/health",
        "modules": ROUTES,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "helpdesk.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
    )
