"""
Knowledge Base Controllers (API Routes)
=======================================

Customers only ever receive PUBLIC articles.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.access.domain import SessionContext
from helpdesk.infrastructure.database import get_session
from helpdesk.knowledge.application import (
    ArticleCreateRequest,
    ArticleResponse,
    CategoryResponse,
    KnowledgeBaseService,
)
from helpdesk.knowledge.infrastructure import SQLAlchemyArticleRepository
from helpdesk.users.interfaces import get_current_session

router = APIRouter(prefix="/kb", tags=["Knowledge Base"])


async def get_kb_service(
    session: AsyncSession = Depends(get_session)
) -> KnowledgeBaseService:
    """Get knowledge base service instance."""
    return KnowledgeBaseService(SQLAlchemyArticleRepository(session))


@router.get("", response_model=List[ArticleResponse], summary="List articles")
async def list_articles(
    category: Optional[str] = Query(None),
    session: SessionContext = Depends(get_current_session),
    service: KnowledgeBaseService = Depends(get_kb_service)
) -> List[ArticleResponse]:
    articles = await service.list_articles(session, category)
    return [ArticleResponse.model_validate(a) for a in articles]


@router.get("/categories", response_model=List[CategoryResponse], summary="Article categories")
async def list_categories(
    session: SessionContext = Depends(get_current_session),
    service: KnowledgeBaseService = Depends(get_kb_service)
) -> List[CategoryResponse]:
    return [
        CategoryResponse(name=name, article_count=count)
        for name, count in await service.categories(session)
    ]


@router.get("/search", response_model=List[ArticleResponse], summary="Keyword search")
async def search_articles(
    q: str = Query("", max_length=200),
    session: SessionContext = Depends(get_current_session),
    service: KnowledgeBaseService = Depends(get_kb_service)
) -> List[ArticleResponse]:
    articles = await service.search(session, q)
    return [ArticleResponse.model_validate(a) for a in articles]


@router.post(
    "",
    response_model=ArticleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Publish an article",
    description="Agent, Manager, Admin and Super Admin only."
)
async def create_article(
    request: ArticleCreateRequest,
    session: SessionContext = Depends(get_current_session),
    service: KnowledgeBaseService = Depends(get_kb_service)
) -> ArticleResponse:
    return ArticleResponse.model_validate(await service.create_article(session, request))
