"""
Knowledge Base Application Services
===================================
"""

import uuid
from abc import ABC, abstractmethod
from collections import Counter
from typing import List, Optional

from helpdesk.access.domain import Action, RolePolicy, SessionContext, VisibilityFilter
from helpdesk.core import ForbiddenException, ValidationException
from helpdesk.knowledge.application.dto import ArticleCreateRequest
from helpdesk.knowledge.domain import KBArticle
from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class IArticleRepository(ABC):
    """Interface for article data access."""

    @abstractmethod
    async def create(self, article: KBArticle) -> KBArticle:
        """Store a new article."""

    @abstractmethod
    async def list(self, category: Optional[str] = None) -> List[KBArticle]:
        """All articles, newest first, optionally in one category."""

    @abstractmethod
    async def search(self, keyword: str) -> List[KBArticle]:
        """Articles whose title, content, category or tags contain keyword."""


class KnowledgeBaseService:
    """
    Service for the knowledge base.

    Every read passes through VisibilityFilter.articles, so filtering
    cannot be skipped by a caller.
    """

    def __init__(self, repo: IArticleRepository):
        self._repo = repo

    async def list_articles(
        self,
        session: SessionContext,
        category: Optional[str] = None
    ) -> List[KBArticle]:
        articles = await self._repo.list(category=category or None)
        return VisibilityFilter.articles(session.role, articles)

    async def search(self, session: SessionContext, keyword: str) -> List[KBArticle]:
        if not keyword or not keyword.strip():
            return await self.list_articles(session)
        articles = await self._repo.search(keyword.strip())
        return VisibilityFilter.articles(session.role, articles)

    async def categories(self, session: SessionContext) -> List[tuple[str, int]]:
        """(category, visible article count) pairs, alphabetical."""
        counts = Counter(a.category for a in await self.list_articles(session) if a.category)
        return sorted(counts.items(), key=lambda item: item[0].lower())

    async def create_article(self, session: SessionContext, request: ArticleCreateRequest) -> KBArticle:
        """
        Publish a new article.

        Raises:
            ForbiddenException: If the author is not staff
            ValidationException: If title or content is blank
        """
        if not RolePolicy.is_allowed(session.role, Action.CREATE_ARTICLE):
            raise ForbiddenException(Action.CREATE_ARTICLE.value, session.role)
        if not request.title.strip() or not request.content.strip():
            raise ValidationException("Title and content are required")

        article = KBArticle(
            id=str(uuid.uuid4()),
            title=request.title.strip(),
            content=request.content,
            author_id=session.user_id,
            category=(request.category or "").strip() or None,
            tags=request.tags,
            visibility=request.visibility,
        )
        created = await self._repo.create(article)
        logger.info(
            "Article created",
            extra={"article_id": created.id, "visibility": created.visibility.value}
        )
        return created
