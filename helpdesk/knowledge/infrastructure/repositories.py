"""
Knowledge Base Infrastructure Repositories
==========================================
"""

from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.knowledge.application import IArticleRepository
from helpdesk.knowledge.domain import KBArticle
from helpdesk.knowledge.infrastructure.models import ArticleModel


def _to_entity(model: ArticleModel) -> KBArticle:
    return KBArticle(
        id=model.id,
        title=model.title,
        content=model.content,
        author_id=model.author_id,
        category=model.category,
        tags=model.tags or [],
        visibility=model.visibility,
        created_at=model.created_at,
    )


class SQLAlchemyArticleRepository(IArticleRepository):
    """SQLAlchemy implementation of article repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, article: KBArticle) -> KBArticle:
        model = ArticleModel(
            id=article.id,
            title=article.title,
            content=article.content,
            category=article.category,
            tags=sorted(article.tags),
            visibility=article.visibility.value,
            author_id=article.author_id,
            created_at=article.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return _to_entity(model)

    async def list(self, category: Optional[str] = None) -> List[KBArticle]:
        stmt = select(ArticleModel).order_by(ArticleModel.created_at.desc())
        if category:
            stmt = stmt.where(func.lower(ArticleModel.category) == category.lower())
        result = await self._session.execute(stmt)
        return [_to_entity(model) for model in result.scalars().all()]

    async def search(self, keyword: str) -> List[KBArticle]:
        pattern = f"%{keyword.lower()}%"
        stmt = (
            select(ArticleModel)
            .where(or_(
                func.lower(ArticleModel.title).like(pattern),
                func.lower(ArticleModel.content).like(pattern),
                func.lower(ArticleModel.category).like(pattern),
            ))
            .order_by(ArticleModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        found = {model.id: _to_entity(model) for model in result.scalars().all()}

        # Tags live in a JSON column; match them in Python
        for article in await self.list():
            if article.id not in found and article.matches(keyword):
                found[article.id] = article
        return sorted(found.values(), key=lambda a: a.created_at, reverse=True)
