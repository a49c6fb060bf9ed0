"""
Knowledge Base Infrastructure Layer
===================================
"""

from helpdesk.knowledge.infrastructure.models import ArticleModel
from helpdesk.knowledge.infrastructure.repositories import SQLAlchemyArticleRepository

__all__ = ["ArticleModel", "SQLAlchemyArticleRepository"]
