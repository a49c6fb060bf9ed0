"""
Knowledge Base Application Layer
================================
"""

from helpdesk.knowledge.application.dto import (
    ArticleCreateRequest,
    ArticleResponse,
    CategoryResponse,
)
from helpdesk.knowledge.application.services import IArticleRepository, KnowledgeBaseService

__all__ = [
    "ArticleCreateRequest",
    "ArticleResponse",
    "CategoryResponse",
    "IArticleRepository",
    "KnowledgeBaseService",
]
