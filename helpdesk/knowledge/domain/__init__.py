"""
Knowledge Base Domain Layer
===========================
"""

from helpdesk.knowledge.domain.entities import KBArticle, normalize_tags

__all__ = ["KBArticle", "normalize_tags"]
