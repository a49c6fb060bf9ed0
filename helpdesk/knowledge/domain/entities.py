"""
Knowledge Base Domain Entities
==============================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import FrozenSet, Iterable, Optional

from helpdesk.config import ArticleVisibility


def normalize_tags(tags: Optional[Iterable[str]]) -> FrozenSet[str]:
    """Trim, lowercase and de-duplicate tags; blanks are dropped."""
    if not tags:
        return frozenset()
    return frozenset(t.strip().lower() for t in tags if t and t.strip())


@dataclass
class KBArticle:
    """
    Knowledge base article.

    Visibility defaults to INTERNAL unless PUBLIC is requested
    explicitly.
    """
    id: str
    title: str
    content: str
    author_id: str
    category: Optional[str] = None
    tags: FrozenSet[str] = field(default_factory=frozenset)
    visibility: ArticleVisibility = ArticleVisibility.INTERNAL
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        self.tags = normalize_tags(self.tags)
        value = getattr(self.visibility, "value", self.visibility)
        try:
            self.visibility = ArticleVisibility(str(value).upper())
        except ValueError:
            self.visibility = ArticleVisibility.INTERNAL

    @property
    def is_public(self) -> bool:
        return self.visibility == ArticleVisibility.PUBLIC

    def matches(self, keyword: str) -> bool:
        """Case-insensitive match on title, content, category or tags."""
        needle = keyword.strip().lower()
        if not needle:
            return False
        haystack = (self.title, self.content, self.category or "")
        return any(needle in text.lower() for text in haystack) or any(needle in tag for tag in self.tags)
