"""Bookmark domain models."""
import hashlib
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from urllib.parse import urlparse


@dataclass
class Category:
    """Category node in the user's category tree."""
    id: str
    name: str
    parent_id: Optional[str] = None
    order: int = 0


@dataclass
class Bookmark:
    """Saved page. Owned by the bookmark store; the core only reads it."""
    id: str
    url: str
    title: str
    created_at: datetime
    updated_at: datetime
    description: str = ""
    tags: list[str] = field(default_factory=list)
    category_id: Optional[str] = None
    is_deleted: bool = False

    @property
    def domain(self) -> str:
        """Hostname without a leading ``www.``, or the raw url if unparsable."""
        try:
            host = urlparse(self.url).hostname
        except ValueError:
            return self.url
        if not host:
            return self.url
        return host[4:] if host.startswith("www.") else host

    def embedding_text(self) -> str:
        """Short, stable summary fed to the embedding model."""
        parts = []
        if self.title:
            parts.append(f"title: {self.title}")
        if self.description:
            parts.append(f"description: {self.description}")
        if self.tags:
            parts.append(f"tags: {', '.join(self.tags)}")
        if self.url:
            try:
                parsed = urlparse(self.url)
                location = f"{parsed.hostname}{parsed.path}" if parsed.hostname else self.url
            except ValueError:
                location = self.url
            parts.append(f"url: {location}")
        return "\n".join(parts)

    def content_checksum(self) -> str:
        """Checksum of the embedding text, used to detect stale vectors."""
        return hashlib.md5(self.embedding_text().encode()).hexdigest()[:12]


@dataclass
class Embedding:
    """Stored vector for one (bookmark, model) pair."""
    bookmark_id: str
    model_key: str
    vector: list[float]
    checksum: str = ""

    @property
    def dim(self) -> int:
        return len(self.vector)
