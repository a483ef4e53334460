"""Render cache: explicit map from (document path, content hash) to rendered body HTML"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from mdsite.crud.models import RenderedBody


logger = logging.getLogger(__name__)


class RenderCache(ABC):
    @abstractmethod
    def get(self, path: str, hash: str, preset: str) -> str | None:
        """Return cached HTML for path if it was rendered from the same hash and preset."""
        raise NotImplementedError

    @abstractmethod
    def put(self, path: str, hash: str, preset: str, html: str) -> None:
        raise NotImplementedError

    def close(self) -> None:
        """Flush pending writes."""


@dataclass
class MemoryRenderCache(RenderCache):
    _entries: dict[tuple[str, str, str], str] = field(default_factory=dict)

    def get(self, path: str, hash: str, preset: str) -> str | None:
        return self._entries.get((path, hash, preset))

    def put(self, path: str, hash: str, preset: str, html: str) -> None:
        # One entry per path; a new hash replaces the stale one.
        for key in [k for k in self._entries if k[0] == path]:
            del self._entries[key]
        self._entries[(path, hash, preset)] = html

    def __len__(self) -> int:
        return len(self._entries)


class SqlRenderCache(RenderCache):
    """RenderCache persisted in the rendered_bodies table; one row per document path."""

    def __init__(self, engine: Engine):
        self.session = Session(engine)

    def get(self, path: str, hash: str, preset: str) -> str | None:
        row = self.session.get(RenderedBody, path)
        if row is None or row.hash != hash or row.preset != preset:
            return None
        return row.html

    def put(self, path: str, hash: str, preset: str, html: str) -> None:
        row = self.session.get(RenderedBody, path)
        if row is None:
            row = RenderedBody(path=path, hash=hash, preset=preset, html=html)
        else:
            row.hash, row.preset, row.html = hash, preset, html
            row.rendered_at = datetime.now()
        self.session.add(row)
        self.session.flush()

    def prune(self, keep: set[str]) -> int:
        """Delete rows whose path is not in keep. Returns the number removed."""
        stale = [r for r in self.session.exec(select(RenderedBody)).all() if r.path not in keep]
        for row in stale:
            self.session.delete(row)
        self.session.flush()
        if stale:
            logger.debug("Pruned %d stale cache row(s)", len(stale))
        return len(stale)

    def __len__(self) -> int:
        return len(self.session.exec(select(RenderedBody.path)).all())

    def close(self) -> None:
        self.session.commit()
        self.session.close()
