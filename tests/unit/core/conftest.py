"""Shared fixtures for core unit tests"""

from datetime import datetime, timezone

import pytest

from mdsite.core.models import Document, Metadata
from mdsite.core.utils.hashing import sha256


def _doc(path: str, date: str, draft: bool = False, tags: list[str] | None = None, **meta) -> Document:
    body = meta.pop("body", "Body text.\n")
    return Document(
        path=path,
        metadata=Metadata(
            title=meta.pop("title", path),
            date=datetime.fromisoformat(date).replace(tzinfo=timezone.utc),
            draft=draft,
            tags=tags or [],
            **meta,
        ),
        body=body,
        hash=sha256(path + body),
    )


@pytest.fixture(name="make_doc")
def make_doc_fixture():
    """Build an in-memory Document: make_doc(path, 'YYYY-MM-DD', draft=False, tags=[...])."""
    return _doc
