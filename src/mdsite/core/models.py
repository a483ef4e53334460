"""Data models for loaded documents, rendered pages, and pass results"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, tzinfo
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

from mdsite.core.utils.slug import slugify
from mdsite.errors import AggregateError, LoadError, MdsiteError, ParseError


def _as_datetime(value: Any, tz: Optional[tzinfo]) -> Any:
    """Coerce YAML/TOML dates and ISO strings to aware datetimes. Numbers are rejected."""
    if isinstance(value, bool) or not isinstance(value, (str, date)):
        raise ValueError(f"must be a date or ISO-8601 string, got {type(value).__name__}")
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip())
        except ValueError as e:
            raise ValueError(f"not an ISO-8601 date: {value!r}") from e
    elif isinstance(value, date) and not isinstance(value, datetime):
        value = datetime.combine(value, time())
    if isinstance(value, datetime) and value.tzinfo is None and tz is not None:
        value = value.replace(tzinfo=tz)
    return value


def _as_terms(value: Any) -> list[str]:
    """Normalize a tag/category value (list, comma string, or scalar) to an ordered unique list."""
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        items = value
    else:
        items = [value]
    terms = (str(t).strip() for t in items if t is not None)
    return list(dict.fromkeys(t for t in terms if t))


class Metadata(BaseModel):
    """Typed frontmatter. Unknown keys are kept in `extra`."""
    model_config = ConfigDict(frozen=True)

    title:      str
    date:       datetime
    draft:      bool = False
    tags:       list[str] = []
    categories: list[str] = []
    author:     Optional[str] = None
    summary:    Optional[str] = None
    slug:       Optional[str] = None
    extra:      dict[str, Any] = {}

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, value: Any) -> str:
        if value is None:
            raise ValueError("must not be empty")
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise ValueError("must be a string")
        value = str(value)
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("date", mode="before")
    @classmethod
    def _date(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            raise ValueError("must not be empty")
        tz = (info.context or {}).get("tz")
        return _as_datetime(value, tz)

    @field_validator("draft", mode="before")
    @classmethod
    def _draft(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("tags", "categories", mode="before")
    @classmethod
    def _terms(cls, value: Any) -> list[str]:
        return _as_terms(value)

    @field_validator("author", "summary", "slug", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class Document(BaseModel):
    """A single content file: source path, typed metadata, and raw markdown body."""
    model_config = ConfigDict(frozen=True)

    path:     str               # relative to the content root, POSIX separators
    metadata: Metadata
    body:     str               # markdown with the metadata block removed
    hash:     str               # sha256 of the full source text

    @property
    def slug(self) -> str:
        return slugify(self.metadata.slug or Path(self.path).stem) or "post"

    @property
    def title(self) -> str:
        return self.metadata.title

    @property
    def date(self) -> datetime:
        return self.metadata.date

    @property
    def draft(self) -> bool:
        return self.metadata.draft

    @property
    def url(self) -> str:
        return f"/{self.slug}/"


@dataclass
class Page:
    """A rendered document: body HTML plus the complete themed output."""
    document: Document
    html:     str               # markdown body converted to HTML
    content:  str               # full page produced by the theme
    summary:  str = ""          # plain-text summary used in listings
    cached:   bool = False      # html came from the render cache


@dataclass
class LoadResult:
    """Outcome of one load pass: successes plus per-file failures collected along the way."""
    documents: list[Document] = field(default_factory=list)
    errors:    list[MdsiteError] = field(default_factory=list)

    @property
    def parse_errors(self) -> list[ParseError]:
        return [e for e in self.errors if isinstance(e, ParseError)]

    @property
    def load_errors(self) -> list[LoadError]:
        return [e for e in self.errors if isinstance(e, LoadError)]

    def raise_for_errors(self) -> None:
        """Raise AggregateError if any document failed to load."""
        if self.errors:
            raise AggregateError(self.errors)
