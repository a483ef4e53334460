"""Site configuration: settings schema and config.yaml loader"""

import os
from datetime import timezone, tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, Field, field_validator


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "MDSITE_"


class Settings(BaseModel):
    app_name:      str = "mdsite"
    site_title:    str = Field(default="My Blog",  description="Title shown on the index page and feed")
    site_url:      str = Field(default="http://localhost:8000/", description="Absolute base URL used in the feed")
    author:        str | None = Field(default=None, description="Default author when a post names none")
    content_dir:   str = Field(default="content",   description="Directory scanned for markdown posts")
    output_dir:    str = Field(default="public",    description="Directory the rendered site is written to")
    parser_config: str = Field(default="commonmark", description="MarkdownIt parser preset name")
    template_dir:  str | None = Field(default=None, description="Directory of Jinja2 templates overriding the bundled theme")
    timezone:      str = Field(default="UTC",       description="Zone applied to dates written without an offset")
    db_url:        str = Field(default="sqlite:///.mdsite/cache.db", description="Render cache database")
    feed_limit:    int = Field(default=20, ge=0,    description="Max entries in feed.xml; 0 = unlimited")
    summary_words: int = Field(default=50, ge=1,    description="Words kept when deriving a summary from the body")
    extensions:    list[str] = Field(default=[".md", ".markdown", ".mdx"], description="Suffixes treated as posts")
    strict:        bool = Field(default=False,      description="Fail the build when any document fails to load")

    @field_validator("timezone")
    @classmethod
    def _known_zone(cls, value: str) -> str:
        get_tzinfo(value)
        return value

    @property
    def tz(self) -> tzinfo:
        return get_tzinfo(self.timezone)


def get_tzinfo(name: str) -> tzinfo:
    """Resolve an IANA zone name; UTC needs no tz database."""
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {name}") from e


def _env_value(name: str, raw: str) -> Any:
    """Split comma-separated env values for list fields; pydantic coerces the rest."""
    if name == "extensions":
        return [s.strip() for s in raw.split(",") if s.strip()]
    return raw


def load_config(overrides: dict[str, Any] = None, path: Path | None = None) -> Settings:
    """Load Settings from config.yaml, then MDSITE_<FIELD> env vars, then non-None CLI overrides."""
    config_path = path or Path(CONFIG_FILE)
    data: dict[str, Any] = {}
    if config_path.exists():
        try:
            data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {config_path.name}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {config_path.name}: expected a mapping")

    for name in Settings.model_fields:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = _env_value(name, val)

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
