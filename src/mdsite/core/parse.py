"""File discovery, frontmatter extraction, and document loading"""

import logging
import os
import re
import tomllib
from pathlib import Path
from typing import Any, Callable, Iterable

import yaml
from pydantic import ValidationError

from mdsite.config import Settings
from mdsite.core.models import Document, LoadResult, Metadata
from mdsite.core.utils.hashing import sha256
from mdsite.errors import LoadError, MdsiteError, ParseError


logger = logging.getLogger(__name__)

YAML_FRONTMATTER_RE = re.compile(r'\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)', re.DOTALL | re.MULTILINE)
TOML_FRONTMATTER_RE = re.compile(r'\A\+\+\+[ \t]*\r?\n(.*?)^\+\+\+[ \t]*(?:\r?\n|\Z)', re.DOTALL | re.MULTILINE)
REQUIRED_FIELDS = ('title', 'date')
TEXT_FIELDS = ('title', 'author', 'summary', 'slug')
_NUMBER_TAGS = ('tag:yaml.org,2002:int', 'tag:yaml.org,2002:float')
_ERROR_LINE_RE = re.compile(r'at line (\d+)')
_KEY_RE = re.compile(r'\s*["\']?([A-Za-z0-9_-]+)["\']?\s*=')


class FrontmatterLoader(yaml.SafeLoader):
    """SafeLoader that leaves timestamps, and numbers in text fields, as written.

    Dates are validated later so a bad one is reported on its own field, and
    a title like `007` keeps its leading zeros.
    """

    def construct_mapping(self, node, deep=False):
        mapping = super().construct_mapping(node, deep=deep)
        for key_node, value_node in node.value:
            if not isinstance(value_node, yaml.ScalarNode) or value_node.tag not in _NUMBER_TAGS:
                continue
            key = self.construct_object(key_node)
            if key in TEXT_FIELDS:
                mapping[key] = value_node.value
        return mapping


def _construct_timestamp(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> str:
    return loader.construct_scalar(node)


FrontmatterLoader.add_constructor("tag:yaml.org,2002:timestamp", _construct_timestamp)


def _load_yaml(block: str) -> Any:
    return yaml.load(block, Loader=FrontmatterLoader)


def _load_toml(block: str) -> Any:
    return tomllib.loads(block)


FRONTMATTER_FORMATS = (
    (YAML_FRONTMATTER_RE, _load_yaml, (yaml.YAMLError, ValueError)),
    (TOML_FRONTMATTER_RE, _load_toml, (tomllib.TOMLDecodeError,)),
)


def _error_field(error: Exception, block: str) -> str:
    """Name the key on the line a TOML decode error points at, else 'frontmatter'."""
    m = _ERROR_LINE_RE.search(str(error))
    if m:
        lines = block.splitlines()
        lineno = int(m.group(1))
        if 0 < lineno <= len(lines):
            key = _KEY_RE.match(lines[lineno - 1])
            if key and key.group(1) in Metadata.model_fields:
                return key.group(1)
    return 'frontmatter'


def split_frontmatter(text: str, path: str) -> tuple[dict[str, Any], str]:
    """Return (frontmatter_dict, body) with the delimited header removed.

    Raises ParseError on field 'frontmatter' when the block is absent,
    unparseable, or not a mapping. A TOML value that fails to decode is
    reported on its own key.
    """
    text = text.lstrip('\ufeff')
    for pattern, loader, errors in FRONTMATTER_FORMATS:
        m = pattern.match(text)
        if not m:
            continue
        try:
            fm = loader(m.group(1))
        except errors as e:
            field = _error_field(e, m.group(1)) if isinstance(e, tomllib.TOMLDecodeError) else 'frontmatter'
            raise ParseError(path, field, f"invalid metadata block: {e}") from e
        if fm is None:
            fm = {}
        if not isinstance(fm, dict):
            raise ParseError(path, 'frontmatter', f"expected a mapping, got {type(fm).__name__}")
        return {str(k): v for k, v in fm.items()}, text[m.end():]
    raise ParseError(path, 'frontmatter', "missing metadata block")


def parse_metadata(fm: dict[str, Any], path: str, settings: Settings) -> Metadata:
    """Validate frontmatter into Metadata, reporting the first offending field."""
    for name in REQUIRED_FIELDS:
        if name not in fm:
            raise ParseError(path, name, "required field is missing")

    known = set(Metadata.model_fields) - {'extra'}
    data = {k: v for k, v in fm.items() if k in known}
    data['extra'] = {k: v for k, v in fm.items() if k not in known}
    try:
        return Metadata.model_validate(data, context={'tz': settings.tz})
    except ValidationError as e:
        err = e.errors()[0]
        field = '.'.join(str(p) for p in err['loc']) or 'frontmatter'
        raise ParseError(path, field, err['msg']) from e


def parse_text(text: str, path: str, settings: Settings) -> Document:
    """Parse a document's full source text into a Document."""
    fm, body = split_frontmatter(text, path)
    return Document(
        path=path,
        metadata=parse_metadata(fm, path, settings),
        body=body,
        hash=sha256(text),
    )


def discover_files(
    path: Path,
    extensions: Iterable[str] = ('.md', '.markdown', '.mdx'),
    onerror: Callable[[OSError], None] | None = None,
    ) -> list[Path]:
    """Return sorted post files under path, or [path] if a single matching file.

    Directories that cannot be listed are passed to `onerror` and skipped.
    """
    suffixes = {e.lower() for e in extensions}
    if path.is_file():
        return [path] if path.suffix.lower() in suffixes else []
    found = []
    for dirpath, _, filenames in os.walk(path, onerror=onerror):
        for name in filenames:
            p = Path(dirpath) / name
            if p.suffix.lower() in suffixes and p.is_file():
                found.append(p)
    return sorted(found)


def _relative(path: Path, root: Path) -> str:
    if root.is_file():
        return path.name
    return path.relative_to(root).as_posix()


def parse_file(path: Path, settings: Settings, root: Path | None = None) -> Document:
    """Read and parse a single file; the Document path is relative to root when given."""
    rel = _relative(path, root) if root is not None else path.as_posix()
    try:
        raw = path.read_text(encoding='utf-8')
    except UnicodeDecodeError as e:
        raise LoadError(rel, f"not valid UTF-8: {e}") from e
    except OSError as e:
        raise LoadError(rel, e.strerror or str(e)) from e
    return parse_text(raw, rel, settings)


def load(directory: str | Path, settings: Settings) -> LoadResult:
    """Parse every post under directory, collecting per-file failures instead of stopping."""
    root = Path(directory)
    result = LoadResult()
    if not root.exists():
        result.errors.append(LoadError(root.as_posix(), "no such file or directory"))
        return result

    def unreadable(e: OSError) -> None:
        where = Path(e.filename) if e.filename else root
        try:
            rel = where.relative_to(root).as_posix()
        except ValueError:
            rel = where.as_posix()
        if rel == '.':
            rel = root.as_posix()
        error = LoadError(rel, e.strerror or str(e))
        logger.warning("Skipping %s", error)
        result.errors.append(error)

    files = discover_files(root, settings.extensions, onerror=unreadable)

    for p in files:
        try:
            result.documents.append(parse_file(p, settings, root))
        except MdsiteError as e:
            logger.warning("Skipping %s", e)
            result.errors.append(e)

    logger.info("Loaded %d document(s) from %s, %d failed", len(result.documents), root, len(result.errors))
    return result
