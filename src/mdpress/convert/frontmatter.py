"""YAML front matter: metadata extraction and stripping.

Both functions match the block with :data:`FRONT_MATTER_RE`, so they always
agree on where the Markdown body begins.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, Callable, Mapping, Optional

import yaml

from .models import PLACEHOLDER_TITLE, DocumentMetadata

logger = logging.getLogger(__name__)

DATE_FORMAT = "%d.%m.%Y"

# Opening ``---`` at offset 0, closing ``---`` on its own line followed by a
# newline or the end of the text.
FRONT_MATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(?:(?P<body>.*?)\r?\n)?---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL,
)
_MARKUP_SUFFIX_RE = re.compile(r"\.(md|markdown|txt)$", re.IGNORECASE)


# Scalars stay exactly as written, so ``title: No`` or ``title: 1.10`` are
# kept verbatim. Only ``null`` and empty values are resolved.
_COERCED_TAGS = frozenset(
    f"tag:yaml.org,2002:{name}" for name in ("bool", "int", "float", "timestamp")
)


class _TextScalarLoader(yaml.SafeLoader):
    yaml_implicit_resolvers = {
        first: [
            (tag, pattern)
            for tag, pattern in resolvers
            if tag not in _COERCED_TAGS
        ]
        for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
    }


def extract_metadata(
    text: str,
    filename: Optional[str] = None,
    *,
    today: Callable[[], date] | None = None,
) -> DocumentMetadata:
    """Return document metadata from front matter, with defaults applied.

    Malformed YAML, or YAML that is not a mapping, is logged and ignored.
    """

    defaults = _defaults(filename, today or date.today)
    fields = _parse_front_matter(text)
    if fields is None:
        return defaults
    return DocumentMetadata(
        title=_field(fields, "title") or defaults.title,
        author=_field(fields, "author") or defaults.author,
        date=_field(fields, "date") or defaults.date,
    )


def strip_front_matter(text: str) -> str:
    """Return ``text`` without its leading front matter block.

    A body that itself opens with a delimited block, such as a thematic
    break followed by a setext heading, is kept behind a blank line so
    that stripping again leaves it untouched.
    """

    match = FRONT_MATTER_RE.match(text)
    if match is None:
        return text
    body = text[match.end():]
    if FRONT_MATTER_RE.match(body):
        return "\n" + body
    return body


def _parse_front_matter(text: str) -> Optional[Mapping[str, Any]]:
    match = FRONT_MATTER_RE.match(text)
    if match is None:
        return None
    try:
        loaded = yaml.load(match.group("body") or "", Loader=_TextScalarLoader)
    except yaml.YAMLError as exc:
        logger.warning(
            "Failed to parse front matter",
            extra={"error": str(exc)},
        )
        return None
    if loaded is None:
        return {}
    if not isinstance(loaded, Mapping):
        logger.warning(
            "Front matter is not a mapping",
            extra={"found": type(loaded).__name__},
        )
        return None
    return loaded


def _field(fields: Mapping[str, Any], key: str) -> str:
    value = fields.get(key)
    if value is None:
        return ""
    return str(value).strip()


def _defaults(
    filename: Optional[str], today: Callable[[], date]
) -> DocumentMetadata:
    title = PLACEHOLDER_TITLE
    if filename:
        stem = _MARKUP_SUFFIX_RE.sub("", filename)
        title = stem or PLACEHOLDER_TITLE
    return DocumentMetadata(
        title=title,
        author="",
        date=today().strftime(DATE_FORMAT),
    )


__all__ = [
    "DATE_FORMAT",
    "FRONT_MATTER_RE",
    "extract_metadata",
    "strip_front_matter",
]
