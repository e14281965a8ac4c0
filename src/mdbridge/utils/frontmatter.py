#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdbridge/utils/frontmatter.py
"""Frontmatter splitting and key/value helpers.

A document may start with a metadata block delimited by ``---`` lines.
The block is kept verbatim as raw YAML text; structured access is offered
separately through :func:`load_frontmatter` and the flat key/value view
used by frontmatter editors.

"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

import yaml

logger = logging.getLogger(__name__)

FRONTMATTER_DELIMITER = "---"
_OPENING = FRONTMATTER_DELIMITER + "\n"
_CLOSING = "\n" + FRONTMATTER_DELIMITER + "\n"


def normalize_newlines(text: str) -> str:
    """Convert ``\\r\\n`` and lone ``\\r`` line endings to ``\\n``."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def split_frontmatter(text: str) -> tuple[Optional[str], str]:
    """Split a leading ``---`` delimited block off a document.

    The text must start with ``---`` followed by a newline. The block ends at
    the next line consisting of exactly ``---``. Without a closing delimiter
    the whole text is body.

    Parameters
    ----------
    text : str
        Raw document text

    Returns
    -------
    tuple of (str or None, str)
        The frontmatter payload (without delimiters) or None, and the body

    Examples
    --------
    >>> split_frontmatter("---\\nkey: v\\n---\\n\\n# Hi")
    ('key: v', '\\n# Hi')
    >>> split_frontmatter("# No frontmatter")
    (None, '# No frontmatter')

    """
    text = normalize_newlines(text)
    if not text.startswith(_OPENING):
        return None, text

    # Empty payload: the closing delimiter directly follows the opening one
    rest = text[len(_OPENING) :]
    if rest == FRONTMATTER_DELIMITER or rest.startswith(_OPENING):
        return "", rest[len(_OPENING) :]

    end = text.find(_CLOSING, len(_OPENING))
    if end == -1:
        return None, text

    return text[len(_OPENING) : end], text[end + len(_CLOSING) :]


def frontmatter_pairs(raw_yaml: str) -> list[tuple[str, str]]:
    """Return the flat key/value view of a frontmatter payload.

    Each line is split at its first ``:``. Blank lines, ``#`` comment lines
    and lines without a colon are skipped. Nested YAML structures are not
    interpreted; use :func:`load_frontmatter` for those.

    Parameters
    ----------
    raw_yaml : str
        Frontmatter payload

    Returns
    -------
    list of tuple of (str, str)
        Trimmed key/value pairs in source order

    Examples
    --------
    >>> frontmatter_pairs("title: Report\\n# note\\nauthor: A: B")
    [('title', 'Report'), ('author', 'A: B')]

    """
    pairs: list[tuple[str, str]] = []
    for line in normalize_newlines(raw_yaml).split("\n"):
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or ":" not in stripped:
            continue
        key, value = stripped.split(":", 1)
        pairs.append((key.strip(), value.strip()))
    return pairs


def pairs_to_frontmatter(pairs: Iterable[tuple[str, Any]]) -> str:
    """Build a frontmatter payload from key/value pairs.

    Pairs with an empty key are dropped.

    Examples
    --------
    >>> pairs_to_frontmatter([("title", "Report"), ("draft", "true")])
    'title: Report\\ndraft: true'

    """
    return "\n".join(f"{key.strip()}: {value}" for key, value in pairs if key and key.strip())


def load_frontmatter(raw_yaml: Optional[str]) -> dict[str, Any]:
    """Parse a frontmatter payload as YAML.

    Parameters
    ----------
    raw_yaml : str or None
        Frontmatter payload

    Returns
    -------
    dict
        The parsed mapping; empty when the payload is missing, is not valid
        YAML or does not hold a mapping

    """
    if not raw_yaml or not raw_yaml.strip():
        return {}
    try:
        data = yaml.safe_load(raw_yaml)
    except yaml.YAMLError as e:
        logger.warning("Frontmatter is not valid YAML: %s", e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Frontmatter does not hold a mapping (got %s)", type(data).__name__)
        return {}
    return data


def render_frontmatter(raw_yaml: str) -> str:
    """Wrap a payload in ``---`` delimiters, followed by a blank line.

    A newline is always placed before the closing delimiter so that a
    payload ending in a blank line survives a split/render round trip.

    Examples
    --------
    >>> render_frontmatter("key: v")
    '---\\nkey: v\\n---\\n\\n'

    """
    return f"{_OPENING}{raw_yaml}\n{FRONTMATTER_DELIMITER}\n\n"
