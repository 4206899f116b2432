#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Text helpers
============
HTML escaping for raw markup and offset-based range replacement.

Every rewriting stage of the renderer collects ``Replacement`` ranges against
its own input string and applies them with ``replace_ranges`` before handing
the result to the next stage.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


# -----------------------------------------------------------------------------
# Escaping
# -----------------------------------------------------------------------------

# Order matters: "&" first when escaping, last when unescaping
_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#039;"),
)


def escape_html(text: str) -> str:
    """Replace the five HTML metacharacters with their entities."""
    for char, entity in _ESCAPES:
        text = text.replace(char, entity)
    return text


def unescape_html(text: str) -> str:
    """Exact inverse of :func:`escape_html`."""
    for char, entity in reversed(_ESCAPES):
        text = text.replace(entity, char)
    return text


# -----------------------------------------------------------------------------
# Range replacement
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Replacement:
    """Half-open ``[start, end)`` span of one text snapshot and its new text."""
    start: int
    end: int
    new_text: str


def replace_ranges(text: str, replacements: Iterable[Replacement]) -> str:
    """
    Return *text* with every replacement range substituted.

    Replacements must be sorted by ``start`` and pairwise disjoint; this is
    the caller's responsibility and is not checked here.
    """
    parts: list[str] = []
    cursor = 0
    for rep in replacements:
        parts.append(text[cursor:rep.start])
        parts.append(rep.new_text)
        cursor = rep.end
    parts.append(text[cursor:])
    return "".join(parts)


# -----------------------------------------------------------------------------
