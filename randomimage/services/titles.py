#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Page titles
===========
A ``Title`` names a page inside a namespace, e.g. ``File:Example.png``.

Titles are normalised the way wiki links are: surrounding whitespace is
dropped, underscores become spaces and the first letter is upper-cased, so
``file:example_photo.png`` and ``File:Example photo.png`` name the same page.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional


# Characters that can never appear in a page title.
_ILLEGAL_RE = re.compile(r"[\[\]{}|#<>\x00-\x1f\x7f]")
_SPACES_RE  = re.compile(r"\s+")

# Prefixes accepted as aliases of the file namespace.
FILE_PREFIXES = ("file", "image")


# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Title:
    namespace: str
    text: str

    @property
    def prefixed_text(self) -> str:
        if not self.namespace:
            return self.text
        return f"{self.namespace}:{self.text}"

    @property
    def dbkey(self) -> str:
        return self.text.replace(" ", "_")

    def __str__(self) -> str:
        return self.prefixed_text


# -----------------------------------------------------------------------------

def normalize_title_text(name: str) -> str:
    text = _SPACES_RE.sub(" ", name.replace("_", " ")).strip()
    return text[:1].upper() + text[1:]


def make_title_safe(namespace: str, name: str) -> Optional[Title]:
    """Build a ``Title`` in *namespace*, or return ``None`` if *name* is not a valid title."""
    if name is None:
        return None
    text = normalize_title_text(name)

    # Tolerate "File:Foo.png" when the caller already asked for the file namespace
    prefix, sep, rest = text.partition(":")
    prefix = prefix.strip().lower()
    if sep and (
        prefix == namespace.lower()
        or (namespace.lower() in FILE_PREFIXES and prefix in FILE_PREFIXES)
    ):
        text = normalize_title_text(rest)

    if not text or _ILLEGAL_RE.search(text):
        return None
    return Title(namespace=namespace, text=text)


# -----------------------------------------------------------------------------

def slugify(text: str) -> str:
    """Convert a page title to a URL slug (``Example photo.png`` → ``example-photo.png``)."""
    text = text.strip().lower()
    text = re.sub(r"[^\w\s.-]", "", text)
    text = re.sub(r"[\s_]+", "-", text)
    text = re.sub(r"-+", "-", text)
    return text.strip("-")


# -----------------------------------------------------------------------------
