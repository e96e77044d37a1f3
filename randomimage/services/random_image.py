#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Random image extension
======================
Adds a ``<randomimage>`` tag that renders a randomly chosen image as a
thumbnail::

    <randomimage size="200" float="left" choices="A.png|B.png">Caption</randomimage>

All attributes are optional.  Without ``choices`` an image is drawn from the
file namespace.  Without a caption the image's description page supplies one:
the text of its first ``<randomcaption>...</randomcaption>`` or else its first
line.  ``<randomcaption>`` markers are stripped from every page render so they
never show up when the description page itself is viewed.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass, field
from typing import Mapping, Optional

from bs4 import BeautifulSoup

from randomimage.core.config import get_settings
from . import pages as page_svc
from .parser import ParserContext, add_before_strip_hook, set_hook
from .titles import Title, make_title_safe


log = logging.getLogger(__name__)

FLOAT_VALUES = ("left", "right", "center")

# Caption used when nothing better is available; keeps the caption slot non-empty
CAPTION_PLACEHOLDER = "&#32;"

_CAPTION_TAG_RE   = re.compile(r"<randomcaption>(.*?)</randomcaption>", re.IGNORECASE)
_FIRST_LINE_RE    = re.compile(r"(.*?)\n")
_CAPTION_MARK_RE  = re.compile(r"</?randomcaption>", re.IGNORECASE)
_LEADING_INT_RE   = re.compile(r"\s*([+-]?\d+)")
_XML_DECL_RE      = re.compile(r"<\?xml[^?]*\?>")


# -----------------------------------------------------------------------------
# Options
# -----------------------------------------------------------------------------

def _to_int(value: str) -> int:
    """Leading integer of *value*, ``0`` when there is none (``"120px"`` → 120)."""
    m = _LEADING_INT_RE.match(value or "")
    return int(m.group(1)) if m else 0


@dataclass
class RandomImageOptions:
    width: Optional[int] = None
    float: Optional[str] = None
    choices: list[str] = field(default_factory=list)
    caption: str = ""

    @classmethod
    def from_attributes(cls, attrs: Mapping[str, str], caption: str = "") -> "RandomImageOptions":
        """Pick the recognised options out of raw tag attributes; bad values are ignored."""
        opts = cls(caption=caption or "")
        attrs = {k.lower(): v for k, v in attrs.items()}

        if "size" in attrs:
            size = _to_int(attrs["size"])
            if size > 0:
                opts.width = size

        if "float" in attrs:
            align = (attrs["float"] or "").strip().lower()
            if align in FLOAT_VALUES:
                opts.float = align

        if "choices" in attrs:
            choices = [c.strip() for c in (attrs["choices"] or "").split("|")]
            choices = [c for c in choices if c]
            if choices:
                opts.choices = choices

        return opts


# -----------------------------------------------------------------------------
# Text helpers
# -----------------------------------------------------------------------------

def extract_caption(text: Optional[str]) -> str:
    """
    Caption for an image description page with content *text*.

    The first ``<randomcaption>`` wins, then the first line, then the whole
    text; empty text gives the placeholder.
    """
    text = text or ""
    m = _CAPTION_TAG_RE.search(text)
    if m:
        return m.group(1)
    m = _FIRST_LINE_RE.match(text)
    if m:
        return m.group(1)
    return text or CAPTION_PLACEHOLDER


def strip_caption_tags(text: str) -> str:
    return _CAPTION_MARK_RE.sub("", text)


def remove_magnifier(html: str) -> str:
    """Drop every ``div.magnify`` from an HTML fragment, leaving the rest as is."""
    soup = BeautifulSoup(f"<body>{html}</body>", "lxml")
    for mag in soup.select("div.magnify"):
        mag.decompose()
    body = soup.body
    out = body.decode_contents() if body is not None else ""
    return _XML_DECL_RE.sub("", out)


# -----------------------------------------------------------------------------
# Renderer
# -----------------------------------------------------------------------------

class RandomImage:
    """One ``<randomimage>`` occurrence being rendered."""

    def __init__(
        self,
        parser: ParserContext,
        options: Mapping[str, str],
        caption: str = "",
        strict: Optional[bool] = None,
        rng: Optional[random.Random] = None,
    ):
        settings = get_settings()
        self.parser = parser
        self.file_namespace = settings.file_namespace
        self.strict = settings.strict_random_images if strict is None else strict
        self.rng = rng or random.Random()

        opts = RandomImageOptions.from_attributes(options, caption)
        self.width   = opts.width
        self.float   = opts.float
        self.choices = opts.choices
        self.caption = opts.caption

    async def render(self) -> str:
        title = await self.pick_image()
        if title is not None and await self.image_exists(title):
            markup = await self.build_markup(title)
            return remove_magnifier(self.parser.recursive_tag_parse(markup))
        log.debug("randomimage: nothing to show (picked %s)", title)
        return ""

    async def image_exists(self, title: Title) -> bool:
        return await self.parser.find_file(title) is not None

    async def build_markup(self, title: Title) -> str:
        parts = [title.prefixed_text, "thumb"]
        if self.width is not None:
            parts.append(f"{self.width}px")
        if self.float:
            parts.append(self.float)
        parts.append(await self.get_caption(title))
        return "[[" + "|".join(parts) + "]]"

    async def get_caption(self, title: Title) -> str:
        if self.caption:
            return self.caption

        db = self.parser.db
        if await page_svc.title_exists(db, title):
            try:
                text = await page_svc.get_revision_text(db, title) or ""
            except page_svc.RevisionAccessError as exc:
                log.debug("randomimage: no caption text for %s: %s", title, exc)
                text = ""
            self.caption = extract_caption(text)
        else:
            self.caption = CAPTION_PLACEHOLDER
        return self.caption

    # ── selection ───────────────────────────────────────────────────────────

    async def pick_image(self) -> Optional[Title]:
        if self.choices:
            return self.pick_from_choices()
        # One retry covers a draw that landed above the highest random key
        pick = await self.pick_from_database()
        if pick is None:
            pick = await self.pick_from_database()
        return pick

    def pick_from_choices(self) -> Optional[Title]:
        name = self.rng.choice(self.choices) if len(self.choices) > 1 else self.choices[0]
        return make_title_safe(self.file_namespace, name)

    async def pick_from_database(self) -> Optional[Title]:
        return await page_svc.pick_random_file_page(
            self.parser.db,
            self.file_namespace,
            self.rng.random(),
            strict=self.strict,
        )


# -----------------------------------------------------------------------------
# Hooks
# -----------------------------------------------------------------------------

async def render_hook(content: str, attributes: dict[str, str], parser: ParserContext) -> str:
    """``<randomimage>`` tag callback."""
    if get_settings().random_image_no_cache:
        parser.update_cache_expiry(0)
    return await RandomImage(parser, attributes, content).render()


def strip_hook(text: str) -> str:
    """Pre-parse callback removing ``<randomcaption>`` markers from page text."""
    return strip_caption_tags(text)


def register() -> None:
    set_hook("randomimage", render_hook)
    add_before_strip_hook(strip_hook)


# -----------------------------------------------------------------------------
