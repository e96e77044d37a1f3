#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Parser
======
Page rendering with extension tags.

Extensions register a callback for a tag name with ``set_hook``.  During
``parse`` every ``<name attr="...">body</name>`` (or ``<name ... />``) in the
source is handed to its callback together with the parsed attributes and the
``ParserContext``; the HTML the callback returns is spliced into the final
output untouched by the format renderer.

Pre-parse hooks registered with ``add_before_strip_hook`` may rewrite the raw
source before any of that happens.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import re
import uuid
from collections.abc import Awaitable, Callable
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from randomimage.core.config import get_settings
from randomimage.models import Attachment
from .attachments import attachment_url, find_file
from .renderer import file_link_names, render
from .titles import Title, make_title_safe


TagHook    = Callable[[str, dict[str, str], "ParserContext"], Awaitable[str]]
StripHook  = Callable[[str], str]

_tag_hooks:   dict[str, TagHook] = {}
_strip_hooks: list[StripHook]    = []

# Survives both renderers unchanged (an HTML comment on its own line).  The
# per-parse nonce keeps look-alike comments in page text from being replaced.
_MARKER = "<!--EXT-TAG-{nonce}-{n}-->"

_ATTR_RE = re.compile(
    r"""([\w:.-]+)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>/=`]+)))?""",
)


# -----------------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------------

def set_hook(tag: str, callback: TagHook) -> None:
    """Register *callback* as the handler for ``<tag>``."""
    _tag_hooks[tag.lower()] = callback


def add_before_strip_hook(callback: StripHook) -> None:
    if callback not in _strip_hooks:
        _strip_hooks.append(callback)


def registered_tags() -> list[str]:
    return sorted(_tag_hooks)


# -----------------------------------------------------------------------------

class ParserContext:
    """
    Per-request parser state.

    Holds the database session the extensions query through, the file-URL
    map the renderer resolves ``[[File:...]]`` against, and the cache expiry of
    the output being produced (``None`` means "default, cacheable").
    """

    def __init__(
        self,
        db: AsyncSession,
        namespace: str = "Main",
        base_url: Optional[str] = None,
    ):
        settings = get_settings()
        self.db = db
        self.namespace = namespace
        self.base_url = settings.base_url if base_url is None else base_url
        self.file_namespace = settings.file_namespace
        self.attachments: dict[str, str] = {}
        self.cache_expiry: Optional[int] = None

    # ── output cacheability ─────────────────────────────────────────────────

    def update_cache_expiry(self, seconds: int) -> None:
        """Lower the cache lifetime of the output; it never goes back up."""
        if self.cache_expiry is None or seconds < self.cache_expiry:
            self.cache_expiry = seconds

    @property
    def is_cacheable(self) -> bool:
        return self.cache_expiry is None or self.cache_expiry > 0

    # ── collaborators for extensions ────────────────────────────────────────

    async def find_file(self, title: Title) -> Optional[Attachment]:
        """Look up the file backing *title* and make it renderable."""
        att = await find_file(self.db, title)
        if att is not None:
            self.attachments[title.text] = attachment_url(att, self.base_url)
        return att

    async def resolve_file_links(self, text: str) -> None:
        """Look up every ``[[File:...]]`` target in *text* so the renderer can draw it."""
        for name in file_link_names(text):
            if name in self.attachments:
                continue
            title = make_title_safe(self.file_namespace, name)
            if title is None or await self.find_file(title) is None:
                continue
            # The renderer looks links up by the name as written
            self.attachments[name] = self.attachments[title.text]

    def recursive_tag_parse(self, text: str) -> str:
        """Expand a snippet of wikitext to HTML within the current context."""
        return render(
            text,
            "wikitext",
            namespace=self.namespace,
            base_url=self.base_url,
            attachments=self.attachments,
            file_namespace=self.file_namespace,
        )


# -----------------------------------------------------------------------------
# Tag extraction
# -----------------------------------------------------------------------------

def parse_attributes(raw: str) -> dict[str, str]:
    """Parse tag attributes; names are lower-cased, bare names map to ``""``."""
    attrs: dict[str, str] = {}
    for m in _ATTR_RE.finditer(raw or ""):
        value = next((g for g in m.groups()[1:] if g is not None), "")
        attrs[m.group(1).lower()] = value
    return attrs


def _tag_re(tags: list[str]) -> re.Pattern:
    names = "|".join(re.escape(t) for t in tags)
    return re.compile(
        rf"<({names})(\s[^>]*?)?(?:/>|>(.*?)</\1\s*>)",
        re.IGNORECASE | re.DOTALL,
    )


# -----------------------------------------------------------------------------
# Public parse function
# -----------------------------------------------------------------------------

async def parse(context: ParserContext, content: str, fmt: str = "wikitext") -> str:
    """Render *content* to HTML, running pre-parse hooks and extension tags."""
    for hook in _strip_hooks:
        content = hook(content)

    nonce = uuid.uuid4().hex[:12]
    outputs: list[str] = []
    if _tag_hooks:
        pieces: list[str] = []
        pos = 0
        for m in _tag_re(list(_tag_hooks)).finditer(content):
            callback = _tag_hooks[m.group(1).lower()]
            html = await callback(m.group(3) or "", parse_attributes(m.group(2)), context)
            pieces.append(content[pos:m.start()])
            pieces.append(_MARKER.format(nonce=nonce, n=len(outputs)))
            outputs.append(html)
            pos = m.end()
        pieces.append(content[pos:])
        content = "".join(pieces)

    await context.resolve_file_links(content)

    html = render(
        content,
        fmt,
        namespace=context.namespace,
        base_url=context.base_url,
        attachments=context.attachments,
        file_namespace=context.file_namespace,
    )
    if not outputs:
        return html

    marker_re = re.compile(rf"<!--EXT-TAG-{nonce}-(\d+)-->")
    html = re.sub(rf"<p>\s*({marker_re.pattern})\s*</p>", r"\1", html)
    return marker_re.sub(lambda m: outputs[int(m.group(1))], html)


# -----------------------------------------------------------------------------
