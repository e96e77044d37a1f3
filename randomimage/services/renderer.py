#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Markup renderer
===============
Renders wiki page content to HTML.

Supported formats:
  - wikitext  : a MediaWiki subset (headings, bold/italic, lists, links, images)
  - markdown  : rendered via mistune (with extras: tables, strikethrough, urls)

Both formats support [[WikiLink]] style inter-page links.  Extension tags such
as <randomimage> are not handled here; see ``services.parser``.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import html as _html
import re

from .titles import slugify


# Bump this whenever the render pipeline changes so stale cached HTML is
# automatically discarded and re-rendered on next page view.
RENDERER_VERSION = 1
_CACHE_STAMP = f'<!--rv:{RENDERER_VERSION}-->'


# -----------------------------------------------------------------------------
# Markdown renderer via mistune
# -----------------------------------------------------------------------------

def _make_md_renderer():
    import mistune
    from mistune.plugins.formatting import strikethrough
    from mistune.plugins.table import table
    from mistune.plugins.url import url

    return mistune.create_markdown(
        renderer=mistune.HTMLRenderer(escape=False),
        plugins=[table, strikethrough, url],
    )


_md_renderer = None


def _get_md_renderer():
    global _md_renderer
    if _md_renderer is None:
        _md_renderer = _make_md_renderer()
    return _md_renderer


_WIKILINK_RE = re.compile(r"\[\[([^\]|]+)(?:\|([^\]]+))?\]\]")


def _preprocess_wikilinks_md(content: str, namespace: str, base_url: str = "") -> str:
    """Convert [[...]] wikilinks to markdown links before rendering."""
    def _replace(m: re.Match) -> str:
        target = m.group(1).strip()
        label  = (m.group(2) or target).strip()
        href   = _page_href(target, namespace, base_url)
        return f'[{label}]({href})'

    return _WIKILINK_RE.sub(_replace, content)


def _page_href(target: str, namespace: str, base_url: str = "") -> str:
    ns, sep, rest = target.partition(":")
    if sep and ns.strip() and " " not in ns.strip():
        return f"{base_url}/wiki/{ns.strip()}/{slugify(rest)}"
    return f"{base_url}/wiki/{namespace}/{slugify(target)}"


# -----------------------------------------------------------------------------
# [[File:...]] image markup
# -----------------------------------------------------------------------------

_FILE_LINK_RE = re.compile(r"\[\[(?:File|Image):([^\]|]+)((?:\|[^\]]*)*)\]\]", re.IGNORECASE)
_SIZE_RE      = re.compile(r'^(?:(\d+)x(\d+)|(\d+)x|x(\d+)|(\d+))px$', re.IGNORECASE)
_FRAME_OPTS   = {"thumb", "thumbnail", "frame", "frameless", "border"}
_ALIGN_OPTS   = {"left", "right", "center", "none"}


def file_link_names(content: str) -> list[str]:
    """Distinct file names referenced by ``[[File:...]]`` / ``[[Image:...]]`` links, in order."""
    return list(dict.fromkeys(m.group(1).strip() for m in _FILE_LINK_RE.finditer(content)))


def _render_file_link(
    m: re.Match,
    attachments: dict[str, str],
    file_namespace: str,
    base_url: str,
) -> str:
    """
    Expand one ``[[File:name|options|caption]]`` link.

    Thumbnails use the classic thumb layout: an outer ``div.thumb``, an inner
    frame, the image link and a ``div.thumbcaption`` that carries the
    ``div.magnify`` enlarge link in front of the caption text.
    """
    name   = m.group(1).strip()
    params = [p.strip() for p in m.group(2).split("|")[1:]]

    opts: set[str] = set()
    width = height = ""
    caption = ""
    for p in params:
        low = p.lower()
        if low in _FRAME_OPTS or low in _ALIGN_OPTS:
            opts.add(low)
            continue
        sm = _SIZE_RE.match(p)
        if sm:
            width  = sm.group(1) or sm.group(3) or sm.group(5) or ""
            height = sm.group(2) or sm.group(4) or ""
            continue
        caption = p   # last free-text parameter wins

    url = attachments.get(name) or attachments.get(name.replace("_", " "))
    if not url:
        upload_href = f"/special/upload?filename={_html.escape(name)}"
        return f'<a href="{upload_href}" class="missing-file" title="Upload {_html.escape(name)}">{file_namespace}:{_html.escape(name)}</a>'

    desc_href  = f"{base_url}/wiki/{file_namespace}/{slugify(name)}"
    size_attrs = (f' width="{width}"' if width else "") + (f' height="{height}"' if height else "")
    align      = next((a for a in ("left", "right", "center", "none") if a in opts), "")
    alt        = _html.escape(re.sub(r"<[^>]+>|&#?\w+;", "", caption).strip(), quote=True)

    if not (opts & {"thumb", "thumbnail", "frame"}):
        cls = f"wiki-img img-{align}" if align else "wiki-img"
        img = f'<img src="{url}" alt="{alt}" class="{cls}"{size_attrs} loading="lazy" />'
        return f'<a href="{desc_href}" class="image">{img}</a>'

    img   = f'<img src="{url}" alt="{alt}" class="thumbimage"{size_attrs} loading="lazy" />'
    style = f' style="width:{int(width) + 2}px;"' if width else ""
    inner = (
        f'<div class="thumbinner"{style}>'
        f'<a href="{desc_href}" class="image">{img}</a>'
        f'<div class="thumbcaption">'
        f'<div class="magnify"><a href="{desc_href}" class="internal" title="Enlarge"></a></div>'
        f'{caption}'
        f'</div>'
        f'</div>'
    )
    if align == "center":
        return f'<div class="center"><div class="thumb tnone">{inner}</div></div>'
    side = {"left": "tleft", "none": "tnone"}.get(align, "tright")
    return f'<div class="thumb {side}">{inner}</div>'


# -----------------------------------------------------------------------------
# Wikitext (MediaWiki syntax) renderer
# -----------------------------------------------------------------------------

_BLOCK_START_RE = re.compile(r"^\s*<(div|figure|table|blockquote|ul|ol|dl|pre|hr)\b", re.IGNORECASE)


def _render_wikitext(
    content: str,
    namespace: str,
    base_url: str = "",
    attachments: dict[str, str] | None = None,
    file_namespace: str = "File",
) -> str:
    """
    Convert a subset of MediaWiki wikitext to HTML.

    Supported syntax
    ----------------
    = H1 =  /  == H2 ==  / ... / ====== H6 ======
    '''bold'''  /  ''italic''  /  '''''bold-italic'''''
    [[Page Title]]  /  [[Page Title|Display Text]]   — inter-wiki links
    [[File:name.png|thumb|200px|left|Caption]]       — images and thumbnails
    [https://example.com Display]                    — external links
    ----                                             — <hr>
    * item  /  # item                                — flat lists
    Lines not matching any block rule become <p> paragraphs.
    """
    _attachments = attachments or {}
    out: list[str] = []
    para_buf: list[str] = []
    list_tag: str | None = None

    def _inline(text: str) -> str:
        text = re.sub(
            r"\[(\w+://[^\s\]]+)\s+([^\]]+)\]",
            lambda m: f'<a href="{m.group(1)}" class="external">{m.group(2)}</a>',
            text,
        )
        text = re.sub(
            r"\[(\w+://[^\s\]]+)\]",
            lambda m: f'<a href="{m.group(1)}" class="external">{m.group(1)}</a>',
            text,
        )
        text = _FILE_LINK_RE.sub(
            lambda m: _render_file_link(m, _attachments, file_namespace, base_url),
            text,
        )

        def _wl(m: re.Match) -> str:
            target = m.group(1).strip()
            label  = (m.group(2) or target).strip()
            return f'<a href="{_page_href(target, namespace, base_url)}" class="wikilink">{label}</a>'
        text = _WIKILINK_RE.sub(_wl, text)

        text = re.sub(r"'{5}(.+?)'{5}", r"<b><i>\1</i></b>", text)
        text = re.sub(r"'{3}(.+?)'{3}", r"<b>\1</b>", text)
        text = re.sub(r"'{2}(.+?)'{2}", r"<i>\1</i>", text)
        return text

    def _flush_para():
        if not para_buf:
            return
        rendered = [_inline(l) for l in para_buf]
        para_buf.clear()
        # A lone image thumbnail (or other block element) is emitted unwrapped
        if len(rendered) == 1 and _BLOCK_START_RE.match(rendered[0]):
            out.append(rendered[0])
        else:
            out.append(f"<p>{'<br>'.join(rendered)}</p>")

    def _close_list():
        nonlocal list_tag
        if list_tag:
            out.append(f"</{list_tag}>")
            list_tag = None

    for line in content.splitlines():
        stripped = line.rstrip()

        if not stripped.strip():
            _flush_para()
            _close_list()
            continue

        m = re.match(r"^(={1,6})\s*(.+?)\s*=+\s*$", stripped)
        if m:
            _flush_para()
            _close_list()
            level = len(m.group(1))
            out.append(f"<h{level}>{_inline(m.group(2))}</h{level}>")
            continue

        if re.match(r"^-{4,}\s*$", stripped):
            _flush_para()
            _close_list()
            out.append("<hr>")
            continue

        m = re.match(r"^([*#])\s*(.*)", stripped)
        if m and not stripped.upper().startswith("#REDIRECT"):
            _flush_para()
            tag = "ul" if m.group(1) == "*" else "ol"
            if list_tag != tag:
                _close_list()
                out.append(f"<{tag}>")
                list_tag = tag
            out.append(f"<li>{_inline(m.group(2))}</li>")
            continue

        _close_list()
        para_buf.append(stripped)

    _flush_para()
    _close_list()
    return "\n".join(out)


# -----------------------------------------------------------------------------
# Redirect detection
# -----------------------------------------------------------------------------

_REDIRECT_RE = re.compile(r"^\s*#REDIRECT\s*\[\[([^\]]+)\]\]", re.IGNORECASE)


def parse_redirect(content: str) -> str | None:
    """Return the redirect target title if content is a redirect page, else None.

    Matches ``#REDIRECT [[Target Title]]`` on the first non-blank line.
    """
    for line in content.splitlines():
        line = line.strip()
        if not line:
            continue
        m = _REDIRECT_RE.match(line)
        if m:
            return m.group(1).strip()
        break
    return None


# -----------------------------------------------------------------------------
# Public render function
# -----------------------------------------------------------------------------

def render(
    content: str,
    fmt: str,
    namespace: str = "Main",
    base_url: str = "",
    attachments: dict[str, str] | None = None,
    file_namespace: str = "File",
) -> str:
    """
    Render *content* to HTML.

    Parameters
    ----------
    content        : raw source text
    fmt            : "wikitext" or "markdown"
    namespace      : wiki namespace name (used for wikilink URL construction)
    base_url       : site base URL prefix for links
    attachments    : optional mapping of file name → URL used by ``[[File:...]]``
    file_namespace : namespace that image description pages live in
    """
    fmt = fmt.lower()

    if fmt == "wikitext":
        return _render_wikitext(content, namespace, base_url, attachments, file_namespace)
    if fmt == "markdown":
        processed = _preprocess_wikilinks_md(content, namespace, base_url)
        return _get_md_renderer()(processed)
    return f"<pre>{_html.escape(content)}</pre>"


def stamp(html: str) -> str:
    """Prefix *html* with the renderer version so cached copies can be validated."""
    return _CACHE_STAMP + html


def unstamp(rendered: str) -> str:
    return rendered[len(_CACHE_STAMP):]


def is_cache_valid(rendered: str | None) -> bool:
    """Return True only if *rendered* was produced by the current renderer version."""
    return rendered is not None and rendered.startswith(_CACHE_STAMP)


# -----------------------------------------------------------------------------
