#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for random image selection, existence checks and caption lookup."""
# -----------------------------------------------------------------------------

from __future__ import annotations

import random

import pytest

from randomimage.services import pages as page_svc
from randomimage.services.parser import ParserContext
from randomimage.services.random_image import CAPTION_PLACEHOLDER, RandomImage
from randomimage.services.titles import Title
from tests.conftest import add_file, add_image, add_namespace, add_page


# -----------------------------------------------------------------------------

class ScriptedRandom(random.Random):
    """Returns the given draws in order from ``random()``."""

    def __init__(self, draws):
        super().__init__(0)
        self.draws = list(draws)
        self.calls = 0

    def random(self):
        self.calls += 1
        return self.draws.pop(0)


def _image(db, attrs=None, caption="", strict=True, rng=None) -> RandomImage:
    return RandomImage(ParserContext(db), attrs or {}, caption, strict=strict, rng=rng)


# ── Choices ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_single_choice_always_picked():
    ri = _image(None, {"choices": "Only.png"})
    for _ in range(20):
        assert await ri.pick_image() == Title("File", "Only.png")


@pytest.mark.asyncio
async def test_multiple_choices_all_reachable():
    ri = _image(None, {"choices": "A.png|B.png|C.png"}, rng=random.Random(1234))
    seen = {(await ri.pick_image()).text for _ in range(300)}
    assert seen == {"A.png", "B.png", "C.png"}


@pytest.mark.asyncio
async def test_choice_names_are_normalised():
    ri = _image(None, {"choices": "file:my_photo.png"})
    assert await ri.pick_image() == Title("File", "My photo.png")


@pytest.mark.asyncio
async def test_invalid_choice_renders_nothing(db_session):
    ri = _image(db_session, {"choices": "Bad[name].png"})
    assert await ri.pick_image() is None
    assert await ri.render() == ""


@pytest.mark.asyncio
async def test_choices_skip_database(db_session):
    rng = ScriptedRandom([])
    ri = _image(db_session, {"choices": "X.png"}, rng=rng)
    await ri.pick_image()
    assert rng.calls == 0


# ── Database pick ────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_database_pick_first_above_threshold(db_session):
    ns = await add_namespace(db_session, "File")
    await add_image(db_session, ns, "Low.png", random_key=0.2)
    await add_image(db_session, ns, "High.png", random_key=0.6)

    ri = _image(db_session, rng=ScriptedRandom([0.1]))
    assert await ri.pick_image() == Title("File", "Low.png")

    ri = _image(db_session, rng=ScriptedRandom([0.5]))
    assert await ri.pick_image() == Title("File", "High.png")


@pytest.mark.asyncio
async def test_database_pick_retries_once(db_session):
    ns = await add_namespace(db_session, "File")
    await add_image(db_session, ns, "Only.png", random_key=0.3)

    rng = ScriptedRandom([0.9, 0.1])
    ri = _image(db_session, rng=rng)
    assert await ri.pick_image() == Title("File", "Only.png")
    assert rng.calls == 2


@pytest.mark.asyncio
async def test_database_pick_gives_up_after_retry(db_session):
    ns = await add_namespace(db_session, "File")
    await add_image(db_session, ns, "Only.png", random_key=0.3)

    rng = ScriptedRandom([0.9, 0.95, 0.0])
    ri = _image(db_session, rng=rng)
    assert await ri.pick_image() is None
    assert rng.calls == 2
    assert await _image(db_session, rng=ScriptedRandom([0.99, 0.99])).render() == ""


@pytest.mark.asyncio
async def test_database_pick_skips_redirects_and_other_namespaces(db_session):
    files = await add_namespace(db_session, "File")
    main = await add_namespace(db_session, "Main")
    await add_page(db_session, main, "Elsewhere.png", random_key=0.1)
    redirect = await add_page(db_session, files, "Moved.png", "#REDIRECT [[File:Real.png]]",
                              random_key=0.2, is_redirect=True)
    await add_file(db_session, redirect)
    await add_image(db_session, files, "Real.png", random_key=0.7)

    ri = _image(db_session, rng=ScriptedRandom([0.0]))
    assert await ri.pick_image() == Title("File", "Real.png")


@pytest.mark.asyncio
async def test_strict_requires_image_backing_file(db_session):
    ns = await add_namespace(db_session, "File")
    await add_page(db_session, ns, "NoFile.png", random_key=0.1)
    await add_image(db_session, ns, "Doc.pdf", random_key=0.2, content_type="application/pdf")
    await add_image(db_session, ns, "Photo.jpg", random_key=0.3, content_type="image/jpeg")

    strict = _image(db_session, strict=True, rng=ScriptedRandom([0.0]))
    assert await strict.pick_image() == Title("File", "Photo.jpg")

    loose = _image(db_session, strict=False, rng=ScriptedRandom([0.0]))
    assert await loose.pick_image() == Title("File", "NoFile.png")


@pytest.mark.asyncio
async def test_strict_defaults_follow_miser_mode(monkeypatch):
    from randomimage.core.config import get_settings

    assert RandomImage(ParserContext(None), {}).strict is True

    monkeypatch.setenv("MISER_MODE", "true")
    get_settings.cache_clear()
    assert RandomImage(ParserContext(None), {}).strict is False

    monkeypatch.setenv("RANDOM_IMAGE_STRICT", "true")
    get_settings.cache_clear()
    assert RandomImage(ParserContext(None), {}).strict is True


# ── Existence ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_page_without_file_renders_nothing(db_session):
    ns = await add_namespace(db_session, "File")
    await add_page(db_session, ns, "Ghost.png", "A ghost")
    ri = _image(db_session, {"choices": "Ghost.png"})
    assert await ri.render() == ""


@pytest.mark.asyncio
async def test_missing_page_renders_nothing(db_session):
    await add_namespace(db_session, "File")
    ri = _image(db_session, {"choices": "Nowhere.png"})
    assert await ri.render() == ""


# ── Captions ─────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_caption_from_description_first_line(db_session):
    ns = await add_namespace(db_session, "File")
    await add_image(db_session, ns, "Cat.png", "A sleepy cat\nTaken in 2006")
    ri = _image(db_session)
    assert await ri.get_caption(Title("File", "Cat.png")) == "A sleepy cat"


@pytest.mark.asyncio
async def test_caption_from_randomcaption_tag(db_session):
    ns = await add_namespace(db_session, "File")
    await add_image(db_session, ns, "Dog.png", "Intro\nSee <randomcaption>Good dog</randomcaption>")
    ri = _image(db_session)
    assert await ri.get_caption(Title("File", "Dog.png")) == "Good dog"


@pytest.mark.asyncio
async def test_caption_uses_latest_revision(db_session):
    from randomimage.models import PageVersion

    ns = await add_namespace(db_session, "File")
    page = await add_image(db_session, ns, "Bird.png", "Old words")
    db_session.add(PageVersion(page_id=page.id, version=2, content="New words", format="wikitext"))
    await db_session.flush()
    assert await _image(db_session).get_caption(Title("File", "Bird.png")) == "New words"


@pytest.mark.asyncio
async def test_caption_placeholder_for_missing_page(db_session):
    await add_namespace(db_session, "File")
    ri = _image(db_session)
    assert await ri.get_caption(Title("File", "Nope.png")) == CAPTION_PLACEHOLDER


@pytest.mark.asyncio
async def test_caption_placeholder_for_empty_description(db_session):
    ns = await add_namespace(db_session, "File")
    await add_image(db_session, ns, "Blank.png", "")
    assert await _image(db_session).get_caption(Title("File", "Blank.png")) == CAPTION_PLACEHOLDER


@pytest.mark.asyncio
async def test_revision_read_failure_gives_placeholder(db_session, monkeypatch):
    ns = await add_namespace(db_session, "File")
    await add_image(db_session, ns, "Broken.png", "Unreachable text")

    async def _boom(db, title):
        raise page_svc.RevisionAccessError("storage offline")
    monkeypatch.setattr(page_svc, "get_revision_text", _boom)

    assert await _image(db_session).get_caption(Title("File", "Broken.png")) == CAPTION_PLACEHOLDER


@pytest.mark.asyncio
async def test_explicit_caption_skips_lookup(db_session, monkeypatch):
    async def _fail(db, title):
        raise AssertionError("should not be called")
    monkeypatch.setattr(page_svc, "title_exists", _fail)

    ri = _image(db_session, caption="Given")
    assert await ri.get_caption(Title("File", "Any.png")) == "Given"


@pytest.mark.asyncio
async def test_caption_is_memoised(db_session):
    ns = await add_namespace(db_session, "File")
    await add_image(db_session, ns, "Fox.png", "Quick fox")
    ri = _image(db_session)
    await ri.get_caption(Title("File", "Fox.png"))
    assert ri.caption == "Quick fox"


# ── Full render ──────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_render_produces_thumb_without_magnifier(db_session):
    ns = await add_namespace(db_session, "File")
    await add_image(db_session, ns, "Example.png", "<randomcaption>Hi</randomcaption>\nMore")

    ri = _image(db_session, {"size": "100", "float": "left", "choices": "Example.png"})
    html = await ri.render()

    assert 'class="thumb tleft"' in html
    assert 'width="100"' in html
    assert "/api/v1/attachments/" in html
    assert "Example.png" in html
    assert "Hi" in html
    assert "magnify" not in html
    assert "<?xml" not in html


@pytest.mark.asyncio
async def test_render_from_database(db_session):
    ns = await add_namespace(db_session, "File")
    await add_image(db_session, ns, "Random.png", "Picked at random", random_key=0.4)

    html = await _image(db_session, rng=ScriptedRandom([0.1])).render()
    assert 'class="thumb tright"' in html
    assert "Picked at random" in html
    assert "magnify" not in html


@pytest.mark.asyncio
async def test_render_centered(db_session):
    ns = await add_namespace(db_session, "File")
    await add_image(db_session, ns, "Mid.png", "Middle")
    html = await _image(db_session, {"choices": "Mid.png", "float": "center"}).render()
    assert 'class="center"' in html
    assert 'class="thumb tnone"' in html
