import asyncio
import gc
import io

import pytest
from PIL import Image

from conftest import LOGO_COLOR
from qrstudio.errors import LogoTooLargeError
from qrstudio.logo import MAX_LOGO_BYTES
from qrstudio.render import PADDING
from qrstudio.studio import RenderScheduler, StudioSession
from qrstudio.style import DEFAULT_CONFIG, PatternStyle

CENTER = PADDING + DEFAULT_CONFIG.size // 2


def test_scheduler_fires_once_after_quiet_window():
    fired = []

    async def main():
        scheduler = RenderScheduler(lambda: fired.append(1), delay=0.02)
        for _ in range(5):
            scheduler.schedule()
            await asyncio.sleep(0.005)
        assert scheduler.pending
        await asyncio.sleep(0.06)
        assert not scheduler.pending

    asyncio.run(main())
    assert fired == [1]


def test_scheduler_cancel():
    fired = []

    async def main():
        scheduler = RenderScheduler(lambda: fired.append(1), delay=0.01)
        scheduler.schedule()
        scheduler.cancel()
        await asyncio.sleep(0.03)

    asyncio.run(main())
    assert fired == []


def test_burst_of_edits_renders_latest_config_once():
    seen = []

    async def main():
        session = StudioSession(delay=0.03, on_render=seen.append)
        for i in range(6):
            session.update(label=f"edit {i}", pattern_style="dot" if i % 2 else "square")
        assert session.render_count == 0
        await session.settle()
        return session

    session = asyncio.run(main())
    assert session.render_count == 1
    assert len(seen) == 1
    assert session.rendered_config.label == "edit 5"
    assert session.rendered_config.pattern_style is PatternStyle.DOT


def test_style_only_edits_reuse_matrix():
    session = StudioSession()
    session.update(pattern_style="classy")
    first = session.provider.get(session.config.url, session.config.error_correction)
    session.update(bg_color="#eeeeee")
    session.apply_theme("Forest")
    session.set_frame("simple")
    assert session.provider.encode_count == 1
    assert session.provider.get(session.config.url, session.config.error_correction) is first

    session.update(url="https://example.com")
    assert session.provider.encode_count == 2
    session.update(error_correction="M")
    assert session.provider.encode_count == 3


def test_oversized_logo_rejected_without_render(logo_png):
    session = StudioSession()
    with pytest.raises(LogoTooLargeError, match="Logo must be under 1 MB"):
        session.set_logo(b"\0" * (2 * 1024 * 1024), "huge.png")
    assert session.logo_bytes is None
    assert session.config.logo_url == ""
    assert session.render_count == 0
    assert not session.scheduler.pending
    assert MAX_LOGO_BYTES == 1024 * 1024


def test_logo_composited_after_async_decode(logo_png):
    async def main():
        session = StudioSession(delay=0.01)
        session.set_logo(logo_png, "brand.png")
        await session.settle()
        return session

    session = asyncio.run(main())
    assert session.config.logo_url == "brand.png"
    assert session.surface.to_image().getpixel((CENTER, CENTER)) == LOGO_COLOR


def test_stale_logo_decode_is_discarded(logo_png):
    async def main():
        session = StudioSession(delay=0.01)
        session.set_logo(logo_png, "brand.png")
        old = session.render_now()
        session.update(bg_color="#fafafa")
        new = session.render_now()
        await session.settle()
        return session, old, new

    session, old, new = asyncio.run(main())
    assert session.stale_logo_discards == 1
    assert session.generation == 2
    # the outdated surface never received the logo
    assert old.to_image().getpixel((CENTER, CENTER)) != LOGO_COLOR
    assert new.to_image().getpixel((CENTER, CENTER)) == LOGO_COLOR


def test_export_right_after_edit_includes_logo(logo_png):
    async def main():
        session = StudioSession(delay=0.05)
        session.set_logo(logo_png, "brand.png")
        await session.settle()
        session.update(label="x")
        data = session.export_png()
        await session.settle()
        return session, data

    session, data = asyncio.run(main())
    image = Image.open(io.BytesIO(data))
    assert image.getpixel((CENTER, CENTER)) == LOGO_COLOR
    assert session.rendered_config.label == "x"
    assert session.render_count == 2


def test_export_while_logo_decode_pending(logo_png):
    async def main():
        session = StudioSession(delay=0.01)
        session.set_logo(logo_png, "brand.png")
        session.render_now()
        data = session.export_png()
        await session.settle()
        return session, data

    session, data = asyncio.run(main())
    assert Image.open(io.BytesIO(data)).getpixel((CENTER, CENTER)) == LOGO_COLOR
    # the background decode belonged to the superseded render
    assert session.stale_logo_discards == 1


def test_stale_failed_decode_leaves_no_unretrieved_error():
    reported = []

    async def main():
        asyncio.get_running_loop().set_exception_handler(lambda loop, ctx: reported.append(ctx))
        session = StudioSession(delay=0.01)
        session.set_logo(b"definitely not an image", "broken.png")
        session.render_now()
        session.update(bg_color="#fafafa")
        session.render_now()
        await session.settle()
        gc.collect()
        await asyncio.sleep(0)
        return session

    session = asyncio.run(main())
    assert session.stale_logo_discards == 1
    assert reported == []


def test_undecodable_logo_renders_without_it():
    session = StudioSession()
    session.set_logo(b"definitely not an image", "broken.png")
    assert session.render_count == 1
    assert session.surface.to_image().getpixel((CENTER, CENTER)) != LOGO_COLOR


def test_remove_logo_and_reset(logo_png):
    session = StudioSession()
    session.set_logo(logo_png, "brand.png")
    assert session.surface.to_image().getpixel((CENTER, CENTER)) == LOGO_COLOR
    session.remove_logo()
    assert session.logo_bytes is None
    assert session.surface.to_image().getpixel((CENTER, CENTER)) != LOGO_COLOR

    session.update(size=500)
    session.reset()
    assert session.config == DEFAULT_CONFIG


def test_gallery_round_trip_through_session():
    session = StudioSession()
    session.update(label="Court 7", pattern_style="extra-rounded")
    entry = session.save()
    session.reset()
    loaded = session.load(entry.id)
    assert loaded == session.config
    assert session.config.label == "Court 7"
    session.delete(entry.id)
    assert len(session.gallery) == 0


def test_exports_from_session():
    session = StudioSession()
    session.set_frame("bold-bottom")
    assert session.export_png().startswith(b"\x89PNG")
    assert "<svg" in session.export_svg()
