"""Live editing session: coalesced re-renders and asynchronous logo decoding.

Runs on a single asyncio event loop. Edits replace the immutable config and
arm a debounce timer; a burst of edits produces one render of the latest
config. Each render bumps a generation counter, and a logo decode that
finishes after a newer render started is thrown away.
"""

import asyncio
from functools import partial

from qrstudio.errors import LogoDecodeError
from qrstudio.export import copy_image_to_clipboard, export_png, export_svg
from qrstudio.gallery import Gallery, SavedEntry
from qrstudio.logging import audit, get_logger, trace
from qrstudio.logo import composite_logo, decode_logo, validate_logo_upload, warn_if_low_ec
from qrstudio.matrix import MatrixProvider
from qrstudio.render import compute_layout, render
from qrstudio.style import DEFAULT_CONFIG, FrameStyle, StyleConfig, Theme, apply_theme
from qrstudio.surface import RasterSurface

log = get_logger("studio")

DEBOUNCE_SECONDS = 0.12


class RenderScheduler:
    """Trailing-edge debounce on the running event loop."""

    def __init__(self, callback, delay: float = DEBOUNCE_SECONDS):
        self.callback = callback
        self.delay = delay
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self) -> None:
        """Restart the quiet window. Must be called from inside the loop."""
        loop = asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self.callback()


class StudioSession:
    """Editor state around one QR design.

    Args:
        config: Starting style.
        gallery: Saved-design gallery; an in-memory one by default.
        delay: Debounce window in seconds.
        on_render: Called with the surface after every paint (including the
            late logo composite).
    """

    def __init__(self, config: StyleConfig = DEFAULT_CONFIG, gallery: Gallery | None = None,
                 delay: float = DEBOUNCE_SECONDS, on_render=None):
        self.config = config
        self.gallery = gallery if gallery is not None else Gallery()
        self.on_render = on_render
        self.provider = MatrixProvider()
        self.scheduler = RenderScheduler(self.render_now, delay)

        self.logo_bytes: bytes | None = None
        self.logo_name = ""

        self.generation = 0
        self.render_count = 0
        self.stale_logo_discards = 0
        self.surface: RasterSurface | None = None
        self.rendered_config: StyleConfig | None = None
        self._logo_futures: set[asyncio.Future] = set()
        self._finished_generation = 0

    # -- editing ----------------------------------------------------------

    def _request_render(self) -> None:
        try:
            self.scheduler.schedule()
        except RuntimeError:
            # no running loop: synchronous callers get an immediate render
            self.render_now()

    def set_config(self, config: StyleConfig) -> None:
        self.config = config
        self._request_render()

    def update(self, **changes) -> StyleConfig:
        """Copy-on-write edit of the current config, then schedule a render."""
        self.set_config(self.config.evolve(**changes))
        return self.config

    def set_frame(self, frame_style: FrameStyle | str, text: str | None = None) -> StyleConfig:
        self.set_config(self.config.with_frame(frame_style, text))
        return self.config

    def apply_theme(self, theme: Theme | str) -> StyleConfig:
        self.set_config(apply_theme(self.config, theme))
        return self.config

    def set_logo(self, data: bytes, filename: str = "logo") -> None:
        """Attach logo bytes. Oversized uploads raise before any state changes."""
        validate_logo_upload(data, filename)
        self.logo_bytes = data
        self.logo_name = filename or "logo"
        self.set_config(self.config.evolve(logo_url=self.logo_name))

    def remove_logo(self) -> None:
        self.logo_bytes = None
        self.logo_name = ""
        self.set_config(self.config.evolve(logo_url=""))

    def reset(self) -> None:
        self.logo_bytes = None
        self.logo_name = ""
        self.set_config(DEFAULT_CONFIG)

    # -- rendering --------------------------------------------------------

    @trace
    def render_now(self, wait_for_logo: bool = False) -> RasterSurface:
        """Paint the current config immediately.

        The logo (if any) follows asynchronously inside a running loop, unless
        *wait_for_logo* asks for it to be decoded and composited before returning.
        """
        self.scheduler.cancel()
        self.generation += 1
        generation = self.generation
        config = self.config

        matrix = self.provider.get(config.url, config.error_correction)
        surface = render(matrix, config)
        self.surface = surface
        self.rendered_config = config
        self.render_count += 1
        self._notify(surface)

        if self.logo_bytes is not None and config.has_logo:
            self._start_logo(generation, surface, config, matrix.size, wait_for_logo)
        else:
            self._finished_generation = generation
        return surface

    def _start_logo(self, generation: int, surface: RasterSurface, config: StyleConfig,
                    module_count: int, inline: bool = False) -> None:
        loop = None
        if not inline:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                pass
        if loop is None:
            try:
                logo = decode_logo(self.logo_bytes)
            except LogoDecodeError as e:
                log.warning("Logo could not be decoded; rendered without it: %s", e)
                self._finished_generation = generation
                return
            self._paint_logo(generation, surface, logo, config, module_count)
            return

        future = loop.run_in_executor(None, decode_logo, self.logo_bytes)
        self._logo_futures.add(future)
        future.add_done_callback(partial(self._logo_decoded, generation, surface, config, module_count))

    def _logo_decoded(self, generation: int, surface: RasterSurface, config: StyleConfig,
                      module_count: int, future: asyncio.Future) -> None:
        self._logo_futures.discard(future)
        if future.cancelled():
            return
        if generation != self.generation:
            # retrieve it so a failed decode is not reported as never retrieved
            future.exception()
            self.stale_logo_discards += 1
            audit("logo.stale_discarded", logger=log, generation=generation, current=self.generation)
            return
        try:
            logo = future.result()
        except LogoDecodeError as e:
            log.warning("Logo could not be decoded; rendered without it: %s", e)
            self._finished_generation = generation
            return
        self._paint_logo(generation, surface, logo, config, module_count)

    def _paint_logo(self, generation: int, surface, logo, config: StyleConfig, module_count: int) -> None:
        warn_if_low_ec(config)
        composite_logo(surface, logo, config, compute_layout(config, module_count).origin)
        self._finished_generation = generation
        self._notify(surface)

    def _notify(self, surface: RasterSurface) -> None:
        if self.on_render is not None:
            self.on_render(surface)

    async def settle(self) -> None:
        """Wait until no render is scheduled and no logo decode is outstanding."""
        while self.scheduler.pending or self._logo_futures:
            if self.scheduler.pending:
                await asyncio.sleep(self.scheduler.delay)
            else:
                await asyncio.gather(*self._logo_futures, return_exceptions=True)
                await asyncio.sleep(0)

    # -- gallery ----------------------------------------------------------

    def save(self) -> SavedEntry:
        return self.gallery.save(self.config)

    def load(self, entry_id: str) -> StyleConfig:
        """Replace the current design with a saved one.

        Logo bytes are not stored in the gallery; the attached logo is kept
        only if the saved entry references the same logo name.
        """
        config = self.gallery.load(entry_id)
        if config.logo_url != self.logo_name:
            self.logo_bytes = None
            self.logo_name = ""
        self.set_config(config)
        return config

    def delete(self, entry_id: str) -> None:
        self.gallery.delete(entry_id)

    # -- export -----------------------------------------------------------

    def export_png(self) -> bytes:
        """PNG of the current design, with the logo composited even if its decode is still pending."""
        if (self.surface is None or self.rendered_config != self.config
                or self._finished_generation != self.generation):
            self.render_now(wait_for_logo=True)
        return export_png(self.surface)

    def export_svg(self) -> str:
        return export_svg(self.config)

    def copy_to_clipboard(self) -> bool:
        return copy_image_to_clipboard(self.export_png())
