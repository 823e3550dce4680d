"""Lifecycle of one sandboxed creative preview."""

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from PySide6.QtCore import QObject, Signal

from adgallery.utils.ad_size import parse_ad_size
from adgallery.utils.creative_document import (base_href, build_image_document,
                                               inject_base_tag, is_document_creative)
from adgallery.utils.flow_log import log_flow
from adgallery.widgets.render_surface import RenderSurface


class PreviewState(str, Enum):
    UNMOUNTED = 'unmounted'
    LOADING = 'loading'
    READY = 'ready'
    FAILED = 'failed'


@dataclass(frozen=True)
class CreativeRef:
    address: str
    size: str


class CreativePreview(QObject):
    """
    Mounts a creative into a fresh render surface and tracks its load state.

    Every mount bumps a generation counter; fetch, preload and surface
    callbacks carry the generation they were started with and are dropped
    when it is no longer current, so a slow stale load can never overwrite
    a newer one.
    """

    loading_changed = Signal(bool)
    state_changed = Signal(str)

    def __init__(self, surface_factory: Callable[[], RenderSurface], fetcher,
                 image_preloader, page_url: str | None = None, parent=None):
        super().__init__(parent)
        self._surface_factory = surface_factory
        self._fetcher = fetcher
        self._image_preloader = image_preloader
        self.page_url = page_url
        self._ref: CreativeRef | None = None
        self._surface: RenderSurface | None = None
        self._pending = None
        self._generation = 0
        self._state = PreviewState.UNMOUNTED
        self._loading = False
        self.replay_count = 0

    @property
    def state(self) -> PreviewState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def surface(self) -> RenderSurface | None:
        return self._surface

    @property
    def ref(self) -> CreativeRef | None:
        return self._ref

    def _set_state(self, state: PreviewState):
        if state == self._state:
            return
        self._state = state
        self.state_changed.emit(state.value)

    def _set_loading(self, loading: bool):
        if loading == self._loading:
            return
        self._loading = loading
        self.loading_changed.emit(loading)

    def _teardown(self):
        """Drop the current surface and any in-flight work for it."""
        self._generation += 1
        if self._pending is not None:
            self._pending.abort()
            self._pending = None
        if self._surface is not None:
            self._surface.destroy()
            self._surface = None
        self._set_state(PreviewState.UNMOUNTED)

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self._surface is not None

    def mount(self, ref: CreativeRef) -> RenderSurface:
        # Loading is raised before teardown so it stays true across the remount.
        self._set_loading(True)
        self._teardown()
        self._ref = ref
        generation = self._generation

        width, height = parse_ad_size(ref.size)
        surface = self._surface_factory()
        surface.set_size(width, height)
        surface.on_load(lambda ok: self._on_surface_loaded(generation, ok))
        self._surface = surface
        self._set_state(PreviewState.LOADING)

        href = base_href(ref.address, self.page_url)
        log_flow("PREVIEW", f"Mount gen={generation} {ref.address} {width}x{height}")
        if is_document_creative(ref.address):
            pending = self._fetcher.fetch_text(
                ref.address,
                lambda text: self._on_document_fetched(generation, text, href),
                lambda message: self._fail(generation, f"fetch failed: {message}"),
            )
        else:
            pending = self._image_preloader.preload(
                ref.address,
                lambda ok: self._on_image_preloaded(generation, ok, href, width, height),
            )
        # Fakes may complete synchronously; only keep handles for live work.
        if self._is_current(generation) and self._state == PreviewState.LOADING:
            self._pending = pending
        return surface

    def replay(self) -> RenderSurface | None:
        """Restart the creative by discarding the surface and mounting again."""
        if self._ref is None:
            return None
        self.replay_count += 1
        return self.mount(self._ref)

    def unmount(self):
        self._teardown()
        self._ref = None
        self._set_loading(False)

    def _on_document_fetched(self, generation: int, text: str, href: str):
        if not self._is_current(generation):
            log_flow("PREVIEW", f"Dropped stale document gen={generation}")
            return
        self._pending = None
        self._surface.mount(inject_base_tag(text, href), href)

    def _on_image_preloaded(self, generation: int, ok: bool, href: str, width: int, height: int):
        if not self._is_current(generation):
            log_flow("PREVIEW", f"Dropped stale image gen={generation}")
            return
        self._pending = None
        if not ok:
            self._fail(generation, "image failed to load")
            return
        self._surface.mount(build_image_document(self._ref.address, width, height, href), href)

    def _on_surface_loaded(self, generation: int, ok: bool):
        if not self._is_current(generation) or self._state != PreviewState.LOADING:
            return
        if ok:
            self._set_state(PreviewState.READY)
            self._set_loading(False)
        else:
            self._fail(generation, "surface reported a load error")

    def _fail(self, generation: int, reason: str):
        if not self._is_current(generation):
            return
        self._pending = None
        address = self._ref.address if self._ref else ''
        log_flow("PREVIEW", f"Creative {address} {reason}", level="WARNING")
        self._set_state(PreviewState.FAILED)
        self._set_loading(False)
