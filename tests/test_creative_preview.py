from adgallery.widgets.creative_preview import CreativePreview, CreativeRef, PreviewState
from adgallery.widgets.render_surface import RenderSurface

HTML_AD = CreativeRef("https://x.test/campaigns/c1/ad.html", "300x250")
IMAGE_AD = CreativeRef("https://x.test/c1/img.png", "728x90")


class FakeSurface(RenderSurface):
    def __init__(self):
        super().__init__()
        self.content = None
        self.base_url = None
        self.size = None

    def mount(self, content, base_url):
        self.content = content
        self.base_url = base_url

    def set_size(self, width, height):
        self.size = (width, height)

    def finish_load(self, ok=True):
        self._emit_load(ok)


class FakeRequest:
    def __init__(self):
        self.aborted = False

    def abort(self):
        self.aborted = True


class FakeClock:
    def __init__(self):
        self.now = 0
        self._scheduled = []

    def schedule(self, delay, callback, request):
        self._scheduled.append((self.now + delay, len(self._scheduled), callback, request))

    def advance(self, ms):
        self.now += ms
        due = sorted(entry for entry in self._scheduled if entry[0] <= self.now)
        self._scheduled = [entry for entry in self._scheduled if entry[0] > self.now]
        for _, _, callback, request in due:
            if not request.aborted:
                callback()


class FakeFetcher:
    """Serves documents after a per-address delay on a fake clock."""

    def __init__(self, clock, documents, delays=None, honor_abort=True):
        self.clock = clock
        self.documents = documents
        self.delays = delays or {}
        self.honor_abort = honor_abort
        self.requests = []

    def fetch_text(self, address, on_success, on_failure):
        request = FakeRequest()
        self.requests.append(request)
        tracked = request if self.honor_abort else FakeRequest()

        def _deliver():
            if address in self.documents:
                on_success(self.documents[address])
            else:
                on_failure("404")

        self.clock.schedule(self.delays.get(address, 0), _deliver, tracked)
        return request


class FakeImagePreloader:
    def __init__(self, clock, ok=True):
        self.clock = clock
        self.ok = ok
        self.addresses = []

    def preload(self, address, on_done):
        self.addresses.append(address)
        request = FakeRequest()
        self.clock.schedule(0, lambda: on_done(self.ok), request)
        return request


class Recorder:
    def __init__(self, preview):
        self.loading = []
        self.states = []
        preview.loading_changed.connect(self.loading.append)
        preview.state_changed.connect(self.states.append)


def _make_preview(clock, documents=None, delays=None, image_ok=True, honor_abort=True):
    surfaces = []

    def factory():
        surface = FakeSurface()
        surfaces.append(surface)
        return surface

    fetcher = FakeFetcher(clock, documents or {}, delays, honor_abort)
    preloader = FakeImagePreloader(clock, ok=image_ok)
    return CreativePreview(factory, fetcher, preloader), surfaces, fetcher, preloader


def test_document_mount_injects_base_and_becomes_ready():
    clock = FakeClock()
    preview, surfaces, _, _ = _make_preview(
        clock, {HTML_AD.address: "<html><head></head><body>hi</body></html>"})

    surface = preview.mount(HTML_AD)

    assert preview.is_loading is True
    assert preview.state == PreviewState.LOADING
    assert surface.size == (300, 250)
    assert surface.content is None

    clock.advance(0)
    assert surface.content.startswith(
        '<html><head><base href="https://x.test/campaigns/c1/"></head>')
    assert surface.base_url == "https://x.test/campaigns/c1/"
    assert preview.is_loading is True

    surface.finish_load(True)
    assert preview.state == PreviewState.READY
    assert preview.is_loading is False
    assert surfaces == [surface]


def test_image_mount_waits_for_preload_before_building_document():
    clock = FakeClock()
    preview, _, _, preloader = _make_preview(clock)

    surface = preview.mount(IMAGE_AD)

    assert preloader.addresses == [IMAGE_AD.address]
    assert surface.content is None
    assert surface.size == (728, 90)

    clock.advance(0)
    assert '<img src="img.png"' in surface.content
    assert '<base href="https://x.test/c1/">' in surface.content

    surface.finish_load(True)
    assert preview.state == PreviewState.READY
    assert preview.is_loading is False


def test_image_load_error_leaves_surface_blank_and_not_loading():
    clock = FakeClock()
    preview, _, _, _ = _make_preview(clock, image_ok=False)
    recorder = Recorder(preview)

    surface = preview.mount(IMAGE_AD)
    clock.advance(0)

    assert preview.state == PreviewState.FAILED
    assert preview.is_loading is False
    assert surface.content is None
    assert recorder.loading == [True, False]


def test_document_fetch_failure_marks_failed():
    clock = FakeClock()
    preview, _, _, _ = _make_preview(clock, documents={})

    surface = preview.mount(HTML_AD)
    clock.advance(0)

    assert preview.state == PreviewState.FAILED
    assert preview.is_loading is False
    assert surface.content is None
    assert surface.is_destroyed is False


def test_surface_load_error_marks_failed():
    clock = FakeClock()
    preview, _, _, _ = _make_preview(clock, {HTML_AD.address: "<p>x</p>"})

    surface = preview.mount(HTML_AD)
    clock.advance(0)
    surface.finish_load(False)

    assert preview.state == PreviewState.FAILED
    assert preview.is_loading is False


def test_malformed_size_uses_fallback_dimensions():
    clock = FakeClock()
    preview, _, _, _ = _make_preview(clock)

    surface = preview.mount(CreativeRef("https://x.test/c1/img.png", "abcxdef"))

    assert surface.size == (300, 250)


def test_replay_remounts_on_a_fresh_surface():
    clock = FakeClock()
    preview, surfaces, _, _ = _make_preview(clock, {HTML_AD.address: "<head></head>"})
    first = preview.mount(HTML_AD)
    clock.advance(0)
    first.finish_load(True)
    recorder = Recorder(preview)

    second = preview.replay()

    assert second is not first
    assert first.is_destroyed is True
    assert recorder.states == ["unmounted", "loading"]
    assert recorder.loading == [True]
    assert preview.is_loading is True
    assert preview.replay_count == 1

    clock.advance(0)
    assert preview.is_loading is True
    second.finish_load(True)

    assert recorder.states == ["unmounted", "loading", "ready"]
    assert recorder.loading == [True, False]
    assert len(surfaces) == 2


def test_replay_after_failure_tries_again():
    clock = FakeClock()
    preview, _, fetcher, _ = _make_preview(clock, documents={})
    preview.mount(HTML_AD)
    clock.advance(0)
    assert preview.state == PreviewState.FAILED

    fetcher.documents[HTML_AD.address] = "<head></head>ok"
    surface = preview.replay()
    clock.advance(0)
    surface.finish_load(True)

    assert preview.state == PreviewState.READY


def test_replay_without_mount_is_a_no_op():
    clock = FakeClock()
    preview, surfaces, _, _ = _make_preview(clock)

    assert preview.replay() is None
    assert surfaces == []


def test_late_load_from_discarded_surface_is_ignored():
    clock = FakeClock()
    preview, _, _, _ = _make_preview(clock, {HTML_AD.address: "<head></head>"})
    first = preview.mount(HTML_AD)
    clock.advance(0)

    preview.replay()
    first.finish_load(True)

    assert preview.state == PreviewState.LOADING
    assert preview.is_loading is True


def test_newer_mount_wins_over_slow_stale_fetch():
    clock = FakeClock()
    ad_a = CreativeRef("https://x.test/a/ad.html", "300x250")
    ad_b = CreativeRef("https://x.test/b/ad.html", "300x250")
    preview, _, fetcher, _ = _make_preview(
        clock,
        {ad_a.address: "<head></head>A", ad_b.address: "<head></head>B"},
        delays={ad_a.address: 200, ad_b.address: 10},
    )

    surface_a = preview.mount(ad_a)
    surface_b = preview.mount(ad_b)
    clock.advance(10)
    clock.advance(200)

    assert fetcher.requests[0].aborted is True
    assert surface_a.is_destroyed is True
    assert surface_a.content is None
    assert preview.surface is surface_b
    assert surface_b.content.endswith("B")


def test_stale_completion_is_dropped_even_if_not_aborted():
    clock = FakeClock()
    ad_a = CreativeRef("https://x.test/a/ad.html", "300x250")
    ad_b = CreativeRef("https://x.test/b/ad.html", "300x250")
    preview, _, _, _ = _make_preview(
        clock,
        {ad_a.address: "<head></head>A", ad_b.address: "<head></head>B"},
        delays={ad_a.address: 200, ad_b.address: 10},
        honor_abort=False,
    )

    surface_a = preview.mount(ad_a)
    surface_b = preview.mount(ad_b)
    clock.advance(10)
    surface_b.finish_load(True)
    clock.advance(200)

    assert surface_a.content is None
    assert surface_b.content.endswith("B")
    assert preview.state == PreviewState.READY
    assert preview.ref == ad_b


def test_unmount_destroys_surface_and_cancels_pending_work():
    clock = FakeClock()
    preview, _, fetcher, _ = _make_preview(
        clock, {HTML_AD.address: "<head></head>"}, delays={HTML_AD.address: 50})

    surface = preview.mount(HTML_AD)
    preview.unmount()
    clock.advance(50)

    assert surface.is_destroyed is True
    assert surface.content is None
    assert fetcher.requests[0].aborted is True
    assert preview.state == PreviewState.UNMOUNTED
    assert preview.is_loading is False
    assert preview.surface is None
