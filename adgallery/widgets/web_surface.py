"""QtWebEngine implementation of the creative render surface."""

from PySide6.QtCore import QUrl, Qt
from PySide6.QtWebEngineCore import QWebEnginePage, QWebEngineSettings
from PySide6.QtWebEngineWidgets import QWebEngineView

from adgallery.utils.flow_log import log_flow
from adgallery.widgets.render_surface import RenderSurface, SandboxPolicy


class SandboxedPage(QWebEnginePage):
    """Page that keeps the creative inside its frame."""

    def __init__(self, policy: SandboxPolicy, parent=None):
        super().__init__(parent)
        self.policy = policy
        self._content_loaded = False

    def mark_content_loading(self):
        self._content_loaded = False

    def acceptNavigationRequest(self, url, navigation_type, is_main_frame):
        if not is_main_frame:
            return True
        # The initial setHtml() load is the only programmatic main-frame load allowed.
        if not self._content_loaded:
            self._content_loaded = True
            return True
        if (self.policy.allow_user_navigation
                and navigation_type == QWebEnginePage.NavigationType.NavigationTypeLinkClicked):
            return True
        log_flow("PREVIEW", f"Blocked navigation to {url.toString()}", level="INFO")
        return False

    def createWindow(self, window_type):
        # No popups.
        return None


class WebEngineSurface(RenderSurface):
    """Hosts one creative in a QWebEngineView sized to the declared dimensions."""

    def __init__(self, parent=None, policy: SandboxPolicy | None = None):
        super().__init__(policy)
        self.view = QWebEngineView(parent)
        self.page = SandboxedPage(self.policy, self.view)
        self.view.setPage(self.page)
        self.view.setContextMenuPolicy(Qt.ContextMenuPolicy.NoContextMenu)
        self.view.setStyleSheet('border: none;')

        web_settings = self.page.settings()
        web_settings.setAttribute(QWebEngineSettings.WebAttribute.JavascriptEnabled,
                                  self.policy.allow_scripts)
        web_settings.setAttribute(QWebEngineSettings.WebAttribute.LocalContentCanAccessRemoteUrls,
                                  self.policy.allow_same_origin)
        web_settings.setAttribute(QWebEngineSettings.WebAttribute.JavascriptCanOpenWindows, False)
        web_settings.setAttribute(QWebEngineSettings.WebAttribute.ShowScrollBars, False)

        self.view.loadFinished.connect(self._emit_load)

    def mount(self, content: str, base_url: str):
        if self.is_destroyed:
            return
        self.page.mark_content_loading()
        self.view.setHtml(content, QUrl(base_url))

    def set_size(self, width: int, height: int):
        self.view.setFixedSize(int(width), int(height))

    def destroy(self):
        if self.is_destroyed:
            return
        super().destroy()
        try:
            self.view.loadFinished.disconnect(self._emit_load)
        except (RuntimeError, TypeError):
            pass
        self.view.stop()
        self.view.setParent(None)
        self.view.deleteLater()
