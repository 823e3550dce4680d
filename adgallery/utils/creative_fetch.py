"""Non-blocking retrieval of creative documents and image preloading."""

from pathlib import Path
from urllib.parse import urlsplit

from PySide6.QtCore import QObject, QTimer, QUrl
from PySide6.QtGui import QImage
from PySide6.QtNetwork import QNetworkAccessManager, QNetworkReply, QNetworkRequest

from adgallery.utils.flow_log import log_flow
from adgallery.utils.settings import get_setting


def _local_path(address: str) -> Path | None:
    parts = urlsplit(address)
    if parts.scheme == 'file':
        return Path(QUrl(address).toLocalFile())
    if not parts.scheme or len(parts.scheme) == 1:  # bare path or Windows drive letter
        return Path(address)
    return None


class PendingRequest:
    """Handle for an in-flight fetch; `abort()` guarantees no callback fires."""

    def __init__(self, reply=None):
        self._reply = reply
        self.aborted = False

    def abort(self):
        self.aborted = True
        if self._reply is not None:
            try:
                self._reply.abort()
            except RuntimeError:
                # Already deleted by Qt.
                pass
            self._reply = None


class _NetworkLoader(QObject):
    def __init__(self, parent=None):
        super().__init__(parent)
        self._manager = QNetworkAccessManager(self)

    def _get(self, address: str, on_bytes, on_failure) -> PendingRequest:
        local_path = _local_path(address)
        if local_path is not None:
            pending = PendingRequest()

            def _read_local():
                if pending.aborted:
                    return
                try:
                    data = local_path.read_bytes()
                except OSError as error:
                    on_failure(str(error))
                    return
                on_bytes(data)

            QTimer.singleShot(0, _read_local)
            return pending

        request = QNetworkRequest(QUrl(address))
        request.setTransferTimeout(get_setting('fetch_timeout_ms', int))
        request.setAttribute(QNetworkRequest.Attribute.RedirectPolicyAttribute,
                             QNetworkRequest.RedirectPolicy.NoLessSafeRedirectPolicy)
        reply = self._manager.get(request)
        pending = PendingRequest(reply)

        def _finished():
            reply.deleteLater()
            if pending.aborted:
                return
            pending._reply = None
            if reply.error() != QNetworkReply.NetworkError.NoError:
                on_failure(reply.errorString())
                return
            status = reply.attribute(QNetworkRequest.Attribute.HttpStatusCodeAttribute)
            if status is not None and int(status) >= 400:
                on_failure(f'HTTP {int(status)}')
                return
            on_bytes(bytes(reply.readAll().data()))

        reply.finished.connect(_finished)
        return pending


class NetworkCreativeFetcher(_NetworkLoader):
    """Fetches HTML creatives as text."""

    def fetch_text(self, address: str, on_success, on_failure) -> PendingRequest:
        log_flow("FETCH", f"GET {address}")

        def _decode(data: bytes):
            on_success(data.decode('utf-8', errors='replace'))

        return self._get(address, _decode, on_failure)


class NetworkImagePreloader(_NetworkLoader):
    """Downloads and decodes an image so the preview only reports ready once it can paint."""

    def preload(self, address: str, on_done) -> PendingRequest:
        log_flow("FETCH", f"Preload {address}")

        def _decode(data: bytes):
            image = QImage()
            on_done(image.loadFromData(data))

        def _failed(message: str):
            log_flow("FETCH", f"Preload failed for {address}: {message}", level="WARNING")
            on_done(False)

        return self._get(address, _decode, _failed)
