from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (QFrame, QHBoxLayout, QLabel, QMessageBox, QPushButton,
                               QStackedLayout, QVBoxLayout, QWidget)

from adgallery.models.records import Ad
from adgallery.utils.ad_size import parse_ad_size
from adgallery.utils.creative_document import select_primary_file
from adgallery.widgets.creative_preview import CreativePreview, CreativeRef
from adgallery.widgets.render_surface import SandboxPolicy
from adgallery.widgets.web_surface import WebEngineSurface


class AdCard(QFrame):
    """A gallery tile: header, sandboxed preview, size badge and actions."""

    replay_requested = Signal(str)
    delete_requested = Signal(str)
    description_toggled = Signal(str)

    def __init__(self, ad: Ad, fetcher, image_preloader, *, header: str | None = None,
                 policy: SandboxPolicy | None = None, description_open: bool = False,
                 show_delete: bool = False, parent=None):
        super().__init__(parent)
        self.ad = ad
        self.policy = policy or SandboxPolicy()
        self.setObjectName('ad_card')
        self.setFrameShape(QFrame.Shape.StyledPanel)
        self.setStyleSheet('#ad_card { background: white; border: 1px solid #d1d5db; '
                           'border-radius: 8px; }')

        width, height = parse_ad_size(ad.ad_size)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(16, 16, 16, 16)
        # Text wraps inside the preview width so the card keeps its packed size.
        self.header_label = None
        self.title_label = None
        if header:
            self.header_label = self._wrapped_label(header, width, 'font-size: 16px; font-weight: 600;')
            layout.addWidget(self.header_label)
        if ad.title:
            self.title_label = self._wrapped_label(ad.title, width, 'font-weight: 600;')
            layout.addWidget(self.title_label)

        self.preview_container = QWidget()
        self.preview_container.setFixedSize(width, height)
        self._preview_stack = QStackedLayout(self.preview_container)
        self._preview_stack.setStackingMode(QStackedLayout.StackingMode.StackAll)
        self.loading_label = QLabel('Loading…')
        self.loading_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.loading_label.setStyleSheet('color: #9ca3af; background: white;')
        self._preview_stack.addWidget(self.loading_label)
        layout.addWidget(self.preview_container, alignment=Qt.AlignmentFlag.AlignHCenter)

        self.preview = CreativePreview(self._create_surface, fetcher, image_preloader, parent=self)
        self.preview.loading_changed.connect(self._on_loading_changed)
        self.primary_file = select_primary_file(ad.files)
        if self.primary_file is None:
            self.loading_label.setText('No preview available')
        else:
            self.preview.mount(CreativeRef(self.primary_file, ad.ad_size))

        if ad.description:
            self.description_button = QPushButton()
            self.description_button.setFlat(True)
            self.description_label = self._wrapped_label(ad.description, width,
                                                         'font-size: 11px; color: #4b5563;')
            self.description_button.clicked.connect(lambda: self.description_toggled.emit(ad.id))
            layout.addWidget(self.description_button, alignment=Qt.AlignmentFlag.AlignLeft)
            layout.addWidget(self.description_label)
            self.set_description_open(description_open)

        footer = QHBoxLayout()
        size_badge = QLabel(ad.ad_size)
        size_badge.setStyleSheet('border: 1px solid #0DAB53; border-radius: 10px; padding: 2px 8px;'
                                 'color: #0A8B43; background: #0dab5439; font-size: 11px;')
        footer.addWidget(size_badge)
        footer.addStretch()
        replay_button = QPushButton('↻')
        replay_button.setToolTip('Replay')
        replay_button.setEnabled(self.primary_file is not None)
        replay_button.clicked.connect(lambda: self.replay_requested.emit(ad.id))
        footer.addWidget(replay_button)
        if show_delete:
            delete_button = QPushButton('Delete')
            delete_button.clicked.connect(self._confirm_delete)
            footer.addWidget(delete_button)
        layout.addLayout(footer)

    @staticmethod
    def _wrapped_label(text: str, max_width: int, style: str) -> QLabel:
        label = QLabel(text)
        label.setWordWrap(True)
        label.setMaximumWidth(max_width)
        label.setStyleSheet(style)
        return label

    def _create_surface(self):
        surface = WebEngineSurface(self.preview_container, self.policy)
        self._preview_stack.addWidget(surface.view)
        self._preview_stack.setCurrentWidget(self.loading_label
                                             if self.preview.is_loading else surface.view)
        return surface

    def _on_loading_changed(self, loading: bool):
        surface = self.preview.surface
        if loading:
            self.loading_label.setText('Loading…')
            self.loading_label.show()
            self.loading_label.raise_()
            return
        # Failed creatives stay blank: no spinner, no error text.
        self.loading_label.hide()
        if surface is not None:
            surface.view.raise_()

    def replay(self):
        self.preview.replay()

    def set_description_open(self, is_open: bool):
        if not self.ad.description:
            return
        self.description_button.setText('Hide Details ▴' if is_open else 'AD Details ▾')
        self.description_label.setVisible(is_open)

    def _confirm_delete(self):
        answer = QMessageBox.question(
            self, 'Are you sure?',
            'This action cannot be undone. This will permanently delete your ad and its files.')
        if answer == QMessageBox.StandardButton.Yes:
            self.delete_requested.emit(self.ad.id)

    def dispose(self):
        """Tear the preview down before the card goes away."""
        self.preview.unmount()
