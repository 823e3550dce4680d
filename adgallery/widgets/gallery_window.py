from PySide6.QtCore import Qt, Slot
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (QApplication, QCheckBox, QComboBox, QFrame, QHBoxLayout, QLabel,
                               QMainWindow, QPushButton, QScrollArea, QVBoxLayout, QWidget)

from adgallery.clients.backend import BackendClient, BackendError
from adgallery.models.gallery_state import ALL_CAMPAIGNS, GalleryState, ad_count_label
from adgallery.models.records import Ad
from adgallery.utils.creative_fetch import NetworkCreativeFetcher, NetworkImagePreloader
from adgallery.utils.flow_log import log_flow
from adgallery.utils.settings import get_setting, settings
from adgallery.widgets.ad_card import AdCard
from adgallery.widgets.masonry_grid import MasonryGrid
from adgallery.widgets.masonry_layout import LayoutItem
from adgallery.widgets.render_surface import SandboxPolicy

STATUS_TIMEOUT_MS = 4000


class GalleryWindow(QMainWindow):
    """
    Campaign gallery.

    Without a share token this is the owner view: every campaign with its
    ads, a campaign selector, sharing and deletion. With a share token it is
    the read-only client view of one campaign with a size filter.
    """

    def __init__(self, app: QApplication, client: BackendClient, share_token: str | None = None):
        super().__init__()
        self.app = app
        self.client = client
        self.share_token = share_token
        self.state = GalleryState()
        self.fetcher = NetworkCreativeFetcher(self)
        self.image_preloader = NetworkImagePreloader(self)
        self.policy = SandboxPolicy(
            allow_user_navigation=get_setting('allow_user_navigation', bool))
        self.gutter = get_setting('masonry_gutter', int)
        self.strategy = get_setting('masonry_strategy')
        self._cards: dict[str, AdCard] = {}
        self._grids: list[MasonryGrid] = []
        self.shared_campaign_name = ''

        self.setWindowTitle('Ad Gallery')
        self.resize(1280, 860)
        geometry = settings.value('geometry')
        if geometry is not None:
            self.restoreGeometry(geometry)

        self.scroll_area = QScrollArea()
        self.scroll_area.setWidgetResizable(True)
        self.scroll_area.setFrameShape(QScrollArea.Shape.NoFrame)
        self.setCentralWidget(self.scroll_area)
        settings.change.connect(self._on_setting_changed)

    def load(self):
        """Fetch records from the backend and build the view."""
        try:
            if self.share_token:
                campaign, ads = self.client.fetch_shared_campaign(self.share_token)
                self.shared_campaign_name = campaign.name
                self.state.set_data([campaign], ads)
                self.setWindowTitle(campaign.name)
            else:
                self.state.set_data(self.client.fetch_campaigns(), self.client.fetch_ads())
        except BackendError as e:
            log_flow("GALLERY", f"Load failed: {e}", level="ERROR")
            if self.share_token:
                self._show_error('Campaign not found or access denied')
            else:
                self._show_error('Failed to fetch ads and campaigns.')
            return
        log_flow("GALLERY", f"Loaded {len(self.state.ads)} ads in "
                            f"{len(self.state.campaigns)} campaigns", level="INFO")
        self._rebuild()

    def _show_error(self, message: str):
        card = QFrame()
        layout = QVBoxLayout(card)
        title = QLabel('Error')
        title.setStyleSheet('color: #dc2626; font-size: 18px; font-weight: 600;')
        layout.addWidget(title)
        layout.addWidget(QLabel(message))
        holder = QWidget()
        QVBoxLayout(holder).addWidget(card, alignment=Qt.AlignmentFlag.AlignCenter)
        self._replace_content(holder)

    def _replace_content(self, widget: QWidget):
        for card in self._cards.values():
            card.dispose()
        self._cards.clear()
        self._grids.clear()
        old = self.scroll_area.takeWidget()
        if old is not None:
            old.deleteLater()
        self.scroll_area.setWidget(widget)

    def _rebuild(self):
        if self.share_token:
            self._build_share_view()
        else:
            self._build_owner_view()

    def _new_grid(self) -> MasonryGrid:
        grid = MasonryGrid(gutter=self.gutter, strategy=self.strategy)
        self._grids.append(grid)
        return grid

    def _card_for(self, ad: Ad, *, header: str | None, show_delete: bool) -> AdCard:
        card = self._cards.get(ad.id)
        if card is None:
            card = AdCard(ad, self.fetcher, self.image_preloader, header=header,
                          policy=self.policy,
                          description_open=self.state.is_description_open(ad.id),
                          show_delete=show_delete)
            card.replay_requested.connect(self.replay_ad)
            card.description_toggled.connect(self.toggle_description)
            card.delete_requested.connect(self.delete_ad)
            self._cards[ad.id] = card
        return card

    def _release_cards(self, keep_ids: set[str]):
        for ad_id in [ad_id for ad_id in self._cards if ad_id not in keep_ids]:
            card = self._cards.pop(ad_id)
            card.dispose()
            card.deleteLater()

    # Owner view

    def _build_owner_view(self):
        content = QWidget()
        layout = QVBoxLayout(content)
        layout.setContentsMargins(24, 24, 24, 24)
        layout.setSpacing(24)

        toolbar = QHBoxLayout()
        self.campaign_combo_box = QComboBox()
        self.campaign_combo_box.addItem('All Campaigns', ALL_CAMPAIGNS)
        for campaign in self.state.campaigns:
            self.campaign_combo_box.addItem(campaign.name, campaign.id)
        index = self.campaign_combo_box.findData(self.state.selected_campaign_id)
        self.campaign_combo_box.setCurrentIndex(max(0, index))
        self.campaign_combo_box.currentIndexChanged.connect(self._on_campaign_selected)
        toolbar.addWidget(self.campaign_combo_box, stretch=1)
        share_button = QPushButton('Share')
        share_button.clicked.connect(self.share_selected_campaign)
        toolbar.addWidget(share_button)
        layout.addLayout(toolbar)

        self._replace_content(content)
        groups = self.state.grouped_by_campaign()
        if not groups:
            empty = QLabel('No ads found. Try uploading some ads first.')
            empty.setAlignment(Qt.AlignmentFlag.AlignCenter)
            empty.setStyleSheet('color: #6b7280; padding: 40px;')
            layout.addWidget(empty)
        for campaign, ads in groups:
            heading = QLabel(f'{campaign.name}  <span style="color:#6b7280; font-size:12px;">'
                             f'({ad_count_label(len(ads))})</span>')
            heading.setTextFormat(Qt.TextFormat.RichText)
            heading.setStyleSheet('font-size: 20px; font-weight: 700; '
                                  'border-bottom: 1px solid #d1d5db; padding-bottom: 8px;')
            layout.addWidget(heading)
            grid = self._new_grid()
            grid.set_tiles([
                (LayoutItem(ad.id, ad.ad_size), self._card_for(ad, header=None, show_delete=True))
                for ad in ads
            ])
            layout.addWidget(grid)
        layout.addStretch()

    @Slot(int)
    def _on_campaign_selected(self, index: int):
        self.state.select_campaign(self.campaign_combo_box.itemData(index))
        self._build_owner_view()

    @Slot()
    def share_selected_campaign(self):
        campaign_id = self.state.selected_campaign_id
        if campaign_id == ALL_CAMPAIGNS:
            self.statusBar().showMessage('Please select a campaign to share.', STATUS_TIMEOUT_MS)
            return
        try:
            token = self.client.ensure_share_token(campaign_id)
        except BackendError as e:
            log_flow("GALLERY", f"Share failed: {e}", level="ERROR")
            self.statusBar().showMessage('Failed to generate share link.', STATUS_TIMEOUT_MS)
            return
        QApplication.clipboard().setText(self.client.share_url(token))
        self.statusBar().showMessage('Share link copied! You can now share this link with your client.',
                                     STATUS_TIMEOUT_MS)

    @Slot(str)
    def delete_ad(self, ad_id: str):
        ad = next((ad for ad in self.state.ads if ad.id == ad_id), None)
        if ad is None:
            return
        try:
            self.client.delete_ad(ad)
        except BackendError as e:
            log_flow("GALLERY", f"Delete failed for {ad_id}: {e}", level="ERROR")
            self.statusBar().showMessage('Failed to delete the ad.', STATUS_TIMEOUT_MS)
            return
        self.state.remove_ad(ad_id)
        self._release_cards({ad.id for ad in self.state.ads})
        self.statusBar().showMessage('The ad was deleted successfully.', STATUS_TIMEOUT_MS)
        self._rebuild()

    # Share view

    def _build_share_view(self):
        content = QWidget()
        layout = QHBoxLayout(content)
        layout.setContentsMargins(16, 16, 16, 16)
        layout.setSpacing(24)

        sidebar = QFrame()
        sidebar.setFixedWidth(260)
        sidebar.setStyleSheet('background: black; color: white; border-radius: 8px;')
        sidebar_layout = QVBoxLayout(sidebar)
        name_label = QLabel(self.shared_campaign_name)
        name_label.setWordWrap(True)
        name_label.setStyleSheet('font-size: 28px; font-weight: 600;')
        sidebar_layout.addWidget(name_label)
        sidebar_layout.addWidget(QLabel('Filter by Size'))
        select_all_button = QPushButton('Select All')
        select_all_button.clicked.connect(self.select_all_sizes)
        sidebar_layout.addWidget(select_all_button, alignment=Qt.AlignmentFlag.AlignLeft)
        self.size_check_boxes: dict[str, QCheckBox] = {}
        for size in self.state.available_sizes:
            check_box = QCheckBox(size or 'Unspecified')
            check_box.setChecked(size in self.state.selected_sizes)
            check_box.toggled.connect(lambda _checked, size=size: self.toggle_size(size))
            self.size_check_boxes[size] = check_box
            sidebar_layout.addWidget(check_box)
        sidebar_layout.addStretch()
        layout.addWidget(sidebar, alignment=Qt.AlignmentFlag.AlignTop)

        main = QVBoxLayout()
        heading = QLabel('Campaign Ads')
        heading.setStyleSheet('font-size: 22px; font-weight: 600;')
        main.addWidget(heading)
        self._replace_content(content)
        self.share_grid = self._new_grid()
        main.addWidget(self.share_grid)
        main.addStretch()
        layout.addLayout(main, stretch=1)
        self._refresh_share_grid()

    def _refresh_share_grid(self):
        visible = self.state.visible_ads()
        self._release_cards({ad.id for ad in visible})
        self.share_grid.set_tiles([
            (LayoutItem(ad.id, ad.ad_size),
             self._card_for(ad, header=self.shared_campaign_name, show_delete=False))
            for ad in visible
        ])

    def toggle_size(self, size: str):
        self.state.toggle_size(size)
        self._refresh_share_grid()

    @Slot()
    def select_all_sizes(self):
        self.state.select_all_sizes()
        for size, check_box in self.size_check_boxes.items():
            check_box.blockSignals(True)
            check_box.setChecked(True)
            check_box.blockSignals(False)
        self._refresh_share_grid()

    # Per-card actions

    @Slot(str)
    def replay_ad(self, ad_id: str):
        self.state.replay(ad_id)
        card = self._cards.get(ad_id)
        if card is not None:
            card.replay()

    @Slot(str)
    def toggle_description(self, ad_id: str):
        is_open = self.state.toggle_description(ad_id)
        card = self._cards.get(ad_id)
        if card is not None:
            card.set_description_open(is_open)

    def _on_setting_changed(self, key: str, value):
        if key == 'masonry_gutter':
            self.gutter = int(value)
            for grid in self._grids:
                grid.set_gutter(self.gutter)
        elif key == 'masonry_strategy':
            self.strategy = str(value)
            for grid in self._grids:
                grid.set_strategy(self.strategy)

    def closeEvent(self, event: QCloseEvent):
        """Save the window geometry and release previews before closing."""
        settings.setValue('geometry', self.saveGeometry())
        for card in self._cards.values():
            card.dispose()
        super().closeEvent(event)
