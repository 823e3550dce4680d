"""View-local state of the gallery: filters, replay counters, expanded descriptions."""

from adgallery.models.records import Ad, Campaign
from adgallery.utils.ad_size import sort_ad_sizes

ALL_CAMPAIGNS = 'all'


def ad_count_label(count: int) -> str:
    return f"{count} {'ad' if count == 1 else 'ads'}"


class GalleryState:
    """Owned by one gallery view; everything is keyed by ad/campaign id."""

    def __init__(self, campaigns: list[Campaign] | None = None, ads: list[Ad] | None = None):
        self.campaigns: list[Campaign] = []
        self.ads: list[Ad] = []
        self.selected_campaign_id = ALL_CAMPAIGNS
        self.available_sizes: list[str] = []
        self.selected_sizes: set[str] = set()
        self._replay_counters: dict[str, int] = {}
        self._open_descriptions: set[str] = set()
        self.set_data(campaigns or [], ads or [])

    def set_data(self, campaigns: list[Campaign], ads: list[Ad]):
        """Replace the records; the size filter starts with every size selected."""
        self.campaigns = list(campaigns)
        self.ads = list(ads)
        self.available_sizes = sort_ad_sizes(ad.ad_size for ad in self.ads)
        self.selected_sizes = set(self.available_sizes)
        known_ids = {ad.id for ad in self.ads}
        self._replay_counters = {
            ad_id: count for ad_id, count in self._replay_counters.items() if ad_id in known_ids}
        self._open_descriptions &= known_ids
        if (self.selected_campaign_id != ALL_CAMPAIGNS
                and not any(c.id == self.selected_campaign_id for c in self.campaigns)):
            self.selected_campaign_id = ALL_CAMPAIGNS

    # Campaign filter

    def select_campaign(self, campaign_id: str | None):
        self.selected_campaign_id = campaign_id or ALL_CAMPAIGNS

    def filtered_ads(self) -> list[Ad]:
        if self.selected_campaign_id == ALL_CAMPAIGNS:
            return list(self.ads)
        return [ad for ad in self.ads if ad.campaign_id == self.selected_campaign_id]

    def grouped_by_campaign(self) -> list[tuple[Campaign, list[Ad]]]:
        if self.selected_campaign_id != ALL_CAMPAIGNS:
            campaign = next((c for c in self.campaigns if c.id == self.selected_campaign_id), None)
            return [(campaign, self.filtered_ads())] if campaign else []
        groups = []
        for campaign in self.campaigns:
            ads = [ad for ad in self.ads if ad.campaign_id == campaign.id]
            if ads:
                groups.append((campaign, ads))
        return groups

    # Size filter (share view)

    def toggle_size(self, size: str):
        if size in self.selected_sizes:
            self.selected_sizes.discard(size)
        else:
            self.selected_sizes.add(size)

    def select_all_sizes(self):
        self.selected_sizes = set(self.available_sizes)

    def clear_sizes(self):
        self.selected_sizes = set()

    def visible_ads(self) -> list[Ad]:
        return [ad for ad in self.filtered_ads() if ad.ad_size in self.selected_sizes]

    # Per-ad UI state

    def replay(self, ad_id: str) -> int:
        self._replay_counters[ad_id] = self._replay_counters.get(ad_id, 0) + 1
        return self._replay_counters[ad_id]

    def replay_count(self, ad_id: str) -> int:
        return self._replay_counters.get(ad_id, 0)

    def toggle_description(self, ad_id: str) -> bool:
        if ad_id in self._open_descriptions:
            self._open_descriptions.discard(ad_id)
            return False
        self._open_descriptions.add(ad_id)
        return True

    def is_description_open(self, ad_id: str) -> bool:
        return ad_id in self._open_descriptions

    def remove_ad(self, ad_id: str):
        """Forget an ad after it was deleted in the backend."""
        self.ads = [ad for ad in self.ads if ad.id != ad_id]
        self._replay_counters.pop(ad_id, None)
        self._open_descriptions.discard(ad_id)
        self.available_sizes = sort_ad_sizes(ad.ad_size for ad in self.ads)
        self.selected_sizes &= set(self.available_sizes)
