"""Typed campaign/ad records and normalization of backend rows."""

from dataclasses import dataclass, field


@dataclass
class Campaign:
    id: str
    name: str
    share_token: str | None = None


@dataclass
class Ad:
    id: str
    campaign_id: str | None
    ad_size: str
    files: list[str] = field(default_factory=list)
    title: str | None = None
    description: str | None = None
    campaign_name: str | None = None


def _joined_campaign_name(joined) -> str | None:
    """Relational joins come back as an object, a list of objects, or nothing."""
    if isinstance(joined, list):
        joined = joined[0] if joined else None
    if isinstance(joined, dict):
        name = joined.get('name')
        return str(name) if name is not None else None
    return None


def _optional_text(value) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def normalize_campaign(row: dict) -> Campaign:
    return Campaign(
        id=str(row['id']),
        name=str(row.get('name') or ''),
        share_token=row.get('share_token') or None,
    )


def normalize_ad(row: dict, campaign_id: str | None = None) -> Ad:
    files = row.get('files') or []
    if isinstance(files, str):
        files = [files]
    raw_campaign_id = row.get('campaign_id', campaign_id)
    return Ad(
        id=str(row['id']),
        campaign_id=str(raw_campaign_id) if raw_campaign_id is not None else None,
        ad_size=str(row.get('ad_size') or ''),
        files=[str(file) for file in files if file],
        title=_optional_text(row.get('title')),
        description=_optional_text(row.get('description')),
        campaign_name=_joined_campaign_name(row.get('campaigns')) or row.get('campaign_name'),
    )


def normalize_shared_campaign(row: dict) -> tuple[Campaign, list[Ad]]:
    """Campaign row with its embedded `ads` list, as returned for a share token."""
    campaign = normalize_campaign(row)
    ads = [
        normalize_ad(ad_row, campaign_id=campaign.id)
        for ad_row in (row.get('ads') or [])
    ]
    for ad in ads:
        ad.campaign_name = ad.campaign_name or campaign.name
    return campaign, ads
