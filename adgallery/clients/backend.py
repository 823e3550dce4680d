"""Query/mutation client for the hosted campaign database and file storage."""

import secrets

import requests

from adgallery.models.records import (Ad, Campaign, normalize_ad, normalize_campaign,
                                      normalize_shared_campaign)
from adgallery.utils.flow_log import log_flow
from adgallery.utils.settings import get_setting

SHARE_TOKEN_BYTES = 24


class BackendError(Exception):
    pass


class CampaignNotFoundError(BackendError):
    pass


def generate_share_token() -> str:
    """48 hex characters from 24 random bytes."""
    return secrets.token_hex(SHARE_TOKEN_BYTES)


def storage_path_from_url(url: str, bucket: str) -> str | None:
    """Object path of a public storage URL, i.e. everything after `/<bucket>/`."""
    marker = f'/{bucket}/'
    if marker not in url:
        return None
    path = url.split(marker, 1)[1]
    return path or None


class BackendClient:
    def __init__(self, base_url: str, api_key: str = '', bucket: str = 'ad-files',
                 share_base_url: str = '', timeout: float = 15.0, session=None):
        self.base_url = base_url.rstrip('/')
        self.bucket = bucket
        self.share_base_url = (share_base_url or base_url).rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {"Content-Type": "application/json"}
        if api_key:
            self.headers['apikey'] = api_key
            self.headers['Authorization'] = f'Bearer {api_key}'

    @classmethod
    def from_settings(cls) -> 'BackendClient':
        return cls(
            get_setting('backend_url'),
            api_key=get_setting('backend_api_key'),
            bucket=get_setting('storage_bucket'),
            share_base_url=get_setting('share_base_url'),
            timeout=get_setting('fetch_timeout_ms', int) / 1000,
        )

    def _request(self, method: str, path: str, *, params=None, json=None, headers=None):
        if not self.base_url:
            raise BackendError('No backend URL configured')
        url = f'{self.base_url}/{path}'
        log_flow("BACKEND", f"{method} {path} params={params}")
        try:
            response = self.session.request(
                method, url,
                params=params,
                json=json,
                headers={**self.headers, **(headers or {})},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise BackendError(f'Request failed: {e}') from e
        if response.status_code >= 400:
            raise BackendError(f'API Error: {response.status_code} - {response.text}')
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise BackendError(f'Invalid JSON from {path}') from e

    def fetch_campaigns(self) -> list[Campaign]:
        rows = self._request('GET', 'rest/v1/campaigns',
                             params={'select': 'id,name,share_token', 'order': 'name'})
        return [normalize_campaign(row) for row in rows or []]

    def fetch_ads(self) -> list[Ad]:
        rows = self._request('GET', 'rest/v1/ads', params={
            'select': 'id,campaign_id,title,description,ad_size,files,campaigns(name)',
        })
        return [normalize_ad(row) for row in rows or []]

    def fetch_shared_campaign(self, token: str) -> tuple[Campaign, list[Ad]]:
        if not token:
            raise CampaignNotFoundError('Empty share token')
        rows = self._request('GET', 'rest/v1/campaigns', params={
            'select': 'id,name,ads(id,ad_size,files)',
            'share_token': f'eq.{token}',
        })
        if not rows:
            raise CampaignNotFoundError('Campaign not found or access denied')
        return normalize_shared_campaign(rows[0])

    def ensure_share_token(self, campaign_id: str) -> str:
        """Return the campaign's share token, creating one on first share."""
        rows = self._request('GET', 'rest/v1/campaigns', params={
            'select': 'share_token',
            'id': f'eq.{campaign_id}',
        })
        if not rows:
            raise CampaignNotFoundError(f'Unknown campaign {campaign_id}')
        token = rows[0].get('share_token')
        if token:
            return token
        token = generate_share_token()
        self._request('PATCH', 'rest/v1/campaigns',
                      params={'id': f'eq.{campaign_id}'},
                      json={'share_token': token})
        log_flow("BACKEND", f"Created share token for campaign {campaign_id}", level="INFO")
        return token

    def share_url(self, token: str) -> str:
        return f'{self.share_base_url}/campaign/{token}'

    def delete_ad(self, ad: Ad):
        """Remove the ad's stored files, then its row."""
        paths = [path for path in (storage_path_from_url(url, self.bucket) for url in ad.files)
                 if path]
        if paths:
            self._request('DELETE', f'storage/v1/object/{self.bucket}', json={'prefixes': paths})
        self._request('DELETE', 'rest/v1/ads', params={'id': f'eq.{ad.id}'})
