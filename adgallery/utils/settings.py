import os

from PySide6.QtCore import QSettings, Signal

# Defaults for settings that are accessed from multiple places.
DEFAULT_SETTINGS = {
    # REST endpoint of the hosted database/storage backend.
    'backend_url': '',
    'backend_api_key': '',
    'storage_bucket': 'ad-files',
    # Origin used when building share links (empty = backend_url).
    'share_base_url': '',
    'masonry_gutter': 16,
    'masonry_strategy': 'compat',  # compat (greedy row wrap) or balanced (shortest column)
    # Lets a creative follow links the user clicks; scripts/same-origin are always granted.
    'allow_user_navigation': False,
    'fetch_timeout_ms': 15000,
    'trace_logs': False,
}

ENV_OVERRIDES = {
    'backend_url': 'ADGALLERY_BACKEND_URL',
    'backend_api_key': 'ADGALLERY_BACKEND_KEY',
}


class Settings(QSettings):
    # Signal that shows that the setting with the given string was changes
    change = Signal(str, object, name='settingsChanged')

    def __init__(self):
        super().__init__('adgallery', 'adgallery')

    def setValue(self, key, value):
        super().setValue(key, value)
        self.change.emit(key, value)

# Common shared instance to ensure the Signal is also shared
settings = Settings()


def get_setting(key: str, value_type=str):
    """Read a setting, letting environment variables win for backend credentials."""
    env_name = ENV_OVERRIDES.get(key)
    if env_name and os.getenv(env_name):
        return value_type(os.environ[env_name])
    return settings.value(key, defaultValue=DEFAULT_SETTINGS[key], type=value_type)
