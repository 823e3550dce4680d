"""Parsing and formatting of "<width>x<height>" ad size tokens."""

import re

FALLBACK_WIDTH = 300
FALLBACK_HEIGHT = 250
FALLBACK_SIZE = (FALLBACK_WIDTH, FALLBACK_HEIGHT)

_AD_SIZE_PATTERN = re.compile(r'(\d+)x(\d+)')


def parse_ad_size(token) -> tuple[int, int]:
    """
    Parse an ad size token into (width, height).

    Anything that is not two positive integers joined by a lowercase ``x``
    resolves to the 300x250 fallback instead of raising.
    """
    if not isinstance(token, str):
        return FALLBACK_SIZE
    match = _AD_SIZE_PATTERN.fullmatch(token)
    if not match:
        return FALLBACK_SIZE
    width, height = int(match.group(1)), int(match.group(2))
    if width <= 0 or height <= 0:
        return FALLBACK_SIZE
    return width, height


def is_valid_ad_size(token) -> bool:
    if not isinstance(token, str):
        return False
    match = _AD_SIZE_PATTERN.fullmatch(token)
    return bool(match) and int(match.group(1)) > 0 and int(match.group(2)) > 0


def format_ad_size(width: int, height: int) -> str:
    width, height = int(width), int(height)
    if width <= 0 or height <= 0:
        raise ValueError(f'Ad size must be positive, got {width}x{height}')
    return f'{width}x{height}'


def sort_ad_sizes(tokens) -> list[str]:
    """Distinct size tokens in plain string order; an empty token is kept as its own size."""
    return sorted({token for token in tokens if isinstance(token, str)})
