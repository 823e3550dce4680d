"""HTML rewriting for sandboxed creative previews."""

import html
import re
from urllib.parse import urljoin, urlsplit, urlunsplit

_HEAD_TAG = re.compile(r'<head>', re.IGNORECASE)
_BASE_TAG = re.compile(r'<base\s', re.IGNORECASE)

IMAGE_DOCUMENT_TEMPLATE = """<!DOCTYPE html>
<html>
  <head>
    {base_tag}
    <style>
      body {{
        margin: 0;
        padding: 0;
        overflow: hidden;
        width: {width}px;
        height: {height}px;
      }}
      .ad-container {{
        width: 100%;
        height: 100%;
        display: flex;
        align-items: center;
        justify-content: center;
      }}
      img {{
        max-width: 100%;
        max-height: 100%;
        object-fit: contain;
      }}
    </style>
  </head>
  <body>
    <div class="ad-container">
      <img src="{src}" alt="Ad Preview" />
    </div>
  </body>
</html>
"""


def is_document_creative(address: str) -> bool:
    """HTML creatives are recognised by their `.html` suffix (query/fragment ignored)."""
    if not address:
        return False
    path = urlsplit(address).path or address
    return path.lower().endswith('.html')


def _origin(url: str) -> str:
    parts = urlsplit(url or '')
    if not parts.scheme or not parts.netloc:
        return ''
    return f'{parts.scheme}://{parts.netloc}'


def base_href(address: str, page_url: str | None = None) -> str:
    """
    Directory of the creative, used as the document base.

    Relative addresses are resolved against `page_url` first. If the address
    cannot be resolved the page origin is returned instead.
    """
    try:
        absolute = urljoin(page_url, address) if page_url else address
        parts = urlsplit(absolute)
        directory = parts.path[:parts.path.rfind('/') + 1]
        return urlunsplit((parts.scheme, parts.netloc, directory, '', ''))
    except ValueError:
        return _origin(page_url)


def base_tag(href: str) -> str:
    return f'<base href="{html.escape(href, quote=True)}">'


def inject_base_tag(document: str, href: str) -> str:
    """
    Make relative references inside `document` resolve against `href`.

    The tag goes right after the opening <head>; documents that already
    declare a base are left alone, and documents without <head> get the tag
    prepended.
    """
    tag = base_tag(href)
    if _HEAD_TAG.search(document):
        if _BASE_TAG.search(document):
            return document
        return _HEAD_TAG.sub(lambda match: match.group(0) + tag, document, count=1)
    return tag + document


def image_source(address: str, href: str) -> str:
    """Source for the <img> element, relative to the injected base when possible."""
    if href and address.startswith(href) and len(address) > len(href):
        relative = address[len(href):]
        # "a:b.png" would parse as a scheme.
        if ':' not in relative.split('/', 1)[0] and not relative.startswith('/'):
            return relative
    return address


def build_image_document(address: str, width: int, height: int, href: str) -> str:
    """Minimal fixed-size document wrapping an image creative."""
    return IMAGE_DOCUMENT_TEMPLATE.format(
        base_tag=base_tag(href),
        width=int(width),
        height=int(height),
        src=html.escape(image_source(address, href), quote=True),
    )


def select_primary_file(files) -> str | None:
    """Prefer the first HTML file, otherwise the first file of the ad."""
    if not files:
        return None
    for file in files:
        if file and file.lower().endswith('.html'):
            return file
    return files[0]
