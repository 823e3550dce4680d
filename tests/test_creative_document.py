import re
from urllib.parse import urljoin

from adgallery.utils.creative_document import (base_href, build_image_document, inject_base_tag,
                                               is_document_creative, select_primary_file)

AD_URL = "https://x.test/campaigns/c1/ad.html"


def test_base_href_is_the_creative_directory():
    assert base_href(AD_URL) == "https://x.test/campaigns/c1/"
    assert base_href("https://x.test/c1/ad.html?v=3#top") == "https://x.test/c1/"


def test_base_href_resolves_relative_addresses_against_page():
    assert base_href("creatives/a/ad.html", "https://app.test/gallery/") == \
        "https://app.test/gallery/creatives/a/"


def test_base_tag_is_injected_right_after_head():
    html = "<html><head></head><body>hi</body></html>"

    result = inject_base_tag(html, base_href(AD_URL))

    assert result == ('<html><head><base href="https://x.test/campaigns/c1/">'
                      '</head><body>hi</body></html>')


def test_existing_base_tag_is_not_duplicated():
    html = '<html><head><base href="https://cdn.test/"></head><body></body></html>'

    assert inject_base_tag(html, "https://x.test/campaigns/c1/") == html


def test_head_detection_is_case_insensitive():
    result = inject_base_tag("<HTML><HEAD><title>t</title></HEAD></HTML>", "https://x.test/")

    assert result.startswith('<HTML><HEAD><base href="https://x.test/"><title>')
    assert result.count("<base") == 1


def test_document_without_head_gets_base_prepended():
    result = inject_base_tag("<div>banner</div>", "https://x.test/c1/")

    assert result == '<base href="https://x.test/c1/"><div>banner</div>'


def test_image_document_source_round_trips_through_base():
    address = "https://x.test/c1/img.png"
    href = base_href(address)

    document = build_image_document(address, 300, 250, href)

    assert f'<base href="{href}">' in document
    src = re.search(r'<img src="([^"]+)"', document).group(1)
    assert urljoin(href, src) == address
    assert "width: 300px;" in document
    assert "height: 250px;" in document
    assert 'alt="Ad Preview"' in document


def test_image_document_keeps_unrelated_addresses_absolute():
    document = build_image_document("https://cdn.test/img.png", 728, 90, "https://x.test/c1/")

    assert '<img src="https://cdn.test/img.png"' in document


def test_document_creative_detection():
    assert is_document_creative("https://x.test/c1/AD.HTML")
    assert is_document_creative("https://x.test/c1/ad.html?cache=2")
    assert not is_document_creative("https://x.test/c1/ad.htm")
    assert not is_document_creative("https://x.test/c1/banner.png")
    assert not is_document_creative("")


def test_select_primary_file_prefers_html():
    assert select_primary_file(["a/backup.jpg", "a/index.HTML", "a/other.html"]) == "a/index.HTML"
    assert select_primary_file(["a/backup.jpg", "a/b.png"]) == "a/backup.jpg"
    assert select_primary_file([]) is None
    assert select_primary_file(None) is None
