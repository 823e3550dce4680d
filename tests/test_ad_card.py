from adgallery.models.records import Ad
from adgallery.widgets.ad_card import AdCard

LONG_TEXT = "Spring Collection Launch Campaign With A Very Long Name " * 6


def test_long_header_and_title_wrap_inside_the_preview_width():
    ad = Ad("a1", "c1", "300x250", files=[], title=LONG_TEXT, description=LONG_TEXT)

    card = AdCard(ad, fetcher=None, image_preloader=None, header=LONG_TEXT)

    for label in (card.header_label, card.title_label, card.description_label):
        assert label.wordWrap() is True
        assert label.maximumWidth() == 300
    assert card.preview_container.width() == 300
    card.dispose()


def test_card_without_files_shows_placeholder():
    ad = Ad("a2", "c1", "", files=[])

    card = AdCard(ad, fetcher=None, image_preloader=None)

    assert card.header_label is None
    assert card.title_label is None
    assert card.loading_label.text() == "No preview available"
    assert card.preview_container.width() == 300
    card.dispose()
