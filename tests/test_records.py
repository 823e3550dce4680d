from adgallery.models.records import normalize_ad, normalize_campaign, normalize_shared_campaign


def test_campaign_name_from_joined_object():
    ad = normalize_ad({"id": 1, "campaign_id": 7, "ad_size": "300x250",
                       "files": ["https://x.test/a.html"], "campaigns": {"name": "Spring"}})

    assert ad.id == "1"
    assert ad.campaign_id == "7"
    assert ad.campaign_name == "Spring"


def test_campaign_name_from_joined_list():
    ad = normalize_ad({"id": "a", "campaign_id": "c", "ad_size": "728x90", "files": [],
                       "campaigns": [{"name": "Summer"}, {"name": "ignored"}]})

    assert ad.campaign_name == "Summer"


def test_missing_optional_fields_are_normalized():
    ad = normalize_ad({"id": "a", "ad_size": None, "files": None, "campaigns": [],
                       "title": "", "description": "   "})

    assert ad.files == []
    assert ad.ad_size == ""
    assert ad.campaign_id is None
    assert ad.campaign_name is None
    assert ad.title is None
    assert ad.description is None


def test_campaign_share_token_defaults_to_none():
    campaign = normalize_campaign({"id": 3, "name": "Launch", "share_token": ""})

    assert campaign.id == "3"
    assert campaign.share_token is None


def test_shared_campaign_embeds_ads_with_campaign_context():
    campaign, ads = normalize_shared_campaign({
        "id": "c1",
        "name": "Launch",
        "ads": [
            {"id": "a1", "ad_size": "300x250", "files": ["https://x.test/c1/a1.html"]},
            {"id": "a2", "ad_size": "728x90", "files": None},
        ],
    })

    assert campaign.name == "Launch"
    assert [ad.id for ad in ads] == ["a1", "a2"]
    assert all(ad.campaign_id == "c1" for ad in ads)
    assert all(ad.campaign_name == "Launch" for ad in ads)
    assert ads[1].files == []
