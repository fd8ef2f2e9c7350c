"""Unit tests for click-to-WhatsApp attribution extraction."""

from whatsapp_ingest.domain.value_objects.attribution import Attribution, extract_attribution


def test_extract_attribution_from_ad_referral():
    """Test UTM parameters, click ids and ad id are read from an ad referral."""
    message = {
        "id": "wamid.1",
        "referral": {
            "source_url": (
                "https://fb.me/promo?utm_source=facebook&utm_medium=paid"
                "&utm_campaign=spring&fbclid=FB123&gclid=G456&placement=feed"
            ),
            "source_type": "ad",
            "source_id": "AD-1",
            "ctwa_clid": "CLID-1",
            "headline": "Spring sale",
        },
    }

    attribution = extract_attribution(message)

    assert attribution is not None
    assert attribution.utm_source == "facebook"
    assert attribution.utm_medium == "paid"
    assert attribution.utm_campaign == "spring"
    assert attribution.utm_content is None
    assert attribution.fbclid == "FB123"
    assert attribution.gclid == "G456"
    assert attribution.ctwaclid == "CLID-1"
    assert attribution.meta_ad_id == "AD-1"
    assert attribution.source_type == "ad"
    assert attribution.placement == "feed"
    assert attribution.headline == "Spring sale"


def test_extract_attribution_without_referral_returns_none():
    """Test messages without referral carry no attribution."""
    assert extract_attribution({"id": "wamid.1", "type": "text"}) is None
    assert extract_attribution({"id": "wamid.1", "referral": {}}) is None


def test_extract_attribution_post_referral_has_no_ad_id():
    """Test the source id only counts as ad id when the referral comes from an ad."""
    attribution = extract_attribution(
        {"referral": {"source_type": "post", "source_id": "POST-1", "source_url": "https://x.y/z"}}
    )

    assert attribution is not None
    assert attribution.meta_ad_id is None
    assert attribution.source_type == "post"
    assert attribution.source_url == "https://x.y/z"


def test_non_ad_fields_excludes_ad_id_and_empty_values():
    """Test non_ad_fields returns only populated fields other than the ad id."""
    attribution = Attribution(utm_source="facebook", meta_ad_id="AD-1", ctwaclid="CLID")

    assert attribution.non_ad_fields() == {"utm_source": "facebook", "ctwaclid": "CLID"}
    assert not attribution.is_empty()
    assert Attribution().is_empty()
