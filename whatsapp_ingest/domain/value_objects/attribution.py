"""Click-to-WhatsApp attribution value object."""

from dataclasses import asdict, dataclass
from typing import Any, Optional
from urllib.parse import parse_qs, urlparse

AD_SOURCE_TYPE = "ad"


@dataclass(frozen=True)
class Attribution:
    """Tracking fields derived from an inbound message's referral metadata."""

    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    utm_content: Optional[str] = None
    utm_term: Optional[str] = None
    fbclid: Optional[str] = None
    gclid: Optional[str] = None
    ctwaclid: Optional[str] = None
    meta_ad_id: Optional[str] = None
    source_type: Optional[str] = None
    placement: Optional[str] = None
    source_url: Optional[str] = None
    headline: Optional[str] = None

    def is_empty(self) -> bool:
        """Whether no tracking field was found."""
        return all(value is None for value in asdict(self).values())

    def non_ad_fields(self) -> dict[str, str]:
        """Fields that merge without counting as a new ad touch."""
        return {
            key: value
            for key, value in asdict(self).items()
            if key != "meta_ad_id" and value is not None
        }


def _first_query_value(query: dict[str, list[str]], key: str) -> Optional[str]:
    values = query.get(key)
    if not values:
        return None
    return values[0] or None


def extract_attribution(message: dict[str, Any]) -> Optional[Attribution]:
    """
    Derive attribution from a single inbound message.

    UTM parameters and click ids are read from the referral ``source_url`` query
    string; the ad id is the referral ``source_id`` when the referral comes from an ad.

    Args:
        message: Raw message object from the webhook payload

    Returns:
        Attribution, or None when the message carries no referral data
    """
    referral = message.get("referral")
    if not isinstance(referral, dict) or not referral:
        return None

    source_url = referral.get("source_url") or None
    query: dict[str, list[str]] = {}
    if source_url:
        query = parse_qs(urlparse(source_url).query)

    source_type = referral.get("source_type") or None
    source_id = referral.get("source_id") or None
    meta_ad_id = source_id if source_type == AD_SOURCE_TYPE else None

    attribution = Attribution(
        utm_source=_first_query_value(query, "utm_source"),
        utm_medium=_first_query_value(query, "utm_medium"),
        utm_campaign=_first_query_value(query, "utm_campaign"),
        utm_content=_first_query_value(query, "utm_content"),
        utm_term=_first_query_value(query, "utm_term"),
        fbclid=_first_query_value(query, "fbclid"),
        gclid=_first_query_value(query, "gclid"),
        ctwaclid=referral.get("ctwa_clid") or None,
        meta_ad_id=meta_ad_id,
        source_type=source_type,
        placement=_first_query_value(query, "placement") or referral.get("placement"),
        source_url=source_url,
        headline=referral.get("headline") or None,
    )
    if attribution.is_empty():
        return None
    return attribution
