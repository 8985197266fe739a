# storefront/settings_provider.py
import logging

import redis
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import crud
from .config import SETTINGS_CACHE_TTL
from .schemas import SiteSettingsOut

logger = logging.getLogger("storefront.settings")

SETTINGS_CACHE_KEY = "site_settings"

# The one definition of the fallback record; every page gets it through get_settings.
DEFAULT_SETTINGS = SiteSettingsOut(
    id=1,
    site_name="Exclusive Fashions Ltd",
    tagline="Your one-stop shop for trendy footwear, bags, and accessories.",
    location_1_name="High Street Branch",
    location_1_address="116–118 High Street, San Fernando, Trinidad",
    location_1_gmaps_url="https://maps.google.com",
    location_2_name="Carlton Centre Branch",
    location_2_address="Carlton Centre, 61 St. James Street, San Fernando, Trinidad",
    location_2_gmaps_url="https://maps.google.com",
    phone_number="1-868-123-4567",
    whatsapp_number="18681234567",
    instagram_handle="exclusive_fashion_ltd_",
    opening_hours="Mon - Sat: 9am - 5pm",
    announcement_banner=None,
    payments_enabled=False,
)


def _read_cache(cache):
    try:
        raw = cache.get(SETTINGS_CACHE_KEY)
        if raw:
            return SiteSettingsOut.model_validate_json(raw)
    except (redis.RedisError, ValidationError):
        logger.warning("Ignoring unreadable settings cache entry", exc_info=True)
    return None


def _write_cache(cache, settings: SiteSettingsOut):
    try:
        cache.set(SETTINGS_CACHE_KEY, settings.model_dump_json(), ex=SETTINGS_CACHE_TTL)
    except redis.RedisError:
        logger.warning("Could not cache site settings", exc_info=True)


def get_settings(db: Session, cache=None) -> SiteSettingsOut:
    """
    The site settings record, never failing.

    A fetch error or a missing row yields DEFAULT_SETTINGS. Only records read
    from the database are cached.
    """
    if cache is not None:
        cached = _read_cache(cache)
        if cached is not None:
            return cached

    try:
        row = crud.get_site_settings(db)
    except SQLAlchemyError:
        logger.error("Error fetching site settings; using defaults", exc_info=True)
        return DEFAULT_SETTINGS
    if row is None:
        logger.info("No site settings row; using defaults")
        return DEFAULT_SETTINGS

    try:
        settings = SiteSettingsOut.model_validate(row)
    except ValidationError:
        logger.error("Malformed site settings row; using defaults", exc_info=True)
        return DEFAULT_SETTINGS

    if cache is not None:
        _write_cache(cache, settings)
    return settings
