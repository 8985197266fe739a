# storefront/config.py
import os
import logging

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./storefront.db")

# Optional; without it settings are not cached and nobody can hold an admin session.
# Use a rediss:// URL for TLS (Upstash and friends).
REDIS_URL = os.environ.get("REDIS_URL")

SETTINGS_CACHE_TTL = int(os.environ.get("SETTINGS_CACHE_TTL", "300"))
GRID_REGISTRY_SIZE = int(os.environ.get("GRID_REGISTRY_SIZE", "256"))
ROTATOR_REGISTRY_SIZE = int(os.environ.get("ROTATOR_REGISTRY_SIZE", "512"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()


def configure_logging(level: str = LOG_LEVEL):
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
