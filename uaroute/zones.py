# uaroute/zones.py

from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Dict, List, Optional
import httpx
import yaml
from pydantic import ValidationError
from uaroute.config import settings
from uaroute.errors import ZonesUnavailableError
from uaroute.schemas import Target, Zone
import logging

logger = logging.getLogger(__name__)


def parse_zones(text: str) -> List[Zone]:
    """
    Parse a multi-document YAML stream, one zone per document.
    Documents that don't validate are skipped.
    """
    zones = []

    for index, document in enumerate(yaml.safe_load_all(text)):
        if document is None:
            continue
        try:
            zones.append(Zone.model_validate(document))
        except ValidationError as e:
            logger.warning(f"Skipping zone document {index}: {e}")

    return zones


def fetch_zone_document() -> str:
    """Read the zone document from the configured URL or file"""
    if settings.zones_url:
        headers = {
            "User-Agent": "uaroute",
            "Accept": "application/vnd.github.raw",
        }
        if settings.zones_token:
            headers["Authorization"] = f"Bearer {settings.zones_token}"

        response = httpx.get(settings.zones_url, headers=headers, timeout=10.0)
        response.raise_for_status()
        return response.text

    if settings.zones_path:
        return Path(settings.zones_path).read_text(encoding="utf-8")

    raise ZonesUnavailableError("no zone document configured")


class ZoneStore:
    """
    Current zone routing table.
    Swapped wholesale on refresh; thread-safe for concurrent requests.
    """

    def __init__(self):
        self._zones: Dict[str, Zone] = {}
        self._lock = Lock()
        self._loaded_at: Optional[datetime] = None

    @property
    def loaded(self) -> bool:
        return self._loaded_at is not None

    def replace(self, zones: List[Zone]) -> None:
        by_name: Dict[str, Zone] = {}
        for zone in zones:
            # First zone with a given name wins
            if zone.name is not None and zone.name not in by_name:
                by_name[zone.name] = zone

        with self._lock:
            self._zones = by_name
            self._loaded_at = datetime.utcnow()

    def find_target(self, zone_name: str, route_name: str) -> Optional[Target]:
        """
        Target of the first route named `route_name` in `zone_name`.
        Returns None if the zone, route or target doesn't exist.
        """
        with self._lock:
            if self._loaded_at is None:
                raise ZonesUnavailableError("zone document not loaded")
            zone = self._zones.get(zone_name)

        if zone is None or not zone.routes:
            return None

        for route in zone.routes:
            if route.name == route_name:
                return route.target

        return None

    def zone_names(self) -> List[str]:
        with self._lock:
            return list(self._zones)


def refresh_zones() -> None:
    """
    Reload the zone document.
    Called at startup and periodically by the scheduler; on failure the
    previous table stays in place.
    """
    try:
        zones = parse_zones(fetch_zone_document())
    except (httpx.HTTPError, OSError, yaml.YAMLError, ZonesUnavailableError) as e:
        logger.error(f"Zone refresh failed: {e}")
        return

    zone_store.replace(zones)
    logger.info(f"Loaded {len(zones)} zones")


# Global singleton
zone_store = ZoneStore()
