# uaroute/stats.py

from threading import Lock
from typing import Dict, Tuple


class DimensionStats:
    """Stats accumulator for a single dimension value"""

    def __init__(self):
        self.redirects: int = 0
        self.pages: int = 0

    def add_served(self, page: bool) -> None:
        if page:
            self.pages += 1
        else:
            self.redirects += 1


class RedirectStatsManager:
    """
    In-memory per-minute redirect counters.
    Thread-safe for concurrent requests.
    """

    def __init__(self):
        self._lock = Lock()

        self._minute_redirects: int = 0
        self._minute_pages: int = 0
        self._minute_not_found: int = 0
        self._minute_errors: int = 0

        # Dimension-specific tracking for current minute
        self._minute_by_route: Dict[Tuple[str, str], DimensionStats] = {}
        self._minute_by_os_class: Dict[str, DimensionStats] = {}

    def served(self, zone: str, route: str, os_class: str, page: bool = False) -> None:
        """Count a redirect (or an HTML page when `page` is set)"""
        with self._lock:
            if page:
                self._minute_pages += 1
            else:
                self._minute_redirects += 1

            self._get_dimension_stats(self._minute_by_route, (zone, route)).add_served(page)
            self._get_dimension_stats(self._minute_by_os_class, os_class).add_served(page)

    def not_found(self) -> None:
        # Not broken down by route: unknown paths are client-controlled
        with self._lock:
            self._minute_not_found += 1

    def failed(self) -> None:
        with self._lock:
            self._minute_errors += 1

    def snapshot(self) -> dict:
        """Current minute counters, without resetting"""
        with self._lock:
            return self._collect()

    def get_and_reset_minute_stats(self) -> dict:
        """
        Get all stats for the current minute and reset counters.
        Called by aggregator every minute.
        """
        with self._lock:
            stats = self._collect()

            self._minute_redirects = 0
            self._minute_pages = 0
            self._minute_not_found = 0
            self._minute_errors = 0
            self._minute_by_route.clear()
            self._minute_by_os_class.clear()

            return stats

    def _collect(self) -> dict:
        return {
            "global": {
                "redirects": self._minute_redirects,
                "pages": self._minute_pages,
                "not_found": self._minute_not_found,
                "errors": self._minute_errors,
            },
            "by_route": {
                key: {"redirects": stats.redirects, "pages": stats.pages}
                for key, stats in self._minute_by_route.items()
            },
            "by_os_class": {
                key: {"redirects": stats.redirects, "pages": stats.pages}
                for key, stats in self._minute_by_os_class.items()
            },
        }

    def _get_dimension_stats(self, dimension_dict: dict, key) -> DimensionStats:
        if key not in dimension_dict:
            dimension_dict[key] = DimensionStats()
        return dimension_dict[key]


# Global singleton
redirect_stats = RedirectStatsManager()
