"""USGS Feed Client - Imperative Shell.

This module handles HTTP communication with the USGS summary feed.
All I/O is contained here; parsing and filtering are in the core module.
"""

import logging
from typing import Any

import requests


logger = logging.getLogger(__name__)


# Past 30 days, all magnitudes. The feed holds nothing older.
USGS_FEED_URL = (
    "https://earthquake.usgs.gov/earthquakes/feed/v1.0/summary/all_month.geojson"
)

# Default timeout for feed requests (seconds)
DEFAULT_TIMEOUT = 10


class FetchError(Exception):
    """The feed could not be fetched or its body was not usable."""


class USGSClient:
    """Client for fetching the current USGS feed snapshot.

    This is part of the imperative shell - it handles HTTP I/O.
    Retries are left to the next scheduled tick.
    """

    def __init__(
        self,
        feed_url: str = USGS_FEED_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize USGS client.

        Args:
            feed_url: GeoJSON summary feed URL
            timeout: Request timeout in seconds
        """
        self.feed_url = feed_url
        self.timeout = timeout

    def fetch_features(self) -> list[dict[str, Any]]:
        """Fetch the raw list of GeoJSON features.

        This method performs HTTP I/O.

        Returns:
            Raw feature dicts, in feed order

        Raises:
            FetchError: On network failure, timeout, non-2xx status or a
                malformed body
        """
        logger.info("Fetching earthquakes from USGS feed %s", self.feed_url)

        try:
            response = requests.get(self.feed_url, timeout=self.timeout)
            response.raise_for_status()
        except requests.Timeout as e:
            raise FetchError(
                f"USGS feed request timed out after {self.timeout}s"
            ) from e
        except requests.RequestException as e:
            raise FetchError(f"USGS feed request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise FetchError("USGS feed returned a non-JSON body") from e

        features = data.get("features") if isinstance(data, dict) else None
        if not isinstance(features, list):
            raise FetchError("USGS feed body has no 'features' list")

        logger.info("USGS returned %d earthquakes worldwide", len(features))

        return features
