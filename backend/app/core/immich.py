"""
Client for the Immich photo server.

Provides the two collaborators the adventure engine consumes from the photo
source: the bulk fetch of geotagged media and the thumbnail URL resolver.
The engine never downloads image bytes; display URLs stay live references.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from adventure_core import Coordinate, MediaRecord, PlaceLabels

from .config import settings

logger = logging.getLogger(__name__)


class MediaSourceError(Exception):
    """The photo server could not be reached or rejected the request."""


def _parse_timestamp(value: Optional[str], local: bool) -> Optional[datetime]:
    """
    Parse an Immich ISO timestamp into a naive datetime.

    `localDateTime` carries the wall-clock time at capture with a dummy UTC
    suffix, so its offset is dropped. Real instants are converted to UTC.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        logger.warning(f"Could not parse timestamp: {value}")
        return None

    if parsed.tzinfo is None:
        return parsed
    if local:
        return parsed.replace(tzinfo=None)
    return parsed.astimezone(timezone.utc).replace(tzinfo=None)


def asset_to_media_record(asset: Dict[str, Any]) -> Optional[MediaRecord]:
    """Map one Immich asset to a MediaRecord, or None if it has no usable timestamp."""
    captured_at = (
        _parse_timestamp(asset.get("localDateTime"), local=True)
        or _parse_timestamp(asset.get("fileCreatedAt"), local=False)
        or _parse_timestamp(asset.get("createdAt"), local=False)
    )
    if captured_at is None:
        return None

    exif = asset.get("exifInfo") or {}
    lat = exif.get("latitude")
    lng = exif.get("longitude")
    coordinate = Coordinate(lat=lat, lng=lng) if lat and lng else None

    return MediaRecord(
        id=str(asset["id"]),
        captured_at=captured_at,
        coordinate=coordinate,
        place=PlaceLabels(
            city=exif.get("city") or None,
            state=exif.get("state") or None,
            country=exif.get("country") or None,
        ),
    )


class ImmichClient:
    """Thin wrapper around the Immich REST API."""

    def __init__(
        self,
        server_url: str,
        api_key: str,
        proxy_headers: Optional[Dict[str, str]] = None,
        page_size: int = 1000,
        max_pages: int = 500,
        timeout: int = 60,
        session: Optional[requests.Session] = None,
    ):
        self.server_url = server_url.rstrip("/")
        self.api_key = api_key
        self.page_size = page_size
        self.max_pages = max_pages
        self.timeout = timeout

        self.http = session or requests.Session()
        self.http.headers.update({"x-api-key": api_key, "Accept": "application/json"})
        # Extra headers for access proxies in front of the server
        self.http.headers.update({k: v for k, v in (proxy_headers or {}).items() if k and v})

    @classmethod
    def from_settings(cls) -> "ImmichClient":
        return cls(
            server_url=settings.IMMICH_SERVER_URL,
            api_key=settings.IMMICH_API_KEY,
            proxy_headers=settings.IMMICH_PROXY_HEADERS,
            page_size=settings.IMMICH_PAGE_SIZE,
            max_pages=settings.IMMICH_MAX_PAGES,
            timeout=settings.IMMICH_TIMEOUT_SECONDS,
        )

    def is_configured(self) -> bool:
        return bool(self.server_url and self.api_key)

    def thumbnail_url(self, media_id: str) -> str:
        """Display URL for a media item's preview thumbnail."""
        return f"{self.server_url}/api/assets/{media_id}/thumbnail?size=preview"

    def ping(self) -> bool:
        """Check that the server answers. Never raises."""
        try:
            response = self.http.get(f"{self.server_url}/api/server/ping", timeout=self.timeout)
            return response.ok and response.json().get("res") == "pong"
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Immich ping failed: {e}")
            return False

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
        reraise=True,
    )
    def _search_page(self, page: int) -> Dict[str, Any]:
        response = self.http.post(
            f"{self.server_url}/api/search/metadata",
            json={
                "page": page,
                "size": self.page_size,
                "withExif": True,
                "order": "desc",
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    def fetch_all_assets(self) -> List[Dict[str, Any]]:
        """
        Page through every asset on the server.

        Raises:
            MediaSourceError: On any network failure, HTTP error or bad payload.
        """
        if not self.is_configured():
            raise MediaSourceError("Immich server URL and API key are not configured")

        assets: List[Dict[str, Any]] = []
        page = 1

        while page <= self.max_pages:
            try:
                payload = self._search_page(page)
            except (requests.RequestException, ValueError) as e:
                raise MediaSourceError(f"Failed to fetch page {page} from Immich: {e}") from e

            block = (payload or {}).get("assets") or {}
            items = block.get("items") or []
            assets.extend(items)
            logger.info(f"Fetched page {page}: {len(items)} assets (total: {len(assets)})")

            if not block.get("nextPage") or len(items) < self.page_size:
                break
            page += 1
        else:
            logger.warning(f"Reached page limit ({self.max_pages}), stopping fetch")

        return assets

    def fetch_all_geotagged_media(self) -> List[MediaRecord]:
        """All media with a capture time and a non-zero latitude/longitude."""
        assets = self.fetch_all_assets()

        records = []
        for asset in assets:
            record = asset_to_media_record(asset)
            if record is not None and record.coordinate is not None:
                records.append(record)

        logger.info(f"Found {len(records)} assets with GPS data out of {len(assets)} total")
        return records
