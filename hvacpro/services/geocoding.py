"""
Google Geocoding client.
Turns a free-form address into coordinates.
"""
from typing import Any, Dict, Optional

import httpx
import structlog

from ..config import settings
from ..errors import InternalError, NotFoundError, ValidationError


log = structlog.get_logger(__name__)


def _request(client: httpx.Client, address: str) -> Dict[str, Any]:
    response = client.get(
        settings.google_geocode_url,
        params={"address": address, "key": settings.google_maps_api_key},
    )
    response.raise_for_status()
    return response.json()


def geocode(address: str, client: Optional[httpx.Client] = None) -> Dict[str, Any]:
    """Return {"lat", "lng", "formatted_address"} for the best match.

    ``client`` lets callers supply their own transport (tests pass one built on
    ``httpx.MockTransport``).
    """
    address = (address or "").strip()
    if not address:
        raise ValidationError("Address is required", fields={"address": "Address is required"})
    if not settings.google_maps_api_key:
        raise InternalError("GOOGLE_MAPS_API_KEY is not configured")

    try:
        if client is not None:
            payload = _request(client, address)
        else:
            with httpx.Client(timeout=10.0) as own_client:
                payload = _request(own_client, address)
    except httpx.HTTPError as exc:
        log.error("geocode_request_failed", error=str(exc))
        raise InternalError("Geocoding service unavailable") from exc

    status = payload.get("status")
    results = payload.get("results") or []
    if status != "OK" or not results:
        log.info("geocode_no_match", status=status)
        raise NotFoundError("Address not found")

    best = results[0]
    location = best["geometry"]["location"]
    return {
        "lat": location["lat"],
        "lng": location["lng"],
        "formatted_address": best.get("formatted_address", address),
    }


def get_geocode_client() -> Optional[httpx.Client]:
    """Dependency hook; None means geocode() opens its own client."""
    return None
