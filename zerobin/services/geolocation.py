"""
Device location helpers shared by the submission flows.
The device locator is injected: any async callable returning a ``LatLng``.
"""
from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from zerobin.core.exceptions import ValidationFailedError
from zerobin.schemas.quest import LatLng

logger = logging.getLogger(__name__)

Locator = Callable[[], Awaitable[LatLng]]

# Dhaka
DEFAULT_LOCATION = LatLng(latitude=23.8103, longitude=90.4125)

NOT_SUPPORTED = "Geolocation is not supported by your browser."
LOCATION_DENIED = "Couldn't get location. Please allow location access."
INVALID_COORDINATES = "Please enter valid coordinates: lat [-90..90], lng [-180..180]."


async def locate(locator: Locator | None) -> LatLng:
    """Ask the device for its position; raises ``ValidationFailedError`` with a user message."""
    if locator is None:
        raise ValidationFailedError(NOT_SUPPORTED)
    try:
        return await locator()
    except (OSError, TimeoutError, ValueError) as exc:
        logger.warning("Device location lookup failed: %r", exc)
        raise ValidationFailedError(LOCATION_DENIED) from exc


def parse_coordinates(latitude: Any, longitude: Any) -> LatLng:
    """Validate free-form coordinate input (numbers or numeric strings)."""
    try:
        lat = float(latitude)
        lng = float(longitude)
    except (TypeError, ValueError) as exc:
        raise ValidationFailedError(INVALID_COORDINATES) from exc
    # NaN fails both comparisons
    if not (-90 <= lat <= 90) or not (-180 <= lng <= 180):
        raise ValidationFailedError(INVALID_COORDINATES)
    return LatLng(latitude=lat, longitude=lng)
