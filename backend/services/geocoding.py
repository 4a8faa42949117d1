"""Address to coordinates resolution through the HERE geocoding API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from core import AppError, ErrorKind, Settings

logger = logging.getLogger(__name__)

LOCATION_NOT_FOUND_MESSAGE = "Could not find location for the specified address."


@dataclass(frozen=True, slots=True)
class Coordinates:
    lat: float
    lng: float


class Geocoder(Protocol):
    async def resolve(self, address: str) -> Coordinates: ...


class HereGeocoder:
    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._client = client

    async def resolve(self, address: str) -> Coordinates:
        params = {"q": address, "apiKey": self._settings.geocoding_api_key}
        try:
            if self._client is not None:
                response = await self._client.get(self._settings.geocoding_url, params=params)
            else:
                async with httpx.AsyncClient(
                    timeout=self._settings.geocoding_timeout_seconds
                ) as client:
                    response = await client.get(self._settings.geocoding_url, params=params)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "Geocoding request failed",
                extra={"address": address},
                exc_info=exc,
            )
            raise AppError(ErrorKind.UNPROCESSABLE_ENTITY, LOCATION_NOT_FOUND_MESSAGE) from exc

        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, list) or not items or not isinstance(items[0], dict):
            raise AppError(ErrorKind.UNPROCESSABLE_ENTITY, LOCATION_NOT_FOUND_MESSAGE)

        position = items[0].get("position") or {}
        try:
            return Coordinates(lat=float(position["lat"]), lng=float(position["lng"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise AppError(ErrorKind.UNPROCESSABLE_ENTITY, LOCATION_NOT_FOUND_MESSAGE) from exc
