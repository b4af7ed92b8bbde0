"""Google Sheets reader: refresh-token exchange plus one ``values`` request per grid."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence, Tuple
from urllib.parse import quote

import httpx

from studio_core.config import SheetsSettings, load_settings


logger = logging.getLogger(__name__)

Grid = Tuple[Tuple[Any, ...], ...]


class SheetFetchError(Exception):
    """Raised when a grid cannot be retrieved from the sheet source."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_text: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_text = response_text


class UnknownSourceError(SheetFetchError):
    pass


def _json_object(response: httpx.Response, what: str) -> Dict[str, Any]:
    try:
        payload = response.json()
    except ValueError as exc:
        raise SheetFetchError(
            f"{what} returned a non-JSON body",
            status_code=response.status_code,
            response_text=response.text,
        ) from exc
    if not isinstance(payload, dict):
        raise SheetFetchError(
            f"{what} returned unexpected JSON",
            status_code=response.status_code,
            response_text=response.text,
        )
    return payload


def freeze_grid(values: Optional[Sequence[Sequence[Any]]]) -> Grid:
    if not values:
        return ()
    return tuple(tuple(row or ()) for row in values)


async def fetch_access_token(client: httpx.AsyncClient, settings: SheetsSettings) -> str:
    try:
        response = await client.post(
            settings.token_url,
            data={
                "client_id": settings.client_id,
                "client_secret": settings.client_secret,
                "refresh_token": settings.refresh_token,
                "grant_type": "refresh_token",
            },
        )
    except httpx.HTTPError as exc:
        raise SheetFetchError(f"Token request failed: {exc}") from exc

    if response.status_code >= 400:
        raise SheetFetchError(
            f"Token request failed with HTTP {response.status_code}",
            status_code=response.status_code,
            response_text=response.text,
        )
    token = _json_object(response, "Token request").get("access_token")
    if not token:
        raise SheetFetchError("Token response did not include an access token", status_code=response.status_code)
    return token


async def fetch_grid(
    source_id: str,
    *,
    settings: Optional[SheetsSettings] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Grid:
    """Fetch the full cell grid for a configured source.

    Raises:
        UnknownSourceError: ``source_id`` has no spreadsheet configured.
        SheetFetchError: the token exchange or values request failed.
    """
    settings = settings or load_settings()
    source = settings.sources.get(source_id)
    if source is None:
        raise UnknownSourceError(f"No spreadsheet configured for source '{source_id}'")

    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=settings.timeout)
    try:
        token = await fetch_access_token(client, settings)
        url = f"{settings.api_base}/spreadsheets/{source.spreadsheet_id}/values/{quote(source.range_name)}"
        logger.info("Fetching sheet grid for %s (%s)", source_id, source.range_name)
        try:
            response = await client.get(url, params={"alt": "json"}, headers={"Authorization": f"Bearer {token}"})
        except httpx.HTTPError as exc:
            raise SheetFetchError(f"Failed to fetch {source_id} data: {exc}") from exc
        if response.status_code >= 400:
            raise SheetFetchError(
                f"Failed to fetch {source_id} data (HTTP {response.status_code})",
                status_code=response.status_code,
                response_text=response.text,
            )
        grid = freeze_grid(_json_object(response, f"Sheet request for {source_id}").get("values"))
    finally:
        if owns_client:
            await client.aclose()

    logger.debug("Fetched %d rows for %s", len(grid), source_id)
    return grid
