from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional


DEFAULT_TOKEN_URL = "https://oauth2.googleapis.com/token"
DEFAULT_API_BASE = "https://sheets.googleapis.com/v4"

DEFAULT_RANGES = {
    "discounts": "Sales",
    "sessions": "Sessions",
    "late_cancellations": "Late Cancellations",
    "new_clients": "New",
}

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class SheetSource:
    spreadsheet_id: str
    range_name: str


@dataclass(frozen=True)
class SheetsSettings:
    client_id: str = ""
    client_secret: str = ""
    refresh_token: str = ""
    token_url: str = DEFAULT_TOKEN_URL
    api_base: str = DEFAULT_API_BASE
    timeout: float = 30.0
    use_fallback_data: bool = False
    sources: Dict[str, SheetSource] = field(default_factory=dict)


def _as_float(value: Optional[str], default: float) -> float:
    try:
        return float(value) if value else default
    except ValueError:
        return default


def load_settings(env: Optional[Mapping[str, str]] = None) -> SheetsSettings:
    """Build settings from ``STUDIO_*`` environment variables.

    A source is configured when ``STUDIO_SHEET_<NAME>`` holds a spreadsheet id;
    ``STUDIO_RANGE_<NAME>`` overrides the tab/range read from it.
    """
    env = os.environ if env is None else env

    sources: Dict[str, SheetSource] = {}
    for name, default_range in DEFAULT_RANGES.items():
        spreadsheet_id = (env.get(f"STUDIO_SHEET_{name.upper()}") or "").strip()
        if not spreadsheet_id:
            continue
        range_name = (env.get(f"STUDIO_RANGE_{name.upper()}") or "").strip() or default_range
        sources[name] = SheetSource(spreadsheet_id=spreadsheet_id, range_name=range_name)

    return SheetsSettings(
        client_id=env.get("STUDIO_GOOGLE_CLIENT_ID", ""),
        client_secret=env.get("STUDIO_GOOGLE_CLIENT_SECRET", ""),
        refresh_token=env.get("STUDIO_GOOGLE_REFRESH_TOKEN", ""),
        token_url=env.get("STUDIO_GOOGLE_TOKEN_URL") or DEFAULT_TOKEN_URL,
        api_base=(env.get("STUDIO_SHEETS_API_BASE") or DEFAULT_API_BASE).rstrip("/"),
        timeout=_as_float(env.get("STUDIO_HTTP_TIMEOUT"), 30.0),
        use_fallback_data=(env.get("STUDIO_USE_FALLBACK_DATA", "") or "").strip().lower() in _TRUTHY,
        sources=sources,
    )
