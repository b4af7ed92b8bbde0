"""Tests for the Google Sheets grid fetcher using a mocked transport."""

import asyncio

import httpx
import pytest

from studio_core.config import SheetSource, SheetsSettings, load_settings
from studio_core.fetch import SheetFetchError, UnknownSourceError, fetch_grid, freeze_grid


SETTINGS = SheetsSettings(
    client_id="cid",
    client_secret="secret",
    refresh_token="refresh",
    token_url="https://auth.test/token",
    api_base="https://sheets.test/v4",
    sources={"late_cancellations": SheetSource("sheet123", "Late Cancellations")},
)


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _run(coro):
    return asyncio.run(coro)


class TestFetchGrid:
    def test_token_exchange_then_values(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.host == "auth.test":
                return httpx.Response(200, json={"access_token": "tok"})
            return httpx.Response(200, json={"values": [["Location", "Jun-2025"], ["A", "1"]]})

        async def go():
            async with _client(handler) as client:
                return await fetch_grid("late_cancellations", settings=SETTINGS, client=client)

        grid = _run(go())

        assert grid == (("Location", "Jun-2025"), ("A", "1"))
        token_req, values_req = seen
        assert b"grant_type=refresh_token" in token_req.content
        assert values_req.headers["Authorization"] == "Bearer tok"
        assert values_req.url.path == "/v4/spreadsheets/sheet123/values/Late Cancellations"
        assert values_req.url.params["alt"] == "json"

    def test_missing_values_is_empty_grid(self):
        def handler(request):
            if request.url.host == "auth.test":
                return httpx.Response(200, json={"access_token": "tok"})
            return httpx.Response(200, json={"range": "Late Cancellations"})

        async def go():
            async with _client(handler) as client:
                return await fetch_grid("late_cancellations", settings=SETTINGS, client=client)

        assert _run(go()) == ()

    def test_non_success_status_raises(self):
        def handler(request):
            if request.url.host == "auth.test":
                return httpx.Response(200, json={"access_token": "tok"})
            return httpx.Response(403, text="forbidden")

        async def go():
            async with _client(handler) as client:
                return await fetch_grid("late_cancellations", settings=SETTINGS, client=client)

        with pytest.raises(SheetFetchError) as excinfo:
            _run(go())
        assert excinfo.value.status_code == 403
        assert excinfo.value.response_text == "forbidden"

    def test_token_failure_raises(self):
        def handler(request):
            return httpx.Response(400, json={"error": "invalid_grant"})

        async def go():
            async with _client(handler) as client:
                return await fetch_grid("late_cancellations", settings=SETTINGS, client=client)

        with pytest.raises(SheetFetchError):
            _run(go())

    def test_transport_error_is_wrapped(self):
        def handler(request):
            raise httpx.ConnectError("no route", request=request)

        async def go():
            async with _client(handler) as client:
                return await fetch_grid("late_cancellations", settings=SETTINGS, client=client)

        with pytest.raises(SheetFetchError):
            _run(go())

    @pytest.mark.parametrize(
        "token_body, values_body",
        [
            ({"json": {"access_token": "tok"}}, {"text": "<html>proxy login</html>"}),
            ({"json": {"access_token": "tok"}}, {"json": [["Location"]]}),
            ({"text": "<html>proxy login</html>"}, {"json": {"values": []}}),
        ],
    )
    def test_unreadable_success_body_raises(self, token_body, values_body):
        def handler(request):
            if request.url.host == "auth.test":
                return httpx.Response(200, **token_body)
            return httpx.Response(200, **values_body)

        async def go():
            async with _client(handler) as client:
                return await fetch_grid("late_cancellations", settings=SETTINGS, client=client)

        with pytest.raises(SheetFetchError) as excinfo:
            _run(go())
        assert excinfo.value.status_code == 200

    def test_unknown_source(self):
        with pytest.raises(UnknownSourceError):
            _run(fetch_grid("sessions", settings=SETTINGS))


class TestHelpers:
    def test_freeze_grid(self):
        assert freeze_grid(None) == ()
        assert freeze_grid([["a"], [], None]) == (("a",), (), ())

    def test_load_settings_from_env(self):
        settings = load_settings(
            {
                "STUDIO_SHEET_NEW_CLIENTS": "abc",
                "STUDIO_RANGE_NEW_CLIENTS": "New Clients",
                "STUDIO_SHEET_DISCOUNTS": "def",
                "STUDIO_USE_FALLBACK_DATA": "true",
                "STUDIO_HTTP_TIMEOUT": "nope",
            }
        )

        assert settings.sources["new_clients"] == SheetSource("abc", "New Clients")
        assert settings.sources["discounts"] == SheetSource("def", "Sales")
        assert "sessions" not in settings.sources
        assert settings.use_fallback_data is True
        assert settings.timeout == 30.0
