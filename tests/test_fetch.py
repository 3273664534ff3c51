"""Tests for the mirror status provider."""

import json
import os
import time
from datetime import datetime, timedelta, timezone

import pytest
import requests

from mirro import fetch
from mirro.errors import FetchError
from mirro.types import Protocol


def entry(url, code="DE", country="Germany", protocol="https", **fields):
    data = {
        "url": url,
        "protocol": protocol,
        "country": country,
        "country_code": code,
        "last_sync": "2024-05-20T11:00:00Z",
        "completion_pct": 1.0,
        "delay": 900,
        "duration_avg": 0.2,
        "duration_stddev": 0.05,
        "score": 0.5,
        "active": True,
    }
    data.update(fields)
    return data


PAYLOAD = {
    "last_check": "2024-05-20T12:00:00Z",
    "urls": [
        entry("https://a.de/"),
        entry("https://b.fr/", code="FR", country="France"),
        entry("http://c.de/", protocol="http"),
        entry("https://off.de/", active=False),
        entry("ftp://d.de/", protocol="ftp"),
        entry("https://ww.example/", code="", country=""),
    ],
}


class FakeResponse:
    def __init__(self, payload=None, status=200, error=None):
        self._payload = payload
        self.status_code = status
        self._error = error

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if self._error is not None:
            raise self._error
        return self._payload


class TestParseStatus:
    def test_groups_by_country_in_feed_order(self):
        status = fetch.parse_status(PAYLOAD)
        assert [c.code for c in status.countries] == ["DE", "FR", "WW"]
        germany = status.countries[0]
        assert [m.url for m in germany.mirrors] == ["https://a.de/", "http://c.de/"]
        assert germany.mirrors[1].protocol is Protocol.HTTP

    def test_worldwide_for_missing_country(self):
        status = fetch.parse_status(PAYLOAD)
        assert status.countries[-1].name == "Worldwide"

    def test_last_check_parsed(self):
        status = fetch.parse_status(PAYLOAD)
        assert status.last_check == datetime(2024, 5, 20, 12, tzinfo=timezone.utc)

    def test_country_filter_by_code_or_name(self):
        status = fetch.parse_status(PAYLOAD, countries=["fr", "GERMANY"])
        assert [c.code for c in status.countries] == ["DE", "FR"]

    def test_missing_numbers_become_none(self):
        payload = {
            "urls": [entry("https://x.jp/", code="JP", score=None, delay=None, last_sync=None)]
        }
        mirror = fetch.parse_status(payload).countries[0].mirrors[0]
        assert mirror.score is None
        assert mirror.delay is None
        assert mirror.last_sync is None

    def test_rejects_non_object(self):
        with pytest.raises(ValueError):
            fetch.parse_status(["nope"])

    @pytest.mark.parametrize("urls", [5, "https://a.de/", {"url": "https://a.de/"}])
    def test_rejects_non_list_urls(self, urls):
        with pytest.raises(ValueError):
            fetch.parse_status({"urls": urls})

    def test_timestamps_without_offset_are_utc(self):
        payload = {
            "last_check": "2024-05-20T12:00:00Z",
            "urls": [entry("https://a.de/", last_sync="2024-05-20T10:00:00")],
        }
        status = fetch.parse_status(payload)
        mirror = status.countries[0].mirrors[0]
        assert mirror.last_sync == datetime(2024, 5, 20, 10, tzinfo=timezone.utc)
        assert status.last_check - mirror.last_sync == timedelta(hours=2)

    def test_empty_payload(self):
        status = fetch.parse_status({})
        assert len(status) == 0
        assert status.last_check is None


class TestFetchPayload:
    def test_success(self, monkeypatch):
        calls = []

        def fake_get(url, timeout):
            calls.append((url, timeout))
            return FakeResponse(PAYLOAD)

        monkeypatch.setattr(fetch.requests, "get", fake_get)
        assert fetch.fetch_payload("https://example.org/status", timeout=3) == PAYLOAD
        assert calls == [("https://example.org/status", 3)]

    def test_http_error(self, monkeypatch):
        monkeypatch.setattr(fetch.requests, "get", lambda url, timeout: FakeResponse(status=503))
        with pytest.raises(FetchError) as exc_info:
            fetch.fetch_payload("https://example.org/status")
        assert exc_info.value.url == "https://example.org/status"

    def test_connection_error(self, monkeypatch):
        def boom(url, timeout):
            raise requests.ConnectionError("unreachable")

        monkeypatch.setattr(fetch.requests, "get", boom)
        with pytest.raises(FetchError, match="unreachable"):
            fetch.fetch_payload()

    def test_invalid_json(self, monkeypatch):
        monkeypatch.setattr(
            fetch.requests, "get", lambda url, timeout: FakeResponse(error=ValueError("bad"))
        )
        with pytest.raises(FetchError, match="invalid JSON"):
            fetch.fetch_payload()

    def test_unexpected_shape(self, monkeypatch):
        monkeypatch.setattr(fetch.requests, "get", lambda url, timeout: FakeResponse([1, 2]))
        with pytest.raises(FetchError):
            fetch.fetch_payload()


class TestLoadStatus:
    def test_downloads_and_caches(self, tmp_path, monkeypatch):
        monkeypatch.setattr(fetch.requests, "get", lambda url, timeout: FakeResponse(PAYLOAD))
        status = fetch.load_status(cache_dir=tmp_path)
        assert len(status) == 3
        assert json.loads((tmp_path / fetch.CACHE_FILENAME).read_text()) == PAYLOAD

    def test_fresh_cache_skips_network(self, tmp_path, monkeypatch):
        (tmp_path / fetch.CACHE_FILENAME).write_text(json.dumps(PAYLOAD))

        def no_network(url, timeout):
            raise AssertionError("network used")

        monkeypatch.setattr(fetch.requests, "get", no_network)
        status = fetch.load_status(cache_dir=tmp_path, countries=["FR"])
        assert [c.code for c in status.countries] == ["FR"]

    def test_expired_cache_refetches(self, tmp_path, monkeypatch):
        cache = tmp_path / fetch.CACHE_FILENAME
        cache.write_text(json.dumps({"urls": []}))
        old = time.time() - 3 * 3600
        os.utime(cache, (old, old))
        monkeypatch.setattr(fetch.requests, "get", lambda url, timeout: FakeResponse(PAYLOAD))
        status = fetch.load_status(ttl_hours=2, cache_dir=tmp_path)
        assert len(status) == 3

    def test_zero_ttl_disables_cache(self, tmp_path, monkeypatch):
        (tmp_path / fetch.CACHE_FILENAME).write_text(json.dumps({"urls": []}))
        monkeypatch.setattr(fetch.requests, "get", lambda url, timeout: FakeResponse(PAYLOAD))
        assert len(fetch.load_status(ttl_hours=0, cache_dir=tmp_path)) == 3

    def test_corrupt_cache_refetches(self, tmp_path, monkeypatch):
        (tmp_path / fetch.CACHE_FILENAME).write_text("{not json")
        monkeypatch.setattr(fetch.requests, "get", lambda url, timeout: FakeResponse(PAYLOAD))
        assert len(fetch.load_status(cache_dir=tmp_path)) == 3

    def test_malformed_cache_is_a_miss(self, tmp_path, monkeypatch):
        (tmp_path / fetch.CACHE_FILENAME).write_text(json.dumps({"urls": 5}))
        monkeypatch.setattr(fetch.requests, "get", lambda url, timeout: FakeResponse(PAYLOAD))
        assert len(fetch.load_status(cache_dir=tmp_path)) == 3
        assert json.loads((tmp_path / fetch.CACHE_FILENAME).read_text()) == PAYLOAD

    def test_malformed_download_is_not_cached(self, tmp_path, monkeypatch):
        monkeypatch.setattr(
            fetch.requests, "get", lambda url, timeout: FakeResponse({"urls": 5})
        )
        with pytest.raises(FetchError):
            fetch.load_status(cache_dir=tmp_path)
        assert not (tmp_path / fetch.CACHE_FILENAME).exists()

    def test_failure_propagates(self, tmp_path, monkeypatch):
        monkeypatch.setattr(fetch.requests, "get", lambda url, timeout: FakeResponse(status=500))
        with pytest.raises(FetchError):
            fetch.load_status(cache_dir=tmp_path)
        assert not (tmp_path / fetch.CACHE_FILENAME).exists()


class TestFallback:
    def test_bundled_snapshot_loads(self):
        status = fetch.load_fallback()
        codes = [c.code for c in status.countries]
        assert codes == ["AU", "DE", "FR", "US", "WW", "JP"]
        assert status.last_check is not None

    def test_country_filter(self):
        status = fetch.load_fallback(countries=["germany"])
        assert [c.code for c in status.countries] == ["DE"]
        assert status.countries[0].mirror_count == 5
