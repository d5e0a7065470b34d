"""
Tests for sources.py: line / CSV / JSON formats and feed precedence.
"""

import json

import pytest
import requests

from giveaway_relay import sources as sources_mod
from giveaway_relay.run_config import RelayConfig
from giveaway_relay.sources import (
    Source,
    dedupe_sources,
    load_sources,
    parse_csv,
    parse_json_list,
    parse_txt,
)


class _Resp:
    def __init__(self, text, status_code=200):
        self.text = text
        self.status_code = status_code

    @property
    def ok(self):
        return 200 <= self.status_code < 300


# ====================================================================
# Line format
# ====================================================================

class TestParseTxt:

    def test_comments_and_blanks_skipped(self):
        raw = "# watched pages\n\n   \nhttps://atlas3.io/project/alpha\n"
        assert parse_txt(raw) == [
            Source(name="https://atlas3.io/project/alpha", url="https://atlas3.io/project/alpha"),
        ]

    def test_name_pipe_url(self):
        raw = "Alpha | https://www.alphabot.app/_/alpha\r\n"
        assert parse_txt(raw) == [Source(name="Alpha", url="https://www.alphabot.app/_/alpha")]

    def test_empty_name_defaults_to_url(self):
        assert parse_txt("|https://subber.xyz/x") == [
            Source(name="https://subber.xyz/x", url="https://subber.xyz/x"),
        ]

    def test_invalid_urls_discarded(self):
        assert parse_txt("not a url\nAlpha|alphabot.app/_/alpha") == []


# ====================================================================
# CSV format
# ====================================================================

class TestParseCsv:

    def test_header_skipped(self):
        raw = "name,url\nAlpha,https://www.alphabot.app/_/alpha\n"
        assert parse_csv(raw) == [Source(name="Alpha", url="https://www.alphabot.app/_/alpha")]

    def test_header_detected_by_url_column(self):
        raw = "Project,Page URL\nBeta,https://atlas3.io/project/beta"
        assert [s.name for s in parse_csv(raw)] == ["Beta"]

    def test_no_header(self):
        raw = "Alpha,https://www.alphabot.app/_/alpha"
        assert len(parse_csv(raw)) == 1

    def test_single_field_is_url(self):
        raw = "name,url\nhttps://subber.xyz/campaign/x"
        assert parse_csv(raw) == [
            Source(name="https://subber.xyz/campaign/x", url="https://subber.xyz/campaign/x"),
        ]

    def test_extra_commas_joined_into_url(self):
        raw = "name,url\nGamma,https://example.com/a?x=1,2"
        assert parse_csv(raw)[0].url == "https://example.com/a?x=1,2"

    def test_empty(self):
        assert parse_csv("") == []


# ====================================================================
# JSON + precedence
# ====================================================================

class TestJsonAndMerge:

    def test_parse_json_list(self):
        raw = json.dumps([{"name": "A", "url": "https://a.test/"}, {"url": "https://b.test/"}, 5])
        assert parse_json_list(raw) == [
            Source(name="A", url="https://a.test/"),
            Source(name="https://b.test/", url="https://b.test/"),
        ]

    def test_dedupe_first_wins(self):
        out = dedupe_sources([
            Source("first", "https://a.test/"),
            Source("second", "https://a.test/"),
        ])
        assert out == [Source("first", "https://a.test/")]

    def test_precedence(self, tmp_path, monkeypatch):
        txt = tmp_path / "sources.txt"
        txt.write_text("Local|https://shared.test/\n", encoding="utf-8")
        js = tmp_path / "sources.json"
        js.write_text(json.dumps([{"name": "Json", "url": "https://json.test/"}]), encoding="utf-8")

        remote = {
            "https://gist.test/raw": _Resp("Remote|https://shared.test/\nRemote2|https://remote.test/"),
            "https://sheet.test/csv": _Resp("name,url\nSheet,https://sheet-src.test/"),
        }
        monkeypatch.setattr(sources_mod.requests, "get", lambda url, **kw: remote[url])

        cfg = RelayConfig(
            webhook_url="https://discord.test/hook",
            sources_file=str(txt),
            sources_json=str(js),
            sources_txt_url="https://gist.test/raw",
            sheet_csv_url="https://sheet.test/csv",
        )
        result = load_sources(cfg)
        assert [s.name for s in result] == ["Local", "Remote2", "Sheet", "Json"]

    def test_missing_files_and_failed_fetches(self, tmp_path, monkeypatch):
        def boom(url, **kw):
            raise requests.ConnectionError("offline")

        monkeypatch.setattr(sources_mod.requests, "get", boom)
        cfg = RelayConfig(
            webhook_url="https://discord.test/hook",
            sources_file=str(tmp_path / "missing.txt"),
            sources_json=str(tmp_path / "missing.json"),
            sources_txt_url="https://gist.test/raw",
        )
        assert load_sources(cfg) == []

    def test_http_error_yields_nothing(self, tmp_path, monkeypatch):
        monkeypatch.setattr(sources_mod.requests, "get", lambda url, **kw: _Resp("x", 404))
        cfg = RelayConfig(
            webhook_url="https://discord.test/hook",
            sources_file=str(tmp_path / "missing.txt"),
            sources_json=str(tmp_path / "missing.json"),
            sheet_csv_url="https://sheet.test/csv",
        )
        assert load_sources(cfg) == []

    def test_corrupt_json_ignored(self, tmp_path):
        bad = tmp_path / "sources.json"
        bad.write_text("{not json", encoding="utf-8")
        cfg = RelayConfig(
            webhook_url="https://discord.test/hook",
            sources_file=str(tmp_path / "missing.txt"),
            sources_json=str(bad),
        )
        assert load_sources(cfg) == []
