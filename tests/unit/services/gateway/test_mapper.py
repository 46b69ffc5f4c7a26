"""Unit tests for services.gateway.mapper module.

Tests:
- extract_subdomains() / extract_pointer() host parsing
- request_path() raw path handling
- find_route() tag matching
- decode_content() forgiving base64
- render_record() media types and header tags
- redirect_url() renderer link
"""

from unittest.mock import MagicMock, patch

import pytest

from nostrgate.services.gateway.mapper import (
    EVENT_HEADER,
    PUBKEY_HEADER,
    decode_content,
    extract_pointer,
    extract_subdomains,
    find_route,
    redirect_url,
    render_record,
    request_path,
)


DEFAULT = "default-pointer"


# ============================================================================
# Host Parsing
# ============================================================================


class TestExtractSubdomains:
    """extract_subdomains()."""

    @pytest.mark.parametrize(
        ("host", "offset", "expected"),
        [
            ("b.a.example.com", 2, ["a", "b"]),
            ("a.example.com:8080", 2, ["a"]),
            ("example.com", 2, []),
            ("abc.localhost:3000", 1, ["abc"]),
            ("ABC.Example.COM", 2, ["abc"]),
            ("a.example.com", 0, ["com", "example", "a"]),
            ("", 2, []),
        ],
    )
    def test_labels(self, host, offset, expected):
        assert extract_subdomains(host, offset) == expected

    @pytest.mark.parametrize("host", ["127.0.0.1", "127.0.0.1:3000", "[::1]:3000", "::1"])
    def test_ip_addresses_have_no_subdomains(self, host):
        assert extract_subdomains(host, 0) == []


class TestExtractPointer:
    """extract_pointer()."""

    def test_first_subdomain(self):
        assert extract_pointer("naddr1xyz.example.com", 2, DEFAULT) == "naddr1xyz"

    def test_nearest_label_wins(self):
        assert extract_pointer("www.naddr1xyz.example.com", 2, DEFAULT) == "naddr1xyz"

    def test_default_when_bare(self):
        assert extract_pointer("example.com", 2, DEFAULT) == DEFAULT

    def test_default_for_ip(self):
        assert extract_pointer("10.0.0.1:3000", 2, DEFAULT) == DEFAULT

    def test_default_for_empty_label(self):
        assert extract_pointer(".example.com", 2, DEFAULT) == DEFAULT


# ============================================================================
# Request Path
# ============================================================================


class TestRequestPath:
    """request_path()."""

    def test_raw_path_preferred(self):
        request = MagicMock()
        request.scope = {"raw_path": b"/a%20b?x=1"}
        assert request_path(request) == "/a%20b"

    def test_falls_back_to_url_path(self):
        request = MagicMock()
        request.scope = {}
        request.url.path = "/decoded path"
        assert request_path(request) == "/decoded path"


# ============================================================================
# Routing
# ============================================================================


class TestFindRoute:
    """find_route()."""

    def test_match(self, record_factory):
        root = record_factory(tags=[["e", "1" * 64, "", "/a"], ["e", "2" * 64, "", "/b"]])
        assert find_route(root, "/b")[1] == "2" * 64

    def test_first_match_wins(self, record_factory):
        root = record_factory(tags=[["e", "1" * 64, "", "/a"], ["e", "2" * 64, "", "/a"]])
        assert find_route(root, "/a")[1] == "1" * 64

    def test_short_tags_ignored(self, record_factory):
        root = record_factory(tags=[["e", "1" * 64], ["e", "2" * 64, ""]])
        assert find_route(root, "/a") is None

    def test_other_tag_names_ignored(self, record_factory):
        root = record_factory(tags=[["p", "1" * 64, "", "/a"]])
        assert find_route(root, "/a") is None

    def test_exact_match_only(self, record_factory):
        root = record_factory(tags=[["e", "1" * 64, "", "/a/"]])
        assert find_route(root, "/a") is None


# ============================================================================
# Content Decoding
# ============================================================================


class TestDecodeContent:
    """decode_content()."""

    @pytest.mark.parametrize(
        ("content", "expected"),
        [
            ("aGVsbG8=", b"hello"),
            ("aGVsbG8", b"hello"),
            ("aGVs\nbG8=", b"hello"),
            (" aGVsbG8= ", b"hello"),
            ("", b""),
        ],
    )
    def test_base64(self, content, expected):
        assert decode_content(content) == expected

    @pytest.mark.parametrize(
        "content",
        ["hello", "<html></html>", "a=b", "aGVsbG8===", "é"],
    )
    def test_text_fallback(self, content):
        assert decode_content(content) == content


# ============================================================================
# Rendering
# ============================================================================


class TestRenderRecord:
    """render_record()."""

    def test_identity_headers(self, record_factory):
        record = record_factory("c", content="hi there")
        response = render_record(record)
        assert response.headers[EVENT_HEADER] == "c" * 64
        assert response.headers[PUBKEY_HEADER] == record.pubkey

    @pytest.mark.parametrize(
        ("content", "media_type"),
        [
            ("  <!doctype html>", "text/html"),
            ("plain text!", "text/plain"),
            ("aGVsbG8=", "application/octet-stream"),
        ],
    )
    def test_media_type(self, record_factory, content, media_type):
        response = render_record(record_factory(content=content))
        assert response.headers["content-type"].startswith(media_type)

    def test_header_tag_overrides_content_type(self, record_factory):
        record = record_factory(
            content="aGVsbG8=", tags=[["header", "Content-Type", "image/png"]]
        )
        response = render_record(record)
        assert response.body == b"hello"
        assert response.headers["content-type"] == "image/png"

    def test_last_header_tag_wins(self, record_factory):
        record = record_factory(tags=[["header", "x-a", "1"], ["header", "x-a", "2"]])
        assert render_record(record).headers.getlist("x-a") == ["2"]

    @pytest.mark.parametrize(
        "tag",
        [
            ["header", "content-length", "1"],
            ["header", "Transfer-Encoding", "chunked"],
            ["header", "x-bad", "a\r\nb"],
            ["header", "bad name", "v"],
            ["header", "x-uni", "☃"],
            ["header", "", "v"],
            ["header", "x-a"],
            ["header", "x-a", "1", "extra"],
        ],
    )
    def test_invalid_header_tags_skipped(self, record_factory, tag):
        response = render_record(record_factory(content="hi!", tags=[tag]))
        assert response.headers["content-length"] == "3"
        assert "x-a" not in response.headers
        assert "x-bad" not in response.headers
        assert "x-uni" not in response.headers
        assert "transfer-encoding" not in response.headers


# ============================================================================
# Redirect
# ============================================================================


class TestRedirectUrl:
    """redirect_url()."""

    def test_appends_nevent(self):
        with patch(
            "nostrgate.services.gateway.mapper.encode_event_pointer", return_value="nevent1abc"
        ) as encode:
            url = redirect_url("https://nostrapp.link/#", "d" * 64, ("wss://nos.lol",))

        assert url == "https://nostrapp.link/#nevent1abc"
        encode.assert_called_once_with("d" * 64, ("wss://nos.lol",))
