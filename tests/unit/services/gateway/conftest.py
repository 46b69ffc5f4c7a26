"""Shared fixtures and helpers for services.gateway test package."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from nostrgate.models.record import Record
from nostrgate.services.gateway import Gateway, GatewayConfig


ROOT_ID = "a" * 64
PAGE_ID = "c" * 64
NOTE_ID = "d" * 64
STYLE_ID = "e" * 64
BLOB_ID = "1" * 64
PLAIN_ID = "2" * 64
NUL_ID = "3" * 64
MISSING_ID = "9" * 64


@pytest.fixture
def site(record_factory) -> dict[str, Record]:
    """A small site: one root, its pages, and a record that is not a root."""
    root = record_factory(
        "a",
        kind=30051,
        content="<html>home</html>",
        tags=[
            ["d", "site"],
            ["e", PAGE_ID, "", "/foo"],
            ["e", STYLE_ID, "wss://hint.example.com", "/style.css"],
            ["e", BLOB_ID, "", "/blob"],
            ["e", PLAIN_ID, "", "/a%20b"],
            ["e", NUL_ID, "", "/nul.txt"],
            ["e", MISSING_ID, "", "/missing"],
            ["e", "not-an-id", "", "/bad"],
            ["e", "f" * 64],
        ],
    )
    records = [
        root,
        record_factory("c", content="<p>foo</p>"),
        record_factory("d", kind=1, content="just a note"),
        record_factory(
            "e",
            content="body{}",
            tags=[
                ["header", "content-type", "text/css"],
                ["header", "cache-control", "max-age=60"],
                ["header", "cache-control", "max-age=120"],
                ["header", "content-length", "1"],
                ["header", "x-broken"],
            ],
        ),
        record_factory("1", content="aGVsbG8g\nd29ybGQ="),
        record_factory("2", content="hello"),
        record_factory("3", content="a\x00b"),
    ]
    return {r.id: r for r in records}


@pytest.fixture
def relay_client(fake_client_factory, default_relays, site):
    """FakeRelayClient where only the first default relay holds the site."""

    def lookup(record_filter):
        return site.get(record_filter.ids[0]) if record_filter.ids else None

    return fake_client_factory({default_relays[0]: lookup})


@pytest.fixture
def gateway_config(default_relays) -> GatewayConfig:
    """Gateway config pointing at the fake relays; the bare domain serves the root."""
    return GatewayConfig(
        host="127.0.0.1",
        port=9998,
        default_pointer=ROOT_ID,
        default_relays=list(default_relays),
    )


@pytest.fixture
def gateway(gateway_config, relay_client) -> Gateway:
    return Gateway(gateway_config, pool=relay_client)


@pytest.fixture
def test_client(gateway: Gateway) -> TestClient:
    """FastAPI TestClient from the Gateway service."""
    return TestClient(gateway._build_app())


def host_for(pointer: str) -> dict[str, str]:
    """Request headers addressing *pointer* as a subdomain of example.com."""
    return {"host": f"{pointer}.example.com"}


@pytest.fixture
def host_headers():
    return host_for
