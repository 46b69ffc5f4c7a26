"""
Pytest configuration and shared fixtures for nostrgate tests.

Provides:
- Record factory for building valid records with defaults
- FakeRelayClient, an in-memory per-relay query client for race/resolver tests
- Shared relay URLs and hex identifiers
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

import pytest

from nostrgate.models.filter import RecordFilter
from nostrgate.models.record import Record


RELAY_A = "wss://relay-a.example.com"
RELAY_B = "wss://relay-b.example.com"
RELAY_C = "wss://relay-c.example.com"
DEFAULT_RELAYS = (RELAY_A, RELAY_B, RELAY_C)

PUBKEY = "b" * 64


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)


# ============================================================================
# Records
# ============================================================================


def make_record(
    id_char: str = "a",
    *,
    kind: int = 1,
    created_at: int = 1_700_000_000,
    content: str = "",
    tags: Any = (),
    pubkey: str = PUBKEY,
) -> Record:
    """Build a valid record whose id is *id_char* repeated 64 times."""
    return Record(
        id=id_char * 64,
        pubkey=pubkey,
        kind=kind,
        created_at=created_at,
        content=content,
        tags=tags,
    )


@pytest.fixture
def record_factory() -> Callable[..., Record]:
    return make_record


# ============================================================================
# Relay Client
# ============================================================================


class FakeRelayClient:
    """In-memory relay query client.

    ``responses`` maps a relay URL to the record it returns (or ``None``), or
    to a callable receiving the filter. Unknown URLs return ``None``. Every
    call is recorded in ``calls`` as ``(url, record_filter)``.
    """

    def __init__(self, responses: Mapping[str, Any] | None = None) -> None:
        self.responses: dict[str, Any] = dict(responses or {})
        self.calls: list[tuple[str, RecordFilter]] = []

    async def query(self, url: str, record_filter: RecordFilter) -> Record | None:
        self.calls.append((url, record_filter))
        response = self.responses.get(url)
        if callable(response):
            return response(record_filter)
        return response

    @property
    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]

    async def close(self) -> None:
        pass

    def __len__(self) -> int:
        return len(self.responses)


@pytest.fixture
def fake_client_factory() -> Callable[..., FakeRelayClient]:
    """Return the FakeRelayClient class; call it with a url -> response mapping."""
    return FakeRelayClient


@pytest.fixture
def default_relays() -> tuple[str, ...]:
    return DEFAULT_RELAYS
