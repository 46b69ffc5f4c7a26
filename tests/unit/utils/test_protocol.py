"""
Unit tests for utils.protocol module.

Tests:
- create_client() - Client factory with optional proxy
- connect_relay() - Overlay proxy requirement, success, timeout and refusal
- build_filter() - RecordFilter to nostr_sdk.Filter conversion
- record_from_event() / fetch_record() - newest match wins, bad events skipped
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from nostr_sdk import EventBuilder, Filter, Keys, Kind

from nostrgate.core.exceptions import ConnectivityError, RelayTimeoutError
from nostrgate.models.filter import RecordFilter
from nostrgate.models.relay import Relay
from nostrgate.utils.protocol import (
    build_filter,
    connect_relay,
    create_client,
    fetch_record,
    record_from_event,
)


ID = "a" * 64
PUBKEY = "b" * 64


def _event(id_char="a", *, created_at=100, content="", tags=()):
    """Build a MagicMock shaped like a nostr_sdk.Event."""
    event = MagicMock()
    event.id.return_value.to_hex.return_value = id_char * 64
    event.author.return_value.to_hex.return_value = PUBKEY
    event.kind.return_value.as_u16.return_value = 1
    event.created_at.return_value.as_secs.return_value = created_at
    event.content.return_value = content
    tag_mocks = []
    for tag in tags:
        tag_mock = MagicMock()
        tag_mock.as_vec.return_value = list(tag)
        tag_mocks.append(tag_mock)
    event.tags.return_value.to_vec.return_value = tag_mocks
    event.signature.return_value = "ff"
    return event


def _client_returning(*events):
    output = MagicMock()
    output.to_vec.return_value = list(events)
    client = MagicMock()
    client.fetch_events = AsyncMock(return_value=output)
    return client


# =============================================================================
# create_client() Tests
# =============================================================================


class TestCreateClient:
    """Tests for create_client()."""

    async def test_without_proxy(self) -> None:
        assert await create_client() is not None

    async def test_with_proxy_ip(self) -> None:
        with patch("asyncio.to_thread", new_callable=AsyncMock) as mock_to_thread:
            client = await create_client(proxy_url="socks5://127.0.0.1:9050")
        assert client is not None
        mock_to_thread.assert_not_awaited()

    async def test_proxy_hostname_resolved(self) -> None:
        with patch("asyncio.to_thread", new_callable=AsyncMock, return_value="127.0.0.1") as m:
            client = await create_client(proxy_url="socks5://tor:9050")
        assert client is not None
        m.assert_awaited_once()


# =============================================================================
# connect_relay() Tests
# =============================================================================


class TestConnectRelay:
    """Tests for connect_relay()."""

    async def test_overlay_requires_proxy(self) -> None:
        with pytest.raises(ConnectivityError, match="proxy_url required"):
            await connect_relay(Relay("wss://example.onion"))

    async def _connect(self, *, success: bool, failure: str = ""):
        mock_url = MagicMock()
        mock_output = MagicMock()
        mock_output.success = [mock_url] if success else []
        mock_output.failed = {} if success else {mock_url: failure}

        mock_client = AsyncMock()
        mock_client.try_connect = AsyncMock(return_value=mock_output)

        with (
            patch(
                "nostrgate.utils.protocol.create_client",
                new_callable=AsyncMock,
                return_value=mock_client,
            ),
            patch("nostrgate.utils.protocol.RelayUrl") as mock_relay_url,
        ):
            mock_relay_url.parse.return_value = mock_url
            result = await connect_relay(Relay("wss://relay.example.com"), timeout=3.0)
        return mock_client, result

    async def test_success(self) -> None:
        mock_client, result = await self._connect(success=True)
        assert result is mock_client
        mock_client.shutdown.assert_not_awaited()

    async def test_timeout(self) -> None:
        with pytest.raises(RelayTimeoutError, match="timeout"):
            await self._connect(success=False, failure="Timeout while connecting")

    async def test_refused(self) -> None:
        with pytest.raises(ConnectivityError, match="Connection failed"):
            await self._connect(success=False, failure="connection refused")

    async def test_timeout_is_connectivity_error(self) -> None:
        assert issubclass(RelayTimeoutError, ConnectivityError)


# =============================================================================
# build_filter() Tests
# =============================================================================


class TestBuildFilter:
    """Tests for build_filter()."""

    def test_by_id(self) -> None:
        f = build_filter(RecordFilter.by_id(ID))
        assert isinstance(f, Filter)

    def test_by_address(self) -> None:
        record_filter = RecordFilter.by_address(PUBKEY, 30051, "site")
        f = build_filter(record_filter)
        assert json.loads(f.as_json()) == record_filter.to_dict()

    def test_calls_builder_methods(self) -> None:
        with (
            patch("nostrgate.utils.protocol.Filter") as mock_filter,
            patch("nostrgate.utils.protocol.PublicKey"),
            patch("nostrgate.utils.protocol.Kind"),
        ):
            chain = mock_filter.return_value
            chain.authors.return_value = chain
            chain.kinds.return_value = chain
            chain.custom_tag.return_value = chain
            chain.limit.return_value = chain

            build_filter(RecordFilter.by_address(PUBKEY, 30051, "site"))

        chain.ids.assert_not_called()
        chain.authors.assert_called_once()
        chain.kinds.assert_called_once()
        assert chain.custom_tag.call_args.args[1] == "site"
        chain.limit.assert_called_once_with(1)


# =============================================================================
# record_from_event() / fetch_record() Tests
# =============================================================================


class TestRecordFromEvent:
    """Tests for record_from_event()."""

    def test_fields(self) -> None:
        record = record_from_event(
            _event(created_at=5, content="hi", tags=[["e", "x", "", "/about"]])
        )
        assert record.id == ID
        assert record.pubkey == PUBKEY
        assert record.created_at == 5
        assert record.content == "hi"
        assert record.tags == (("e", "x", "", "/about"),)
        assert record.sig == "ff"

    def test_invalid_id(self) -> None:
        with pytest.raises(ValueError, match="id"):
            record_from_event(_event("g"))

    def test_null_bytes_in_content_kept(self) -> None:
        assert record_from_event(_event(content="a\x00b")).content == "a\x00b"

    def test_signed_event(self) -> None:
        keys = Keys.generate()
        event = EventBuilder(Kind(30051), "a\x00b").sign_with_keys(keys)
        record = record_from_event(event)
        assert record.kind == 30051
        assert record.pubkey == keys.public_key().to_hex()
        assert record.content == "a\x00b"


class TestFetchRecord:
    """Tests for fetch_record()."""

    async def test_no_events(self) -> None:
        assert await fetch_record(_client_returning(), RecordFilter.by_id(ID)) is None

    async def test_newest_wins(self) -> None:
        client = _client_returning(_event("a", created_at=10), _event("c", created_at=30))
        record = await fetch_record(client, RecordFilter.by_id(ID))
        assert record.id == "c" * 64

    async def test_invalid_event_skipped(self) -> None:
        client = _client_returning(_event("g", created_at=99), _event("c", created_at=1))
        record = await fetch_record(client, RecordFilter.by_id(ID))
        assert record.id == "c" * 64

    async def test_passes_timeout(self) -> None:
        client = _client_returning()
        await fetch_record(client, RecordFilter.by_id(ID), timeout=2.5)
        _, timeout = client.fetch_events.call_args.args
        assert timeout.total_seconds() == 2.5
