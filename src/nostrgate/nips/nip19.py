"""
NIP-19 pointer codec built on ``nostr_sdk``.

Translates subdomain labels into the tagged
[Pointer][nostrgate.models.pointer.Pointer] variants and re-encodes event
pointers for the companion-renderer redirect. Bech32 checksum and TLV
parsing are delegated to ``nostr_sdk``; this module only dispatches on the
human-readable prefix and copies fields into plain models.

Relay hints are normalized through
[normalize_relay_urls()][nostrgate.models.relay.normalize_relay_urls]:
invalid or local hints are dropped, so a pointer whose hints are all
invalid resolves against the default relay set.

Examples:
    ```python
    from nostrgate.nips.nip19 import decode_pointer, encode_event_pointer

    pointer = decode_pointer("naddr1...")
    pointer.kind, pointer.identifier, pointer.relays

    encode_event_pointer("ab" * 32, ["wss://relay.damus.io"])  # 'nevent1...'
    ```
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from nostr_sdk import EventId, Nip19Coordinate, Nip19Event, Nip19Profile, RelayUrl

from nostrgate.core.exceptions import PointerError
from nostrgate.models.pointer import (
    AddressPointer,
    EventPointer,
    HexPointer,
    OtherPointer,
    Pointer,
    ProfilePointer,
    is_hex_pointer,
)
from nostrgate.models.relay import normalize_relay_urls


NEVENT = "nevent"
NADDR = "naddr"
NPROFILE = "nprofile"


def _relay_hints(relays: Iterable[Any]) -> tuple[str, ...]:
    # nostr-sdk returns RelayUrl objects; str() yields the URL
    return normalize_relay_urls(str(relay) for relay in relays)


def _prefix(value: str) -> str:
    """Return the bech32 human-readable part (everything before the last ``1``)."""
    hrp, separator, _ = value.rpartition("1")
    if not separator or not hrp:
        raise PointerError(f"Not a bech32 pointer: {value!r}")
    return hrp.lower()


def decode_pointer(value: str) -> Pointer:
    """Decode a pointer string into its tagged variant.

    A 64-character hex string becomes a
    [HexPointer][nostrgate.models.pointer.HexPointer] without touching the
    bech32 decoder.

    Args:
        value: Hex event id or NIP-19 bech32 string.

    Returns:
        The decoded [Pointer][nostrgate.models.pointer.Pointer] variant.
        Unknown but well-formed prefixes yield an
        [OtherPointer][nostrgate.models.pointer.OtherPointer].

    Raises:
        PointerError: If the string is empty, not bech32, or fails
            checksum/TLV decoding.
    """
    if not value:
        raise PointerError("Empty pointer")
    if is_hex_pointer(value):
        return HexPointer(value)

    prefix = _prefix(value)
    try:
        if prefix == NEVENT:
            event = Nip19Event.from_bech32(value)
            author = event.author()
            kind = event.kind()
            return EventPointer(
                event_id=event.event_id().to_hex(),
                relays=_relay_hints(event.relays()),
                author=author.to_hex() if author is not None else None,
                kind=kind.as_u16() if kind is not None else None,
            )
        if prefix == NADDR:
            nip19_coordinate = Nip19Coordinate.from_bech32(value)
            coordinate = nip19_coordinate.coordinate()
            return AddressPointer(
                pubkey=coordinate.public_key().to_hex(),
                kind=coordinate.kind().as_u16(),
                identifier=coordinate.identifier(),
                relays=_relay_hints(nip19_coordinate.relays()),
            )
        if prefix == NPROFILE:
            profile = Nip19Profile.from_bech32(value)
            return ProfilePointer(
                pubkey=profile.public_key().to_hex(),
                relays=_relay_hints(profile.relays()),
            )
    except PointerError:
        raise
    except Exception as e:  # nostr-sdk FFI raises its own error types on bad bech32/TLV
        raise PointerError(f"Invalid {prefix} pointer: {e}") from e

    return OtherPointer(prefix)


def encode_event_pointer(event_id: str, relays: Sequence[str] = ()) -> str:
    """Encode an event id and relay hints as a ``nevent`` bech32 string.

    Args:
        event_id: 64-char hex event id.
        relays: Relay URLs to embed as hints.

    Returns:
        The ``nevent1...`` string.

    Raises:
        PointerError: If the id or a relay URL is rejected by ``nostr_sdk``.
    """
    try:
        nip19_event = Nip19Event(
            event_id=EventId.parse(event_id),
            relays=[RelayUrl.parse(url) for url in relays],
        )
        return nip19_event.to_bech32()
    except Exception as e:  # nostr-sdk FFI error types
        raise PointerError(f"Cannot encode event pointer for {event_id}: {e}") from e
