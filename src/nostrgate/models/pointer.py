"""
Tagged variant type for decoded pointers.

A pointer is the string in the subdomain label. It is either a raw 64-char
hex event id or a NIP-19 bech32 entity. Each shape gets its own frozen
dataclass carrying only the fields that shape has, and the
[Pointer][nostrgate.models.pointer.Pointer] union lists them all, so the
resolver's dispatch is an ``isinstance`` chain with an explicit fallback
rather than optional-field probing.

```text
Pointer
├── HexPointer        64-char hex event id, no relay hints
├── EventPointer      nevent: event id + relay hints (+ optional author/kind)
├── AddressPointer    naddr: author + kind + d identifier + relay hints
├── ProfilePointer    nprofile: author + relay hints (not resolvable)
└── OtherPointer      any other bech32 entity (npub, note, ...)
```

See Also:
    [decode_pointer()][nostrgate.nips.nip19.decode_pointer]: Builds these
        variants from a string.
    [Resolver][nostrgate.services.common.resolver.Resolver]: Consumes them.
"""

from __future__ import annotations

from dataclasses import dataclass

from ._validation import (
    freeze_strings,
    is_hex64,
    validate_hex64,
    validate_kind,
    validate_str_no_null,
)


@dataclass(frozen=True, slots=True)
class HexPointer:
    """Raw event id pointer. Always resolved against the default relay set."""

    event_id: str

    def __post_init__(self) -> None:
        validate_hex64(self.event_id, "event_id")
        object.__setattr__(self, "event_id", self.event_id.lower())

    @property
    def relays(self) -> tuple[str, ...]:
        return ()


@dataclass(frozen=True, slots=True)
class EventPointer:
    """``nevent`` pointer: an event id plus relay hints."""

    event_id: str
    relays: tuple[str, ...] = ()
    author: str | None = None
    kind: int | None = None

    def __post_init__(self) -> None:
        validate_hex64(self.event_id, "event_id")
        if self.author is not None:
            validate_hex64(self.author, "author")
        if self.kind is not None:
            validate_kind(self.kind, "kind")
        object.__setattr__(self, "event_id", self.event_id.lower())
        object.__setattr__(self, "relays", freeze_strings(self.relays, "relays"))


@dataclass(frozen=True, slots=True)
class AddressPointer:
    """``naddr`` pointer: the latest record for author + kind + ``d`` identifier."""

    pubkey: str
    kind: int
    identifier: str
    relays: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        validate_hex64(self.pubkey, "pubkey")
        validate_kind(self.kind, "kind")
        validate_str_no_null(self.identifier, "identifier")
        object.__setattr__(self, "pubkey", self.pubkey.lower())
        object.__setattr__(self, "relays", freeze_strings(self.relays, "relays"))


@dataclass(frozen=True, slots=True)
class ProfilePointer:
    """``nprofile`` pointer. Decodable, but a profile is not a servable record."""

    pubkey: str
    relays: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        validate_hex64(self.pubkey, "pubkey")
        object.__setattr__(self, "pubkey", self.pubkey.lower())
        object.__setattr__(self, "relays", freeze_strings(self.relays, "relays"))


@dataclass(frozen=True, slots=True)
class OtherPointer:
    """Any other bech32 entity, identified by its human-readable prefix."""

    prefix: str

    @property
    def relays(self) -> tuple[str, ...]:
        return ()


Pointer = HexPointer | EventPointer | AddressPointer | ProfilePointer | OtherPointer


def is_hex_pointer(value: str) -> bool:
    """Return True if *value* is exactly 64 hex characters.

    A full match is required: a shorter hex run inside a longer string is
    not an event id.
    """
    return is_hex64(value)
