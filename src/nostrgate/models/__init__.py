"""Pure frozen dataclasses with zero I/O for records, filters, pointers and relays.

The models layer is the bottom of the dependency graph: it imports nothing
from the rest of nostrgate. Every model uses
``@dataclass(frozen=True, slots=True)`` and validates in ``__post_init__``
so invalid instances never escape the constructor.

Attributes:
    Record: Immutable Nostr record (id, pubkey, kind, created_at, content,
        tags, sig).
    RecordFilter: Query descriptor sent identically to every relay.
    Pointer: Union of the decoded pointer variants
        ([HexPointer][nostrgate.models.pointer.HexPointer],
        [EventPointer][nostrgate.models.pointer.EventPointer],
        [AddressPointer][nostrgate.models.pointer.AddressPointer],
        [ProfilePointer][nostrgate.models.pointer.ProfilePointer],
        [OtherPointer][nostrgate.models.pointer.OtherPointer]).
    Relay: Validated relay URL with network detection.
    PageKind: Event kinds of the static-site scheme.
"""

from .constants import EVENT_KIND_MAX, NetworkType, PageKind, ServiceName
from .filter import RecordFilter
from .pointer import (
    AddressPointer,
    EventPointer,
    HexPointer,
    OtherPointer,
    Pointer,
    ProfilePointer,
    is_hex_pointer,
)
from .record import Record, Tag
from .relay import Relay, normalize_relay_urls


__all__ = [
    "EVENT_KIND_MAX",
    "AddressPointer",
    "EventPointer",
    "HexPointer",
    "NetworkType",
    "OtherPointer",
    "PageKind",
    "Pointer",
    "ProfilePointer",
    "Record",
    "RecordFilter",
    "Relay",
    "ServiceName",
    "Tag",
    "is_hex_pointer",
    "normalize_relay_urls",
]
