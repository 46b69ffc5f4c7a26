"""
Pointer resolution: from subdomain label to record.

[Resolver][nostrgate.services.common.resolver.Resolver] decides, for each
pointer shape, which relays to ask and what to ask them, then delegates the
fan-out to [race()][nostrgate.services.common.racer.race] and remembers the
answer in the [RecordCache][nostrgate.core.cache.RecordCache].

```text
pointer string
  ├── 64 hex chars  -> ids=[id]                              @ default relays
  ├── nevent        -> ids=[event_id]                        @ hints or defaults
  ├── naddr         -> authors=[pubkey] kinds=[kind] #d=[id] @ hints or defaults
  ├── nprofile      -> not found (UNSUPPORTED_POINTER)
  ├── other bech32  -> not found (UNSUPPORTED_POINTER)
  └── undecodable   -> not found (UNDECODABLE)
```

Not-found outcomes are values, not exceptions: the gateway maps every
[NotFoundReason][nostrgate.services.common.resolver.NotFoundReason] to a 404.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from nostrgate.core.exceptions import PointerError
from nostrgate.core.logger import Logger
from nostrgate.models.filter import RecordFilter
from nostrgate.models.pointer import (
    AddressPointer,
    EventPointer,
    HexPointer,
    Pointer,
    is_hex_pointer,
)
from nostrgate.nips.nip19 import decode_pointer

from .racer import RelayQueryClient, race


if TYPE_CHECKING:
    from nostrgate.core.cache import RecordCache
    from nostrgate.models.record import Record


class NotFoundReason(StrEnum):
    """Why a lookup produced no record."""

    UNDECODABLE = "undecodable"
    UNSUPPORTED_POINTER = "unsupported_pointer"
    NO_MATCH = "no_match"
    NO_ROUTE = "no_route"
    MISSING_SUBRECORD = "missing_subrecord"


@dataclass(frozen=True, slots=True)
class Resolution:
    """Outcome of resolving one pointer.

    Attributes:
        pointer: The pointer string as received.
        relays: Relay set the pointer resolves against (hints or defaults).
        record: The resolved record, or ``None``.
        reason: Why ``record`` is ``None``; ``None`` when found.
    """

    pointer: str
    relays: tuple[str, ...]
    record: Record | None = None
    reason: NotFoundReason | None = None

    @property
    def found(self) -> bool:
        return self.record is not None


class Resolver:
    """Resolve pointer strings to records through a relay race and a cache.

    Args:
        client: Per-relay query client, normally a
            [RelayPool][nostrgate.core.pool.RelayPool].
        cache: Shared [RecordCache][nostrgate.core.cache.RecordCache].
        default_relays: Relay set used when a pointer carries no hints.
        decoder: NIP-19 decoder, replaceable in tests.
    """

    def __init__(
        self,
        client: RelayQueryClient,
        cache: RecordCache,
        default_relays: Sequence[str],
        *,
        decoder: Callable[[str], Pointer] = decode_pointer,
    ) -> None:
        if not default_relays:
            raise ValueError("default_relays must not be empty")
        self._client = client
        self._cache = cache
        self._default_relays = tuple(default_relays)
        self._decoder = decoder
        self._logger = Logger("resolver")

    @property
    def default_relays(self) -> tuple[str, ...]:
        return self._default_relays

    def decode(self, pointer: str) -> Pointer:
        """Decode *pointer*; raw hex ids never reach the NIP-19 decoder.

        Raises:
            PointerError: If the pointer cannot be decoded.
        """
        if is_hex_pointer(pointer):
            return HexPointer(pointer)
        return self._decoder(pointer)

    def relays_for(self, decoded: Pointer) -> tuple[str, ...]:
        """Return the pointer's relay hints, or the default set when it has none."""
        return decoded.relays or self._default_relays

    async def resolve(self, pointer: str) -> Resolution:
        """Resolve a pointer string to a record.

        A successful result is stored under the pointer string, and a second
        call for the same pointer is answered from the cache without any
        relay traffic.
        """
        try:
            decoded = self.decode(pointer)
        except PointerError as e:
            self._logger.info("pointer_undecodable", pointer=pointer, error=str(e))
            return Resolution(pointer, self._default_relays, reason=NotFoundReason.UNDECODABLE)

        relays = self.relays_for(decoded)

        cached = self._cache.get_by_pointer(pointer)
        if cached is not None:
            return Resolution(pointer, relays, cached)

        if isinstance(decoded, (HexPointer, EventPointer)):
            record_filter = RecordFilter.by_id(decoded.event_id)
        elif isinstance(decoded, AddressPointer):
            record_filter = RecordFilter.by_address(
                decoded.pubkey, decoded.kind, decoded.identifier
            )
        else:
            self._logger.info(
                "pointer_unsupported", pointer=pointer, variant=type(decoded).__name__
            )
            return Resolution(pointer, relays, reason=NotFoundReason.UNSUPPORTED_POINTER)

        record = await race(self._client, record_filter, relays)
        if record is None:
            self._logger.info(
                "pointer_not_found",
                pointer=pointer,
                relays=len(relays),
                filter=record_filter.to_dict(),
            )
            return Resolution(pointer, relays, reason=NotFoundReason.NO_MATCH)

        stored = self._cache.set_by_pointer(pointer, record)
        self._logger.debug("pointer_resolved", pointer=pointer, record=stored.id, kind=stored.kind)
        return Resolution(pointer, relays, stored)

    async def fetch_by_id(self, event_id: str, relays: Sequence[str]) -> Record | None:
        """Return the record with *event_id*, from the cache or a race over *relays*."""
        cached = self._cache.get_by_id(event_id)
        if cached is not None:
            return cached

        endpoints = tuple(relays) or self._default_relays
        record = await race(self._client, RecordFilter.by_id(event_id), endpoints)
        if record is None:
            return None
        return self._cache.set_by_id(record)
