"""
Immutable Nostr record as served by the gateway.

A [Record][nostrgate.models.record.Record] is the plain-data form of a
Nostr event once it has left the relay layer: hex id and pubkey, integer
kind and timestamp, the raw content string and the ordered tag list. The
conversion from ``nostr_sdk.Event`` lives in
[record_from_event()][nostrgate.utils.protocol.record_from_event] so this
module stays free of I/O and FFI types.

See Also:
    [RecordCache][nostrgate.core.cache.RecordCache]: Stores records by id
        and by pointer.
    [nostrgate.services.gateway.mapper][]: Turns records into HTTP
        responses.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from ._validation import (
    validate_hex64,
    validate_instance,
    validate_kind,
    validate_timestamp,
)


Tag = tuple[str, ...]


@dataclass(frozen=True, slots=True)
class Record:
    """Immutable Nostr record.

    Tags are stored as a tuple of tuples so the instance is hashable and can
    be shared between cache entries and concurrent requests without copying.
    The signature is carried along but never verified.

    Attributes:
        id: Event id, 64 hex characters.
        pubkey: Author public key, 64 hex characters.
        kind: Integer event kind.
        created_at: Unix timestamp in seconds.
        content: Raw content string, possibly base64.
        tags: Ordered tags, each an ordered tuple of strings.
        sig: Schnorr signature (opaque).

    Raises:
        TypeError: If a field has the wrong type.
        ValueError: If id/pubkey are not 64-hex or a value is out of range.

    Examples:
        ```python
        record = Record(
            id="ab" * 32,
            pubkey="cd" * 32,
            kind=30051,
            created_at=1700000000,
            content="PGgxPkhpPC9oMT4=",
            tags=[["e", "ef" * 32, "", "/about"]],
        )
        record.tags[0]  # ('e', 'efef...', '', '/about')
        ```
    """

    id: str
    pubkey: str
    kind: int
    created_at: int
    content: str = ""
    tags: tuple[Tag, ...] = ()
    sig: str = field(default="", repr=False, compare=False)

    def __post_init__(self) -> None:
        validate_hex64(self.id, "id")
        validate_hex64(self.pubkey, "pubkey")
        validate_kind(self.kind, "kind")
        validate_timestamp(self.created_at, "created_at")
        validate_instance(self.content, str, "content")
        if not isinstance(self.sig, str):
            raise TypeError(f"sig must be a str, got {type(self.sig).__name__}")

        tags: list[Tag] = []
        for tag in self.tags:
            if isinstance(tag, str):
                raise TypeError("each tag must be a sequence of str, not a str")
            frozen = tuple(tag)
            for value in frozen:
                if not isinstance(value, str):
                    raise TypeError(f"tag values must be str, got {type(value).__name__}")
            tags.append(frozen)

        # Normalize hex case so cache keys and headers are stable
        object.__setattr__(self, "id", self.id.lower())
        object.__setattr__(self, "pubkey", self.pubkey.lower())
        object.__setattr__(self, "tags", tuple(tags))

    def iter_tags(self, name: str) -> Iterator[Tag]:
        """Yield every tag whose first element equals *name*, in order."""
        for tag in self.tags:
            if tag and tag[0] == name:
                yield tag

