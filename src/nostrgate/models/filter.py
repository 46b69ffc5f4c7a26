"""
Relay query descriptor.

[RecordFilter][nostrgate.models.filter.RecordFilter] is the subset of a
NIP-01 ``REQ`` filter the gateway needs: lookups by id, and addressable
lookups by author + kind + ``d`` tag. It is built once per resolution and
sent identically to every relay of the relay set; the conversion into a
``nostr_sdk.Filter`` happens in
[build_filter()][nostrgate.utils.protocol.build_filter].
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ._validation import freeze_strings, validate_hex64, validate_kind


@dataclass(frozen=True, slots=True)
class RecordFilter:
    """Immutable query descriptor.

    Attributes:
        ids: Event ids to match (64-hex).
        authors: Author public keys to match (64-hex).
        kinds: Event kinds to match.
        d_tags: Values of the ``d`` tag to match (addressable records).
        limit: Maximum number of records a relay should return.

    Raises:
        ValueError: If the filter is empty, or an id/author is not 64-hex.
    """

    ids: tuple[str, ...] = ()
    authors: tuple[str, ...] = ()
    kinds: tuple[int, ...] = ()
    d_tags: tuple[str, ...] = ()
    limit: int | None = None

    def __post_init__(self) -> None:
        ids = tuple(i.lower() for i in freeze_strings(self.ids, "ids"))
        authors = tuple(a.lower() for a in freeze_strings(self.authors, "authors"))
        kinds = tuple(self.kinds)
        d_tags = freeze_strings(self.d_tags, "d_tags")

        for value in ids:
            validate_hex64(value, "ids")
        for value in authors:
            validate_hex64(value, "authors")
        for kind in kinds:
            validate_kind(kind, "kinds")
        if self.limit is not None and (isinstance(self.limit, bool) or self.limit < 1):
            raise ValueError(f"limit must be a positive int, got {self.limit!r}")
        if not (ids or authors or kinds or d_tags):
            raise ValueError("RecordFilter must constrain at least one field")

        object.__setattr__(self, "ids", ids)
        object.__setattr__(self, "authors", authors)
        object.__setattr__(self, "kinds", kinds)
        object.__setattr__(self, "d_tags", d_tags)

    @classmethod
    def by_id(cls, event_id: str) -> RecordFilter:
        """Filter matching a single record id."""
        return cls(ids=(event_id,))

    @classmethod
    def by_address(cls, pubkey: str, kind: int, identifier: str) -> RecordFilter:
        """Filter matching the latest addressable record for author + kind + ``d``."""
        return cls(authors=(pubkey,), kinds=(kind,), d_tags=(identifier,), limit=1)

    def to_dict(self) -> dict[str, Any]:
        """Return the NIP-01 JSON shape of this filter (used in log lines)."""
        data: dict[str, Any] = {}
        if self.ids:
            data["ids"] = list(self.ids)
        if self.authors:
            data["authors"] = list(self.authors)
        if self.kinds:
            data["kinds"] = list(self.kinds)
        if self.d_tags:
            data["#d"] = list(self.d_tags)
        if self.limit is not None:
            data["limit"] = self.limit
        return data
