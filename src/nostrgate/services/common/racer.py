"""Relay query racing.

The same filter is sent to every relay of a set at once and the answers are
reduced to a single record: absent answers are dropped and the record with
the smallest ``created_at`` wins. For a plain id query every relay that
answers returns the same record, so the choice only matters for address
queries, where relays may hold different versions.

The race waits for every member. A dead relay is bounded only by the pool's
``connect_timeout`` and ``query_timeout``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Protocol


if TYPE_CHECKING:
    from nostrgate.models.filter import RecordFilter
    from nostrgate.models.record import Record


logger = logging.getLogger(__name__)


class RelayQueryClient(Protocol):
    """Anything that can run one filter against one relay URL.

    [RelayPool][nostrgate.core.pool.RelayPool] is the production
    implementation; ``query`` must return ``None`` instead of raising on
    upstream failures.
    """

    async def query(self, url: str, record_filter: RecordFilter) -> Record | None: ...


def select_earliest(results: Iterable[Record | None]) -> Record | None:
    """Return the record with the smallest ``created_at``, ignoring ``None``.

    Ties keep the first record in iteration order.
    """
    return min((r for r in results if r is not None), key=lambda r: r.created_at, default=None)


async def race(
    client: RelayQueryClient,
    record_filter: RecordFilter,
    endpoints: Sequence[str],
) -> Record | None:
    """Query every endpoint concurrently and return the earliest record.

    Args:
        client: Per-relay query client.
        record_filter: Filter sent identically to every endpoint.
        endpoints: Relay URLs; order decides ties.

    Returns:
        The winning record, or ``None`` when no endpoint returned a match.
    """
    if not endpoints:
        return None

    results = await asyncio.gather(*(client.query(url, record_filter) for url in endpoints))
    winner = select_earliest(results)

    logger.debug(
        "race_completed endpoints=%d answered=%d winner=%s",
        len(endpoints),
        sum(r is not None for r in results),
        winner.id if winner is not None else None,
    )
    return winner
