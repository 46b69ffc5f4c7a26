"""Shared infrastructure for nostrgate services.

Attributes:
    racer: [race()][nostrgate.services.common.racer.race] fans one filter
        out to a relay set and keeps the earliest record;
        [RelayQueryClient][nostrgate.services.common.racer.RelayQueryClient]
        is the per-relay query protocol it consumes.
    resolver: [Resolver][nostrgate.services.common.resolver.Resolver] maps a
        pointer string to a relay set and a filter and returns a
        [Resolution][nostrgate.services.common.resolver.Resolution].

See Also:
    [RelayPool][nostrgate.core.pool.RelayPool]: Production query client.
    [RecordCache][nostrgate.core.cache.RecordCache]: Cache consulted by the
        resolver.
"""

from .racer import RelayQueryClient, race, select_earliest
from .resolver import NotFoundReason, Resolution, Resolver


__all__ = [
    "NotFoundReason",
    "RelayQueryClient",
    "Resolution",
    "Resolver",
    "race",
    "select_earliest",
]
