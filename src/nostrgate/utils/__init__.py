"""Nostr client helpers built on ``nostr_sdk``.

The utils layer depends only on [nostrgate.models][nostrgate.models] and the
dependency-free [nostrgate.core.exceptions][nostrgate.core.exceptions]
module. It wraps the ``nostr_sdk`` FFI types so the rest of the code base
handles plain [Record][nostrgate.models.record.Record] and
[RecordFilter][nostrgate.models.filter.RecordFilter] values.

Attributes:
    protocol: Client factory, relay connection, filter conversion, event to
        record conversion and single-relay fetch.

Examples:
    ```python
    from nostrgate.utils.protocol import connect_relay, fetch_record
    ```
"""
