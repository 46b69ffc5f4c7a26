"""Nostr Implementation Possibilities -- protocol-specific encode/decode logic.

Attributes:
    decode_pointer: NIP-19 / hex pointer decoding into the tagged
        [Pointer][nostrgate.models.pointer.Pointer] variants.
    encode_event_pointer: ``nevent`` encoding used for renderer redirects.

See Also:
    [nostrgate.models.pointer][]: The variant types produced here.
"""

from nostrgate.nips.nip19 import decode_pointer, encode_event_pointer


__all__ = [
    "decode_pointer",
    "encode_event_pointer",
]
