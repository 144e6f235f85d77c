"""
Strict Base64 codec used for the text form of cipher envelopes.

Encoding is plain RFC 4648 with ``=`` padding. Decoding is stricter than
``base64.b64decode``: surrounding ASCII whitespace is trimmed, the rest must
be a whole number of quartets, and padding may only close the final quartet.
"""
from __future__ import annotations
import base64
import binascii
import string

ALPHABET = frozenset(string.ascii_uppercase + string.ascii_lowercase + string.digits + "+/")
PAD = "="
TRIM = " \t\r\n"


class Base64Error(ValueError):
    pass


def encode(data: bytes) -> str:
    return base64.b64encode(bytes(data)).decode("ascii")


def decode(text: str) -> bytes:
    trimmed = text.strip(TRIM)
    if not trimmed:
        return b""
    if len(trimmed) % 4 != 0:
        raise Base64Error(f"Length {len(trimmed)} is not a multiple of 4")

    padding = len(trimmed) - len(trimmed.rstrip(PAD))
    if padding > 2:
        raise Base64Error("Too much padding")
    data_part = trimmed[:len(trimmed) - padding]
    for pos, ch in enumerate(data_part):
        if ch not in ALPHABET:
            if ch == PAD:
                raise Base64Error(f"Padding before end of input at position {pos}")
            raise Base64Error(f"Invalid character {ch!r} at position {pos}")

    try:
        return base64.b64decode(trimmed, validate=True)
    except binascii.Error as exc:
        raise Base64Error(str(exc)) from exc
