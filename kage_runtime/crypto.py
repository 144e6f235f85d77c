"""
Authenticated symmetric encryption of VM values.

An envelope is ``nonce || ciphertext || tag`` from AES-256-GCM, carried as
Base64 text. Every call to :func:`encrypt` draws a fresh random nonce.
"""
from __future__ import annotations
import logging
import os
from typing import Optional, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from kage.errors import CryptoError, CryptoErrorKind
from . import base64codec

logger = logging.getLogger(__name__)

KEY_SIZE = 32
NONCE_SIZE = 12
TAG_SIZE = 16


def check_key(key: bytes):
    if not isinstance(key, (bytes, bytearray)) or len(key) != KEY_SIZE:
        got = len(key) if isinstance(key, (bytes, bytearray, str)) else type(key).__name__
        raise CryptoError(
            CryptoErrorKind.INVALID_KEY_LENGTH,
            f"Key must be {KEY_SIZE} bytes (got {got})",
        )


def to_bytes(value: Union[str, bytes]) -> bytes:
    if isinstance(value, str):
        try:
            return value.encode("utf-8", "surrogateescape")
        except UnicodeEncodeError as exc:
            raise CryptoError(
                CryptoErrorKind.INVALID_PLAINTEXT,
                f"Value has no UTF-8 form at index {exc.start}",
            ) from exc
    return bytes(value)


def generate_key() -> bytes:
    return os.urandom(KEY_SIZE)


def encrypt(plaintext: Union[str, bytes], key: bytes) -> str:
    check_key(key)
    try:
        nonce = os.urandom(NONCE_SIZE)
    except OSError as exc:
        raise CryptoError(CryptoErrorKind.ENTROPY_FAILURE, f"No entropy available: {exc}") from exc
    ct = AESGCM(bytes(key)).encrypt(nonce, to_bytes(plaintext), None)
    return base64codec.encode(nonce + ct)


def decrypt(envelope: Union[str, bytes], key: bytes) -> bytes:
    check_key(key)
    if isinstance(envelope, (bytes, bytearray)):
        try:
            envelope = bytes(envelope).decode("ascii")
        except UnicodeDecodeError as exc:
            raise CryptoError(CryptoErrorKind.MALFORMED_ENVELOPE, "Envelope is not ASCII text") from exc
    try:
        blob = base64codec.decode(envelope)
    except base64codec.Base64Error as exc:
        raise CryptoError(CryptoErrorKind.MALFORMED_ENVELOPE, f"Envelope is not valid Base64: {exc}") from exc
    if len(blob) < NONCE_SIZE + TAG_SIZE:
        raise CryptoError(
            CryptoErrorKind.MALFORMED_ENVELOPE,
            f"Envelope too short ({len(blob)} bytes, need at least {NONCE_SIZE + TAG_SIZE})",
        )
    nonce, ct = blob[:NONCE_SIZE], blob[NONCE_SIZE:]
    try:
        return AESGCM(bytes(key)).decrypt(nonce, ct, None)
    except InvalidTag as exc:
        raise CryptoError(CryptoErrorKind.AUTHENTICATION_FAILURE, "Authentication failed") from exc


def try_decrypt(envelope: Union[str, bytes], key: bytes) -> Optional[bytes]:
    """Decrypt, returning None instead of raising when ``envelope`` does not open under ``key``."""
    try:
        return decrypt(envelope, key)
    except CryptoError as exc:
        logger.debug("decrypt stopped: %s", exc.kind.name)
        return None
