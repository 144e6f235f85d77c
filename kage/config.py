"""
Host-side settings: where the key comes from and the execution limits.

Core operations always take the key as an argument; this module only turns
environment variables, ``.env`` files and key files into those arguments.
"""
from __future__ import annotations
import binascii
import logging
import os
import string
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigError, ConfigErrorKind
from .parser import DEFAULT_MAX_DEPTH
from kage_runtime import base64codec
from kage_runtime.crypto import KEY_SIZE

logger = logging.getLogger(__name__)

ENV_KEY = "KAGE_KEY"
ENV_MAX_DEPTH = "KAGE_MAX_DEPTH"
ENV_STACK_LIMIT = "KAGE_STACK_LIMIT"
ENV_DEBUG = "KAGE_DEBUG"

TRUTHY = {"1", "true", "yes", "on"}

# Parser and compiler each spend one Python frame per nesting level
MAX_DEPTH_LIMIT = sys.getrecursionlimit() // 2


def parse_key(text: str) -> bytes:
    """Accept a key as 64 hex digits or as Base64 of 32 bytes."""
    text = text.strip()
    if len(text) == KEY_SIZE * 2 and all(c in string.hexdigits for c in text):
        return binascii.unhexlify(text)
    try:
        key = base64codec.decode(text)
    except base64codec.Base64Error:
        raise ConfigError(ConfigErrorKind.INVALID_KEY, "Key is neither hex nor Base64") from None
    if len(key) != KEY_SIZE:
        raise ConfigError(ConfigErrorKind.INVALID_KEY, f"Key must decode to {KEY_SIZE} bytes (got {len(key)})")
    return key


def load_key_file(path: Path) -> bytes:
    data = Path(path).read_bytes()
    if len(data) == KEY_SIZE:
        return data
    try:
        text = data.decode("ascii")
    except UnicodeDecodeError:
        raise ConfigError(ConfigErrorKind.INVALID_KEY, f"{path}: not a raw {KEY_SIZE}-byte key or a text key") from None
    return parse_key(text)


def _int_setting(env: Mapping[str, str], name: str) -> Optional[int]:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(ConfigErrorKind.INVALID_SETTING, f"{name} must be an integer (got {raw!r})") from None
    if value <= 0:
        raise ConfigError(ConfigErrorKind.INVALID_SETTING, f"{name} must be positive (got {value})")
    return value


@dataclass
class KageConfig:
    key: Optional[bytes] = None
    max_depth: int = DEFAULT_MAX_DEPTH
    stack_limit: Optional[int] = None
    debug: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> KageConfig:
        if environ is None:
            load_dotenv(find_dotenv(usecwd=True))
            environ = os.environ
        raw_key = environ.get(ENV_KEY)
        key = parse_key(raw_key) if raw_key else None
        max_depth = _int_setting(environ, ENV_MAX_DEPTH)
        if max_depth is not None and max_depth > MAX_DEPTH_LIMIT:
            raise ConfigError(
                ConfigErrorKind.INVALID_SETTING,
                f"{ENV_MAX_DEPTH} must be at most {MAX_DEPTH_LIMIT} (got {max_depth})",
            )
        cfg = cls(
            key=key,
            max_depth=max_depth if max_depth is not None else DEFAULT_MAX_DEPTH,
            stack_limit=_int_setting(environ, ENV_STACK_LIMIT),
            debug=environ.get(ENV_DEBUG, "").strip().lower() in TRUTHY,
        )
        logger.debug("config: key=%s max_depth=%d stack_limit=%s",
                     "set" if key else "unset", cfg.max_depth, cfg.stack_limit)
        return cfg

    def require_key(self) -> bytes:
        if self.key is None:
            raise ConfigError(ConfigErrorKind.MISSING_KEY, f"No key given; pass --key/--key-file or set {ENV_KEY}")
        return self.key
