import argparse
import logging
import sys
from pathlib import Path
from .bytecode import disassemble
from .config import KageConfig, parse_key, load_key_file
from .errors import KageError, ConfigError, ConfigErrorKind
from .pipeline import compile_source, run_all, full_decrypt
from kage_runtime import base64codec, crypto

EXIT_ERROR = 1
EXIT_NO_KEY = 2


def _add_key_args(p: argparse.ArgumentParser):
    p.add_argument("--key", help="Key as 64 hex digits or Base64 (default: $KAGE_KEY)")
    p.add_argument("--key-file", type=Path, help="File holding a raw 32-byte key or a hex/Base64 key")


def _resolve_key(args, cfg: KageConfig) -> bytes:
    if args.key:
        return parse_key(args.key)
    if args.key_file:
        return load_key_file(args.key_file)
    return cfg.require_key()


def _print_value(value):
    print(crypto.to_bytes(value).decode("utf-8", "replace"))


def cmd_run(args, cfg: KageConfig) -> int:
    if args.expr:
        src_text = args.source
    else:
        src_text = Path(args.source).read_text(encoding="utf-8")

    if args.dump:
        _, code = compile_source(src_text, cfg.max_depth)
        print(disassemble(code))
        return 0

    key = _resolve_key(args, cfg)
    values = run_all(src_text, key, stack_limit=cfg.stack_limit, max_depth=cfg.max_depth)
    if not args.all:
        values = values[-1:]
    for value in values:
        if args.full_decrypt:
            value = full_decrypt(value, key)
        _print_value(value)
    return 0


def cmd_encrypt(args, cfg: KageConfig) -> int:
    key = _resolve_key(args, cfg)
    print(crypto.encrypt(args.text, key))
    return 0


def cmd_decrypt(args, cfg: KageConfig) -> int:
    key = _resolve_key(args, cfg)
    _print_value(crypto.decrypt(args.envelope, key))
    return 0


def cmd_keygen(args, cfg: KageConfig) -> int:
    key = crypto.generate_key()
    print(key.hex() if args.hex else base64codec.encode(key))
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="kage", description="Kage encrypt/decrypt language compiler/executor")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = ap.add_subparsers(dest="command", required=True)

    p_run = sub.add_parser("run", help="Compile and run a program")
    p_run.add_argument("source", help="Source .kg file (or program text with --expr)")
    p_run.add_argument("-e", "--expr", action="store_true", help="Treat SOURCE as program text")
    p_run.add_argument("--full-decrypt", action="store_true", help="Peel every encryption layer off the result")
    p_run.add_argument("--all", action="store_true", help="Print the value of every top-level expression")
    p_run.add_argument("--dump", action="store_true", help="Print the bytecode instead of running it")
    _add_key_args(p_run)
    p_run.set_defaults(func=cmd_run)

    p_enc = sub.add_parser("encrypt", help="Encrypt one string")
    p_enc.add_argument("text")
    _add_key_args(p_enc)
    p_enc.set_defaults(func=cmd_encrypt)

    p_dec = sub.add_parser("decrypt", help="Decrypt one envelope")
    p_dec.add_argument("envelope")
    _add_key_args(p_dec)
    p_dec.set_defaults(func=cmd_decrypt)

    p_key = sub.add_parser("keygen", help="Print a fresh random key")
    fmt = p_key.add_mutually_exclusive_group()
    fmt.add_argument("--hex", action="store_true", help="Hex output")
    fmt.add_argument("--base64", action="store_true", help="Base64 output (default)")
    p_key.set_defaults(func=cmd_keygen)
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = KageConfig.from_env()
    except ConfigError as e:
        print(e.describe(), file=sys.stderr)
        return EXIT_ERROR

    logging.basicConfig(
        level=logging.DEBUG if (args.verbose or cfg.debug) else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args, cfg)
    except ConfigError as e:
        print(e.describe(), file=sys.stderr)
        return EXIT_NO_KEY if e.kind is ConfigErrorKind.MISSING_KEY else EXIT_ERROR
    except KageError as e:
        print(e.describe(), file=sys.stderr)
        return EXIT_ERROR
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except UnicodeDecodeError as e:
        print(f"error: source is not UTF-8: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
