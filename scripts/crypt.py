#!/usr/bin/env python3
"""Command line front end for the Pontifex deck cipher."""

from __future__ import annotations

import argparse
import logging
import random
import sys
from pathlib import Path
from typing import Optional, Sequence

from cipher import Cipher
from keystream import KeystreamLimitError
from scripts.keyfile import KeyFileError, format_key, key_fingerprint, load_key, save_key

DEFAULT_GROUP_SIZE = 5
PAD_LETTER = "x"

LOGGER = logging.getLogger("crypt")


def normalise_text(text: str) -> str:
    """Lowercase *text* and drop everything outside ``a``-``z``."""

    return "".join(char for char in text.lower() if "a" <= char <= "z")


def pad_text(text: str, block: int = DEFAULT_GROUP_SIZE, filler: str = PAD_LETTER) -> str:
    """Pad *text* with *filler* up to a multiple of *block* letters."""

    if block < 1:
        raise ValueError("block must be at least 1")
    remainder = len(text) % block
    if remainder:
        text += filler * (block - remainder)
    return text


def group_text(text: str, size: int = DEFAULT_GROUP_SIZE) -> str:
    """Split *text* into space separated groups of *size* letters."""

    if size < 1:
        return text
    return " ".join(text[index : index + size] for index in range(0, len(text), size))


def _read_message(words: Sequence[str]) -> str:
    if words:
        return " ".join(words)
    return sys.stdin.read()


def encrypt_message(
    cipher: Cipher,
    message: str,
    *,
    pad: bool = False,
    group: int = 0,
    max_rounds: Optional[int] = None,
) -> str:
    letters = normalise_text(message)
    if pad:
        letters = pad_text(letters)
    ciphertext = cipher.encrypt(letters, max_rounds=max_rounds)
    return group_text(ciphertext, group)


def decrypt_message(
    cipher: Cipher,
    message: str,
    *,
    group: int = 0,
    max_rounds: Optional[int] = None,
) -> str:
    letters = normalise_text(message)
    plaintext = cipher.decrypt(letters, max_rounds=max_rounds)
    return group_text(plaintext, group)


def _command_keygen(args: argparse.Namespace) -> int:
    cipher = Cipher()
    rng = random.Random(args.seed) if args.seed is not None else None
    key = cipher.generate_key(rng)
    if args.output:
        path = Path(args.output)
        save_key(key, path)
        LOGGER.info("Wrote key %s to %s", key_fingerprint(key), path)
    else:
        print(format_key(key))
    return 0


def _command_encrypt(args: argparse.Namespace) -> int:
    cipher = Cipher(load_key(Path(args.key)))
    print(
        encrypt_message(
            cipher,
            _read_message(args.text),
            pad=args.pad,
            group=args.group,
            max_rounds=args.max_rounds,
        )
    )
    return 0


def _command_decrypt(args: argparse.Namespace) -> int:
    cipher = Cipher(load_key(Path(args.key)))
    print(
        decrypt_message(
            cipher,
            _read_message(args.text),
            group=args.group,
            max_rounds=args.max_rounds,
        )
    )
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    keygen = subparsers.add_parser("keygen", help="Shuffle a new deck key.")
    keygen.add_argument(
        "--output",
        help="Write the key to this path (.txt, .key, .json or .bin) instead of stdout.",
    )
    keygen.add_argument(
        "--seed",
        type=int,
        help="Seed for a reproducible shuffle. Omit for a system-random key.",
    )
    keygen.set_defaults(handler=_command_keygen)

    for name, handler, help_text in (
        ("encrypt", _command_encrypt, "Encrypt a message with a stored key."),
        ("decrypt", _command_decrypt, "Decrypt a message with a stored key."),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--key", required=True, help="Path to the key file.")
        sub.add_argument(
            "--group",
            type=int,
            default=0,
            help="Print the output in groups of N letters (default: no grouping).",
        )
        sub.add_argument(
            "--max-rounds",
            type=int,
            help="Fail-safe ceiling on keystream rounds (default: unlimited).",
        )
        sub.add_argument(
            "text",
            nargs="*",
            help="Message text. Read from stdin when omitted.",
        )
        if name == "encrypt":
            sub.add_argument(
                "--pad",
                action="store_true",
                help=f"Pad the message with '{PAD_LETTER}' to a multiple of "
                f"{DEFAULT_GROUP_SIZE} letters.",
            )
        sub.set_defaults(handler=handler)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    max_rounds = getattr(args, "max_rounds", None)
    if max_rounds is not None and max_rounds < 0:
        parser.error("--max-rounds must be non-negative")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.handler(args)
    except KeyFileError as exc:
        parser.error(str(exc))
    except KeystreamLimitError as exc:
        LOGGER.error("%s", exc)
        return 1
    return 0  # pragma: no cover - parser.error exits


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
