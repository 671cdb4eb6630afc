"""Load, save and validate Pontifex deck keys stored on disk."""
from __future__ import annotations

import argparse
import hashlib
import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from deck import DECK_SIZE, InvalidKeyError, validate_key

_TOKEN_SPLIT = re.compile(r"[\s,]+")


class KeyFileError(Exception):
    """Raised when a key file cannot be read or does not hold a valid key."""


def format_key(key: Sequence[int]) -> str:
    """Return *key* as space separated integers."""
    return " ".join(str(value) for value in key)


def key_fingerprint(key: Sequence[int]) -> str:
    """Return a short, stable identifier for *key*."""
    digest = hashlib.sha256(format_key(key).encode("ascii")).hexdigest()
    return digest[:16]


def _checked(values: Iterable[int], source: object) -> list[int]:
    try:
        return list(validate_key(values))
    except InvalidKeyError as exc:
        raise KeyFileError(f"{source}: {exc}") from exc


def parse_key_text(text: str, source: object = "<text>") -> list[int]:
    """Parse whitespace or comma separated integers, optionally bracketed."""

    stripped = text.strip().strip("[]").strip()
    if not stripped:
        raise KeyFileError(f"{source}: Key is empty")
    values: list[int] = []
    for token in _TOKEN_SPLIT.split(stripped):
        if not token:
            continue
        try:
            values.append(int(token, 10))
        except ValueError:
            raise KeyFileError(f"{source}: Invalid key token {token!r}") from None
    return _checked(values, source)


def _load_text(path: Path) -> list[int]:
    return parse_key_text(path.read_text(encoding="utf-8"), path)


def _load_json(path: Path) -> list[int]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise KeyFileError(f"{path}: Invalid JSON ({exc.msg})") from exc
    if isinstance(payload, dict):
        payload = payload.get("key")
    if not isinstance(payload, list):
        raise KeyFileError(f"{path}: Expected a JSON list or an object with a 'key' list")
    return _checked(payload, path)


def _load_binary(path: Path) -> list[int]:
    payload = path.read_bytes()
    if len(payload) != DECK_SIZE:
        raise KeyFileError(f"{path}: Binary keys must contain {DECK_SIZE} bytes")
    return _checked(payload, path)


def _save_text(key: Sequence[int], path: Path) -> None:
    path.write_text(format_key(key) + "\n", encoding="utf-8")


def _save_json(key: Sequence[int], path: Path) -> None:
    path.write_text(json.dumps({"key": list(key)}) + "\n", encoding="utf-8")


def _save_binary(key: Sequence[int], path: Path) -> None:
    path.write_bytes(bytes(key))


LOADERS = {
    ".txt": _load_text,
    ".key": _load_text,
    ".json": _load_json,
    ".bin": _load_binary,
}

SAVERS = {
    ".txt": _save_text,
    ".key": _save_text,
    ".json": _save_json,
    ".bin": _save_binary,
}


def load_key(path: Path) -> list[int]:
    loader = LOADERS.get(path.suffix.lower())
    if loader is None:
        raise KeyFileError(f"{path}: Unsupported file extension")
    try:
        return loader(path)
    except OSError as exc:
        raise KeyFileError(f"{path}: {exc.strerror or exc}") from exc


def save_key(key: Sequence[int], path: Path) -> None:
    saver = SAVERS.get(path.suffix.lower())
    if saver is None:
        raise KeyFileError(f"{path}: Unsupported file extension")
    checked = _checked(key, path)
    path.parent.mkdir(parents=True, exist_ok=True)
    saver(checked, path)


@dataclass
class KeyCheck:
    path: Path
    fingerprint: str | None = None
    error: str | None = None

    @property
    def is_ok(self) -> bool:
        return self.error is None


def check_key_file(path: Path) -> KeyCheck:
    try:
        key = load_key(path)
    except KeyFileError as exc:
        return KeyCheck(path=path, error=str(exc))
    return KeyCheck(path=path, fingerprint=key_fingerprint(key))


def format_check(check: KeyCheck) -> str:
    if check.is_ok:
        return f"{check.path}: ok fingerprint={check.fingerprint}"
    return f"{check.path}: failed ({check.error})"


def run(paths: Iterable[str]) -> list[KeyCheck]:
    return [check_key_file(Path(raw_path)) for raw_path in paths]


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate Pontifex key files stored as text, JSON or raw bytes.",
    )
    parser.add_argument(
        "paths",
        nargs="+",
        help="Paths to key files (.txt, .key, .json or .bin).",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    has_error = False
    for check in run(args.paths):
        print(format_check(check))
        if not check.is_ok:
            has_error = True
    return 1 if has_error else 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
