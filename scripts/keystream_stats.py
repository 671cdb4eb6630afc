#!/usr/bin/env python3
"""Keystream statistics for Pontifex deck keys.

Generates a long keystream for a key and reports how evenly the values
1..26 are distributed, together with the share of void rounds that landed
on a joker.  The raw keystream can be exported as CSV or Parquet for further
analysis.
"""
from __future__ import annotations

import argparse
import json
import logging
import random
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Iterable, Sequence

import numpy as np
import pandas as pd

from cipher import Cipher
from keystream import RADIX, KeystreamLimitError
from scripts.keyfile import KeyFileError, key_fingerprint, load_key

DEFAULT_LENGTH = 2600

LOGGER = logging.getLogger("keystream_stats")


class StatsError(RuntimeError):
    """Raised when keystream statistics cannot be produced."""


@dataclass(frozen=True)
class KeystreamSummary:
    """Distribution statistics for one generated keystream."""

    length: int
    rounds: int
    void_rounds: int
    void_ratio: float | None
    counts: dict[int, int]
    chi_square: float | None
    mean: float | None


def collect_keystream(
    key: Sequence[int], length: int, *, max_rounds: int | None = None
) -> tuple[list[int], int, int]:
    """Return ``(values, rounds, void_rounds)`` for *length* values of *key*."""

    cipher = Cipher(key)
    values = cipher.keystream(length, max_rounds=max_rounds)
    return values, cipher.generator.rounds, cipher.generator.void_rounds


def summarise_keystream(
    values: Sequence[int], rounds: int, void_rounds: int
) -> KeystreamSummary:
    data = np.asarray(values, dtype=np.int64)
    observed = np.bincount(data, minlength=RADIX + 1)[1 : RADIX + 1]
    counts = {value: int(observed[value - 1]) for value in range(1, RADIX + 1)}

    chi_square: float | None
    mean: float | None
    if data.size:
        expected = data.size / RADIX
        chi_square = float(np.sum((observed - expected) ** 2 / expected))
        mean = float(data.mean())
    else:
        chi_square = None
        mean = None

    void_ratio = void_rounds / rounds if rounds else None
    return KeystreamSummary(
        length=int(data.size),
        rounds=rounds,
        void_rounds=void_rounds,
        void_ratio=void_ratio,
        counts=counts,
        chi_square=chi_square,
        mean=mean,
    )


def keystream_frame(values: Iterable[int]) -> pd.DataFrame:
    frame = pd.DataFrame({"value": list(values)}, dtype="int64")
    frame.insert(0, "position", np.arange(1, len(frame) + 1, dtype=np.int64))
    return frame


def write_frame(frame: pd.DataFrame, path: Path) -> None:
    suffix = path.suffix.lower()
    path.parent.mkdir(parents=True, exist_ok=True)
    if suffix == ".csv":
        frame.to_csv(path, index=False)
    elif suffix == ".parquet":
        frame.to_parquet(path, index=False)
    else:
        raise StatsError(f"{path}: Unsupported output format (use .csv or .parquet)")


def format_summary(label: str, summary: KeystreamSummary) -> str:
    lines = [f"{label}: {summary.length} values in {summary.rounds} rounds"]
    if summary.void_ratio is not None:
        lines.append(
            f"  void rounds: {summary.void_rounds} ({summary.void_ratio * 100:.2f}%)"
        )
    if summary.chi_square is not None:
        lines.append(f"  chi-square (df={RADIX - 1}): {summary.chi_square:.2f}")
    if summary.mean is not None:
        lines.append(f"  mean value: {summary.mean:.3f}")
    return "\n".join(lines)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--key", help="Path to a key file")
    source.add_argument(
        "--seed",
        type=int,
        help="Shuffle a reproducible key from this seed instead of loading one",
    )
    parser.add_argument(
        "--length",
        type=int,
        default=DEFAULT_LENGTH,
        help=f"Number of keystream values to generate (default: {DEFAULT_LENGTH})",
    )
    parser.add_argument(
        "--max-rounds",
        type=int,
        help="Fail-safe ceiling on keystream rounds (default: unlimited)",
    )
    parser.add_argument("--output", help="Write the keystream to a .csv or .parquet file")
    parser.add_argument("--json", action="store_true", help="Emit JSON instead of text")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.length < 0:
        LOGGER.error("--length must be non-negative")
        return 1
    if args.max_rounds is not None and args.max_rounds < 0:
        LOGGER.error("--max-rounds must be non-negative")
        return 1

    try:
        if args.key:
            key = load_key(Path(args.key))
        else:
            key = Cipher().generate_key(random.Random(args.seed))
        values, rounds, void_rounds = collect_keystream(
            key, args.length, max_rounds=args.max_rounds
        )
        summary = summarise_keystream(values, rounds, void_rounds)
        if args.output:
            output = Path(args.output)
            write_frame(keystream_frame(values), output)
            LOGGER.info("Wrote %s keystream values to %s", f"{len(values):,}", output)
    except (KeyFileError, KeystreamLimitError, StatsError) as exc:
        LOGGER.error("%s", exc)
        return 1

    label = key_fingerprint(key)
    if args.json:
        payload = asdict(summary)
        payload["fingerprint"] = label
        print(json.dumps(payload, indent=2))
    else:
        print(format_summary(label, summary))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
