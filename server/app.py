"""Minimal Flask API for issuing deck keys and running the Pontifex cipher."""
from __future__ import annotations

import random
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd
from flask import Flask, jsonify, request

from cipher import Cipher
from deck import CorruptDeckError, InvalidKeyError, validate_key
from keystream import KeystreamLimitError
from scripts.crypt import normalise_text, pad_text
from scripts.keyfile import KeyFileError, format_key, key_fingerprint, parse_key_text

DATA_DIR = Path("data")
KEYS_PATH = DATA_DIR / "keys.parquet"

KEY_COLUMNS = ["key_id", "key", "created_utc"]

ROUND_CEILING_BASE = 64
ROUND_CEILING_FACTOR = 4

app = Flask(__name__)


class RequestError(ValueError):
    """Raised when a request payload cannot be processed."""

    def __init__(self, message: str, status: int = 400) -> None:
        super().__init__(message)
        self.status = status


def _load_keys_frame() -> pd.DataFrame:
    if KEYS_PATH.exists():
        return pd.read_parquet(KEYS_PATH)
    return pd.DataFrame(columns=KEY_COLUMNS)


def _store_key(key: List[int]) -> str:
    key_id = key_fingerprint(key)
    frame = _load_keys_frame()
    if not frame.empty and (frame["key_id"] == key_id).any():
        return key_id
    record = {
        "key_id": key_id,
        "key": format_key(key),
        "created_utc": datetime.now(timezone.utc).isoformat(),
    }
    frame = pd.concat([frame, pd.DataFrame([record])], ignore_index=True)
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    frame.to_parquet(KEYS_PATH, index=False)
    return key_id


def _lookup_key(key_id: str) -> List[int]:
    frame = _load_keys_frame()
    subset = frame[frame["key_id"] == key_id]
    if subset.empty:
        raise RequestError("key not found", status=404)
    return parse_key_text(str(subset.iloc[0]["key"]), key_id)


def _resolve_key(payload: Dict[str, Any]) -> List[int]:
    if payload.get("key_id"):
        if not isinstance(payload["key_id"], str):
            raise RequestError("key_id has invalid type")
        return _lookup_key(payload["key_id"])
    raw = payload.get("key")
    if raw is None:
        raise RequestError("Missing field: key_id or key")
    try:
        if isinstance(raw, str):
            return parse_key_text(raw, "key")
        if isinstance(raw, list):
            return list(validate_key(raw))
    except (KeyFileError, InvalidKeyError) as exc:
        raise RequestError(str(exc)) from exc
    raise RequestError(f"key has invalid type: {type(raw).__name__}")


def _message_text(payload: Dict[str, Any]) -> str:
    text = payload.get("text")
    if not isinstance(text, str):
        raise RequestError("Missing field: text")
    return normalise_text(text)


def _round_ceiling(length: int) -> int:
    return ROUND_CEILING_BASE + ROUND_CEILING_FACTOR * length


def _error(exc: Exception, status: int):
    return jsonify({"error": str(exc)}), status


@app.post("/api/key")
def create_key():
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return jsonify({"error": "payload must be a JSON object"}), 400
    seed = payload.get("seed")
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
        return jsonify({"error": "seed has invalid type"}), 400

    rng = random.Random(seed) if seed is not None else None
    key = Cipher().generate_key(rng)
    key_id = _store_key(key)
    return jsonify({"key_id": key_id, "key": key}), 201


@app.get("/api/key/<key_id>")
def get_key(key_id: str):
    try:
        key = _lookup_key(key_id)
    except RequestError as exc:
        return _error(exc, exc.status)
    except KeyFileError as exc:
        app.logger.error("stored key %s is unreadable: %s", key_id, exc)
        return _error(exc, 500)
    return jsonify({"key_id": key_id, "key": key})


def _run_cipher(operation: str, field: str):
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return jsonify({"error": "payload must be a JSON object"}), 400
    try:
        key = _resolve_key(payload)
        text = _message_text(payload)
        if operation == "encrypt" and payload.get("pad"):
            text = pad_text(text)
        cipher = Cipher(key)
        run = cipher.encrypt if operation == "encrypt" else cipher.decrypt
        result = run(text, max_rounds=_round_ceiling(len(text)))
    except RequestError as exc:
        return _error(exc, exc.status)
    except (CorruptDeckError, KeystreamLimitError, KeyFileError) as exc:
        app.logger.error("%s failed: %s", operation, exc)
        return _error(exc, 500)
    return jsonify({field: result})


@app.post("/api/encrypt")
def encrypt():
    return _run_cipher("encrypt", "ciphertext")


@app.post("/api/decrypt")
def decrypt():
    return _run_cipher("decrypt", "plaintext")


if __name__ == "__main__":  # pragma: no cover - manual execution helper
    app.run(host="0.0.0.0", port=5000, debug=True)
