import pandas as pd
import pytest

from server import app as server_app

ORDERED_KEY = list(range(1, 55))


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(server_app, "DATA_DIR", tmp_path / "data")
    monkeypatch.setattr(server_app, "KEYS_PATH", tmp_path / "data" / "keys.parquet")
    server_app.app.config["TESTING"] = True
    with server_app.app.test_client() as test_client:
        yield test_client


def test_create_and_fetch_key(client):
    response = client.post("/api/key", json={"seed": 5})
    assert response.status_code == 201
    body = response.get_json()
    assert sorted(body["key"]) == ORDERED_KEY
    assert len(body["key_id"]) == 16

    fetched = client.get(f"/api/key/{body['key_id']}")
    assert fetched.status_code == 200
    assert fetched.get_json()["key"] == body["key"]


def test_seeded_keys_are_deduplicated(client):
    first = client.post("/api/key", json={"seed": 11}).get_json()
    second = client.post("/api/key", json={"seed": 11}).get_json()
    assert first["key_id"] == second["key_id"]

    frame = pd.read_parquet(server_app.KEYS_PATH)
    assert len(frame) == 1


def test_unknown_key_id_returns_404(client):
    response = client.get("/api/key/doesnotexist")
    assert response.status_code == 404
    assert response.get_json()["error"] == "key not found"


def test_invalid_seed_is_rejected(client):
    response = client.post("/api/key", json={"seed": "abc"})
    assert response.status_code == 400


def test_encrypt_with_inline_key(client):
    response = client.post("/api/encrypt", json={"key": ORDERED_KEY, "text": "A-a a"})
    assert response.status_code == 200
    assert response.get_json() == {"ciphertext": "bhp"}


def test_decrypt_with_text_key(client):
    key_text = " ".join(str(value) for value in ORDERED_KEY)
    response = client.post("/api/decrypt", json={"key": key_text, "text": "bhp"})
    assert response.status_code == 200
    assert response.get_json() == {"plaintext": "aaa"}


def test_round_trip_with_stored_key(client):
    key_id = client.post("/api/key", json={"seed": 21}).get_json()["key_id"]
    encrypted = client.post(
        "/api/encrypt", json={"key_id": key_id, "text": "Meet at noon", "pad": True}
    ).get_json()["ciphertext"]
    assert len(encrypted) == 10

    decrypted = client.post(
        "/api/decrypt", json={"key_id": key_id, "text": encrypted}
    ).get_json()["plaintext"]
    assert decrypted == "meetatnoon"


@pytest.mark.parametrize(
    "payload,status",
    [
        ({"text": "abc"}, 400),
        ({"key": ORDERED_KEY}, 400),
        ({"key": [1, 2, 3], "text": "abc"}, 400),
        ({"key": 12, "text": "abc"}, 400),
        ({"key_id": "missing", "text": "abc"}, 404),
    ],
)
def test_encrypt_validation_errors(client, payload, status):
    response = client.post("/api/encrypt", json=payload)
    assert response.status_code == status
    assert "error" in response.get_json()


@pytest.mark.parametrize("path", ["/api/key", "/api/encrypt", "/api/decrypt"])
def test_non_object_payload_is_rejected(client, path):
    response = client.post(path, json=[1, 2])
    assert response.status_code == 400
    assert response.get_json() == {"error": "payload must be a JSON object"}


def test_corrupt_stored_key_returns_json_error(client):
    server_app.DATA_DIR.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(
        [{"key_id": "broken", "key": "1 2 3", "created_utc": "2024-01-01T00:00:00+00:00"}]
    ).to_parquet(server_app.KEYS_PATH, index=False)

    fetched = client.get("/api/key/broken")
    assert fetched.status_code == 500
    assert "54 values" in fetched.get_json()["error"]

    encrypted = client.post("/api/encrypt", json={"key_id": "broken", "text": "abc"})
    assert encrypted.status_code == 500
    assert "error" in encrypted.get_json()
