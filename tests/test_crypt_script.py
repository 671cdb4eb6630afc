import io
import pathlib

import pytest

from cipher import Cipher
from scripts import crypt
from scripts.keyfile import load_key, save_key

ORDERED_KEY = list(range(1, 55))


def test_normalise_text_drops_non_letters():
    assert crypt.normalise_text("Do not use PC!  42") == "donotusepc"


@pytest.mark.parametrize(
    "text,expected",
    [
        ("", ""),
        ("abc", "abcxx"),
        ("abcde", "abcde"),
        ("abcdef", "abcdefxxxx"),
    ],
)
def test_pad_text(text, expected):
    assert crypt.pad_text(text) == expected


def test_group_text():
    assert crypt.group_text("abcdefghijkl", 5) == "abcde fghij kl"
    assert crypt.group_text("abc", 0) == "abc"


def test_encrypt_and_decrypt_message_helpers():
    cipher = Cipher(ORDERED_KEY)
    encrypted = crypt.encrypt_message(cipher, "A a, a!", group=5)
    assert encrypted == "bhp"
    assert crypt.decrypt_message(cipher, encrypted) == "aaa"


def test_keygen_writes_reproducible_key(tmp_path: pathlib.Path):
    first = tmp_path / "first.json"
    second = tmp_path / "second.txt"
    assert crypt.main(["keygen", "--seed", "9", "--output", str(first)]) == 0
    assert crypt.main(["keygen", "--seed", "9", "--output", str(second)]) == 0
    assert load_key(first) == load_key(second)
    assert sorted(load_key(first)) == ORDERED_KEY


def test_keygen_prints_key_without_output(capsys):
    assert crypt.main(["keygen", "--seed", "3"]) == 0
    values = [int(token) for token in capsys.readouterr().out.split()]
    assert sorted(values) == ORDERED_KEY


def test_encrypt_then_decrypt_via_cli(tmp_path: pathlib.Path, capsys):
    key_path = tmp_path / "deck.txt"
    save_key(ORDERED_KEY, key_path)

    assert crypt.main(["encrypt", "--key", str(key_path), "--pad", "--group", "5", "Hi", "there"]) == 0
    ciphertext = capsys.readouterr().out.strip()
    assert len(ciphertext.replace(" ", "")) == 10

    assert crypt.main(["decrypt", "--key", str(key_path), ciphertext]) == 0
    assert capsys.readouterr().out.strip() == "hitherexxx"


def test_encrypt_reads_stdin(tmp_path: pathlib.Path, capsys, monkeypatch):
    key_path = tmp_path / "deck.txt"
    save_key(ORDERED_KEY, key_path)
    monkeypatch.setattr("sys.stdin", io.StringIO("aaa\n"))

    assert crypt.main(["encrypt", "--key", str(key_path)]) == 0
    assert capsys.readouterr().out.strip() == "bhp"


def test_missing_key_file_is_a_usage_error(tmp_path: pathlib.Path):
    with pytest.raises(SystemExit) as excinfo:
        crypt.main(["encrypt", "--key", str(tmp_path / "absent.txt"), "abc"])
    assert excinfo.value.code == 2


def test_round_ceiling_failure_returns_one(tmp_path: pathlib.Path):
    key_path = tmp_path / "deck.txt"
    save_key(ORDERED_KEY, key_path)
    assert crypt.main(["encrypt", "--key", str(key_path), "--max-rounds", "1", "abcdef"]) == 1


def test_negative_max_rounds_is_a_usage_error(tmp_path: pathlib.Path):
    key_path = tmp_path / "deck.txt"
    save_key(ORDERED_KEY, key_path)
    with pytest.raises(SystemExit) as excinfo:
        crypt.main(["encrypt", "--key", str(key_path), "--max-rounds", "-1", "abc"])
    assert excinfo.value.code == 2
