import json

import pytest

from cipher_breaker_helpers import InvalidInputError
from cipher_implementation import (
    decrypt_message,
    decrypt_single_key,
    encrypt_message,
    fill_msg_dict,
    from_b64,
    from_hex,
    read_ciphertext_file,
    read_plaintext_file,
    reassemble_columns,
    repeating_xor,
    to_b64,
    to_hex,
    transpose_columns,
    write_ciphertext_file,
    write_plaintext_file,
)


def test_repeating_xor_known_vector():
    plaintext = (
        "Burning 'em, if you ain't quick and nimble\n"
        "I go crazy when I hear a cymbal"
    )
    expected = (
        "0b3637272a2b2e63622c2e69692a23693a2a3c6324202d623d63343c2a26226324272765272a282b2f20"
        "430a652e2c652a3124333a653e2b2027630c692b20283165286326302e27282f"
    )
    assert to_hex(encrypt_message(plaintext, "ICE")) == expected


@pytest.mark.parametrize(
    "text",
    ["This is the plain text\n", "123, 456", "!£$%^&*@~:", "日本語", ""],
)
def test_encrypt_and_decrypt(text):
    ciphertext = encrypt_message(text, "toy")
    assert decrypt_message(ciphertext, "toy").decode("utf-8") == text


def test_wrong_key_does_not_decrypt():
    ciphertext = encrypt_message("This is the plain text", "toy")
    assert decrypt_message(ciphertext, "wrong_key") != b"This is the plain text"


def test_empty_key_rejected():
    with pytest.raises(ValueError):
        repeating_xor(b"abc", b"")


def test_decrypt_single_key():
    ciphertext = bytes(b ^ 0x58 for b in b"cooking mc's")
    assert decrypt_single_key(ciphertext, 0x58) == b"cooking mc's"
    with pytest.raises(ValueError):
        decrypt_single_key(ciphertext, 256)


def test_hex_and_b64_codecs():
    data = bytes(range(256))
    assert from_hex(to_hex(data)) == data
    assert from_b64(to_b64(data)) == data
    assert to_hex(b"\x00\xff") == "00ff"
    assert to_b64(b"hello") == "aGVsbG8="


def test_b64_ignores_line_breaks():
    assert from_b64("aGVs\nbG8=\n") == b"hello"


@pytest.mark.parametrize(
    "text, size",
    [
        ("lalalala", 2),
        ("lalalal", 2),
        ("lalala", 2),
        ("this is a Random test to see if it works", 3),
        ("Let's try this again", 7),
        ("And another time to see what happens", 2),
        ("And another time to see what happens", 1),
        ("And another time to see what happens", 36),
        ("A", 1),
    ],
)
def test_transpose_and_back(text, size):
    data = text.encode("ascii")
    columns = transpose_columns(data, size)
    assert len(columns) == size
    assert reassemble_columns(columns) == data


def test_transpose_column_lengths():
    columns = transpose_columns(b"abcdefghij", 4)
    assert columns == [b"aei", b"bfj", b"cg", b"dh"]


@pytest.mark.parametrize("size", [0, -1, 4, "2"])
def test_transpose_rejects_bad_column_count(size):
    with pytest.raises(InvalidInputError):
        transpose_columns(b"abc", size)


def test_reassemble_empty():
    assert reassemble_columns([]) == b""


def test_ciphertext_file_wraps_lines(tmp_path):
    path = tmp_path / "cipher.txt"
    data = bytes(range(200))
    write_ciphertext_file(path, data)

    lines = path.read_text().splitlines()
    assert all(len(line) <= 80 for line in lines)
    assert all(len(line) == 80 for line in lines[:-1])
    assert read_ciphertext_file(path) == data


def test_ciphertext_file_replaces_existing(tmp_path):
    path = tmp_path / "cipher.txt"
    write_ciphertext_file(path, b"first content that is fairly long")
    write_ciphertext_file(path, b"second")
    assert read_ciphertext_file(path) == b"second"


def test_plaintext_file_is_byte_exact(tmp_path):
    path = tmp_path / "plain.txt"
    data = "日本語\nline two\r\n".encode("utf-8")
    write_plaintext_file(path, data)
    assert read_plaintext_file(path) == data


def test_fill_msg_dict(tmp_path, capsys):
    path = tmp_path / "messages.json"
    path.write_text(
        json.dumps({"1": {"plaintext": "attack at dawn", "key": "lemon"}}),
        encoding="utf-8",
    )

    entry = fill_msg_dict(1, messages_json_path=str(path))
    expected = to_b64(encrypt_message("attack at dawn", "lemon"))
    assert entry["ciphertext"] == expected
    assert json.loads(path.read_text(encoding="utf-8"))["1"]["ciphertext"] == expected

    entry = fill_msg_dict(1, messages_json_path=str(path), overwrite=False)
    assert "skipping" in capsys.readouterr().out
    assert entry["ciphertext"] == expected


def test_fill_msg_dict_errors(tmp_path):
    path = tmp_path / "messages.json"
    path.write_text(json.dumps({"1": {"plaintext": "x"}}), encoding="utf-8")

    with pytest.raises(FileNotFoundError):
        fill_msg_dict(1, messages_json_path=str(tmp_path / "missing.json"))
    with pytest.raises(KeyError):
        fill_msg_dict(2, messages_json_path=str(path))
    with pytest.raises(ValueError):
        fill_msg_dict(1, messages_json_path=str(path))
