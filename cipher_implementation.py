"""
Repeating-key XOR cipher implementation
"""

import base64
import binascii
import json
import os

from cipher_breaker_helpers import InvalidInputError

B64_LINE_WIDTH = 80
DEBUG_OUTPUT = False


def debug(*args, **kwargs):
    if DEBUG_OUTPUT:
        print(*args, **kwargs)


def _as_bytes(value):
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def repeating_xor(data, key):
    """Combine each byte of data with the key byte at the same position modulo the key length."""
    data = _as_bytes(data)
    key = _as_bytes(key)
    if not key:
        raise ValueError("Key must contain at least one byte.")

    key_len = len(key)
    return bytes(byte ^ key[i % key_len] for i, byte in enumerate(data))


def encrypt_message(plaintext, key):
    """Encrypt plaintext with a repeating key."""
    return repeating_xor(plaintext, key)


def decrypt_message(ciphertext, key):
    """Decrypt a repeating-key XOR ciphertext. XOR is its own inverse."""
    return repeating_xor(ciphertext, key)


def decrypt_single_key(ciphertext, key_byte):
    """Decrypt bytes that were XORed with one repeated byte."""
    if not 0 <= key_byte <= 255:
        raise ValueError(f"Key byte must be in 0..255, got {key_byte}")
    return bytes(byte ^ key_byte for byte in _as_bytes(ciphertext))


def to_hex(data):
    return binascii.hexlify(_as_bytes(data)).decode("ascii")


def from_hex(hex_string):
    return binascii.unhexlify(hex_string.strip())


def to_b64(data):
    return base64.b64encode(_as_bytes(data)).decode("ascii")


def from_b64(b64_string):
    """Decode Base64, ignoring line breaks and surrounding whitespace."""
    joined = "".join(b64_string.split())
    return base64.b64decode(joined, validate=True)


def transpose_columns(data, num_cols):
    """
    Split data into num_cols columns by position modulo num_cols.

    Column i holds the bytes at positions i, i + num_cols, i + 2 * num_cols, ...
    The first len(data) % num_cols columns are one byte longer than the rest.
    """
    data = _as_bytes(data)
    if not isinstance(num_cols, int) or num_cols < 1:
        raise InvalidInputError(f"Column count must be a positive integer, got {num_cols!r}")
    if num_cols > len(data):
        raise InvalidInputError(
            f"Column count {num_cols} exceeds data length {len(data)}"
        )

    columns = [data[i::num_cols] for i in range(num_cols)]
    debug(f"Transposed {len(data)} bytes into {num_cols} columns:", [len(c) for c in columns])
    return columns


def reassemble_columns(columns):
    """Interleave columns back into a single byte string (inverse of transpose_columns)."""
    if not columns:
        return b""

    max_col_len = max(len(col) for col in columns)
    out = bytearray()
    for row_idx in range(max_col_len):
        for col in columns:
            if row_idx < len(col):
                out.append(col[row_idx])
    return bytes(out)


def write_ciphertext_file(path, ciphertext, line_width=B64_LINE_WIDTH):
    """Write ciphertext as Base64 wrapped at line_width columns, replacing any existing file."""
    if line_width < 1:
        raise ValueError("line_width must be positive")

    text_b64 = to_b64(ciphertext)
    lines = [text_b64[i : i + line_width] for i in range(0, len(text_b64), line_width)]
    with open(path, "w", encoding="ascii") as fh:
        for line in lines:
            fh.write(line)
            fh.write("\n")


def read_ciphertext_file(path):
    with open(path, "r", encoding="ascii") as fh:
        return from_b64(fh.read())


def write_plaintext_file(path, plaintext):
    with open(path, "wb") as fh:
        fh.write(_as_bytes(plaintext))


def read_plaintext_file(path):
    with open(path, "rb") as fh:
        return fh.read()


def fill_msg_dict(entry_id, messages_json_path=None, overwrite=True):
    """
    Fill the 'ciphertext' field for the given entry_id in messages.json.
    Uses the entry's plaintext and key to encrypt the message.
    """
    if messages_json_path is None:
        messages_json_path = os.path.join(
            os.path.dirname(__file__), "auxiliary", "messages.json"
        )

    if not os.path.isfile(messages_json_path):
        raise FileNotFoundError(f"messages.json not found at: {messages_json_path}")

    with open(messages_json_path, "r", encoding="utf-8") as fh:
        data = json.load(fh)

    key_str = str(entry_id)
    if key_str not in data:
        raise KeyError(f"Entry '{key_str}' not found in messages.json")

    entry = data[key_str]
    plaintext = entry.get("plaintext")
    key = entry.get("key")

    if not key:
        raise ValueError(f"Entry '{key_str}' has no 'key' field")

    if not isinstance(plaintext, str):
        raise ValueError(
            f"Entry '{key_str}' has invalid 'plaintext' field (expected string)"
        )

    existing_ciphertext = entry.get("ciphertext")
    if existing_ciphertext:
        if not overwrite:
            print(
                f"Entry '{key_str}' already has a ciphertext and overwrite=False; skipping."
            )
            return entry
        else:
            print(f"Overwriting existing ciphertext for entry '{key_str}'.")

    print(
        f"Processing messages.json entry '{key_str}' with key of length {len(_as_bytes(key))}"
    )

    ciphertext = encrypt_message(plaintext, key)
    entry["ciphertext"] = to_b64(ciphertext)
    data[key_str] = entry

    debug(f"    Plaintext:  {plaintext[:80]}{'...' if len(plaintext) > 80 else ''}")
    debug(f"    Ciphertext: {to_hex(ciphertext[:40])}{'...' if len(ciphertext) > 40 else ''}")

    with open(messages_json_path, "w", encoding="utf-8") as fh:
        json.dump(data, fh, indent=2, ensure_ascii=False)

    print(
        f"Successfully wrote ciphertext ({len(ciphertext)} bytes) for entry '{key_str}' to {messages_json_path}"
    )
    return entry


if __name__ == "__main__":
    fill_msg_dict(1)
    fill_msg_dict(2)
