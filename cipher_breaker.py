from typing import List, Dict, Optional
import argparse
import json
import os
import sys

from cipher_implementation import (
    encrypt_message,
    decrypt_message,
    from_b64,
    to_b64,
    to_hex,
    read_ciphertext_file,
    write_ciphertext_file,
    read_plaintext_file,
    write_plaintext_file,
)
from cipher_breaker_utils import (
    BreakResult,
    RepeatingXorBreaker,
    set_config,
    clear_keyboard_interrupt,
    was_keyboard_interrupted,
    set_keyboard_interrupt,
)
from cipher_breaker_helpers import BreakerError, set_config_helpers


CONFIG = {
    # GENERAL SETTINGS
    "debug_output": False,  # if True, print per-length and per-column details during the break
    "intermediate_output": True,  # if True, print the shortlist and per-length results
    "messages_json_path": None,  # defaults to auxiliary/messages.json next to this module
    "overwrite_json_entries": False,  # if True, overwrite existing key and plaintext in messages.json (results are always overwritten)
    "b64_line_width": 80,  # line width of Base64 ciphertext files
    #
    # KEY LENGTH ESTIMATION
    "min_key_length": 1,  # smallest key length tried (inclusive)
    "max_key_length": 39,  # largest key length tried (inclusive)
    "key_length_blocks": 4,  # leading blocks compared pairwise per key length
    "top_key_lengths": 10,  # shortlist size handed to the breaker
    "score_round_digits": 9,  # key-length scores equal to this many digits are ties (smaller length wins)
    #
    # SOLVER SETTINGS
    "key_byte_workers": 0,  # processes scoring the 256 key bytes of a column (0/1 = sequential)
    "column_workers": 0,  # processes solving columns (0/1 = sequential)
    "top_results": 3,  # how many per-length results to keep and report
}

set_config(CONFIG)
set_config_helpers(CONFIG)


def debug(*args, **kwargs):
    if CONFIG.get("debug_output", False):
        print(*args, **kwargs)


def _result_to_dict(result: BreakResult) -> Dict:
    return {
        "key_length": result.key_length,
        "key": to_hex(result.key),
        "score": result.score,
        "recovered_plaintext": result.plaintext.decode("utf-8", errors="replace"),
    }


def process_entry_logic(
    entry_id: str,
    ciphertext: bytes,
    plaintext: Optional[str],
    key: Optional[str],
    cfg: Dict,
    key_length: Optional[int] = None,
):
    """Run the breaker for a single messages.json entry."""
    entry: Dict = {}
    entry["plaintext"] = plaintext
    entry["key"] = key
    entry["ciphertext"] = to_b64(ciphertext)

    if cfg.get("intermediate_output", True):
        print(f"\n=== Entry '{entry_id}' ===")
        print(f"Ciphertext length: {len(ciphertext)} bytes")
        if key:
            print(f"Known key length: {len(key.encode('utf-8'))}")

    clear_keyboard_interrupt()
    breaker = RepeatingXorBreaker(config=cfg)
    try:
        best = breaker.break_cipher(ciphertext, key_length)
    except KeyboardInterrupt:
        set_keyboard_interrupt()
        print(f"[NOTICE] Entry '{entry_id}' interrupted by user")
        entry["_keyboard_interrupt"] = True
        entry["results"] = []
        return entry

    results: List[BreakResult] = breaker.last_results if key_length is None else [best]
    entry["results"] = [_result_to_dict(r) for r in results]

    if cfg.get("intermediate_output", True):
        print(f"Recovered key (hex): {to_hex(best.key)}")
        preview = best.plaintext[:80].decode("utf-8", errors="replace")
        print(f"Recovered plaintext: {preview}{'...' if len(best.plaintext) > 80 else ''}")
        if plaintext is not None:
            match = best.plaintext == plaintext.encode("utf-8")
            print(f"Matches stored plaintext: {match}")

    return entry


def break_cipher_from_file(entry_id, messages_json_path_override: Optional[str] = None):
    """Load entry from messages.json, run the breaker, and write results back."""
    set_config(CONFIG)
    set_config_helpers(CONFIG)

    cfg = CONFIG.copy()
    if messages_json_path_override is not None:
        cfg["messages_json_path"] = messages_json_path_override

    messages_json_path = cfg["messages_json_path"]
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
    ciphertext_b64 = entry.get("ciphertext")
    key_length = entry.get("key_length")

    if key_length is not None and not isinstance(key_length, int):
        raise ValueError(f"Entry '{key_str}' has invalid 'key_length' (expected integer)")

    if not ciphertext_b64:
        if not (plaintext and key):
            raise ValueError(
                f"Entry '{key_str}' has no ciphertext and no plaintext/key to generate one"
            )
        print(
            f"Entry '{key_str}': no ciphertext found, generating from plaintext using the stored key"
        )
        ciphertext_b64 = to_b64(encrypt_message(plaintext, key))
        entry["ciphertext"] = ciphertext_b64
        data[key_str] = entry
        with open(messages_json_path, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, ensure_ascii=False)
        print(f"  Wrote generated ciphertext back to {messages_json_path}\n")

    ciphertext = from_b64(ciphertext_b64)

    updated_entry = process_entry_logic(
        entry_id=key_str,
        ciphertext=ciphertext,
        plaintext=plaintext,
        key=key,
        cfg=cfg,
        key_length=key_length,
    )

    if updated_entry.get("_keyboard_interrupt") or was_keyboard_interrupted():
        print(
            f"Processing for entry '{key_str}' was interrupted by user; not writing results to {messages_json_path}"
        )
        return updated_entry

    existing_entry = data.get(key_str, {})
    existing_entry["results"] = updated_entry.get("results", [])

    top_results = existing_entry["results"]
    if top_results:
        write_key = bytes.fromhex(top_results[0]["key"]).decode("utf-8", errors="replace")
        write_plaintext = top_results[0]["recovered_plaintext"]

        if cfg.get("overwrite_json_entries", False):
            existing_entry["key"] = write_key
            existing_entry["plaintext"] = write_plaintext
        else:
            if not existing_entry.get("key"):
                existing_entry["key"] = write_key
            if not existing_entry.get("plaintext"):
                existing_entry["plaintext"] = write_plaintext

    data[key_str] = existing_entry
    with open(messages_json_path, "w", encoding="utf-8") as fh:
        json.dump(data, fh, indent=2, ensure_ascii=False)

    print(
        f"Finished processing entry '{key_str}', results written to {messages_json_path}"
    )
    return updated_entry


def break_cipher(ciphertext: bytes, key_length: Optional[int] = None) -> BreakResult:
    """Break a raw ciphertext, estimating the key length when it is not given."""
    set_config(CONFIG)
    set_config_helpers(CONFIG)
    breaker = RepeatingXorBreaker(config=CONFIG)
    return breaker.break_cipher(ciphertext, key_length)


def encrypt_file(input_path: str, output_path: str, key: str):
    plaintext = read_plaintext_file(input_path)
    ciphertext = encrypt_message(plaintext, key)
    write_ciphertext_file(output_path, ciphertext, CONFIG.get("b64_line_width", 80))


def decrypt_file(input_path: str, output_path: str, key: str):
    ciphertext = read_ciphertext_file(input_path)
    write_plaintext_file(output_path, decrypt_message(ciphertext, key))


def break_file(input_path: str, output_path: str, key_length: Optional[int] = None) -> BreakResult:
    ciphertext = read_ciphertext_file(input_path)
    result = break_cipher(ciphertext, key_length)
    debug(f"[RESULT] {input_path}: key_length={result.key_length} key={to_hex(result.key)}")
    write_plaintext_file(output_path, result.plaintext)
    return result


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Encrypt, decrypt or break repeating-key XOR (Base64 ciphertext files)."
    )
    parser.add_argument("-i", dest="input", required=True, metavar="INPUT_FILE", help="Input file")
    parser.add_argument("-o", dest="output", required=True, metavar="OUTPUT_FILE", help="Output file")
    parser.add_argument("-k", dest="key", metavar="KEY_STRING", help="Key")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("-d", dest="decrypt", action="store_true", help="Decrypt")
    mode.add_argument("-b", dest="break_cipher", action="store_true", help="Break cipher without key")
    parser.add_argument("-n", dest="key_length", type=int, metavar="KEY_LENGTH", help="Known key length when breaking")
    parser.add_argument("--debug", action="store_true", help="Print debug output")
    args = parser.parse_args(argv)

    if not args.break_cipher and not args.key:
        parser.error("-k KEY_STRING is required unless breaking with -b")
    if args.key_length is not None and not args.break_cipher:
        parser.error("-n KEY_LENGTH only applies when breaking with -b")

    prev_debug = CONFIG.get("debug_output", False)
    if args.debug:
        CONFIG["debug_output"] = True

    try:
        if args.break_cipher:
            break_file(args.input, args.output, args.key_length)
        elif args.decrypt:
            decrypt_file(args.input, args.output, args.key)
        else:
            encrypt_file(args.input, args.output, args.key)
    except (BreakerError, OSError, ValueError) as err:
        print(f"Error found: {err}")
        return 1
    finally:
        CONFIG["debug_output"] = prev_debug
        set_config(CONFIG)
        set_config_helpers(CONFIG)

    print("Done!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
