from __future__ import annotations

import concurrent.futures
from typing import Callable, Iterable, List, Optional, NamedTuple, Sequence

from cipher_implementation import decrypt_single_key
from cipher_breaker_helpers import KeyByteCandidate, score_plaintext

ScoreFn = Callable[[bytes], int]

KEY_BYTES = range(256)


class SingleByteResult(NamedTuple):
    key_byte: int
    score: int
    plaintext: bytes


def _process_worker_score_keys(args):
    """Score a chunk of key bytes against one column."""
    column, key_bytes, score_fn = args
    return [
        KeyByteCandidate(key_byte, score_fn(decrypt_single_key(column, key_byte)))
        for key_byte in key_bytes
    ]


def _chunk(seq: Sequence[int], parts: int) -> List[List[int]]:
    size = -(-len(seq) // parts)
    return [list(seq[i : i + size]) for i in range(0, len(seq), size)]


class SingleByteSolver:
    """
    Brute-force solver for a column XORed with one repeated byte.

    Every candidate key byte is tried in ascending order and the decryption is
    rated with score_fn (score_plaintext by default). The highest score wins;
    on a tie the lowest key byte wins, also when candidates are scored in a
    ProcessPoolExecutor.
    """

    def __init__(
        self,
        key_bytes: Iterable[int] = KEY_BYTES,
        score_fn: Optional[ScoreFn] = None,
        workers: int = 0,
        debug: bool = False,
    ):
        self.key_bytes = sorted(set(key_bytes))
        if not self.key_bytes:
            raise ValueError("Need at least one candidate key byte.")
        if self.key_bytes[0] < 0 or self.key_bytes[-1] > 255:
            raise ValueError("Candidate key bytes must be in 0..255.")

        self.score_fn = score_fn or score_plaintext
        self.workers = workers
        self.debug = debug

    def score_candidates(self, column: bytes) -> List[KeyByteCandidate]:
        """Score all candidate key bytes, best first (ties by ascending key byte)."""
        column = bytes(column)
        if self.workers and self.workers > 1:
            candidates = self._score_parallel(column)
        else:
            candidates = _process_worker_score_keys(
                (column, self.key_bytes, self.score_fn)
            )
        candidates.sort(key=lambda c: (-c.score, c.key_byte))
        return candidates

    def _score_parallel(self, column: bytes) -> List[KeyByteCandidate]:
        chunks = _chunk(self.key_bytes, self.workers)
        if self.debug:
            print(
                f"[SOLVER] Using ProcessPoolExecutor with {self.workers} workers for {len(chunks)} chunks"
            )
        candidates: List[KeyByteCandidate] = []
        with concurrent.futures.ProcessPoolExecutor(max_workers=self.workers) as ex:
            for chunk_result in ex.map(
                _process_worker_score_keys,
                [(column, chunk, self.score_fn) for chunk in chunks],
            ):
                candidates.extend(chunk_result)
        return candidates

    def solve(self, column: bytes) -> SingleByteResult:
        """Return the key byte, score and plaintext of the most plausible decryption."""
        column = bytes(column)
        if not column:
            # every key is equally unjustified on an empty column
            return SingleByteResult(self.key_bytes[0], 0, b"")

        if self.workers and self.workers > 1:
            best = self.score_candidates(column)[0]
            best_plain = decrypt_single_key(column, best.key_byte)
            best_key, best_score = best.key_byte, best.score
        else:
            best_key, best_score, best_plain = None, None, b""
            for key_byte in self.key_bytes:
                candidate = decrypt_single_key(column, key_byte)
                score = self.score_fn(candidate)
                if best_score is None or score > best_score:
                    best_key, best_score, best_plain = key_byte, score, candidate

        if self.debug:
            print(
                f"[SOLVER] column_len={len(column)} key=0x{best_key:02x} score={best_score}"
            )
        return SingleByteResult(best_key, best_score, best_plain)

    def decrypt(self, column: bytes) -> bytes:
        return self.solve(column).plaintext
