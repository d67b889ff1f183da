import concurrent.futures
from typing import List, Dict, Optional, NamedTuple

from cipher_implementation import (
    transpose_columns,
    reassemble_columns,
    to_hex,
)
from cipher_breaker_helpers import (
    CandidateLeaderboard,
    InsufficientDataError,
    InvalidInputError,
    KeyLengthCandidate,
    NoPlausibleDecryptionError,
    rank_key_lengths,
    score_plaintext,
    set_config_helpers,
)
from single_byte_solver import ScoreFn, SingleByteSolver, SingleByteResult


CONFIG: Dict = {}

_KEYBOARD_INTERRUPT_FLAG = False


def set_keyboard_interrupt() -> None:
    """Mark that a KeyboardInterrupt was seen."""
    global _KEYBOARD_INTERRUPT_FLAG
    _KEYBOARD_INTERRUPT_FLAG = True


def clear_keyboard_interrupt() -> None:
    """Clear the KeyboardInterrupt flag."""
    global _KEYBOARD_INTERRUPT_FLAG
    _KEYBOARD_INTERRUPT_FLAG = False


def was_keyboard_interrupted() -> bool:
    """Query whether a KeyboardInterrupt has been signalled."""
    return bool(_KEYBOARD_INTERRUPT_FLAG)


def _worker_initializer(config_dict):
    """Initialize worker process with the caller's CONFIG."""
    set_config(config_dict)
    set_config_helpers(config_dict)


def set_config(cfg: Dict):
    """Initialize module-level CONFIG."""
    global CONFIG
    if isinstance(cfg, dict):
        CONFIG = cfg.copy()
    else:
        CONFIG = dict(cfg)


def debug(*args, **kwargs):
    """Print only when CONFIG['debug_output'] is True."""
    if CONFIG.get("debug_output", False):
        print(*args, **kwargs)


class BreakResult(NamedTuple):
    key_length: int
    key: bytes
    plaintext: bytes
    score: int


def column_solve_worker(args):
    """Solve one column inside a worker process. Returns (index, SingleByteResult)."""
    index, column, score_fn = args
    solver = SingleByteSolver(
        score_fn=score_fn, workers=0, debug=CONFIG.get("debug_output", False)
    )
    return index, solver.solve(column)


class RepeatingXorBreaker:
    """
    Breaker for repeating-key XOR.

    With a known key length the ciphertext is split into one column per key
    position, each column is solved as a single-byte XOR and the columns are
    interleaved back. Without one, the Hamming-distance shortlist is tried in
    order and the reassembled plaintext with the highest score wins.
    """

    def __init__(self, config: Optional[Dict] = None, score_fn: Optional[ScoreFn] = None):
        if config is not None:
            set_config(config)
            set_config_helpers(config)
        self.score_fn = score_fn or score_plaintext
        self.solver = SingleByteSolver(
            score_fn=self.score_fn,
            workers=CONFIG.get("key_byte_workers", 0),
            debug=CONFIG.get("debug_output", False),
        )
        self.last_candidates: List[KeyLengthCandidate] = []
        self.last_results: List[BreakResult] = []

    def guess_key_lengths(self, ciphertext: bytes) -> List[KeyLengthCandidate]:
        """Shortlist of likely key lengths, most likely first."""
        return rank_key_lengths(
            bytes(ciphertext),
            min_length=CONFIG.get("min_key_length", 1),
            max_length=CONFIG.get("max_key_length", 39),
            top_n=CONFIG.get("top_key_lengths", 10),
            blocks=CONFIG.get("key_length_blocks", 4),
        )

    def solve_columns(self, columns: List[bytes]) -> List[SingleByteResult]:
        """Solve each column independently; results keep the column order."""
        column_workers = CONFIG.get("column_workers", 0)
        if not column_workers or column_workers <= 1 or len(columns) <= 1:
            return [self.solver.solve(col) for col in columns]

        results: List[Optional[SingleByteResult]] = [None] * len(columns)
        max_workers = min(column_workers, len(columns))
        with concurrent.futures.ProcessPoolExecutor(
            max_workers=max_workers,
            initializer=_worker_initializer,
            initargs=(CONFIG,),
        ) as executor:
            futures = [
                executor.submit(column_solve_worker, (i, col, self.score_fn))
                for i, col in enumerate(columns)
            ]
            debug(f"[COLUMN] Submitted {len(futures)} column tasks to {max_workers} workers")
            try:
                for future in concurrent.futures.as_completed(futures):
                    index, result = future.result()
                    results[index] = result
            except KeyboardInterrupt:
                set_keyboard_interrupt()
                for f in futures:
                    f.cancel()
                executor.shutdown(wait=False, cancel_futures=True)
                raise

        return results

    def break_with_key_length(self, ciphertext: bytes, key_length: int) -> BreakResult:
        """Recover plaintext and key for a known key length."""
        ciphertext = bytes(ciphertext)
        if isinstance(key_length, bool) or not isinstance(key_length, int):
            raise InvalidInputError(f"Key length must be an integer, got {key_length!r}")

        columns = transpose_columns(ciphertext, key_length)
        solved = self.solve_columns(columns)

        key = bytes(r.key_byte for r in solved)
        plaintext = reassemble_columns([r.plaintext for r in solved])
        score = self.score_fn(plaintext)

        debug(f"[BREAK] key_length={key_length} key={to_hex(key)} score={score}")
        return BreakResult(key_length, key, plaintext, score)

    def break_unknown_length(self, ciphertext: bytes) -> BreakResult:
        """Try every shortlisted key length and keep the most plausible plaintext."""
        ciphertext = bytes(ciphertext)
        candidates = self.guess_key_lengths(ciphertext)
        self.last_candidates = candidates
        self.last_results = []

        if not candidates:
            raise InsufficientDataError(
                f"Ciphertext of {len(ciphertext)} bytes is too short to estimate a key length "
                f"(need {CONFIG.get('key_length_blocks', 4)} blocks of at least "
                f"{CONFIG.get('min_key_length', 1)} byte(s))"
            )

        if CONFIG.get("intermediate_output", True):
            shortlist = ", ".join(f"{c.length}({c.score:.3f})" for c in candidates)
            print(f"[KEY-LENGTH] Shortlist: {shortlist}")

        leaderboard = CandidateLeaderboard(max_size=max(1, CONFIG.get("top_results", 3)))
        for candidate in candidates:
            result = self.break_with_key_length(ciphertext, candidate.length)
            leaderboard.add_candidate(result.score, result.key_length, result)
            if CONFIG.get("intermediate_output", True):
                print(
                    f"[BREAK] key_length={result.key_length:3d} plaintext_score={result.score}"
                )

        self.last_results = [payload for _, _, payload in leaderboard.get_top_n(leaderboard.size())]
        best_score, _, best = leaderboard.get_best()

        if best_score <= 0:
            raise NoPlausibleDecryptionError(
                f"No key length among {[c.length for c in candidates]} gave a plausible decryption"
            )

        if CONFIG.get("intermediate_output", True):
            print(
                f"[RESULT] key_length={best.key_length} key={to_hex(best.key)} score={best.score}"
            )
        return best

    def break_cipher(self, ciphertext: bytes, key_length: Optional[int] = None) -> BreakResult:
        if key_length is None:
            return self.break_unknown_length(ciphertext)
        return self.break_with_key_length(ciphertext, key_length)
