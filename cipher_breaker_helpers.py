from typing import List, Tuple, Dict, Optional, NamedTuple
from itertools import combinations


CONFIG: Dict = {}

# byte ranges used by the plausibility score
LOWERCASE_MIN, LOWERCASE_MAX = 97, 122
PUNCTUATION_MIN, PUNCTUATION_MAX = 33, 64


#
# ERRORS
#


class BreakerError(ValueError):
    """Base class for failures reported by the breaker."""


class InvalidInputError(BreakerError):
    """Non-positive or out-of-range key length / column count."""


class InsufficientDataError(BreakerError):
    """Ciphertext too short for the requested analysis."""


class NoPlausibleDecryptionError(BreakerError):
    """No candidate key length produced a decryption above the baseline."""


class KeyLengthCandidate(NamedTuple):
    length: int
    score: float


class KeyByteCandidate(NamedTuple):
    key_byte: int
    score: int


def set_config_helpers(cfg: Dict):
    """Initialize module-level CONFIG (copy) so helpers use the same settings as caller."""
    global CONFIG
    if isinstance(cfg, dict):
        CONFIG = cfg.copy()
    else:
        CONFIG = dict(cfg)


def debug(*args, **kwargs):
    if CONFIG.get("debug_output", False):
        print(*args, **kwargs)


def count_set_bits(byte: int) -> int:
    """Count set bits by clearing the lowest one until nothing is left."""
    count = 0
    while byte:
        byte &= byte - 1
        count += 1
    return count


def hamming_distance(bytes1: bytes, bytes2: bytes) -> int:
    """Number of differing bits between two equal-length byte strings."""
    if len(bytes1) != len(bytes2):
        raise ValueError(
            f"Hamming distance needs equal lengths, got {len(bytes1)} and {len(bytes2)}"
        )
    return sum(count_set_bits(a ^ b) for a, b in zip(bytes1, bytes2))


def score_plaintext(data: bytes) -> int:
    """
    Crude 'looks like prose' score.

    Lowercase ASCII letters add one point; punctuation, digits and '@' (33..64)
    take one point away while the running total is positive. Everything else
    is neutral, so the score never drops below zero. Swap this function for a
    frequency table or an n-gram model if better accuracy is needed.
    """
    acc = 0
    for b in data:
        if LOWERCASE_MIN <= b <= LOWERCASE_MAX:
            acc += 1
        elif PUNCTUATION_MIN <= b <= PUNCTUATION_MAX and acc > 0:
            acc -= 1
    return acc


def score_key_length(ciphertext: bytes, key_length: int, blocks: int = 4) -> Optional[float]:
    """
    Average pairwise Hamming distance between the first `blocks` blocks of
    key_length bytes, divided by key_length. Lower means more likely.

    Returns None when the ciphertext holds fewer than `blocks` full blocks.
    """
    if key_length < 1:
        raise InvalidInputError(f"Key length must be positive, got {key_length}")
    if blocks < 2:
        raise InvalidInputError(f"Need at least two blocks to compare, got {blocks}")
    if blocks * key_length > len(ciphertext):
        return None

    chunks = [
        ciphertext[i * key_length : (i + 1) * key_length] for i in range(blocks)
    ]
    distances = [hamming_distance(a, b) for a, b in combinations(chunks, 2)]
    return (sum(distances) / len(distances)) / key_length


def rank_key_lengths(
    ciphertext: bytes,
    min_length: Optional[int] = None,
    max_length: Optional[int] = None,
    top_n: Optional[int] = None,
    blocks: Optional[int] = None,
) -> List[KeyLengthCandidate]:
    """
    Score every key length in [min_length, max_length] and return the top_n
    candidates, best first. Equal scores go to the smaller length. Lengths the
    ciphertext is too short for are skipped, so the result may be empty.
    """
    min_length = CONFIG.get("min_key_length", 1) if min_length is None else min_length
    max_length = CONFIG.get("max_key_length", 39) if max_length is None else max_length
    top_n = CONFIG.get("top_key_lengths", 10) if top_n is None else top_n
    blocks = CONFIG.get("key_length_blocks", 4) if blocks is None else blocks
    digits = CONFIG.get("score_round_digits", 9)

    if min_length < 1:
        raise InvalidInputError(f"Minimum key length must be positive, got {min_length}")
    if max_length < min_length:
        raise InvalidInputError(
            f"Key length range is empty: {min_length}..{max_length}"
        )
    if top_n < 1:
        raise InvalidInputError(f"Shortlist size must be positive, got {top_n}")

    scored: List[KeyLengthCandidate] = []
    skipped = 0
    for length in range(min_length, max_length + 1):
        score = score_key_length(ciphertext, length, blocks)
        if score is None:
            skipped += 1
            continue
        debug(f"[KEY-LENGTH] length={length:3d} score={score:.6f}")
        scored.append(KeyLengthCandidate(length, score))

    if skipped:
        debug(
            f"[KEY-LENGTH] Skipped {skipped} length(s) needing more than {len(ciphertext)} bytes"
        )

    scored.sort(key=lambda c: (round(c.score, digits), c.length))
    return scored[:top_n]


#
# CLASSES
#


class CandidateLeaderboard:
    """
    Keeps the best decryptions seen so far, sorted by score (descending).
    On equal scores the shorter key length stays ahead.
    """

    def __init__(self, max_size: int = 3):
        self.max_size = max_size
        self.candidates = []  # List of (score, key_length, payload) tuples

    def add_candidate(self, score: int, key_length: int, payload=None) -> bool:
        """Add a candidate. Returns True if it survived the trim."""
        entry = (score, key_length, payload)
        self.candidates.append(entry)
        self.candidates.sort(key=lambda x: (-x[0], x[1]))
        del self.candidates[self.max_size :]
        return any(c is entry for c in self.candidates)

    def get_top_n(self, n: int) -> List[Tuple[int, int, object]]:
        return self.candidates[:n]

    def get_best(self) -> Optional[Tuple[int, int, object]]:
        return self.candidates[0] if self.candidates else None

    def size(self) -> int:
        return len(self.candidates)

    def clear(self):
        self.candidates.clear()
