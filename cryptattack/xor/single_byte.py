"""
Single-byte XOR brute force.

Try all 256 keys, score each decryption with the English frequency model and
keep the best. Ties go to the smaller key.
"""

import logging
from typing import Iterable, Tuple

from ..errors import NoKeyFound
from ..freqs import score_english

logger = logging.getLogger(__name__)


def guess_single_byte_key(ciphertext: bytes) -> Tuple[int, int, bytes]:
    """
    Guess the single-byte key that decodes English text.

    Returns:
        (score, key, plaintext) for the best-scoring key

    Raises:
        NoKeyFound: no key gives anything that looks like text
    """
    best_score, best_key, best_plain = 0, 0, b""
    for key in range(256):
        cand = bytes(c ^ key for c in ciphertext)
        score = score_english(cand)
        if score > best_score:
            best_score, best_key, best_plain = score, key, cand
    if best_score == 0:
        raise NoKeyFound(f"no single-byte key found for {len(ciphertext)} bytes")
    return best_score, best_key, best_plain


def detect_single_byte_xor(ciphertexts: Iterable[bytes]) -> Tuple[int, int, bytes, int]:
    """
    Find the one ciphertext among many that was single-byte XOR encrypted.

    Returns (score, key, plaintext, index) of the best candidate.
    """
    best = None
    for idx, ct in enumerate(ciphertexts):
        try:
            score, key, plain = guess_single_byte_key(ct)
        except NoKeyFound:
            continue
        logger.debug("%4d  %#04x %r", score, key, plain)
        if best is None or score > best[0]:
            best = (score, key, plain, idx)
    if best is None:
        raise NoKeyFound("no ciphertext decrypts to text")
    return best
