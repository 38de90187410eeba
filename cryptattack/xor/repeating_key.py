"""
Break repeating-key XOR.

Principle:
  1. For each candidate key size, the normalized Hamming distance between
     consecutive ciphertext chunks is lower at the true size: XOR of two
     English chunks has fewer differing bits than XOR of unrelated streams.
  2. Transpose the ciphertext into one column per key byte; each column is a
     single-byte XOR and is solved with the frequency model.
  3. Accept the first key size whose decryption looks like text.
"""

import logging
from typing import List, Tuple

import numpy as np

from ..errors import NoKeyFound
from ..freqs import score_english
from .single_byte import guess_single_byte_key

logger = logging.getLogger(__name__)

MIN_KEY_SIZE = 2
MAX_KEY_SIZE = 40
# a key size is only considered if the ciphertext holds this many whole chunks
MIN_CHUNKS = 4


def repeating_key_xor(data: bytes, key: bytes) -> bytes:
    """Encrypt (or decrypt) data with a key that cycles indefinitely."""
    if not key:
        raise ValueError("key must not be empty")
    return bytes(b ^ key[i % len(key)] for i, b in enumerate(data))


def hamming_distance(a: bytes, b: bytes) -> int:
    """Number of differing bits between two byte strings of the same length."""
    if len(a) != len(b):
        raise ValueError("strings must be the same length")
    diff = np.bitwise_xor(np.frombuffer(bytes(a), dtype=np.uint8),
                          np.frombuffer(bytes(b), dtype=np.uint8))
    return int(np.unpackbits(diff).sum())


def guess_key_size(ct: bytes, min_size: int = MIN_KEY_SIZE, max_size: int = MAX_KEY_SIZE,
                   min_chunks: int = MIN_CHUNKS) -> List[int]:
    """Candidate key sizes, most likely first."""
    scored = []
    for size in range(min_size, max_size + 1):
        n_chunks = len(ct) // size
        if n_chunks < min_chunks:
            continue
        chunks = [ct[i * size:(i + 1) * size] for i in range(n_chunks)]
        dists = [hamming_distance(chunks[i], chunks[i + 1]) for i in range(n_chunks - 1)]
        scored.append((sum(dists) / len(dists) / size, size))
    scored.sort()
    return [size for _, size in scored]


def guess_n_byte_key(ct: bytes, n: int) -> bytes:
    """Solve each of the n interleaved columns as a single-byte XOR."""
    key = bytearray()
    for j in range(n):
        _, k, _ = guess_single_byte_key(ct[j::n])
        key.append(k)
    return bytes(key)


def shortest_period(key: bytes) -> bytes:
    """'ICEICE' -> 'ICE'"""
    for p in range(1, len(key)):
        if len(key) % p == 0 and key[:p] * (len(key) // p) == key:
            return key[:p]
    return key


def break_repeating_xor(ct: bytes) -> Tuple[bytes, bytes]:
    """
    Recover (key, plaintext) of repeating-key XOR encrypted English text.

    Each candidate size is preceded by its proper divisors: a key that
    repeats with a shorter period gives the same decryption, with longer
    (more reliable) columns.
    """
    tried = set()
    for size in guess_key_size(ct):
        for n in [d for d in range(2, size) if size % d == 0] + [size]:
            if n in tried:
                continue
            tried.add(n)
            try:
                key = shortest_period(guess_n_byte_key(ct, n))
            except NoKeyFound:
                logger.debug("key size %d: a column has no key", n)
                continue
            plain = repeating_key_xor(ct, key)
            if score_english(plain) > 0:
                logger.info("[+] key size %d (candidate %d): %r", len(key), size, key)
                return key, plain
            logger.debug("key size %d: decryption is not text", n)
    raise NoKeyFound("no key size gives a text decryption")
