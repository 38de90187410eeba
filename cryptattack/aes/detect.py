"""
ECB / CBC mode detection.

In ECB two equal plaintext blocks give two equal ciphertext blocks, so any
repeated ciphertext block is a strong hint of ECB. This is only a heuristic:
short or high-entropy plaintexts have no repeated block and are reported as
not ECB even when they are.
"""

from typing import Iterable, List

from ..util import BLOCK_SIZE, blocks


def detect_ecb(ciphertext: bytes, block_size: int = BLOCK_SIZE) -> bool:
    """True iff some block appears twice in ciphertext."""
    chunks = blocks(ciphertext, block_size)
    return len(set(chunks)) < len(chunks)


def find_ecb_candidates(ciphertexts: Iterable[bytes], block_size: int = BLOCK_SIZE) -> List[int]:
    """Indices of the ciphertexts that look ECB encrypted."""
    return [i for i, ct in enumerate(ciphertexts) if detect_ecb(ct, block_size)]
