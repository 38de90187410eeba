"""Small byte helpers shared by the attacks."""

import random
from typing import List, Optional

from Crypto.Random import get_random_bytes

BLOCK_SIZE = 16


def blocks(data: bytes, block_size: int = BLOCK_SIZE) -> List[bytes]:
    """Split data into block_size chunks; the last one may be short."""
    return [data[i:i + block_size] for i in range(0, len(data), block_size)]


def strip_pkcs7(data: bytes, block_size: int = BLOCK_SIZE) -> bytes:
    """
    Remove PKCS#7 padding from a buffer that need not be a whole number of blocks.

    Crypto.Util.Padding.unpad insists on block-aligned input; recovered
    plaintext usually stops one byte into the padding, so it is checked here
    on its own terms: the last N bytes must all equal N, with 1 <= N <= block_size.
    """
    if not data:
        raise ValueError("cannot unpad an empty buffer")
    n = data[-1]
    if n == 0 or n > block_size or n > len(data) or data[-n:] != bytes([n]) * n:
        raise ValueError("invalid PKCS#7 padding")
    return data[:-n]


def random_bytes(n: int, rng: Optional[random.Random] = None) -> bytes:
    """n random bytes, from rng when given so runs can be reproduced."""
    if rng is None:
        return get_random_bytes(n)
    return rng.randbytes(n)


def lossy_ascii(data: bytes) -> str:
    """Printable ASCII as-is, everything else as '.'."""
    return "".join(chr(b) if 32 <= b < 127 else "." for b in data)
