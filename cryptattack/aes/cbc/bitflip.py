#!/usr/bin/env python3
"""
CBC bit-flipping forgery.

In CBC, P[n] = D(C[n]) ^ C[n-1]: flipping a bit of ciphertext block n-1
flips the same bit of plaintext block n (and garbles block n-1).

Principle:
  1. The service quotes metacharacters (';' and '=') in user data, so
     ";admin=true;" cannot be sent directly.
  2. Send it with each quoted character replaced by a placeholder one bit
     away (':admin<true:'), starting on a block boundary, after one
     sacrificial block of filler.
  3. XOR placeholder ^ wanted into the same positions of the preceding
     ciphertext block. No other oracle query is needed.

Usage: python3 -m cryptattack.aes.cbc.bitflip
"""

import logging
from typing import Callable, List, Tuple

from ...util import BLOCK_SIZE

logger = logging.getLogger(__name__)

FILLER = b"A"


def choose_placeholders(payload: bytes, quote: Callable[[bytes], bytes]) -> Tuple[bytes, List[int]]:
    """
    Replace every byte of payload that quote() would alter.

    Returns (placeholder payload, positions that were replaced).
    """
    out = bytearray(payload)
    positions = []
    for i, b in enumerate(payload):
        if quote(bytes([b])) == bytes([b]):
            continue
        for bit in range(8):
            cand = b ^ (1 << bit)
            if 32 <= cand < 127 and quote(bytes([cand])) == bytes([cand]):
                out[i] = cand
                positions.append(i)
                break
        else:
            raise ValueError(f"no placeholder for byte {b:#04x}")
    return bytes(out), positions


def forge_injection(encrypt: Callable[[bytes], bytes], prefix_len: int, payload: bytes,
                    quote: Callable[[bytes], bytes], block_size: int = BLOCK_SIZE) -> bytes:
    """
    Forge a token whose plaintext contains payload verbatim.

    Args:
        encrypt: oracle returning iv || CBC(prefix || quote(data) || suffix)
        prefix_len: length of the fixed plaintext before the user data
        payload: bytes to inject, at most one block long
        quote: the service's quoting function

    Returns:
        the patched token
    """
    if len(payload) > block_size:
        raise ValueError(f"payload must fit in one block ({block_size} bytes)")

    placeholder, positions = choose_placeholders(payload, quote)
    # fill up to a block boundary, then one whole block to sacrifice
    filler_len = (-prefix_len) % block_size + block_size
    userdata = FILLER * filler_len + placeholder
    inject_at = prefix_len + filler_len

    token = bytearray(encrypt(userdata))
    # with the IV in front, token[x] sits in the block preceding plaintext byte x
    for i in positions:
        token[inject_at + i] ^= placeholder[i] ^ payload[i]
    logger.info("[+] Flipped %d bytes at offsets %s", len(positions),
                [inject_at + i for i in positions])
    return bytes(token)


if __name__ == "__main__":
    from ...oracles import CookieOracle

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    oracle = CookieOracle()
    print("Direct injection admin?", oracle.is_admin(oracle.encrypt(b";admin=true")))
    forged = forge_injection(oracle.encrypt, len(CookieOracle.PREFIX), CookieOracle.ADMIN_MARKER,
                             CookieOracle.quote)
    print("Decrypted:", oracle.decrypt(forged))
    print("Forged token admin?", oracle.is_admin(forged))
