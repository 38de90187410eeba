#!/usr/bin/env python3
"""
AES-128 ECB profile forgery (cut-and-paste)

A service encrypts profiles "email=<email>&uid=10&role=user" with AES-ECB and
strips '&' and '=' from the email, so "role=admin" cannot be injected
directly. In ECB each 16-byte block encrypts independently, though, so
ciphertext blocks from different profiles can be spliced together.

Principle:
  1. Pick an email length that ends a block exactly after "role=".
  2. Pick another email that places "admin" + PKCS#7 padding in a block of
     its own.
  3. Concatenate the leading blocks of the first profile with that block.

Usage: python3 -m cryptattack.aes.ecb.token_forgery
"""

import logging
import random
from typing import Dict, Optional

from Crypto.Cipher import AES
from Crypto.Util.Padding import pad, unpad

from ...util import BLOCK_SIZE, blocks, random_bytes

logger = logging.getLogger(__name__)


def parse_kv(s: str) -> Optional[Dict[str, str]]:
    """'foo=bar&baz=qux' -> {'foo': 'bar', 'baz': 'qux'}, None if malformed."""
    kv = {}
    for item in s.split("&"):
        if "=" not in item:
            return None
        k, v = item.split("=", 1)
        kv[k] = v
    return kv


def clean(s: str) -> str:
    return s.replace("&", "").replace("=", "")


def serialize_kv(kv: Dict[str, str]) -> str:
    """Keys sorted, metacharacters removed."""
    return "&".join(f"{clean(k)}={clean(v)}" for k, v in sorted(kv.items()))


def profile_for(email: str) -> str:
    return f"email={clean(email)}&uid=10&role=user"


class ProfileOracle:
    """Issues and reads AES-ECB encrypted profiles under a hidden key."""

    PREFIX = "email="
    MIDDLE = "&uid=10&role="

    def __init__(self, rng: Optional[random.Random] = None, key: Optional[bytes] = None):
        self._key = key if key is not None else random_bytes(16, rng)

    def encrypt_profile(self, email: str) -> bytes:
        data = profile_for(email).encode("latin-1")
        return AES.new(self._key, AES.MODE_ECB).encrypt(pad(data, BLOCK_SIZE))

    def decrypt_profile(self, ct: bytes) -> Optional[Dict[str, str]]:
        try:
            pt = unpad(AES.new(self._key, AES.MODE_ECB).decrypt(ct), BLOCK_SIZE)
        except ValueError:
            return None
        return parse_kv(pt.decode("latin-1"))


def forge_admin_profile(oracle: ProfileOracle, role: str = "admin",
                        block_size: int = BLOCK_SIZE) -> bytes:
    """Ciphertext of a profile whose role is `role`, built only from oracle output."""
    if len(role) >= block_size:
        raise ValueError(f"role must be shorter than one block ({block_size} bytes)")
    head_len = len(ProfileOracle.PREFIX) + len(ProfileOracle.MIDDLE)
    email_len = (-head_len) % block_size or block_size
    email_a = "x" * email_len
    ct_a = oracle.encrypt_profile(email_a)
    # "email=xxx...&uid=10&role=" ends on a block boundary
    aligned = head_len + email_len

    # "email=" + filler reaches a block boundary, then role + padding fills one block
    filler = "y" * ((-len(ProfileOracle.PREFIX)) % block_size)
    role_block = pad(role.encode("latin-1"), block_size).decode("latin-1")
    ct_b = oracle.encrypt_profile(filler + role_block)
    idx = (len(ProfileOracle.PREFIX) + len(filler)) // block_size
    role_ct = blocks(ct_b, block_size)[idx]

    forged = ct_a[:aligned] + role_ct
    logger.info("[+] Forged %d-byte token from %d + 1 blocks", len(forged), aligned // block_size)
    return forged


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    print("AES-128 ECB profile forgery\n")
    oracle = ProfileOracle()
    print("Regular profile:", oracle.decrypt_profile(oracle.encrypt_profile("user@example.com")))
    print("Injection attempt:", oracle.decrypt_profile(oracle.encrypt_profile("me@x.com&role=admin")))
    forged = forge_admin_profile(oracle)
    print(f"Malicious token: {forged.hex()}")
    print("Decrypted      :", oracle.decrypt_profile(forged))
