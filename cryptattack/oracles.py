"""
Local oracle services for the attacks.

Each oracle owns a secret key (and whatever else it hides) and exposes only the
capability an attacker gets to see:

  - EncryptionOracle : AES-ECB/CBC(pad(random prefix? || attacker data || secret suffix))
  - ModeOracle       : random ECB or CBC under a fresh key, random bytes around the input
  - PaddingOracle    : CBC encryption, and a yes/no answer on padding validity
  - CookieOracle     : CBC-encrypted "userdata" cookie with quoting of ';' and '='

Every oracle takes an optional random.Random so that keys, prefixes and IVs can
be reproduced in tests. Without one, keys come from get_random_bytes and the
other draws from random.SystemRandom.
"""

import logging
import random
import threading
from typing import Optional, Sequence, Tuple

from Crypto.Cipher import AES
from Crypto.Util.Padding import pad, unpad

from .util import BLOCK_SIZE, random_bytes

logger = logging.getLogger(__name__)

ECB = "ecb"
CBC = "cbc"


def aes_ecb_encrypt(plaintext: bytes, key: bytes) -> bytes:
    """Encrypts plaintext using AES-ECB with PKCS#7 padding"""
    return AES.new(key, AES.MODE_ECB).encrypt(pad(plaintext, BLOCK_SIZE))


def aes_cbc_encrypt(plaintext: bytes, key: bytes, iv: bytes) -> bytes:
    """Encrypts plaintext using AES-CBC with PKCS#7 padding"""
    return AES.new(key, AES.MODE_CBC, iv).encrypt(pad(plaintext, BLOCK_SIZE))


def aes_cbc_decrypt(ciphertext: bytes, key: bytes, iv: bytes) -> Tuple[Optional[bytes], bool]:
    """Decrypt ciphertext and validate PKCS#7 padding"""
    padded_plaintext = AES.new(key, AES.MODE_CBC, iv).decrypt(ciphertext)
    try:
        return unpad(padded_plaintext, BLOCK_SIZE, style="pkcs7"), True
    except ValueError:
        return None, False


class EncryptionOracle:
    """
    Chosen-plaintext oracle: encrypt(data) = Enc_k(pad(prefix || data || secret)).

    Args:
        secret: suffix appended after the attacker's bytes
        mode: ECB or CBC (CBC uses a fresh IV per call, which is not returned)
        prefix_range: (lo, hi) to prepend lo <= n < hi random bytes, or None
        fixed_prefix: draw the prefix once for the whole oracle lifetime
                      instead of on every call
        rng: random source for key, prefix and IVs
    """

    def __init__(self, secret: bytes, mode: str = ECB, prefix_range: Optional[Tuple[int, int]] = None,
                 fixed_prefix: bool = False, rng: Optional[random.Random] = None,
                 key: Optional[bytes] = None):
        if mode not in (ECB, CBC):
            raise ValueError(f"unknown mode: {mode!r}")
        self._rng = rng if rng is not None else random.SystemRandom()
        self._key = key if key is not None else random_bytes(16, rng)
        self._secret = bytes(secret)
        self._prefix_range = prefix_range
        self.mode = mode
        self.calls = 0
        self._calls_lock = threading.Lock()
        self._prefix = self._draw_prefix() if fixed_prefix else None

    def _draw_prefix(self) -> bytes:
        if self._prefix_range is None:
            return b""
        lo, hi = self._prefix_range
        return random_bytes(self._rng.randrange(lo, hi), self._rng)

    def encrypt(self, attacker_bytes: bytes) -> bytes:
        with self._calls_lock:
            self.calls += 1
        prefix = self._prefix if self._prefix is not None else self._draw_prefix()
        plaintext = prefix + bytes(attacker_bytes) + self._secret
        if self.mode == ECB:
            return aes_ecb_encrypt(plaintext, self._key)
        return aes_cbc_encrypt(plaintext, self._key, random_bytes(BLOCK_SIZE, self._rng))

    __call__ = encrypt


class ModeOracle:
    """
    Encrypts under a fresh random key each call, with 5..10 random bytes
    before and after the input, choosing ECB or CBC.

    mode=None picks the mode at random per call; last_mode records the choice.
    """

    def __init__(self, mode: Optional[str] = None, rng: Optional[random.Random] = None):
        self._rng = rng if rng is not None else random.SystemRandom()
        self._mode = mode
        self.last_mode = None

    def encrypt(self, plaintext: bytes) -> bytes:
        rng = self._rng
        extended = (random_bytes(rng.randint(5, 10), rng) + bytes(plaintext)
                    + random_bytes(rng.randint(5, 10), rng))
        key = random_bytes(16, rng)
        self.last_mode = self._mode or rng.choice((ECB, CBC))
        if self.last_mode == ECB:
            return aes_ecb_encrypt(extended, key)
        return aes_cbc_encrypt(extended, key, random_bytes(BLOCK_SIZE, rng))

    __call__ = encrypt


class PaddingOracle:
    """CBC encryption under a hidden key, and a padding-validity check."""

    def __init__(self, rng: Optional[random.Random] = None, key: Optional[bytes] = None):
        self._rng = rng if rng is not None else random.SystemRandom()
        self._key = key if key is not None else random_bytes(16, rng)
        self.queries = 0

    def encrypt(self, plaintext: bytes) -> Tuple[bytes, bytes]:
        """Return (ciphertext, iv) for plaintext under a fresh IV."""
        iv = random_bytes(BLOCK_SIZE, self._rng)
        return aes_cbc_encrypt(plaintext, self._key, iv), iv

    def is_valid(self, ciphertext: bytes, iv: bytes) -> bool:
        """True iff the decryption of ciphertext under iv is correctly padded."""
        self.queries += 1
        if len(iv) != BLOCK_SIZE or not ciphertext or len(ciphertext) % BLOCK_SIZE:
            return False
        _, valid = aes_cbc_decrypt(ciphertext, self._key, iv)
        return valid

    __call__ = is_valid


class TargetPaddingOracle(PaddingOracle):
    """A PaddingOracle that encrypts one of a fixed set of messages, chosen at random per call."""

    def __init__(self, targets: Sequence[bytes], rng: Optional[random.Random] = None,
                 key: Optional[bytes] = None):
        if not targets:
            raise ValueError("targets must be non-empty")
        super().__init__(rng=rng, key=key)
        self._targets = [bytes(t) for t in targets]

    def select_and_encrypt(self) -> Tuple[bytes, bytes]:
        return self.encrypt(self._rng.choice(self._targets))


class CookieOracle:
    """
    Issues CBC-encrypted cookies

      comment1=cooking%20MCs;userdata=<quoted data>;comment2=%20like%20a%20pound%20of%20bacon

    where ';' and '=' in the user data are quoted. Tokens are iv || ciphertext.
    """

    PREFIX = b"comment1=cooking%20MCs;userdata="
    SUFFIX = b";comment2=%20like%20a%20pound%20of%20bacon"
    ADMIN_MARKER = b";admin=true;"

    def __init__(self, rng: Optional[random.Random] = None, key: Optional[bytes] = None):
        self._rng = rng if rng is not None else random.SystemRandom()
        self._key = key if key is not None else random_bytes(16, rng)

    @staticmethod
    def quote(userdata: bytes) -> bytes:
        return bytes(userdata).replace(b";", b"%3b").replace(b"=", b"%3d")

    def encrypt(self, userdata: bytes) -> bytes:
        iv = random_bytes(BLOCK_SIZE, self._rng)
        plaintext = self.PREFIX + self.quote(userdata) + self.SUFFIX
        return iv + aes_cbc_encrypt(plaintext, self._key, iv)

    __call__ = encrypt

    def decrypt(self, token: bytes) -> Optional[bytes]:
        """Plaintext of a token, or None if it does not decrypt to valid padding."""
        if len(token) < 2 * BLOCK_SIZE or len(token) % BLOCK_SIZE:
            return None
        plaintext, valid = aes_cbc_decrypt(token[BLOCK_SIZE:], self._key, token[:BLOCK_SIZE])
        return plaintext if valid else None

    def is_admin(self, token: bytes) -> bool:
        plaintext = self.decrypt(token)
        if plaintext is None:
            logger.debug("decryption failed")
            return False
        return self.ADMIN_MARKER in plaintext
