import pytest
from Crypto.Cipher import AES

from cryptattack.oracles import (
    CBC,
    CookieOracle,
    EncryptionOracle,
    PaddingOracle,
    TargetPaddingOracle,
    aes_cbc_decrypt,
    aes_cbc_encrypt,
)


def test_encryption_oracle_lengths(rng, secret):
    oracle = EncryptionOracle(secret, rng=rng)
    assert len(oracle(b"")) == 144
    assert len(oracle(b"A" * 5)) == 144
    assert len(oracle(b"A" * 6)) == 160
    assert oracle.calls == 3


def test_encryption_oracle_is_deterministic_without_prefix(rng, secret):
    oracle = EncryptionOracle(secret, rng=rng)
    assert oracle(b"abc") == oracle(b"abc")
    cbc = EncryptionOracle(secret, mode=CBC, rng=rng)
    assert cbc(b"abc") != cbc(b"abc")


def test_fixed_prefix_stays_put(rng, secret):
    oracle = EncryptionOracle(secret, prefix_range=(1, 40), fixed_prefix=True, rng=rng)
    assert oracle(b"abc") == oracle(b"abc")


def test_unknown_mode():
    with pytest.raises(ValueError):
        EncryptionOracle(b"x", mode="ctr")


def test_cbc_roundtrip_checks_padding():
    key, iv = bytes(range(16)), bytes(16)
    ct = aes_cbc_encrypt(b"attack at dawn", key, iv)
    assert aes_cbc_decrypt(ct, key, iv) == (b"attack at dawn", True)
    assert aes_cbc_decrypt(ct, key, bytes(15) + b"\x55") == (None, False)


def test_construct_padding_using_iv():
    key = bytes(range(16))
    oracle = PaddingOracle(key=key)
    iv = bytearray(16)
    ct = AES.new(key, AES.MODE_CBC, bytes(iv)).encrypt(bytes(16))
    assert not oracle.is_valid(ct, bytes(iv))

    # Use an IV that will make the last byte 0x01, and therefore make it look padded.
    iv[15] = 0x01
    assert oracle.is_valid(ct, bytes(iv))

    # Try making the last 2 bytes 0x02.
    iv[15] = 0x02
    iv[14] = 0x02
    assert oracle.is_valid(ct, bytes(iv))
    assert oracle.queries == 3


def test_padding_oracle_rejects_bad_lengths(rng):
    oracle = PaddingOracle(rng=rng)
    ct, iv = oracle.encrypt(b"hello")
    assert oracle(ct, iv)
    assert not oracle(ct[:-1], iv)
    assert not oracle(b"", iv)
    assert not oracle(ct, iv[:8])


def test_last_block_is_always_padded(rng):
    oracle = TargetPaddingOracle([b"short", b"exactly 16 bytes", b"a" * 40], rng=rng)
    for _ in range(30):
        ct, iv = oracle.select_and_encrypt()
        assert oracle.is_valid(ct, iv)
        assert oracle.is_valid(ct[-16:], ct[-32:-16] if len(ct) > 16 else iv)


def test_target_oracle_needs_targets():
    with pytest.raises(ValueError):
        TargetPaddingOracle([])


def test_cookie_quoting(rng):
    oracle = CookieOracle(rng=rng)
    assert CookieOracle.quote(b";admin=true") == b"%3badmin%3dtrue"
    token = oracle.encrypt(b"hello")
    assert oracle.decrypt(token) == CookieOracle.PREFIX + b"hello" + CookieOracle.SUFFIX
    assert oracle.decrypt(token[:-1]) is None
    assert not oracle.is_admin(token)
