#!/usr/bin/env python3
"""
Vaudenay Attack - CBC Padding Oracle

Exploits PKCS#7 padding validation to decrypt AES-CBC ciphertext
without knowing the encryption key.

Attack process:
  1. Split the ciphertext into blocks; the IV precedes the first one
  2. Attack each block byte-by-byte from right to left, sending the block
     behind a mutated copy of its predecessor
  3. A valid padding p at position i gives plaintext[i] = mutated[i] ^ p ^ reference[i]
  4. Reconstruct complete message

For p = 1 more than one value can pass: if plaintext[14] happens to be 0x02,
making the last byte 0x02 gives a valid "02 02" padding too. Every value
that passes at p = 1 is re-checked with byte 14 of the mutated block changed;
only a genuine "... 01" padding survives that.

Usage: python3 -m cryptattack.aes.cbc.vaudenay_attack
"""

import logging
from typing import Callable, List

from Crypto.Util.Padding import unpad
from tqdm import tqdm

from ...errors import AmbiguousRecovery, OracleContractViolation
from ...util import BLOCK_SIZE, blocks, lossy_ascii

logger = logging.getLogger(__name__)

PaddingOracle = Callable[[bytes, bytes], bool]


def _confirm_single_pad(target_block: bytes, attack_block: bytearray, is_valid: PaddingOracle) -> bool:
    """Valid padding that does not depend on the second-to-last byte ends in 0x01."""
    probe = bytearray(attack_block)
    probe[-2] ^= 0xFF
    return is_valid(target_block, bytes(probe))


def attack_byte(target_block: bytes, reference: bytes, byte_pos: int, recovered: List[int],
                is_valid: PaddingOracle) -> int:
    """
    Attack single byte at specified position

    Args:
        target_block: Ciphertext block being attacked
        reference: the real previous ciphertext block (or IV)
        byte_pos: Position of byte to attack (0..bs-1, left to right)
        recovered: plaintext bytes of the block found so far (after byte_pos)
        is_valid: padding oracle

    Returns:
        Plaintext value of attacked byte
    """
    block_size = len(target_block)
    padding_value = block_size - byte_pos

    attack_block = bytearray(reference)
    # Set known bytes to produce correct padding
    for j in range(byte_pos + 1, block_size):
        attack_block[j] = recovered[j] ^ padding_value ^ reference[j]

    candidates = []
    for guess in range(256):
        attack_block[byte_pos] = guess
        if is_valid(target_block, bytes(attack_block)):
            if padding_value > 1:
                return guess ^ padding_value ^ reference[byte_pos]
            candidates.append(guess)

    if not candidates:
        raise OracleContractViolation(f"no valid padding found for byte {byte_pos}")

    if len(candidates) > 1:
        logger.debug("byte %d: %d values give valid padding, checking each", byte_pos, len(candidates))
        confirmed = []
        for guess in candidates:
            attack_block[byte_pos] = guess
            if _confirm_single_pad(target_block, attack_block, is_valid):
                confirmed.append(guess)
        if len(confirmed) != 1:
            raise AmbiguousRecovery(
                f"byte {byte_pos}: {len(candidates)} candidates, {len(confirmed)} confirmed")
        candidates = confirmed

    return candidates[0] ^ padding_value ^ reference[byte_pos]


def attack_block(target_block: bytes, previous_block: bytes, is_valid: PaddingOracle) -> bytes:
    """
    Attack complete block to recover plaintext

    Args:
        target_block: Ciphertext block to decrypt
        previous_block: Previous ciphertext block or IV
        is_valid: padding oracle

    Returns:
        Plaintext bytes of block
    """
    block_size = len(target_block)
    recovered = [0] * block_size
    # Attack bytes from right to left
    for byte_pos in range(block_size - 1, -1, -1):
        recovered[byte_pos] = attack_byte(target_block, previous_block, byte_pos, recovered, is_valid)
        logger.debug("byte %2d: %#04x", byte_pos, recovered[byte_pos])
    return bytes(recovered)


def padding_oracle_attack(ciphertext: bytes, iv: bytes, is_valid: PaddingOracle,
                          block_size: int = BLOCK_SIZE, progress: bool = False) -> bytes:
    """
    Decrypt every block of ciphertext with the padding oracle.

    Returns the plaintext with its padding still attached.
    """
    if not ciphertext or len(ciphertext) % block_size:
        raise ValueError("ciphertext must be a non-empty multiple of the block size")
    if len(iv) != block_size:
        raise ValueError(f"iv must be {block_size} bytes")

    cipher_blocks = blocks(ciphertext, block_size)
    decrypted_blocks = []
    for i, cipher_block in enumerate(tqdm(cipher_blocks, disable=not progress, desc="CBC blocks")):
        previous_block = iv if i == 0 else cipher_blocks[i - 1]
        plaintext_block = attack_block(cipher_block, previous_block, is_valid)
        logger.debug("block %d/%d: %s", i + 1, len(cipher_blocks), lossy_ascii(plaintext_block))
        decrypted_blocks.append(plaintext_block)

    return b"".join(decrypted_blocks)


def decrypt_with_padding_oracle(ciphertext: bytes, iv: bytes, is_valid: PaddingOracle,
                                block_size: int = BLOCK_SIZE, progress: bool = False) -> bytes:
    """padding_oracle_attack, then remove the PKCS#7 padding."""
    plaintext = padding_oracle_attack(ciphertext, iv, is_valid, block_size, progress)
    message = unpad(plaintext, block_size, style="pkcs7")
    logger.info("[+] Decrypted message: %s", lossy_ascii(message))
    return message


if __name__ == "__main__":
    from ...oracles import PaddingOracle as LocalPaddingOracle

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    print("Starting padding oracle attack...")
    oracle = LocalPaddingOracle()
    ct, iv = oracle.encrypt(b"Congratulations! Here is your flag: FLAG{f4k3_f0r_t3st1ng}")
    print(f"Received {len(ct)} bytes ({len(ct) // BLOCK_SIZE} blocks)\n")
    message = decrypt_with_padding_oracle(ct, iv, oracle.is_valid, progress=True)
    print(f"Decrypted message:\n{message.decode()}")
    print(f"Oracle queries: {oracle.queries}")
