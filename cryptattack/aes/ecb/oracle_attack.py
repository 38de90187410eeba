#!/usr/bin/env python3
"""
ECB Oracle Attack - Byte-by-byte recovery of a secret suffix

The oracle returns AES-ECB(pad([random prefix] || attacker data || secret)).
ECB is deterministic per block, so a block holding 15 known bytes and one
unknown byte can be matched against the 256 blocks obtained by trying every
value of that last byte (the "alphabet").

Simple variant (no prefix):
  1. Build the alphabet from guess blocks: known bytes + trial byte.
  2. Send (bs - 1 - i % bs) zero bytes so that secret byte i is the last byte
     of block i // bs, and look that block up in the alphabet.
  3. Stop when the padding starts changing under us near the end.

Hard variant (random-length prefix, redrawn on every call):
  Every probe is  zeros(offset) || marker x 17 || alphabet || capture.
  The offset cycles through 0..bs-1. When prefix + offset is a whole number of
  blocks the 17 markers encrypt to 17 equal blocks; otherwise only 16 are
  equal and the attempt is dropped. An aligned response carries the alphabet
  and the capture block, so one call recovers one byte.

Usage: python3 -m cryptattack.aes.ecb.oracle_attack
"""

import logging
import random
from multiprocessing.pool import ThreadPool
from typing import Callable, List, Optional

from tqdm import tqdm

from ...errors import AttackExhausted, OracleContractViolation, RetryableMisalignment
from ...util import BLOCK_SIZE, blocks, lossy_ascii, random_bytes, strip_pkcs7

logger = logging.getLogger(__name__)

Oracle = Callable[[bytes], bytes]

MAX_BLOCK_SIZE = 256
MAX_ATTEMPTS = 50_000
# 17 copies so a misaligned probe still shows 16 equal blocks, never 17
N_MARKERS = 17


def discover_block_size(oracle: Oracle, max_block_size: int = MAX_BLOCK_SIZE) -> int:
    """Detects the block size by observing ciphertext length changes"""
    initial_length = len(oracle(b""))
    for i in range(1, max_block_size + 1):
        new_length = len(oracle(b"A" * i))
        if new_length > initial_length:
            return new_length - initial_length
    raise OracleContractViolation("no block size found")


def confirm_ecb(oracle: Oracle, block_size: int = BLOCK_SIZE) -> bool:
    """Two identical injected blocks give two identical ciphertext blocks under ECB."""
    ct = oracle(b"A" * (2 * block_size))
    return ct[:block_size] == ct[block_size:2 * block_size]


def check_alphabet(alphabet: List[bytes]) -> None:
    """All 256 alphabet blocks must differ; a collision means block size or alignment is wrong."""
    if len(alphabet) != 256:
        raise OracleContractViolation(f"alphabet has {len(alphabet)} entries, expected 256")
    if len(set(alphabet)) != 256:
        seen = {}
        for i, block in enumerate(alphabet):
            if block in seen:
                raise OracleContractViolation(
                    f"alphabet[{seen[block]:#04x}] == alphabet[{i:#04x}]: {block.hex()}")
            seen[block] = i


def alphabet_lookup(alphabet: List[bytes], target: bytes) -> Optional[int]:
    try:
        return alphabet.index(target)
    except ValueError:
        return None


def find_repeated_block(ct: bytes, n: int, block_size: int = BLOCK_SIZE) -> Optional[int]:
    """Index of the first block that is repeated n times in a row, or None."""
    if len(ct) % block_size:
        raise OracleContractViolation("ciphertext is not a whole number of blocks")
    ct_blocks = blocks(ct, block_size)
    run_start = 0
    for i in range(len(ct_blocks)):
        if ct_blocks[i] != ct_blocks[run_start]:
            run_start = i
        if i - run_start + 1 >= n:
            return run_start
    return None


def build_alphabet(oracle: Oracle, known: bytes, block_size: int = BLOCK_SIZE,
                   workers: int = 1) -> List[bytes]:
    """
    First ciphertext block for each of known || x, x in 0..255.

    The queries are independent; with workers > 1 they run on a thread pool,
    which is only sound when the oracle has no per-call randomness.
    """
    probes = [known + bytes([x]) for x in range(256)]

    def first_block(probe):
        return oracle(probe)[:block_size]

    if workers > 1:
        with ThreadPool(workers) as pool:
            return pool.map(first_block, probes)
    return [first_block(p) for p in probes]


def recover_suffix(oracle: Oracle, block_size: int = BLOCK_SIZE, workers: int = 1,
                   progress: bool = False) -> bytes:
    """
    Recover the secret appended by an ECB oracle with no prefix.

    Returns:
        the secret, padding removed
    """
    recovered = bytearray()
    total_length = len(oracle(b""))
    logger.info("[*] ECB oracle output: %d bytes", total_length)

    for i in tqdm(range(total_length), disable=not progress, desc="ECB suffix"):
        # The guess block is one block long: up to bs-1 recovered bytes, zeros
        # in front as needed, and the trial byte last.
        grb = min(len(recovered), block_size - 1)
        known = bytes(block_size - 1 - grb) + bytes(recovered[len(recovered) - grb:])
        alphabet = build_alphabet(oracle, known, block_size, workers)
        check_alphabet(alphabet)

        # Align byte i to the end of its block
        padding = bytes(block_size - 1 - i % block_size)
        ct = oracle(padding)
        start = (i // block_size) * block_size
        byte = alphabet_lookup(alphabet, ct[start:start + block_size])
        if byte is not None:
            recovered.append(byte)
            logger.debug("%3d: recovered byte %#04x %r", i, byte, chr(byte))
            continue

        # Close to the end the padding changes with the prefix length, so
        # nothing matches; anywhere else an assumption is broken.
        if len(ct) - i <= block_size:
            break
        raise OracleContractViolation(f"block not found for byte {i}")

    logger.info("[+] Recovered: %s", lossy_ascii(recovered))
    return strip_pkcs7(bytes(recovered), block_size)


def _probe_once(oracle: Oracle, recovered: bytearray, prefix: bytes, offset: int,
                markers: bytes, block_size: int) -> int:
    """
    One aligned-or-not attempt at the next byte.

    Raises:
        RetryableMisalignment: this attempt was not aligned, try again
        OracleContractViolation: the response cannot come from an ECB oracle
    """
    # offset || markers || alphabet || capture
    probe = bytearray(offset)
    probe += markers
    for b in range(256):
        probe += prefix
        probe.append(b)
    probe += bytes(block_size - (len(recovered) + 1) % block_size)

    ct = oracle(bytes(probe))
    # There should always be at least this many repeats, even if it's not aligned.
    if find_repeated_block(ct, N_MARKERS - 1, block_size) is None:
        raise OracleContractViolation("didn't find alignment markers")
    marker_offset = find_repeated_block(ct, N_MARKERS, block_size)
    if marker_offset is None:
        raise RetryableMisalignment(f"offset {offset} not aligned")

    ct_blocks = blocks(ct, block_size)
    alpha_start = marker_offset + N_MARKERS
    alphabet = ct_blocks[alpha_start:alpha_start + 256]
    check_alphabet(alphabet)

    target_block = alpha_start + 256 + (len(recovered) + 1) // block_size
    if target_block >= len(ct_blocks):
        raise RetryableMisalignment("capture block beyond end of ciphertext")
    byte = alphabet_lookup(alphabet, ct_blocks[target_block])
    if byte is None:
        raise RetryableMisalignment("no match against alphabet")
    return byte


def recover_suffix_with_prefix(oracle: Oracle, block_size: int = BLOCK_SIZE,
                               max_attempts: int = MAX_ATTEMPTS,
                               rng: Optional[random.Random] = None,
                               progress: bool = False) -> bytes:
    """
    Recover the secret appended by an ECB oracle that also prepends a
    random-length prefix on every call.

    The end of the secret is recognised when the recovered byte is 0x01, the
    first padding byte. A secret that really contains 0x01 stops there too.

    Raises:
        AttackExhausted: max_attempts calls without finishing
    """
    recovered = bytearray()
    # last (bs - 1) recovered bytes, zeros at first
    prefix = bytearray(block_size - 1)
    offset = 0
    markers = random_bytes(block_size, rng) * N_MARKERS
    misaligned = 0

    with tqdm(total=max_attempts, disable=not progress, desc="ECB alignment") as bar:
        for attempt in range(max_attempts):
            bar.update(1)
            # a different offset every time; no assumption on the prefix length
            offset = (offset + 1) % block_size
            try:
                byte = _probe_once(oracle, recovered, bytes(prefix), offset, markers, block_size)
            except RetryableMisalignment as e:
                misaligned += 1
                logger.debug("attempt %d: %s", attempt, e)
                continue

            if byte == 0x01:
                logger.info("[+] Solved after %d attempts (%d misaligned): %s",
                            attempt + 1, misaligned, lossy_ascii(recovered))
                return bytes(recovered)
            recovered.append(byte)
            prefix = prefix[1:] + bytes([byte])
            logger.debug("%3d: recovered byte %#04x %r", len(recovered) - 1, byte, chr(byte))

    raise AttackExhausted(
        f"no solution after {max_attempts} attempts; recovered {len(recovered)} bytes")


if __name__ == "__main__":
    from base64 import b64decode

    from ...oracles import EncryptionOracle

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    secret = b64decode(
        "Um9sbGluJyBpbiBteSA1LjAKV2l0aCBteSByYWctdG9wIGRvd24gc28gbXkg"
        "aGFpciBjYW4gYmxvdwpUaGUgZ2lybGllcyBvbiBzdGFuZGJ5IHdhdmluZyBq"
        "dXN0IHRvIHNheSBoaQpEaWQgeW91IHN0b3A/IE5vLCBJIGp1c3QgZHJvdmUg"
        "YnkK")

    print("[*] Starting ECB Oracle Attack...")
    oracle = EncryptionOracle(secret)
    block_size = discover_block_size(oracle)
    print(f"[+] Block size: {block_size} bytes, ECB: {confirm_ecb(oracle, block_size)}")
    print(recover_suffix(oracle, block_size, progress=True).decode())

    print("[*] Same secret behind a random-length prefix...")
    oracle = EncryptionOracle(secret, prefix_range=(0, 512))
    print(recover_suffix_with_prefix(oracle, block_size, progress=True).decode())
