"""
Key-less attacks on XOR and AES-ECB/CBC oracles.

  - xor          : frequency analysis, single-byte and repeating-key XOR
  - aes.detect   : ECB detection from repeated blocks
  - aes.ecb      : byte-at-a-time suffix recovery, profile cut-and-paste
  - aes.cbc      : padding oracle decryption, bit-flipping forgery
  - oracles      : local oracle services to run the attacks against
"""

import logging

from .errors import (
    AmbiguousRecovery,
    AttackError,
    AttackExhausted,
    NoKeyFound,
    OracleContractViolation,
    RetryableMisalignment,
)

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
