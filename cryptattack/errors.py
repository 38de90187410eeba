"""Failure kinds reported by the attacks."""


class AttackError(RuntimeError):
    """Base class for every attack failure."""


class RetryableMisalignment(AttackError):
    """A probe landed at the wrong alignment; the attack tries again."""


class OracleContractViolation(AttackError):
    """The oracle did not behave as the attack assumes (block size, alignment, padding)."""


class AmbiguousRecovery(AttackError):
    """More than one candidate survived disambiguation, or none did."""


class NoKeyFound(AttackError, ValueError):
    """No key candidate produced text; the input is empty or not English."""


class AttackExhausted(AttackError):
    """The retry ceiling was reached without a result."""
