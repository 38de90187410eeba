"""
Byte frequency tables and an English-likeness score.

A FrequencyTable holds the relative frequency of each of the 256 byte values.
Candidate plaintexts are scored by how close their table is to a reference
table for English text:

  score = SCORE_SCALE * (1 - rms_error(ENGLISH, table(candidate)))

Anything containing control characters (other than newline and tab) or bytes
>= 127 scores 0, which callers treat as "definitely not text".
"""

import numpy as np

SCORE_SCALE = 1_000_000

# Approximate relative frequencies of characters in English prose, spaces and
# line breaks included. Normalised to sum to 1 when ENGLISH is built.
ENGLISH_CHAR_FREQUENCIES = {
    " ": 0.1700, "e": 0.0890, "t": 0.0650, "a": 0.0580, "o": 0.0540,
    "i": 0.0500, "n": 0.0500, "s": 0.0460, "h": 0.0440, "r": 0.0430,
    "d": 0.0310, "l": 0.0300, "u": 0.0200, "c": 0.0190, "m": 0.0180,
    "w": 0.0160, "f": 0.0160, "g": 0.0150, "y": 0.0140, "p": 0.0120,
    "b": 0.0110, "v": 0.0070, "k": 0.0060, "x": 0.0010, "j": 0.0010,
    "q": 0.0008, "z": 0.0006,
    "T": 0.0030, "I": 0.0030, "A": 0.0020, "S": 0.0015, "H": 0.0012,
    "W": 0.0012, "M": 0.0010, "B": 0.0010, "C": 0.0010, "N": 0.0008,
    "D": 0.0008, "Y": 0.0008, "O": 0.0008, "P": 0.0008, "L": 0.0007,
    "F": 0.0007, "G": 0.0006, "R": 0.0006, "E": 0.0006, "J": 0.0004,
    "K": 0.0004, "U": 0.0003, "V": 0.0003, "Q": 0.0001, "X": 0.0001,
    "Z": 0.0001,
    "\n": 0.0120, ",": 0.0070, ".": 0.0060, "'": 0.0030, "-": 0.0015,
    '"': 0.0010, "?": 0.0006, "!": 0.0005, ";": 0.0003, ":": 0.0003,
    "(": 0.0001, ")": 0.0001,
    "0": 0.0003, "1": 0.0003, "2": 0.0003, "3": 0.0002, "4": 0.0002,
    "5": 0.0002, "6": 0.0002, "7": 0.0002, "8": 0.0002, "9": 0.0002,
}


class FrequencyTable:
    """Relative frequency of each byte value; the entries sum to 1."""

    def __init__(self, freqs):
        freqs = np.array(freqs, dtype=np.float64)
        if freqs.shape != (256,):
            raise ValueError("a frequency table needs exactly 256 entries")
        if (freqs < 0).any():
            raise ValueError("frequencies must be non-negative")
        total = freqs.sum()
        if total > 0 and abs(total - 1.0) > 1e-6:
            raise ValueError(f"frequencies must sum to 1, got {total}")
        freqs.setflags(write=False)
        self._freqs = freqs

    @classmethod
    def from_bytes(cls, data: bytes) -> "FrequencyTable":
        """Count the bytes of a sample buffer."""
        if not data:
            return cls(np.zeros(256))
        counts = np.bincount(np.frombuffer(bytes(data), dtype=np.uint8), minlength=256)
        return cls(counts / len(data))

    @classmethod
    def from_chars(cls, weights: dict) -> "FrequencyTable":
        """Build a table from {character: weight}, normalising the weights."""
        freqs = np.zeros(256)
        for ch, w in weights.items():
            freqs[ord(ch)] = w
        return cls(freqs / freqs.sum())

    @classmethod
    def from_csv(cls, text: str) -> "FrequencyTable":
        values = [float(w) for w in text.split(",") if w.strip()]
        if len(values) != 256:
            raise ValueError(f"expected 256 values, got {len(values)}")
        return cls(values)

    def to_csv(self) -> str:
        return ",".join(repr(float(f)) for f in self._freqs)

    @property
    def freqs(self) -> np.ndarray:
        return self._freqs

    def get(self, b: int) -> float:
        """Frequency of byte value b, in 0..1."""
        return float(self._freqs[b])

    def most_common(self) -> bytes:
        """Bytes that occur, most common first; ties by byte value."""
        present = [b for b in range(256) if self._freqs[b] > 0]
        present.sort(key=lambda b: (-self._freqs[b], b))
        return bytes(present)

    def rms_error(self, other: "FrequencyTable") -> float:
        """Root-mean-square difference over all 256 entries."""
        return float(np.sqrt(np.mean((self._freqs - other._freqs) ** 2)))

    def __repr__(self):
        return f"FrequencyTable(most_common={self.most_common()[:8]!r})"


ENGLISH = FrequencyTable.from_chars(ENGLISH_CHAR_FREQUENCIES)


def is_text(candidate: bytes) -> bool:
    """True when there are no control characters except newline and tab, and nothing >= 127."""
    return all((32 <= b < 127) or b in (9, 10) for b in candidate)


def score_english(candidate: bytes, reference: FrequencyTable = ENGLISH) -> int:
    """
    Confidence that candidate is English text.

    0 means definitely not text; larger values are more English-like. The
    result is bounded by SCORE_SCALE.
    """
    if not candidate or not is_text(candidate):
        return 0
    table = FrequencyTable.from_bytes(candidate)
    return max(0, int(SCORE_SCALE * (1.0 - reference.rms_error(table))))
