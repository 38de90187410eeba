from .single_byte import detect_single_byte_xor, guess_single_byte_key
from .repeating_key import (
    break_repeating_xor,
    guess_key_size,
    guess_n_byte_key,
    hamming_distance,
    repeating_key_xor,
)
