import pytest

from cryptattack.errors import NoKeyFound
from cryptattack.xor import (
    break_repeating_xor,
    detect_single_byte_xor,
    guess_key_size,
    guess_n_byte_key,
    guess_single_byte_key,
    hamming_distance,
    repeating_key_xor,
)
from cryptattack.xor.repeating_key import shortest_period

ICE_PLAIN = b"Burning 'em, if you ain't quick and nimble\nI go crazy when I hear a cymbal"

LONG_KEY = b"Terminator X: Bring the noise"

LONG_PLAIN = b"""The harbour was quiet in the early morning, and the fishing boats rocked
gently against the old stone wall. A few gulls circled over the water,
calling to each other as the first light came up behind the hills. On the
quay, an old man sat mending a net, his hands moving slowly but surely
through the knots he had tied a thousand times before.
He had worked on these boats since he was a boy. His father had taken him
out for the first time when he was only seven, and he still remembered the
cold spray on his face and the smell of salt and diesel. In those days the
harbour had been full of life, with dozens of boats going out every day
and coming back loaded with fish. Now there were only a handful left, and
most of the young people had moved away to the city to find other work.
Still, he liked the mornings best. There was a kind of peace in the slow
rhythm of the tide and the soft sound of the waves against the hulls. He
would sit here for an hour or two before the others arrived, drinking his
tea from a battered flask and watching the sky change colour. Sometimes a
visitor would stop and ask him about the boats, and he would tell them
stories about storms and good catches and friends who were no longer here.
When the sun was fully up, he folded the net and carried it down the steps
to his own boat, a small blue one with a white stripe along the side. He
checked the engine, coiled the ropes, and looked out toward the open sea.
The weather was calm, the forecast was good, and there was no reason to
wait any longer. He untied the boat, pushed away from the wall, and set
off past the lighthouse at the end of the pier, the town growing smaller
behind him until it was only a line of grey roofs under the morning sky.
Out beyond the point the water turned a deeper blue, and the swell grew
longer and slower. He cut the engine, let the boat drift, and began to
lower his lines over the side, one after another, counting under his
breath as he always did. It would be a good day, he thought. It usually was.
"""


def test_single_byte_cooking_mcs():
    ct = bytes.fromhex("1b37373331363f78151b7f2b783431333d78397828372d363c78373e783a393b3736")
    score, key, plain = guess_single_byte_key(ct)
    assert key == 0x58
    assert plain == b"Cooking MC's like a pound of bacon"
    assert score > 0


@pytest.mark.parametrize("plain", [
    b"Now that the party is jumping\n",
    b"Attack at dawn, bring all the ships.",
    b"the quick brown fox jumps over the lazy dog",
])
@pytest.mark.parametrize("key", [0x00, 0x20, 0x35, 0x7F, 0xFF])
def test_single_byte_key_recovered(plain, key):
    _, found, recovered = guess_single_byte_key(bytes(b ^ key for b in plain))
    assert found == key
    assert recovered == plain


def test_single_byte_no_key():
    with pytest.raises(NoKeyFound):
        guess_single_byte_key(b"")
    # every key leaves all 256 byte values, control characters included
    with pytest.raises(NoKeyFound):
        guess_single_byte_key(bytes(range(256)))


def test_detect_single_byte_xor_among_noise():
    everything = bytes(range(256))
    lines = [everything[i:] + everything[:i] for i in range(20)]
    lines.insert(7, bytes(b ^ 0x35 for b in b"Now that the party is jumping\n"))
    score, key, plain, idx = detect_single_byte_xor(lines)
    assert (key, plain, idx) == (0x35, b"Now that the party is jumping\n", 7)


def test_hamming_example():
    assert hamming_distance(b"this is a test", b"wokka wokka!!!") == 37
    with pytest.raises(ValueError):
        hamming_distance(b"ab", b"abc")


def test_repeating_key_xor_ice():
    ct = repeating_key_xor(ICE_PLAIN, b"ICE")
    assert ct.hex() == (
        "0b3637272a2b2e63622c2e69692a23693a2a3c6324202d623d63343c2a26226324272765272"
        "a282b2f20430a652e2c652a3124333a653e2b2027630c692b20283165286326302e27282f")
    assert repeating_key_xor(ct, b"ICE") == ICE_PLAIN


def test_break_repeating_xor_ice():
    key, plain = break_repeating_xor(repeating_key_xor(ICE_PLAIN, b"ICE"))
    assert key == b"ICE"
    assert plain == ICE_PLAIN


def test_break_repeating_xor_long_key():
    ct = repeating_key_xor(LONG_PLAIN, LONG_KEY)
    # We can get the key size on the first attempt
    assert guess_key_size(ct)[0] == 29
    assert guess_n_byte_key(ct, 29) == LONG_KEY
    key, plain = break_repeating_xor(ct)
    assert key == LONG_KEY
    assert plain.startswith(b"The harbour was quiet")


def test_break_repeating_xor_gives_up():
    with pytest.raises(NoKeyFound):
        break_repeating_xor(b"")
    with pytest.raises(NoKeyFound):
        break_repeating_xor(b"abc")


def test_shortest_period():
    assert shortest_period(b"ICEICE") == b"ICE"
    assert shortest_period(b"AAAA") == b"A"
    assert shortest_period(b"ICEICF") == b"ICEICF"
