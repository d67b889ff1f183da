import pytest

import cipher_breaker_helpers
import cipher_breaker_utils


ENGLISH_TEXT = (
    "It was late in the autumn when the old ferryman finally agreed to tell "
    "the story of the drowned village. he sat by the stove with his hands "
    "wrapped around a cup of tea, and for a long while he said nothing at all. "
    "the wind pushed against the shutters and the river ran high and brown "
    "beneath the window. when he did speak, his voice was low and slow, as if "
    "every word had to be carried up from somewhere deep inside him. there had "
    "been a mill, he said, and a church with a green roof, and a school where "
    "the children learned their letters from a schoolmaster who walked with a cane. "
    "in the spring the meadows were full of flowers and the orchards were "
    "white with blossom, and in the summer the young people swam in the pools "
    "below the weir while their parents watched from the bank. then the "
    "engineers came with their maps and their measuring chains, and they told "
    "the people that a great dam would be built across the valley to bring "
    "light and water to the cities of the plain. nobody believed them at "
    "first. the village had stood there for longer than anyone could "
    "remember, and it seemed impossible that it could simply vanish under the "
    "water like a stone dropped into a well. but the work went on year after "
    "year, and one by one the families packed their carts and left for the "
    "new houses on the hill, and the old ferryman was the last to go. he "
    "still rows out on quiet evenings, he said, and if the water is clear "
    "enough he can see the top of the church tower far below him, and "
    "sometimes he thinks he can hear the bell."
)

# a key whose own length (not only a multiple) reaches the shortlist for ENGLISH_TEXT
KEY_5 = b"\x8f\x13\xe2\x5a\xc7"

QUIET_CONFIG = {
    "debug_output": False,
    "intermediate_output": False,
    "min_key_length": 1,
    "max_key_length": 39,
    "key_length_blocks": 4,
    "top_key_lengths": 10,
    "score_round_digits": 9,
    "key_byte_workers": 0,
    "column_workers": 0,
    "top_results": 3,
}


@pytest.fixture(autouse=True)
def quiet_config():
    """Give every test the same module-level configuration."""
    cipher_breaker_utils.set_config(QUIET_CONFIG)
    cipher_breaker_helpers.set_config_helpers(QUIET_CONFIG)
    cipher_breaker_utils.clear_keyboard_interrupt()
    yield dict(QUIET_CONFIG)
    cipher_breaker_utils.set_config(QUIET_CONFIG)
    cipher_breaker_helpers.set_config_helpers(QUIET_CONFIG)


@pytest.fixture
def english_text():
    return ENGLISH_TEXT.encode("ascii")


@pytest.fixture
def key_5():
    return KEY_5
