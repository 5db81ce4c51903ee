import string

import pytest

from gazellemq.random_id import ALPHABET, random_string


def test_default_length_is_twelve():
    assert len(random_string()) == 12


@pytest.mark.parametrize("length", [0, 1, 8, 64])
def test_requested_length(length):
    assert len(random_string(length)) == length


def test_only_alphanumeric_characters():
    allowed = set(string.digits + string.ascii_letters)
    value = random_string(500)
    assert set(value) <= allowed


def test_characters_come_from_source_alphabet():
    assert ALPHABET == "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
    value = random_string(2000)
    assert set(value) <= set(ALPHABET)
    assert len(set(value)) > 1


def test_values_differ_between_calls():
    values = {random_string(16) for _ in range(50)}
    assert len(values) == 50


def test_negative_length_rejected():
    with pytest.raises(ValueError):
        random_string(-1)