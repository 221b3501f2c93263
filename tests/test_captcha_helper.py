import re

import pytest

from utils.captcha_helper import (
    CAPTCHA_ALPHABET,
    answers_match,
    expiry_cutoff,
    generate_captcha_text,
    generate_token,
    is_expired,
)


@pytest.mark.parametrize("length", [1, 2, 6, 12, 40])
def test_generate_text_length_and_alphabet(length):
    text = generate_captcha_text(length)
    assert len(text) == length
    assert set(text) <= set(CAPTCHA_ALPHABET)


@pytest.mark.parametrize("length", [0, -3])
def test_generate_text_rejects_non_positive_length(length):
    with pytest.raises(ValueError):
        generate_captcha_text(length)


def test_alphabet_has_no_confusable_characters():
    for char in "0O1Il":
        assert char not in CAPTCHA_ALPHABET


def test_tokens_are_128_bit_hex_and_unique():
    tokens = {generate_token() for _ in range(500)}
    assert len(tokens) == 500
    for token in tokens:
        assert re.fullmatch(r"[0-9a-f]{32}", token)


def test_is_expired_boundary():
    assert not is_expired(1000, 500, 1500)
    assert is_expired(1000, 500, 1501)
    assert not is_expired(1000, 500, 1000)


def test_cutoff_agrees_with_predicate():
    expiry, now = 300000, 10_000_000
    cutoff = expiry_cutoff(expiry, now)
    for issued_at in (cutoff - 1, cutoff, cutoff + 1):
        assert (issued_at < cutoff) == is_expired(issued_at, expiry, now)


@pytest.mark.parametrize("given,expected,result", [
    ("K7M2XQ", "K7M2XQ", True),
    ("k7m2xq", "K7M2XQ", True),
    ("  k7M2xq \n", "K7M2XQ", True),
    ("K7M2X", "K7M2XQ", False),
    ("K7M2XR", "K7M2XQ", False),
    ("", "K7M2XQ", False),
    (None, "K7M2XQ", False),
    ("ünïcode", "K7M2XQ", False),
])
def test_answers_match(given, expected, result):
    assert answers_match(given, expected) is result
