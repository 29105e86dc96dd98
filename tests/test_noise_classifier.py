import pytest

from roster_core.noise_classifier import all_noise, is_noise_token


@pytest.mark.parametrize("token", ["EN", "ab", "Ab", "aB", "42", "--", "G5", "5g", "G5Y", "abc", "XYZ", "ABc", "123", "!!!?"])
def test_short_artifacts_are_noise(token):
    assert is_noise_token(token)


@pytest.mark.parametrize("token", ["ATON", "FACH", "Drachen", "Iceman", "Bob", "Ulf", "Zoë"])
def test_real_name_parts_are_kept(token):
    assert not is_noise_token(token)


def test_long_tokens_only_noise_without_letters():
    assert is_noise_token("123456")
    assert is_noise_token("-----")
    assert not is_noise_token("Xx12345")


def test_empty_token_is_noise():
    assert is_noise_token("")


def test_all_noise_requires_tokens():
    assert all_noise(["EN", "42"])
    assert not all_noise(["EN", "Iceman"])
    assert not all_noise([])
