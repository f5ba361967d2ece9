"""Shared fixtures for mediadrop tests."""
import pytest

from mediadrop.protocols import ITokenGenerator


class FakeTokenGenerator(ITokenGenerator):
    """Deterministic suffixes s1, s2, ... and tokens tok1, tok2, ..."""

    def __init__(self):
        self.suffix_calls = 0
        self.token_calls = 0

    def file_suffix(self) -> str:
        self.suffix_calls += 1
        return f"s{self.suffix_calls}"

    def link_token(self) -> str:
        self.token_calls += 1
        return f"tok{self.token_calls}"


@pytest.fixture
def tokens():
    return FakeTokenGenerator()
