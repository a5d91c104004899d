import pytest


class FixedRandom:
    """Random source that always returns the same draw."""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


@pytest.fixture
def fixed_random():
    return FixedRandom


@pytest.fixture
def small_corpus():
    return (
        "<s> the cat sat </s> "
        "<s> the dog sat </s> "
        "<s> a cat ran home </s> "
        "<s> The cat sat down </s>"
    ).split()
