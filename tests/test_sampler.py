import random

import pytest

from ngram_lm.ngram_model import collect_counts, counts_to_probabilities
from ngram_lm.sampler import (
    draw_from_distribution,
    effective_history,
    random_completion,
    random_next_word,
)
from ngram_lm.utils import FAIL_TOKEN


def _table(tokens, max_order):
    ngram_counts, history_counts, vocab = collect_counts(tokens, max_order)
    return vocab, counts_to_probabilities(ngram_counts, history_counts)


WEIGHTS = {"x": 0.2, "y": 0.5, "z": 0.3}


@pytest.mark.parametrize("u, expected", [
    (0.0, "x"),
    (0.19, "x"),
    (0.2, "y"),
    (0.5, "y"),
    (0.75, "z"),
    (0.999, "z"),
])
def test_draw_follows_enumeration_order(u, expected):
    assert draw_from_distribution(["x", "y", "z"], WEIGHTS.get, u) == expected


def test_draw_returns_none_when_mass_is_short():
    assert draw_from_distribution(["x", "y"], lambda w: {"x": 0.5}.get(w, 0.0), 0.9) is None
    assert draw_from_distribution([], WEIGHTS.get, 0.0) is None


def test_effective_history_truncates_to_order():
    history = ["<s>", "the", "cat", "sat"]

    assert effective_history(history, 2) == ("sat",)
    assert effective_history(history, 3) == ("cat", "sat")
    assert effective_history(history, 9) == ("<s>", "the", "cat", "sat")
    assert effective_history([], 3) == ()
    with pytest.raises(ValueError):
        effective_history(history, 1)


@pytest.mark.parametrize("d", [0.0, 0.25, 0.5, 0.999999])
def test_unseen_history_fails_for_any_draw(small_corpus, fixed_random, d):
    vocab, probabilities = _table(small_corpus, 3)

    assert random_next_word(["zebra"], 3, vocab, probabilities, fixed_random(d)) == FAIL_TOKEN
    assert random_next_word([], 3, vocab, probabilities, fixed_random(d)) == FAIL_TOKEN


def test_next_word_uses_vocabulary_order(small_corpus, fixed_random):
    vocab, probabilities = _table(small_corpus, 2)

    # after "cat": ran (1/3) sorts before sat (2/3)
    assert random_next_word(["cat"], 2, vocab, probabilities, fixed_random(0.1)) == "ran"
    assert random_next_word(["cat"], 2, vocab, probabilities, fixed_random(0.5)) == "sat"


def test_next_word_conditions_on_last_tokens_only(small_corpus, fixed_random):
    vocab, probabilities = _table(small_corpus, 3)

    # the trigram model only sees "a cat", which is always followed by "ran"
    history = ["<s>", "the", "a", "cat"]
    assert random_next_word(history, 3, vocab, probabilities, fixed_random(0.9)) == "ran"


def test_completion_does_not_mutate_history(small_corpus):
    vocab, probabilities = _table(small_corpus, 3)
    history = ["<s>", "the"]

    random_completion(history, 3, vocab, probabilities, random.Random(5))

    assert history == ["<s>", "the"]


def test_completion_is_reproducible(small_corpus):
    vocab, probabilities = _table(small_corpus, 3)

    first = random_completion(["<s>"], 3, vocab, probabilities, random.Random(21))
    second = random_completion(["<s>"], 3, vocab, probabilities, random.Random(21))

    assert first == second
    assert first.startswith(" ")
    assert first.endswith(" </s>")


def test_completion_stops_on_failure(small_corpus, fixed_random):
    vocab, probabilities = _table(small_corpus, 3)

    assert random_completion(["zebra"], 3, vocab, probabilities, fixed_random(0.3)) == " <fail>"


def test_completion_always_draws_once(small_corpus, fixed_random):
    vocab, probabilities = _table(small_corpus, 2)

    # nothing follows the end marker
    assert random_completion(["</s>"], 2, vocab, probabilities, fixed_random(0.0)) == " <fail>"


def test_completion_of_deterministic_sentence(fixed_random):
    vocab, probabilities = _table("<s> a b </s>".split(), 3)

    assert random_completion(["<s>"], 3, vocab, probabilities, fixed_random(0.99)) == " a b </s>"


def test_seen_history_with_short_mass_fails(fixed_random):
    probabilities = {("h", "a"): 0.4}

    assert random_next_word(["h"], 2, ["a", "b"], probabilities, fixed_random(0.3)) == "a"
    assert random_next_word(["h"], 2, ["a", "b"], probabilities, fixed_random(0.5)) == FAIL_TOKEN


class _CountingRandom:
    def __init__(self):
        self.calls = 0

    def random(self):
        self.calls += 1
        return 0.0


def test_bad_order_raises_before_drawing():
    rng = _CountingRandom()

    with pytest.raises(ValueError):
        random_next_word(["<s>"], 1, ["a"], {}, rng)
    assert rng.calls == 0
