"""
Weighted sampling of next words from an n-gram probability table.
"""
from typing import Callable, Iterable, Mapping, Optional, Sequence, Tuple

from .utils import END_TOKEN, FAIL_TOKEN


def draw_from_distribution(outcomes: Iterable[str],
                           probability: Callable[[str], float],
                           u: float) -> Optional[str]:
    """
    Inverse-CDF draw over a fixed enumeration order.

    Walks `outcomes` in order, accumulating `probability(outcome)`, and returns
    the first outcome whose cumulative sum is strictly greater than `u`.
    Returns None when the probabilities never add up past `u`.
    """
    cumulative = 0.0
    for outcome in outcomes:
        cumulative += probability(outcome)
        if cumulative > u:
            return outcome
    return None


def effective_history(history: Sequence[str], order: int) -> Tuple[str, ...]:
    """Last min(order-1, len(history)) tokens of history."""
    if order < 2:
        raise ValueError(f"n-gram order must be at least 2, got {order}")
    keep = min(order - 1, len(history))
    if keep == 0:
        return ()
    return tuple(history[-keep:])


def random_next_word(history: Sequence[str], order: int, vocab: Sequence[str],
                     probabilities: Mapping[Tuple[str, ...], float], rng) -> str:
    """Draw one word conditioned on history, or FAIL_TOKEN if none can be drawn."""
    context = effective_history(history, order)
    d = rng.random()
    word = draw_from_distribution(
        vocab, lambda w: probabilities.get(context + (w,), 0.0), d
    )
    return FAIL_TOKEN if word is None else word


def random_completion(history: Sequence[str], order: int, vocab: Sequence[str],
                      probabilities: Mapping[Tuple[str, ...], float], rng) -> str:
    """
    Extend a copy of history one draw at a time until </s> or <fail>.

    Each drawn word is appended to the result with a leading space, so the
    returned string starts with a space and ends with the terminal token.
    """
    working = list(history)
    parts = []
    while True:
        word = random_next_word(working, order, vocab, probabilities, rng)
        parts.append(" " + word)
        working.append(word)
        if word in (END_TOKEN, FAIL_TOKEN):
            break
    return "".join(parts)
