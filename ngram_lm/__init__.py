"""
Maximum-likelihood n-gram language model with random sentence completion.
"""
from .ngram_model import (
    LanguageModel,
    ModelConsistencyError,
    collect_counts,
    counts_to_probabilities,
)
from .sampler import draw_from_distribution, random_completion, random_next_word
from .utils import END_TOKEN, FAIL_TOKEN, START_TOKEN, build_vocab

__all__ = [
    "LanguageModel",
    "ModelConsistencyError",
    "collect_counts",
    "counts_to_probabilities",
    "draw_from_distribution",
    "random_completion",
    "random_next_word",
    "build_vocab",
    "START_TOKEN",
    "END_TOKEN",
    "FAIL_TOKEN",
]
