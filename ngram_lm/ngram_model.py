"""
N-gram based language model implementation.

Counts every n-gram up to a maximum order within sentence boundaries, turns
the counts into maximum-likelihood conditional probabilities and samples
random sentence completions from them.
"""
from collections import Counter
from types import MappingProxyType
import argparse
import random
import sys

from tqdm import tqdm

from . import utils
from . import sampler


class ModelConsistencyError(RuntimeError):
    """An n-gram was counted without its history being counted."""


def _count_prefixes(sequence, length, ngram_counts, history_counts):
    """Count sequence[:i] as a history and sequence[:i+1] as an n-gram for i < length."""
    for i in range(1, length):
        history_counts[tuple(sequence[:i])] += 1
        ngram_counts[tuple(sequence[:i + 1])] += 1


def collect_counts(tokens, max_order, show_progress=False):
    """
    Count n-grams (length 2..max_order) and histories (length 1..max_order-1).

    Windows never cross an end-of-sentence marker. Tokens after the last
    marker are added to the vocabulary but not counted.
    Returns (ngram_counts, history_counts, vocab).
    """
    if max_order < 2:
        raise ValueError(f"max_order must be at least 2, got {max_order}")

    ngram_counts = Counter()
    history_counts = Counter()
    seen = set()
    sequence = []

    for token in tqdm(tokens, desc="Counting n-grams", unit="tok", disable=not show_progress):
        seen.add(token)
        sequence.append(token)
        if token != utils.END_TOKEN:
            continue

        # Full-width windows
        while len(sequence) >= max_order:
            _count_prefixes(sequence, max_order, ngram_counts, history_counts)
            sequence.pop(0)

        # Shorter windows at the end of the sentence
        while sequence:
            _count_prefixes(sequence, len(sequence), ngram_counts, history_counts)
            last = sequence.pop(0)
        history_counts[(last,)] += 1

    if sequence:
        print(f"[WARNING] Ignoring {len(sequence)} trailing tokens after the last {utils.END_TOKEN}")

    return ngram_counts, history_counts, utils.build_vocab(seen)


def counts_to_probabilities(ngram_counts, history_counts):
    """Maximum-likelihood P(w|h) = count(h, w) / count(h), non-zero entries only."""
    probabilities = {}
    for ngram, count in ngram_counts.items():
        history = ngram[:-1]
        if history_counts.get(history, 0) <= 0:
            raise ModelConsistencyError(
                f"n-gram {utils.sequence_to_string(ngram)!r} counted without its history"
            )
        probability = count / history_counts[history]
        if probability > 0:
            probabilities[ngram] = probability
    return probabilities


class LanguageModel:
    """
    Immutable n-gram model: vocabulary, probability table and maximum order.

    The random source is the only mutable collaborator; pass a seeded
    random.Random for reproducible completions.
    """

    def __init__(self, vocab, probabilities, max_order, rng=None):
        if max_order < 2:
            raise ValueError(f"max_order must be at least 2, got {max_order}")
        self._vocab = tuple(vocab)
        self._probabilities = MappingProxyType(dict(probabilities))
        self._max_order = max_order
        self._rng = rng if rng is not None else random.Random()

    @classmethod
    def from_tokens(cls, tokens, max_order, rng=None, vocab_file=None,
                    counts_file=None, show_progress=False):
        """Build a model from a token stream, optionally writing the reports."""
        ngram_counts, history_counts, vocab = collect_counts(
            tokens, max_order, show_progress=show_progress
        )
        probabilities = counts_to_probabilities(ngram_counts, history_counts)
        if counts_file is not None:
            utils.save_counts(ngram_counts, counts_file)
        if vocab_file is not None:
            utils.save_vocab(vocab, vocab_file)
        print(f"[INFO] Built {max_order}-gram model: {len(vocab)} words, "
              f"{len(probabilities)} n-grams")
        return cls(vocab, probabilities, max_order, rng=rng)

    @classmethod
    def from_file(cls, source, max_order, rng=None, vocab_file=None,
                  counts_file=None, show_progress=False):
        """Build a model from a corpus file or URL."""
        tokens = utils.read_tokens(source)
        print(f"[INFO] Corpus contains {len(tokens)} tokens")
        return cls.from_tokens(tokens, max_order, rng=rng, vocab_file=vocab_file,
                               counts_file=counts_file, show_progress=show_progress)

    @property
    def max_order(self):
        return self._max_order

    @property
    def vocab(self):
        return self._vocab

    @property
    def probabilities(self):
        return self._probabilities

    def probability(self, ngram):
        """P(w|h) for an n-gram tuple; 0.0 when unseen."""
        return self._probabilities.get(tuple(ngram), 0.0)

    def _order_or_default(self, order):
        return self._max_order if order is None else order

    def random_next_word(self, history, order=None):
        """Draw the next word after history, or <fail>."""
        return sampler.random_next_word(
            history, self._order_or_default(order), self._vocab, self._probabilities, self._rng
        )

    def random_completion(self, history, order=None):
        """Sample words after history until </s> or <fail>."""
        return sampler.random_completion(
            history, self._order_or_default(order), self._vocab, self._probabilities, self._rng
        )


def main(argv=None):
    """Entry point when script is run directly."""
    parser = argparse.ArgumentParser(description="N-gram Language Model")
    parser.add_argument("source", help="Corpus file or http(s) URL, sentences ending in </s>")
    parser.add_argument("--order", type=int, default=utils.DEFAULT_MAX_ORDER,
                        help=f"Maximum n-gram order (default={utils.DEFAULT_MAX_ORDER})")
    parser.add_argument("--seed", type=int, default=utils.DEFAULT_SEED,
                        help=f"Random seed (default={utils.DEFAULT_SEED})")
    parser.add_argument("--history", default=utils.START_TOKEN,
                        help="Space separated history to complete (default='<s>')")
    parser.add_argument("--completions", type=int, default=1,
                        help="Number of completions to draw (default=1)")
    parser.add_argument("--vocab-out", help="Write the vocabulary to this file")
    parser.add_argument("--counts-out", help="Write the n-gram counts to this file")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar while counting")
    args = parser.parse_args(argv)

    if args.order < 2:
        parser.error(f"--order must be at least 2, got {args.order}")

    rng = random.Random(args.seed)
    try:
        model = LanguageModel.from_file(
            args.source, args.order, rng=rng,
            vocab_file=args.vocab_out, counts_file=args.counts_out,
            show_progress=args.progress,
        )
    except OSError as e:
        # requests.RequestException is an OSError without a filename
        filename = e.filename if e.filename is not None else args.source
        print(f"Error: Unable to open file {filename}", file=sys.stderr)
        sys.exit(utils.EXIT_FILE_ERROR)
    except UnicodeDecodeError:
        print(f"Error: Unable to open file {args.source}", file=sys.stderr)
        sys.exit(utils.EXIT_FILE_ERROR)

    history = utils.tokenize_text(args.history)
    print(f"\nUsing {model.max_order}-gram model (context window: {model.max_order - 1} tokens)")
    for _ in range(args.completions):
        completion = model.random_completion(history)
        print(utils.sequence_to_string(history) + completion)


if __name__ == "__main__":
    main()
