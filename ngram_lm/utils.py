"""
Shared utility functions for the n-gram language model: configuration,
corpus loading, vocabulary handling and report writing.
"""
import os
from pathlib import Path

import requests
from dotenv import load_dotenv
from nltk.tokenize import WhitespaceTokenizer

# Load environment variables
load_dotenv()

# Reserved tokens
START_TOKEN = "<s>"
END_TOKEN = "</s>"
FAIL_TOKEN = "<fail>"

EXIT_FILE_ERROR = 1


def get_setting(name, default, cast=str):
    """Read a setting from the environment, falling back to default."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        print(f"[WARNING] Invalid value for {name}: {raw!r}, using default: {default}")
        return default


# Configuration
DEFAULT_MAX_ORDER = get_setting("NGRAM_MAX_ORDER", 3, int)
DEFAULT_SEED = get_setting("NGRAM_SEED", 42, int)
CORPUS_CACHE_DIR = get_setting("NGRAM_CORPUS_CACHE_DIR", "corpus_cache")
HTTP_TIMEOUT = get_setting("NGRAM_HTTP_TIMEOUT", 30, float)


# Text processing
def tokenize_text(text):
    """Split text on whitespace, keeping case and punctuation."""
    return WhitespaceTokenizer().tokenize(text)


def sequence_to_string(sequence):
    """Join a token sequence with single spaces."""
    return " ".join(sequence)


def string_to_sequence(s):
    """Split a string of single-space separated words into a list."""
    if s == "":
        return []
    return s.split(" ")


# Corpus loading
def _is_url(source):
    return str(source).startswith(("http://", "https://"))


def _cache_file_for(url):
    name = url.rstrip("/").rsplit("/", 1)[-1] or "corpus"
    return Path(CORPUS_CACHE_DIR) / f"{name}.txt"


def load_corpus(source, use_cache=True):
    """Load corpus text from a local file or an http(s) URL."""
    if not _is_url(source):
        with open(source, "r", encoding="utf-8") as f:
            text = f.read()
        print(f"[INFO] Loaded corpus from {source}")
        return text

    os.makedirs(CORPUS_CACHE_DIR, exist_ok=True)
    cache_file = _cache_file_for(source)

    if use_cache and cache_file.exists():
        print(f"[INFO] Loading corpus from cache: {cache_file}")
        with open(cache_file, "r", encoding="utf-8") as f:
            return f.read()

    print(f"[INFO] Downloading corpus from {source}...")
    try:
        response = requests.get(source, timeout=HTTP_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as e:
        print(f"[ERROR] Failed to download corpus: {e}")
        if cache_file.exists():
            print("[INFO] Falling back to cached corpus")
            with open(cache_file, "r", encoding="utf-8") as f:
                return f.read()
        raise

    text = response.text
    with open(cache_file, "w", encoding="utf-8") as f:
        f.write(text)
    return text


def read_tokens(source, use_cache=True):
    """Load a corpus and return its token stream."""
    return tokenize_text(load_corpus(source, use_cache=use_cache))


# Vocabulary handling
def vocab_sort_key(word):
    """Case-insensitive ordering, ties broken case-sensitively."""
    return (word.lower(), word)


def build_vocab(tokens):
    """Distinct tokens in case-insensitive ascending order."""
    return sorted(set(tokens), key=vocab_sort_key)


def save_vocab(vocab, vocab_file):
    """Save vocabulary to file, one word per line."""
    with open(vocab_file, "w", encoding="utf-8") as f:
        for word in vocab:
            f.write(word + "\n")
    print(f"[INFO] Saved vocabulary to {vocab_file}")


def save_counts(ngram_counts, counts_file):
    """Save n-gram counts as '<ngram>\\t<count>' lines in vocabulary order."""
    lines = sorted(
        ((sequence_to_string(ngram), count)
         for ngram, count in ngram_counts.items() if count > 0),
        key=lambda item: vocab_sort_key(item[0]),
    )
    with open(counts_file, "w", encoding="utf-8") as f:
        for text, count in lines:
            f.write(f"{text}\t{count}\n")
    print(f"[INFO] Saved {len(lines)} n-gram counts to {counts_file}")
