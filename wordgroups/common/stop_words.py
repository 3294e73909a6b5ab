"""
Stop word configuration.

The default set is built once at import time and shared read-only by every
map task; a custom set is loaded once per job from a file.
"""

import re
from typing import FrozenSet, Iterable

from wordgroups.common.errors import JobConfigError

STOP_WORDS: FrozenSet[str] = frozenset([
    "the", "a", "an", "and", "of", "to", "in", "am", "is", "are", "at", "not",
])

_WORD_PATTERN = re.compile(r"^[a-z]+$")


def build_stop_words(words: Iterable[str]) -> FrozenSet[str]:
    """
    Build an immutable stop word set

    Args:
        words: Candidate words, any case

    Returns:
        Frozen set of lowercase words

    Raises:
        JobConfigError: If an entry is not purely alphabetic
    """
    result = set()
    for word in words:
        word = word.strip().lower()
        if not word:
            continue
        if not _WORD_PATTERN.match(word):
            raise JobConfigError(f"Stop word must contain only letters a-z: {word!r}")
        result.add(word)
    return frozenset(result)


def load_stop_words(path: str) -> FrozenSet[str]:
    """
    Load stop words from a file of whitespace separated words.
    Text after '#' on a line is ignored.
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            words = []
            for line in f:
                words.extend(line.split('#', 1)[0].split())
    except (OSError, UnicodeDecodeError) as e:
        raise JobConfigError(f"Cannot read stop word file {path}: {e}") from e

    return build_stop_words(words)
