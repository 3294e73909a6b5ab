"""
Anagram word groups MapReduce job.

Words that are permutations of the same letters share a canonical key (their
letters sorted). The map phase emits (key, word) for every word that is not a
stop word; the reduce phase reports, per key, how many distinct spellings
were seen, how many occurrences in total, and the spellings themselves.

Output record, tab separated: distinct count, total count, space separated words
"""

import re
from collections import Counter
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Iterator, Tuple, Union

from wordgroups.common.errors import GroupInvariantError
from wordgroups.common.stop_words import STOP_WORDS

# Anything outside a-z separates words, so "don't" becomes "don" and "t"
WORD_PATTERN = re.compile(r"[a-z]+")

Value = Union[str, Dict[str, int]]


@dataclass(frozen=True)
class GroupSummary:
    """Summary of one anagram group"""
    distinct_word_count: int
    total_occurrence_count: int
    sorted_distinct_words: Tuple[str, ...]

    def to_record(self) -> str:
        words = " ".join(self.sorted_distinct_words)
        return f"{self.distinct_word_count}\t{self.total_occurrence_count}\t{words}"


def canonical_key(word: str) -> str:
    """Sorted-letter signature shared by all anagrams of word"""
    return "".join(sorted(word))


def tokenize(line: str) -> Iterator[str]:
    """Yield the lowercase a-z runs of a line"""
    for match in WORD_PATTERN.finditer(line.lower()):
        yield match.group(0)


def canonicalize(line: str, stop_words: FrozenSet[str] = STOP_WORDS) -> Iterator[Tuple[str, str]]:
    """
    Turn one line of text into (canonical key, word) pairs

    Args:
        line: Raw text line
        stop_words: Words that are never emitted

    Yields:
        (key, word) tuples, one per surviving word
    """
    for word in tokenize(line):
        if word in stop_words:
            continue
        yield (canonical_key(word), word)


def _check_word(key: str, word) -> None:
    if not isinstance(word, str) or not word or canonical_key(word) != key:
        raise GroupInvariantError(f"Word {word!r} does not belong to group {key!r}")


def _tally(key: str, values: Iterable[Value]) -> Tuple[Counter, int]:
    # Raw words count once; combiner output carries its own counts
    counts = Counter()
    total = 0
    for value in values:
        if isinstance(value, str):
            _check_word(key, value)
            counts[value] += 1
            total += 1
        elif isinstance(value, dict):
            for word, count in value.items():
                _check_word(key, word)
                if not isinstance(count, int) or isinstance(count, bool) or count < 1:
                    raise GroupInvariantError(
                        f"Partial tally has invalid count {count!r} for word {word!r}")
                counts[word] += count
                total += count
        else:
            raise GroupInvariantError(f"Unexpected group value of type {type(value).__name__}")
    return counts, total


def aggregate(key: str, values: Iterable[Value]) -> GroupSummary:
    """
    Fold the complete multiset of values of one key into a GroupSummary

    Args:
        key: Canonical key of the group
        values: Words and/or partial tallies, in any order

    Raises:
        GroupInvariantError: If the group is empty or holds an invalid value
    """
    counts, total = _tally(key, values)
    if total == 0:
        raise GroupInvariantError(f"Group {key!r} reached aggregation with no words")

    words = tuple(sorted(counts))
    return GroupSummary(
        distinct_word_count=len(words),
        total_occurrence_count=total,
        sorted_distinct_words=words,
    )


def map_function(key, value, stop_words: FrozenSet[str] = STOP_WORDS):
    """
    Map function: emit (canonical key, word) for each non stop word.

    Args:
        key: Input position (unused)
        value: Text line
        stop_words: Stop word set, passed by reference from the runner

    Yields:
        (canonical key, word) tuples
    """
    yield from canonicalize(value, stop_words)


def combiner_function(key, values):
    """
    Combiner function: collapse local words into one partial tally.

    Yields:
        (canonical key, {word: count}) tuple
    """
    counts, _ = _tally(key, values)
    yield (key, dict(counts))


def reduce_function(key, values):
    """
    Reduce function: summarize one anagram group.

    The output record carries no key column, so the emitted key is None.

    Yields:
        (None, formatted group record) tuple
    """
    yield (None, aggregate(key, values).to_record())
