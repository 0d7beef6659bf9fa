"""
Tokenizer for source code fed to ML text models.

``tokenize`` turns a piece of code into lowercase word-like tokens:

- camelCase boundaries become word breaks (``fooBar`` -> ``foo bar``),
- structural punctuation is kept as tokens of its own,
- snake_case words are split on the underscore, which itself is dropped,
- every run of digits is replaced by the ``NUMBER`` placeholder.

Everything here is a pure function of its input. The patterns are compiled
once at import and never mutated, so callers can share the module across
threads.

Example:
>>> tokenize("def fun_name(x: int):\\npass")
['def', 'fun', 'name', '(', 'x', ':', 'int', ')', ':', 'pass']
"""

from __future__ import annotations

import re
from typing import Callable, Iterator

NUMBER_TOKEN = "NUMBER"
PUNCTUATION = frozenset("(),.;:=[]{}-+_")

_CAMELCASE = re.compile(r"([a-z])([A-Z])")
_NUMBER = re.compile(r"\d+")
_SPACED_PUNCTUATION = str.maketrans({ch: f" {ch} " for ch in PUNCTUATION})
_BLANKED_PUNCTUATION = str.maketrans({ch: " " for ch in PUNCTUATION})
# Unicode White_Space; \s alone would also match the \x1c-\x1f separators
_WHITESPACE = re.compile(r"[^\S\x1c-\x1f]+")
_EDGE_WHITESPACE = re.compile(r"^[^\S\x1c-\x1f]+|[^\S\x1c-\x1f]+$")


def split_camelcase(text: str) -> str:
    """Put a space between a lowercase ASCII letter and a following uppercase one."""
    return _CAMELCASE.sub(r"\1 \2", text)


def space_punctuation(text: str) -> str:
    """Lowercase ``text`` and surround every punctuation character with spaces."""
    return text.lower().translate(_SPACED_PUNCTUATION)


def blank_punctuation(text: str) -> str:
    """Lowercase ``text`` and replace every punctuation character with a space."""
    return text.lower().translate(_BLANKED_PUNCTUATION)


def replace_numbers(text: str) -> str:
    return _NUMBER.sub(f" {NUMBER_TOKEN} ", text)


def split_snakecase(word: str) -> list[str]:
    """Split ``word`` on underscores, dropping empty pieces (``__init__`` -> ``init``)."""
    parts = (_EDGE_WHITESPACE.sub("", part) for part in word.split("_"))
    return [part for part in parts if part]


def _iter_words(cleaned: str) -> Iterator[str]:
    for word in _WHITESPACE.split(cleaned):
        if not word:
            continue
        yield from split_snakecase(word)


def iter_tokens(text: str) -> Iterator[str]:
    """Yield the tokens of ``text`` lazily, left to right."""
    cleaned = replace_numbers(space_punctuation(split_camelcase(text)))
    return _iter_words(cleaned)


def tokenize(text: str) -> list[str]:
    """Return the token list for ``text``; empty input gives an empty list."""
    return list(iter_tokens(text))


def tokenize_simple(text: str) -> list[str]:
    """
    Simplified mode: punctuation only breaks words and never becomes a token.

    >>> tokenize_simple("def abc(x)")
    ['def', 'abc', 'x']
    """
    cleaned = replace_numbers(blank_punctuation(split_camelcase(text)))
    return list(_iter_words(cleaned))


def tokenize_to_string(text: str) -> str:
    """Space-joined tokens, the line format of tokenized corpora."""
    return " ".join(iter_tokens(text))


TOKENIZERS: dict[str, Callable[[str], list[str]]] = {
    "python": tokenize,
    "simple": tokenize_simple,
}


def get_tokenizer(mode: str) -> Callable[[str], list[str]]:
    try:
        return TOKENIZERS[mode]
    except KeyError:
        raise ValueError(
            f"Unknown tokenizer mode {mode!r}; expected one of {sorted(TOKENIZERS)}"
        ) from None


__all__ = [
    "NUMBER_TOKEN",
    "PUNCTUATION",
    "TOKENIZERS",
    "blank_punctuation",
    "get_tokenizer",
    "iter_tokens",
    "replace_numbers",
    "split_camelcase",
    "space_punctuation",
    "split_snakecase",
    "tokenize",
    "tokenize_simple",
    "tokenize_to_string",
]
