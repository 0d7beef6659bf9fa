from __future__ import annotations

from .tokens import (
    NUMBER_TOKEN,
    get_tokenizer,
    iter_tokens,
    tokenize,
    tokenize_simple,
    tokenize_to_string,
)


def tokenize_python_code(python_code: str | bytes | bytearray) -> list[str]:
    """
    Tokenize a piece of Python code.

    ``bytes`` input must be valid UTF-8 and is decoded strictly, so a bad
    byte sequence raises ``UnicodeDecodeError`` instead of producing
    replacement characters.
    """
    if isinstance(python_code, (bytes, bytearray)):
        python_code = bytes(python_code).decode("utf-8")
    elif not isinstance(python_code, str):
        raise TypeError(
            f"tokenize_python_code() expects str or UTF-8 bytes, got {type(python_code).__name__}"
        )
    return tokenize(python_code)


__all__ = [
    "NUMBER_TOKEN",
    "get_tokenizer",
    "iter_tokens",
    "tokenize",
    "tokenize_python_code",
    "tokenize_simple",
    "tokenize_to_string",
]
