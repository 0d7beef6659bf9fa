from __future__ import annotations

import os
from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
)

from .logger import logger
from .tokens import TOKENIZERS, get_tokenizer

TOKEN_INTERVAL_ENV = "MLUTIL_TOKEN_INTERVAL"
DECODE_ERROR_ENV = "MLUTIL_ON_DECODE_ERROR"
MODE_ENV = "MLUTIL_MODE"

DEFAULT_TOKEN_INTERVAL = 100_000
DECODE_ERROR_POLICIES = ("skip", "fail")


@dataclass
class CorpusConfig:
    token_interval: int = DEFAULT_TOKEN_INTERVAL
    on_decode_error: str = "skip"
    mode: str = "python"
    show_progress: bool = True

    def __post_init__(self) -> None:
        if self.token_interval <= 0:
            raise ValueError(
                f"token_interval must be positive, got {self.token_interval}"
            )
        if self.on_decode_error not in DECODE_ERROR_POLICIES:
            raise ValueError(
                f"on_decode_error must be one of {DECODE_ERROR_POLICIES}, got {self.on_decode_error!r}"
            )
        if self.mode not in TOKENIZERS:
            raise ValueError(
                f"mode must be one of {sorted(TOKENIZERS)}, got {self.mode!r}"
            )

    @classmethod
    def from_env(cls, **overrides) -> "CorpusConfig":
        """
        Build a config from ``MLUTIL_*`` environment variables.
        Keyword overrides win over the environment; ``None`` overrides are ignored.
        """
        values = {
            "token_interval": _resolve_token_interval(),
            "on_decode_error": _resolve_choice(
                DECODE_ERROR_ENV, DECODE_ERROR_POLICIES, "skip"
            ),
            "mode": _resolve_choice(MODE_ENV, tuple(TOKENIZERS), "python"),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclass
class CorpusStats:
    lines: int = 0
    tokens: int = 0
    skipped_lines: int = 0
    reports: int = 0


def _resolve_token_interval(default: int = DEFAULT_TOKEN_INTERVAL) -> int:
    raw = os.getenv(TOKEN_INTERVAL_ENV)
    if not raw:
        return default
    try:
        interval = int(raw)
    except ValueError:
        logger.warning(
            "Invalid %s=%s, falling back to %d", TOKEN_INTERVAL_ENV, raw, default
        )
        return default
    if interval <= 0:
        logger.warning(
            "%s must be positive, falling back to %d", TOKEN_INTERVAL_ENV, default
        )
        return default
    return interval


def _resolve_choice(env_key: str, choices: tuple[str, ...], default: str) -> str:
    raw = os.getenv(env_key)
    if not raw:
        return default
    value = raw.strip().lower()
    if value not in choices:
        logger.warning(
            "Unknown %s '%s'; falling back to '%s'", env_key, raw, default
        )
        return default
    return value


def _open_input(path: Path):
    if not path.exists():
        logger.error_raise(f"Input file not found: {path}", exc=FileNotFoundError)
    if path.is_dir():
        logger.error_raise(f"Input path is a directory: {path}", exc=IsADirectoryError)
    try:
        return path.open("rb")
    except OSError as exc:
        logger.error_raise(f"Cannot open input file {path}: {exc}", exc=exc)


def _open_output(out_path: Path):
    if out_path.is_dir():
        logger.error_raise(
            f"Output path is a directory: {out_path}", exc=IsADirectoryError
        )
    part_path = out_path.with_name(out_path.name + ".part")
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        return part_path, part_path.open("w", encoding="utf-8")
    except OSError as exc:
        logger.error_raise(f"Cannot open output file {out_path}: {exc}", exc=exc)


def _commit_output(part_path: Path, out_path: Path) -> None:
    try:
        part_path.replace(out_path)
    except OSError as exc:
        part_path.unlink(missing_ok=True)
        logger.error_raise(f"Cannot write output file {out_path}: {exc}", exc=exc)


def tokenize_file(
    path: str | os.PathLike,
    out_path: str | os.PathLike | None = None,
    config: CorpusConfig | None = None,
) -> CorpusStats:
    """
    Tokenize ``path`` line by line and count the tokens.

    Each line is decoded as UTF-8 on its own. A line that fails to decode is
    skipped with a warning or aborts the run, depending on
    ``config.on_decode_error``; skipped lines add no tokens. When ``out_path``
    is given, every decoded line is written there as space-joined tokens; the
    file only appears once the whole input has been processed.
    """
    config = config or CorpusConfig()
    tokenizer = get_tokenizer(config.mode)
    path = Path(path)
    interval = config.token_interval
    stats = CorpusStats()

    logger.debug(
        "tokenize_file(): path=%s out_path=%s mode=%s interval=%d on_decode_error=%s",
        path,
        out_path,
        config.mode,
        interval,
        config.on_decode_error,
    )

    part_path = None
    try:
        with ExitStack() as stack:
            source = stack.enter_context(_open_input(path))
            sink = None
            if out_path is not None:
                out_path = Path(out_path)
                part_path, sink = _open_output(out_path)
                stack.enter_context(sink)

            progress = stack.enter_context(
                Progress(
                    SpinnerColumn(),
                    TextColumn("[progress.description]{task.description}"),
                    BarColumn(),
                    TaskProgressColumn(),
                    TimeRemainingColumn(),
                    console=Console(stderr=True),
                    disable=not config.show_progress,
                    transient=True,
                )
            )
            task = progress.add_task(
                f"[cyan]Tokenizing {path.name}", total=path.stat().st_size
            )

            for lineno, raw in enumerate(source, start=1):
                progress.advance(task, len(raw))
                stats.lines += 1
                try:
                    line = raw.decode("utf-8")
                except UnicodeDecodeError as exc:
                    if config.on_decode_error == "fail":
                        logger.error_raise(
                            f"Invalid UTF-8 on line {lineno} of {path}: {exc}",
                            exc=exc,
                        )
                    logger.warning(
                        "Skipping line %d of %s: invalid UTF-8 (%s)", lineno, path, exc
                    )
                    stats.skipped_lines += 1
                    continue

                tokens = tokenizer(line.rstrip("\r\n"))
                logger.trace("line %d: %d tokens", lineno, len(tokens))
                before = stats.tokens
                stats.tokens += len(tokens)
                if stats.tokens // interval > before // interval:
                    stats.reports += 1
                    logger.info("%.2f M tokens", stats.tokens / 1_000_000)
                if sink is not None:
                    sink.write(" ".join(tokens) + "\n")
    except BaseException:
        # no partial corpus on disk
        if part_path is not None:
            part_path.unlink(missing_ok=True)
        raise

    if part_path is not None:
        _commit_output(part_path, out_path)

    logger.info(
        "Tokenized %s: %d lines, %d tokens, %d skipped",
        path,
        stats.lines,
        stats.tokens,
        stats.skipped_lines,
    )
    return stats


__all__ = [
    "CorpusConfig",
    "CorpusStats",
    "DEFAULT_TOKEN_INTERVAL",
    "tokenize_file",
]
