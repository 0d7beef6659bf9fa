from __future__ import annotations

import argparse
import json
import sys

from .corpus import DECODE_ERROR_POLICIES, CorpusConfig, tokenize_file
from .logger import logger
from .tokens import TOKENIZERS, get_tokenizer


def cmd_tokenize(args) -> int:
    text = args.text if args.text is not None else sys.stdin.read()
    tokens = get_tokenizer(args.mode)(text)
    if args.json:
        print(json.dumps(tokens, ensure_ascii=False))
    else:
        print(" ".join(tokens))
    return 0


def cmd_corpus(args) -> int:
    logger.info("input file %s", args.input)
    logger.info("output file %s", args.output)
    try:
        config = CorpusConfig.from_env(
            token_interval=args.interval,
            on_decode_error=args.on_decode_error,
            mode=args.mode,
            show_progress=not args.no_progress,
        )
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1
    try:
        tokenize_file(args.input, args.output, config)
    except (OSError, UnicodeDecodeError):
        # already logged by tokenize_file
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="mlutil",
        description="Tokenize source code into lowercase word tokens for ML text models",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    p_t = sub.add_parser("tokenize", help="Tokenize a code snippet")
    p_t.add_argument(
        "text", nargs="?", default=None, help="Code to tokenize (default: read stdin)"
    )
    p_t.add_argument("--mode", default="python", choices=sorted(TOKENIZERS))
    p_t.add_argument(
        "--json", action="store_true", help="Print the tokens as a JSON list"
    )
    p_t.set_defaults(func=cmd_tokenize)

    p_c = sub.add_parser(
        "corpus", help="Tokenize a file line by line and report token counts"
    )
    p_c.add_argument("input", help="Input file, read line by line")
    p_c.add_argument("output", help="Output file, one line of tokens per input line")
    p_c.add_argument(
        "--interval",
        type=int,
        default=None,
        help="Report progress every N tokens (default: $MLUTIL_TOKEN_INTERVAL or 100000)",
    )
    p_c.add_argument(
        "--mode",
        default=None,
        choices=sorted(TOKENIZERS),
        help="Tokenizer mode (default: $MLUTIL_MODE or python)",
    )
    p_c.add_argument(
        "--on-decode-error",
        default=None,
        choices=DECODE_ERROR_POLICIES,
        help=(
            "What to do with lines that are not valid UTF-8: 'skip' logs a warning "
            "and drops the line, 'fail' aborts (default: $MLUTIL_ON_DECODE_ERROR or skip)"
        ),
    )
    p_c.add_argument(
        "--no-progress", action="store_true", help="Disable the progress bar"
    )
    p_c.set_defaults(func=cmd_corpus)
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
