"""Command-line entry point: semantic grep over stdin."""

from __future__ import annotations

import argparse
import sys
from typing import IO, List, Optional

from . import __version__
from .embedder import Embedder
from .errors import ConfigError, VecgrepError
from .models import GrepOptions
from .pipeline import STDIN_HINT, GrepRunner, batch_report, read_lines
from .settings import Settings, load_settings


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vecgrep",
        description="Semantic grep powered by sentence embeddings",
    )
    parser.add_argument("query", help="Query string to search for semantically similar lines")
    parser.add_argument(
        "-t",
        "--threshold",
        type=float,
        default=settings.threshold,
        help=f"Similarity threshold; lines scoring below it are filtered out (default: {settings.threshold})",
    )
    parser.add_argument("-A", dest="after", type=int, default=0, help="Lines of context after each match")
    parser.add_argument("-B", dest="before", type=int, default=0, help="Lines of context before each match")
    parser.add_argument(
        "-m",
        "--model",
        default=settings.model_name,
        help="Model id from Hugging Face or local path (env: VECGREP_MODEL)",
    )
    parser.add_argument("--hide-scores", action="store_true", help="Hide the similarity score of matching lines")

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--top", type=int, help="Return the top-N most similar lines instead of using a threshold")
    mode.add_argument("--stream", action="store_true", help="Process and print incrementally for endless input")

    parser.add_argument(
        "--batch-size",
        type=int,
        default=settings.batch_size,
        help="Lines per encode call (env: VECGREP_BATCH_SIZE)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=settings.workers,
        help="Threads used for scoring (env: VECGREP_WORKERS)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Print model loading details to stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _emit(lines: List[str], out: IO[str]) -> None:
    for line in lines:
        print(line, file=out)


def run(
    argv: Optional[List[str]] = None,
    stdin: Optional[IO[str]] = None,
    stdout: Optional[IO[str]] = None,
    stderr: Optional[IO[str]] = None,
    embedder: Optional[Embedder] = None,
) -> int:
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr

    try:
        settings = load_settings()
        args = build_parser(settings).parse_args(argv)
        if args.workers < 1:
            raise ConfigError("--workers must be at least 1")
        options = GrepOptions.build(
            query=args.query,
            threshold=args.threshold,
            before=args.before,
            after=args.after,
            top=args.top,
            stream=args.stream,
            hide_scores=args.hide_scores,
            batch_size=args.batch_size,
        )
        settings.model_name = args.model
        settings.workers = args.workers
        settings.verbose = settings.verbose or args.verbose

        runner = GrepRunner(
            embedder=embedder
            or Embedder(model_name=settings.model_name, offline=settings.offline, verbose=settings.verbose),
            settings=settings,
        )

        if options.stream:
            def write(line: str) -> None:
                print(line, file=stdout, flush=True)

            runner.run_stream(read_lines(stdin), options, write)
            return 0

        if not stdin.isatty():
            print(STDIN_HINT, file=stderr)
        result = runner.run_batch(read_lines(stdin), options)
        _emit(batch_report(result), stdout)
        _emit(result.diagnostics(), stderr)
        return 0
    except VecgrepError as exc:
        print(f"vecgrep: error: {exc}", file=stderr)
        return exc.exit_code


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
