from __future__ import annotations

import argparse
import io
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, List, Optional, TextIO, Tuple

from library_errors import InputFileError, LibraryError, RecordParseError
from library_system import InMemoryStore, LibraryService
from record_parsing import (
    numbered,
    parse_book_line,
    parse_member_line,
    parse_transaction_line,
    printable,
    read_block,
)

logger = logging.getLogger("library.driver")


@dataclass
class RunSummary:
    books_loaded: int = 0
    members_loaded: int = 0
    transactions_applied: int = 0
    malformed_records: int = 0


def _load_block(
    lines: Iterator[Tuple[int, str]],
    kind: str,
    parse: Callable,
    handle: Callable,
    summary: RunSummary,
) -> int:
    """
    Parses every record of one block and hands it to handle().

    Malformed lines are reported on the console, logged and skipped; they
    never end the run.
    """
    handled = 0
    for idx, raw in read_block(lines):
        try:
            record = parse(raw)
        except RecordParseError as e:
            msg = f"Line {idx}: {e} | RAW={printable(raw)}"
            logger.error("Malformed record | kind=%s %s", kind, msg)
            print(f"Skipping malformed {kind} record | {msg}")
            summary.malformed_records += 1
            continue
        handle(record)
        handled += 1
    return handled


def run(
    stream: TextIO,
    store: Optional[InMemoryStore] = None,
    strict_returns: bool = False,
    details: bool = False,
) -> RunSummary:
    """
    One linear pass over the input: books, members, transactions, summary.
    """
    if store is None:
        store = InMemoryStore()
    service = LibraryService(store, strict_returns=strict_returns)
    summary = RunSummary()
    lines = numbered(stream)

    summary.books_loaded = _load_block(lines, "book", parse_book_line, store.addBook, summary)
    summary.members_loaded = _load_block(lines, "member", parse_member_line, store.addMember, summary)
    summary.transactions_applied = _load_block(
        lines, "transaction", parse_transaction_line, service.apply, summary
    )

    service.displaySummary(details=details)

    logger.info(
        "Complete | books=%d members=%d transactions=%d malformed=%d",
        summary.books_loaded,
        summary.members_loaded,
        summary.transactions_applied,
        summary.malformed_records,
    )
    return summary


def open_input(path: Optional[str]) -> TextIO:
    if path is None:
        if isinstance(sys.stdin, io.TextIOWrapper):
            sys.stdin.reconfigure(errors="surrogateescape")
        return sys.stdin
    try:
        # undecodable bytes reach the parser, which rejects just that line
        return Path(path).open(encoding="utf-8", errors="surrogateescape")
    except OSError as e:
        logger.exception("Cannot read input file | %s", e)
        raise InputFileError(f"Cannot read input file: {path}") from e


# CLI / Main
def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        description="Load books and members, then apply borrow/return transactions."
    )
    parser.add_argument("--input", help="Path to input text file (default: stdin)")
    parser.add_argument(
        "--strict-returns",
        action="store_true",
        help="Reject returns that would push available copies above the total",
    )
    parser.add_argument(
        "--details",
        action="store_true",
        help="List every book's availability after the summary header",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for the 'library' logger (default: WARNING)",
    )
    args = parser.parse_args(argv)

    logging.getLogger("library").setLevel(args.log_level)

    stream = open_input(args.input)
    try:
        run(stream, strict_returns=args.strict_returns, details=args.details)
    finally:
        if stream is not sys.stdin:
            stream.close()


if __name__ == "__main__":
    try:
        main()
    except LibraryError as e:
        logger.error("LibraryError bubbled to top-level | %s", e)
        raise
    except Exception as e:
        logger.exception("Unhandled fatal error | %s", e)
        raise
