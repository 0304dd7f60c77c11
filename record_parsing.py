from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Tuple

from library_errors import RecordParseError
from library_system import Book, Member, policy_for_type

logger = logging.getLogger("library.parsing")

TERMINATOR = "done"
BORROW = "borrow"
RETURN = "return"


# Data Models
@dataclass(frozen=True)
class Transaction:
    """
    One line of the transaction block.

    overdueDays is None for borrows.
    """
    memberId: str
    bookId: str
    operation: str
    overdueDays: Optional[int] = None

    @property
    def isBorrow(self) -> bool:
        return self.operation == BORROW


# Parsing / Validation
def _tokens(line: str, expected: int, kind: str) -> List[str]:
    try:
        line.encode("utf-8")
    except UnicodeEncodeError:
        # undecodable bytes arrive as surrogates (errors="surrogateescape")
        raise RecordParseError("Line is not valid UTF-8") from None

    parts = line.strip().split()
    if len(parts) != expected:
        raise RecordParseError(
            f"Wrong field count for {kind} (expected {expected}, got {len(parts)})"
        )
    return parts


def _parse_int(value: str, field_name: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise RecordParseError(f"Invalid {field_name}: {value!r}") from None


def parse_book_line(line: str) -> Book:
    """
    Expected format:
      BookID Title Author TotalCopies

    Example:
      B1 Dune Herbert 2
    """
    book_id, title, author, copies_s = _tokens(line, 4, "book")

    copies = _parse_int(copies_s, "TotalCopies")
    if copies < 0:
        raise RecordParseError(f"TotalCopies cannot be negative (got {copies})")

    return Book(book_id, title, author, copies)


def parse_member_line(line: str) -> Member:
    """
    Expected format:
      MemberID Name Type

    Type 'Student' (any case) makes a student; anything else is faculty.
    """
    member_id, name, member_type = _tokens(line, 3, "member")
    return Member(member_id, name, policy_for_type(member_type))


def parse_transaction_line(line: str) -> Transaction:
    """
    Expected format:
      MemberID BookID borrow
      MemberID BookID <any other operation> OverdueDays

    Any operation other than 'borrow' (any case) is a return.
    """
    parts = line.strip().split()
    if len(parts) >= 3 and parts[2].lower() == BORROW:
        member_id, book_id, _ = _tokens(line, 3, "borrow")
        return Transaction(member_id, book_id, BORROW)

    member_id, book_id, _, days_s = _tokens(line, 4, "return")
    return Transaction(member_id, book_id, RETURN, _parse_int(days_s, "OverdueDays"))


def printable(raw: str) -> str:
    """Undecodable bytes in raw shown as U+FFFD so the line can be reported."""
    return raw.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def is_terminator(line: str) -> bool:
    return line.strip().lower() == TERMINATOR


def numbered(lines: Iterable[str]) -> Iterator[Tuple[int, str]]:
    """Pairs each raw line with its 1-based line number, newline stripped."""
    for idx, raw in enumerate(lines, start=1):
        yield idx, raw.rstrip("\r\n")


def read_block(lines: Iterator[Tuple[int, str]]) -> Iterator[Tuple[int, str]]:
    """
    Yields (lineNo, raw) pairs up to the 'done' terminator or end of input.

    - Blank lines are ignored.
    - The terminator itself is consumed and not yielded.
    """
    for idx, raw in lines:
        if is_terminator(raw):
            return
        if raw.strip() == "":
            continue
        yield idx, raw
    logger.warning("Input ended before block terminator %r", TERMINATOR)
