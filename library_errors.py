class LibraryError(Exception):
    """Root of every error raised by the circulation modules."""


class BookNotFoundError(LibraryError):
    """No book is stored under the given bookId."""


class MemberNotFoundError(LibraryError):
    """No member is stored under the given memberId."""


class CheckoutRuleViolationError(LibraryError):
    """A borrow or return was refused by the member's or book's rules."""


class BorrowLimitReachedError(CheckoutRuleViolationError):
    """Member already holds as many books as their policy allows."""


class BookUnavailableError(CheckoutRuleViolationError):
    """No copies of the book are left to borrow."""


class ReturnNotFoundError(CheckoutRuleViolationError):
    """Member is returning a book they do not hold."""


class OverReturnError(CheckoutRuleViolationError):
    """Return would push availableCopies above totalCopies."""


class InputError(LibraryError):
    """Base exception for problems with transaction input."""


class InputFileError(InputError):
    """Input file cannot be opened."""


class RecordParseError(InputError):
    """Record line is malformed or fails validation."""
