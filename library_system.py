from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol

from library_errors import (
    BookNotFoundError,
    BookUnavailableError,
    BorrowLimitReachedError,
    MemberNotFoundError,
    OverReturnError,
    ReturnNotFoundError,
)


# Logging configuration
logger = logging.getLogger("library")
logger.setLevel(logging.INFO)

if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


# Domain Models
class Book:
    """
    Represents a book title held by the library in one or more copies.

    Attributes:
        bookId (str): Unique identifier for the book (read-only).
        title (str): Book title (read-only).
        author (str): Author name (read-only).
        totalCopies (int): Number of copies the library owns (read-only).
        availableCopies (int): Copies currently on the shelf.

    Books compare by identity: two records with the same fields are still
    different books as far as a member's borrowed list is concerned.
    """

    def __init__(self, bookId: str, title: str, author: str, totalCopies: int) -> None:
        self._bookId = bookId
        self._title = title
        self._author = author
        self._totalCopies = totalCopies
        self._availableCopies = totalCopies

    @property
    def bookId(self) -> str:
        return self._bookId

    @property
    def title(self) -> str:
        return self._title

    @property
    def author(self) -> str:
        return self._author

    @property
    def totalCopies(self) -> int:
        return self._totalCopies

    @property
    def availableCopies(self) -> int:
        return self._availableCopies

    def borrow(self) -> bool:
        """
        Takes one copy off the shelf.

        Returns:
            bool: True if a copy was available, False otherwise (no mutation).
        """
        if self._availableCopies > 0:
            self._availableCopies -= 1
            return True
        return False

    def returnCopy(self, strict: bool = False) -> None:
        """
        Puts one copy back on the shelf.

        The count is not bounded by totalCopies unless strict is set.

        Raises:
            OverReturnError: If strict and every copy is already on the shelf.
        """
        if self._availableCopies >= self._totalCopies:
            if strict:
                raise OverReturnError(
                    f"Book {self._bookId} already has all {self._totalCopies} copies available."
                )
            logger.warning(
                "Over-return | bookId=%s available=%d total=%d",
                self._bookId, self._availableCopies + 1, self._totalCopies,
            )
        self._availableCopies += 1

    def displayBookInfo(self) -> str:
        return (
            f"BookID: {self._bookId}, Title: {self._title}, Author: {self._author}, "
            f"Available: {self._availableCopies}/{self._totalCopies}"
        )

    def __repr__(self) -> str:
        return (
            f"Book(bookId={self._bookId!r}, title={self._title!r}, "
            f"available={self._availableCopies}/{self._totalCopies})"
        )


@dataclass(frozen=True)
class MemberPolicy:
    """
    Borrowing rules attached to a kind of member.

    Attributes:
        label (str): Display name of the member kind.
        maxBorrowLimit (int): Books a member may hold at the same time.
        fineRate (float): Fine charged per overdue day.
    """
    label: str
    maxBorrowLimit: int
    fineRate: float

    def calculateFine(self, overdueDays: int) -> float:
        # Not clamped: zero or negative overdue days give a zero or negative fine.
        return overdueDays * self.fineRate


STUDENT = MemberPolicy("Student", maxBorrowLimit=3, fineRate=1.0)
FACULTY = MemberPolicy("Faculty", maxBorrowLimit=5, fineRate=0.5)


def policy_for_type(memberType: str) -> MemberPolicy:
    """'Student' (any case) maps to STUDENT, everything else to FACULTY."""
    if memberType.lower() == STUDENT.label.lower():
        return STUDENT
    return FACULTY


@dataclass(eq=False)
class Member:
    """
    Represents a library member.

    Attributes:
        memberId (str): Unique member identifier.
        name (str): Member name.
        policy (MemberPolicy): Borrow limit and fine rate for this member.
        borrowedBooks (List[Book]): Books currently held, in borrow order.
    """
    memberId: str
    name: str
    policy: MemberPolicy = FACULTY
    borrowedBooks: List[Book] = field(default_factory=list)

    @property
    def memberType(self) -> str:
        return self.policy.label

    def calculateFine(self, overdueDays: int) -> float:
        return self.policy.calculateFine(overdueDays)

    def checkout(self, book: Book) -> None:
        """
        Borrows a copy of book for this member.

        Raises:
            BorrowLimitReachedError: If the member is at their borrow limit.
            BookUnavailableError: If no copies are left.
        """
        if len(self.borrowedBooks) >= self.policy.maxBorrowLimit:
            raise BorrowLimitReachedError(
                f"Member {self.memberId} already has {len(self.borrowedBooks)} books."
            )
        if not book.borrow():
            raise BookUnavailableError(f"Book {book.bookId} is not available.")

        self.borrowedBooks.append(book)
        logger.info("Checkout successful | memberId=%s bookId=%s", self.memberId, book.bookId)

    def release(self, book: Book, overdueDays: int, strict: bool = False) -> float:
        """
        Returns a held copy of book and computes the fine.

        Returns:
            float: overdueDays * fineRate.

        Raises:
            ReturnNotFoundError: If the member does not hold this book.
            OverReturnError: If strict and the book has no copies out.
        """
        index = self._index_of(book)
        if index is None:
            raise ReturnNotFoundError(
                f"Member {self.memberId} does not have book {book.bookId} checked out."
            )

        book.returnCopy(strict=strict)
        del self.borrowedBooks[index]

        fine = self.calculateFine(overdueDays)
        logger.info(
            "Return successful | memberId=%s bookId=%s overdueDays=%d fine=%.2f",
            self.memberId, book.bookId, overdueDays, fine,
        )
        return fine

    def borrow(self, book: Book) -> bool:
        """Console-reporting form of checkout()."""
        try:
            self.checkout(book)
        except BorrowLimitReachedError:
            print("Borrowing failed: Borrow limit reached.")
            return False
        except BookUnavailableError:
            print("Borrowing failed: Book unavailable.")
            return False
        print("Borrowing Successful")
        return True

    def returnBook(self, book: Book, overdueDays: int, strict: bool = False) -> bool:
        """Console-reporting form of release()."""
        try:
            fine = self.release(book, overdueDays, strict=strict)
        except ReturnNotFoundError:
            print("Return failed: Book not found.")
            return False
        except OverReturnError as e:
            print(f"Return failed: {e}")
            return False

        print(f"Returned Book: {book.title}")
        print(f"Overdue Days: {overdueDays}")
        print(f"Fine: ${fine}")
        return True

    def _index_of(self, book: Book) -> Optional[int]:
        for i, held in enumerate(self.borrowedBooks):
            if held is book:
                return i
        return None


# Store
class LibraryStore(Protocol):
    """
    Storage contract LibraryService works against.

    InMemoryStore is the implementation used for a run; any object with
    these methods can stand in for it.
    """

    def addBook(self, book: Book) -> None: ...

    def addMember(self, member: Member) -> None: ...

    def getBook(self, bookId: str) -> Optional[Book]: ...

    def getMember(self, memberId: str) -> Optional[Member]: ...

    def requireBook(self, bookId: str) -> Book: ...

    def requireMember(self, memberId: str) -> Member: ...

    def listBooks(self) -> List[Book]: ...


class InMemoryStore:
    """
    Holds books and members keyed by identifier for the lifetime of a run.

    No relationship validation happens on insert; adding a record whose id is
    already present replaces the previous one.
    """

    def __init__(self) -> None:
        self.books: Dict[str, Book] = {}
        self.members: Dict[str, Member] = {}

    def addBook(self, book: Book) -> None:
        if book.bookId in self.books:
            logger.warning("Replacing existing book | bookId=%s", book.bookId)
        self.books[book.bookId] = book
        logger.info("Book added | bookId=%s title=%s copies=%d", book.bookId, book.title, book.totalCopies)

    def addMember(self, member: Member) -> None:
        if member.memberId in self.members:
            logger.warning("Replacing existing member | memberId=%s", member.memberId)
        self.members[member.memberId] = member
        logger.info("Member added | memberId=%s type=%s", member.memberId, member.memberType)

    def getBook(self, bookId: str) -> Optional[Book]:
        return self.books.get(bookId)

    def getMember(self, memberId: str) -> Optional[Member]:
        return self.members.get(memberId)

    def requireBook(self, bookId: str) -> Book:
        """
        Retrieves a book by id or raises BookNotFoundError.
        """
        book = self.getBook(bookId)
        if book is None:
            raise BookNotFoundError(f"Book not found: bookId={bookId}")
        return book

    def requireMember(self, memberId: str) -> Member:
        """
        Retrieves a member by id or raises MemberNotFoundError.
        """
        member = self.getMember(memberId)
        if member is None:
            raise MemberNotFoundError(f"Member not found: memberId={memberId}")
        return member

    def listBooks(self) -> List[Book]:
        return list(self.books.values())

    def getAvailableBooks(self) -> List[Book]:
        """
        Returns all books with at least one copy on the shelf.
        """
        return [b for b in self.books.values() if b.availableCopies > 0]


# Service
class LibraryService:
    """
    Orchestrates borrow/return requests against a store.

    Every request is a one-shot operation: ids are looked up, the outcome is
    reported on the console and nothing is retried or queued.
    """

    def __init__(self, store: LibraryStore, strict_returns: bool = False) -> None:
        self.store = store
        self.strict_returns = strict_returns

    def borrowBook(self, memberId: str, bookId: str) -> bool:
        logger.info("borrowBook called | memberId=%s bookId=%s", memberId, bookId)

        resolved = self._resolve(memberId, bookId)
        if resolved is None:
            return False
        member, book = resolved

        print(f"\nMember: {member.name} ({member.memberType})")
        print(f"Borrowed Book: {book.title}")
        return member.borrow(book)

    def returnBook(self, memberId: str, bookId: str, overdueDays: int) -> bool:
        logger.info(
            "returnBook called | memberId=%s bookId=%s overdueDays=%d",
            memberId, bookId, overdueDays,
        )

        resolved = self._resolve(memberId, bookId)
        if resolved is None:
            return False
        member, book = resolved

        print(f"\nMember: {member.name} ({member.memberType})")
        return member.returnBook(book, overdueDays, strict=self.strict_returns)

    def apply(self, transaction) -> bool:
        """
        Dispatches a parsed transaction record to borrowBook or returnBook.
        """
        if transaction.isBorrow:
            return self.borrowBook(transaction.memberId, transaction.bookId)
        return self.returnBook(transaction.memberId, transaction.bookId, transaction.overdueDays)

    def displaySummary(self, details: bool = False) -> None:
        print("\nBOOK BORROWING SUMMARY")
        if details:
            for book in self.store.listBooks():
                print(book.displayBookInfo())

    def _resolve(self, memberId: str, bookId: str):
        try:
            member = self.store.requireMember(memberId)
            book = self.store.requireBook(bookId)
        except (MemberNotFoundError, BookNotFoundError) as e:
            logger.error("Lookup failed | %s", e)
            print("Invalid member or book ID.")
            return None
        return member, book
