from __future__ import annotations

import csv
import io
import re
from dataclasses import asdict, dataclass, field

from .errors import RubyTxtError

__all__ = [
    "IndexListError",
    "Date",
    "Author",
    "OriginalBook",
    "Book",
    "BookAuthor",
    "AozorabunkoIndexList",
    "RUBY_TXT_FORMAT_DATE",
    "parse_index_list_extended",
    "serialize_index_list",
]

_DATE_SEPARATOR = re.compile(r"[-/]")
_ORIGINAL_BOOK_COLUMNS = (27, 35)
_MIN_COLUMNS = 46


class IndexListError(RubyTxtError):
    """Raised when a record of the index CSV is malformed or inconsistent."""


@dataclass(frozen=True)
class Date:
    year: int
    month: int | None = None
    day: int | None = None

    @classmethod
    def parse(cls, value: str) -> "Date":
        # Some records contain stray spaces inside the date.
        value = value.replace(" ", "").replace("　", "")
        parts = _DATE_SEPARATOR.split(value)
        if not value or len(parts) > 3:
            raise IndexListError("Invalid date", value)
        try:
            numbers = [int(part) for part in parts]
        except ValueError:
            raise IndexListError("Invalid date", value) from None
        return cls(*numbers)

    def is_equivalent_or_later(self, other: "Date") -> bool:
        """Compare dates; missing month or day count as the earliest."""
        return self._key() >= other._key()

    def _key(self) -> tuple[int, int, int]:
        return (self.year, self.month or 0, self.day or 0)

    def __str__(self) -> str:
        parts = [f"{self.year:04d}"]
        if self.month is not None:
            parts.append(f"{self.month:02d}")
        if self.day is not None:
            parts.append(f"{self.day:02d}")
        return "-".join(parts)


# Books published and updated from this date follow the current notation
# rules, so a parse failure on them is a real error.
RUBY_TXT_FORMAT_DATE = Date(2010, 4, 1)


@dataclass(frozen=True)
class Author:
    id: str
    last_name: str
    first_name: str
    last_name_kana: str
    first_name_kana: str
    last_name_sort_key: str
    first_name_sort_key: str
    last_name_romaji: str
    first_name_romaji: str
    # Free-form: "紀元前..." and similar values occur.
    birth_date: str
    death_date: str
    copyright: bool


@dataclass(frozen=True)
class OriginalBook:
    title: str
    publisher_name: str
    first_edition_date: str
    input_edition: str
    proofreading_edition: str
    parent_title: str
    parent_publisher_name: str
    parent_first_edition_date: str


@dataclass(frozen=True)
class Book:
    id: str
    title: str
    title_kana: str
    sort_key: str
    subtitle: str
    subtitle_kana: str
    original_title: str
    writing_system: str
    copyright: bool
    published_at: Date
    updated_at: Date
    original_books: tuple[OriginalBook, ...]
    inputter_name: str
    proofreader_name: str
    txt_url: str | None = None

    @property
    def follows_ruby_txt_format(self) -> bool:
        return self.published_at.is_equivalent_or_later(
            RUBY_TXT_FORMAT_DATE
        ) and self.updated_at.is_equivalent_or_later(RUBY_TXT_FORMAT_DATE)


@dataclass(frozen=True)
class BookAuthor:
    book_id: str
    author_id: str
    author_role: str


@dataclass
class AozorabunkoIndexList:
    authors: list[Author] = field(default_factory=list)
    books: list[Book] = field(default_factory=list)
    book_authors: list[BookAuthor] = field(default_factory=list)

    def author_ids_of(self, book_id: str) -> list[str]:
        return [entry.author_id for entry in self.book_authors if entry.book_id == book_id]

    def is_public_domain(self, book: Book) -> bool:
        if book.copyright:
            return False
        protected = {author.id for author in self.authors if author.copyright}
        return not any(author_id in protected for author_id in self.author_ids_of(book.id))


def _parse_flag(value: str) -> bool:
    if value == "あり":
        return True
    if value == "なし":
        return False
    raise IndexListError("Unknown copyright flag", value)


def _parse_record(record: list[str]) -> tuple[Author, Book, BookAuthor]:
    if len(record) < _MIN_COLUMNS:
        raise IndexListError(f"Expected at least {_MIN_COLUMNS} columns", record)

    author = Author(
        id=record[14],
        last_name=record[15],
        first_name=record[16],
        last_name_kana=record[17],
        first_name_kana=record[18],
        last_name_sort_key=record[19],
        first_name_sort_key=record[20],
        last_name_romaji=record[21],
        first_name_romaji=record[22],
        birth_date=record[24],
        death_date=record[25],
        copyright=_parse_flag(record[26]),
    )

    original_books = []
    for start in _ORIGINAL_BOOK_COLUMNS:
        if not record[start]:
            continue
        original_books.append(OriginalBook(*record[start : start + 8]))

    book = Book(
        id=record[0],
        title=record[1],
        title_kana=record[2],
        sort_key=record[3],
        subtitle=record[4],
        subtitle_kana=record[5],
        original_title=record[6],
        writing_system=record[9],
        copyright=_parse_flag(record[10]),
        published_at=Date.parse(record[11]),
        updated_at=Date.parse(record[12]),
        original_books=tuple(original_books),
        inputter_name=record[43],
        proofreader_name=record[44],
        txt_url=record[45] or None,
    )
    return author, book, BookAuthor(book.id, author.id, record[23])


def parse_index_list_extended(csv_text: str) -> AozorabunkoIndexList:
    """Decode ``list_person_all_extended_utf8.csv`` (header row included)."""
    reader = csv.reader(io.StringIO(csv_text.lstrip("\ufeff")))
    next(reader, None)

    authors: dict[str, Author] = {}
    books: dict[str, Book] = {}
    book_authors: dict[BookAuthor, None] = {}
    for line_no, record in enumerate(reader, start=2):
        if not record:
            continue
        try:
            author, book, book_author = _parse_record(record)
        except IndexListError as exc:
            raise IndexListError(f"Failed to read record at line {line_no}", str(exc)) from exc

        existing_author = authors.setdefault(author.id, author)
        if existing_author != author:
            raise IndexListError("Different authors share an id", (existing_author, author))
        existing_book = books.setdefault(book.id, book)
        if existing_book != book:
            raise IndexListError("Different books share an id", (existing_book, book))
        if book_author in book_authors:
            raise IndexListError("Duplicate book author", book_author)
        book_authors[book_author] = None

    return AozorabunkoIndexList(
        authors=list(authors.values()),
        books=list(books.values()),
        book_authors=list(book_authors),
    )


def _serialize_book(book: Book) -> dict[str, object]:
    payload = asdict(book)
    payload["published_at"] = str(book.published_at)
    payload["updated_at"] = str(book.updated_at)
    return payload


def serialize_index_list(index: AozorabunkoIndexList) -> dict[str, list[dict[str, object]]]:
    return {
        "authors": [asdict(author) for author in index.authors],
        "books": [_serialize_book(book) for book in index.books],
        "book_authors": [asdict(entry) for entry in index.book_authors],
    }
