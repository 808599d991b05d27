from __future__ import annotations

import csv
import io

import pytest

from rubytxt.index_list import (
    RUBY_TXT_FORMAT_DATE,
    Date,
    IndexListError,
    parse_index_list_extended,
    serialize_index_list,
)

HEADER = ["作品ID", "作品名"] + [f"column{idx}" for idx in range(2, 55)]


def _record(**overrides: str) -> list[str]:
    record = [""] * 55
    values = {
        0: overrides.get("book_id", "000001"),
        1: overrides.get("title", "吾輩は猫である"),
        2: "わがはいはねこである",
        3: "わかはいはねこてある",
        9: "新字新仮名",
        10: overrides.get("book_copyright", "なし"),
        11: overrides.get("published_at", "2011-01-01"),
        12: overrides.get("updated_at", "2011-02-03"),
        14: overrides.get("author_id", "000148"),
        15: overrides.get("last_name", "夏目"),
        16: "漱石",
        17: "なつめ",
        18: "そうせき",
        19: "なつめ",
        20: "そうせき",
        21: "Natsume",
        22: "Soseki",
        23: overrides.get("role", "著者"),
        24: "1867-02-09",
        25: "1916-12-09",
        26: overrides.get("author_copyright", "なし"),
        27: overrides.get("original_title", "夏目漱石全集1"),
        28: "ちくま文庫、筑摩書房",
        29: "1987（昭和62）年9月29日",
        43: "入力者",
        44: "校正者",
        45: overrides.get(
            "txt_url", "https://www.aozora.gr.jp/cards/000148/files/789_ruby_5639.zip"
        ),
    }
    for column, value in values.items():
        record[column] = value
    return record


def _csv(*records: list[str]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\r\n")
    writer.writerow(HEADER)
    writer.writerows(records)
    return "\ufeff" + buffer.getvalue()


def test_parse_single_record() -> None:
    index = parse_index_list_extended(_csv(_record()))
    assert len(index.books) == 1
    assert len(index.authors) == 1
    book = index.books[0]
    assert book.id == "000001"
    assert book.title == "吾輩は猫である"
    assert book.copyright is False
    assert book.published_at == Date(2011, 1, 1)
    assert book.updated_at == Date(2011, 2, 3)
    assert book.txt_url.endswith("789_ruby_5639.zip")
    assert len(book.original_books) == 1
    assert book.original_books[0].title == "夏目漱石全集1"
    assert book.original_books[0].publisher_name == "ちくま文庫、筑摩書房"
    author = index.authors[0]
    assert author.id == "000148"
    assert author.last_name_romaji == "Natsume"
    assert index.author_ids_of("000001") == ["000148"]
    assert index.book_authors[0].author_role == "著者"


def test_books_with_several_authors_are_merged() -> None:
    index = parse_index_list_extended(
        _csv(
            _record(),
            _record(author_id="000001", last_name="翻訳", role="翻訳者"),
        )
    )
    assert len(index.books) == 1
    assert len(index.authors) == 2
    assert index.author_ids_of("000001") == ["000148", "000001"]


def test_empty_url_and_original_book_are_none() -> None:
    index = parse_index_list_extended(_csv(_record(txt_url="", original_title="")))
    book = index.books[0]
    assert book.txt_url is None
    assert book.original_books == ()


def test_conflicting_books_fail() -> None:
    with pytest.raises(IndexListError, match="Different books"):
        parse_index_list_extended(
            _csv(_record(), _record(title="別の題", author_id="000002", last_name="別人"))
        )


def test_conflicting_authors_fail() -> None:
    with pytest.raises(IndexListError, match="Different authors"):
        parse_index_list_extended(_csv(_record(), _record(book_id="000002", last_name="夏目X")))


def test_duplicate_book_author_fails() -> None:
    with pytest.raises(IndexListError, match="Duplicate book author"):
        parse_index_list_extended(_csv(_record(), _record()))


def test_bad_flag_reports_line() -> None:
    with pytest.raises(IndexListError, match="line 3"):
        parse_index_list_extended(_csv(_record(), _record(book_id="000002", book_copyright="不明")))


def test_short_record_fails() -> None:
    with pytest.raises(IndexListError):
        parse_index_list_extended(_csv(_record()[:20]))


def test_public_domain_depends_on_book_and_authors() -> None:
    index = parse_index_list_extended(
        _csv(
            _record(),
            _record(book_id="000002", book_copyright="あり"),
            _record(
                book_id="000003",
                author_id="000003",
                last_name="現代",
                author_copyright="あり",
            ),
        )
    )
    books = {book.id: book for book in index.books}
    assert index.is_public_domain(books["000001"])
    assert not index.is_public_domain(books["000002"])
    assert not index.is_public_domain(books["000003"])


def test_date_parse_tolerates_spaces_and_slashes() -> None:
    assert Date.parse("2010/04/01") == Date(2010, 4, 1)
    assert Date.parse(" 2009-1 -2　") == Date(2009, 1, 2)
    assert Date.parse("1999") == Date(1999)
    assert str(Date(2009, 1, 2)) == "2009-01-02"


@pytest.mark.parametrize("value", ["", "2010-04-01-02", "2010-April"])
def test_date_parse_rejects_garbage(value: str) -> None:
    with pytest.raises(IndexListError):
        Date.parse(value)


def test_date_comparison() -> None:
    assert Date(2010, 4, 1).is_equivalent_or_later(RUBY_TXT_FORMAT_DATE)
    assert Date(2010, 4, 2).is_equivalent_or_later(RUBY_TXT_FORMAT_DATE)
    assert Date(2011, 1, 1).is_equivalent_or_later(RUBY_TXT_FORMAT_DATE)
    assert not Date(2010, 3, 31).is_equivalent_or_later(RUBY_TXT_FORMAT_DATE)
    assert not Date(2010, 4).is_equivalent_or_later(RUBY_TXT_FORMAT_DATE)


def test_follows_ruby_txt_format_needs_both_dates() -> None:
    index = parse_index_list_extended(
        _csv(
            _record(),
            _record(book_id="000002", published_at="2005-01-01", updated_at="2012-01-01"),
        )
    )
    books = {book.id: book for book in index.books}
    assert books["000001"].follows_ruby_txt_format
    assert not books["000002"].follows_ruby_txt_format


def test_serialize_index_list_writes_dates_as_strings() -> None:
    payload = serialize_index_list(parse_index_list_extended(_csv(_record())))
    assert payload["books"][0]["published_at"] == "2011-01-01"
    assert payload["books"][0]["original_books"][0]["title"] == "夏目漱石全集1"
    assert payload["authors"][0]["copyright"] is False
    assert payload["book_authors"] == [
        {"book_id": "000001", "author_id": "000148", "author_role": "著者"}
    ]
