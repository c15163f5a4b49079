"""Tests for the query-table extractor."""
from fava_bridge.extract import extract_table_records, make_soup, table_titles

from tests.conftest import table_html


def test_one_record_per_row_in_row_order():
    html = table_html(
        ["account", "sum(position)"],
        [["Expenses:Food", "12.50 CNY"], ["Expenses:Rent", "3000.00 CNY"], ["Income:Salary", "-9000 CNY"]],
    )
    records = extract_table_records(html)
    assert records == [
        {"account": "Expenses:Food", "sum(position)": "12.50 CNY"},
        {"account": "Expenses:Rent", "sum(position)": "3000.00 CNY"},
        {"account": "Income:Salary", "sum(position)": "-9000 CNY"},
    ]


def test_titles_and_cells_are_trimmed():
    html = table_html(["  date "], [["   2024-01-01   "]])
    assert extract_table_records(html) == [{"date": "2024-01-01"}]


def test_cell_text_includes_nested_markup():
    html = (
        "<table><thead><tr><th>account</th><th>amount</th></tr></thead>"
        "<tbody><tr><td><a href='/account/Assets:Cash/'>Assets:Cash</a></td>"
        "<td><span class='num'>5</span> <span>CNY</span></td></tr></tbody></table>"
    )
    assert extract_table_records(html) == [{"account": "Assets:Cash", "amount": "5 CNY"}]


def test_extra_cells_are_dropped():
    html = table_html(["a", "b"], [["1", "2", "3", "4"]])
    assert extract_table_records(html) == [{"a": "1", "b": "2"}]


def test_short_rows_leave_titles_unused():
    html = table_html(["a", "b", "c"], [["1"], ["1", "2"], []])
    assert extract_table_records(html) == [{"a": "1"}, {"a": "1", "b": "2"}, {}]


def test_duplicate_titles_keep_last_column():
    html = table_html(["x", "y", "x"], [["first", "middle", "last"]])
    assert extract_table_records(html) == [{"x": "last", "y": "middle"}]


def test_empty_body_yields_no_records():
    assert extract_table_records(table_html(["a", "b"], [])) == []


def test_empty_document_yields_no_records():
    assert extract_table_records("") == []
    assert extract_table_records("   ") == []


def test_rows_without_header_have_no_fields():
    html = "<table><tbody><tr><td>1</td><td>2</td></tr></tbody></table>"
    assert extract_table_records(html) == [{}]


def test_table_titles_follow_header_order():
    soup = make_soup(table_html(["c", "a", "b"], []))
    assert table_titles(soup) == ["c", "a", "b"]
