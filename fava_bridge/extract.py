# fava_bridge/extract.py
from typing import List

from bs4 import BeautifulSoup, FeatureNotFound
from bs4.element import Tag

from .schema import TableRecord

def make_soup(html: str) -> BeautifulSoup:
    for parser in ("lxml", "html.parser"):
        try:
            return BeautifulSoup(html, parser)
        except FeatureNotFound:
            continue
    return BeautifulSoup(html, "html.parser")

def cell_text(el: Tag) -> str:
    return el.get_text().strip()

def table_titles(soup: BeautifulSoup) -> List[str]:
    return [cell_text(th) for th in soup.select("thead tr th")]

def extract_table_records(html: str) -> List[TableRecord]:
    """
    Turns a Fava query table into one dict per ``<tbody>`` row.

    Cells are joined to header titles by position only: cell ``i`` gets
    title ``i``. Cells past the last title are dropped, rows shorter than
    the header simply lack the remaining titles, and a repeated title keeps
    the value of its last column.
    """
    soup = make_soup(html or "")
    titles = table_titles(soup)

    records: List[TableRecord] = []
    for row in soup.select("tbody tr"):
        record: TableRecord = {}
        for i, td in enumerate(row.find_all("td")):
            if i >= len(titles):
                break
            record[titles[i]] = cell_text(td)
        records.append(record)
    return records
