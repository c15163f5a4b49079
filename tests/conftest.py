"""Shared fixtures: markup builders and a fetcher wired to a fake upstream."""
import json
from typing import Callable, List

import httpx
import pytest

from fava_bridge.config import Settings
from fava_bridge.fetch import UpstreamFetcher

BASE_URL = "http://fava.test/ledger"


def table_html(titles: List[str], rows: List[List[str]]) -> str:
    head = "".join(f"<th> {t} </th>" for t in titles)
    body = "".join(
        "<tr>" + "".join(f"<td>\n  {c}\n</td>" for c in row) + "</tr>" for row in rows
    )
    return f"<table><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>"


def journal_html(lines) -> str:
    """Lines are (date, change, balance) as printed by the upstream."""
    items = []
    for date, change, balance in lines:
        items.append(
            '<li class="transaction cleared">'
            "<p>"
            f'<span class="datecell" data-sort-value="1"><a href="#context">{date}</a></span>'
            '<span class="flag">*</span>'
            '<span class="description">Payee <span class="narration">note</span></span>'
            f'<span class="num change"> {change} </span>'
            f'<span class="num"> {balance} </span>'
            "</p>"
            '<ul class="postings"><li><p><span class="num">1 CNY</span></p></li></ul>'
            "</li>"
        )
    return f'<html><body><ol class="flex-table journal">{"".join(items)}</ol></body></html>'


class FakeUpstream:
    """Records every request and answers through a user supplied handler."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.handler = handler
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def paths(self) -> List[str]:
        return [r.url.path for r in self.requests]


def query_handler(envelope: dict, refresh_status: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/income_statement/"):
            return httpx.Response(refresh_status, text="<html>report</html>")
        return httpx.Response(200, content=json.dumps(envelope).encode(),
                              headers={"content-type": "application/json"})
    return handler


def html_handler(html: str):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text=html, headers={"content-type": "text/html"})
    return handler


@pytest.fixture
def settings() -> Settings:
    return Settings(url=BASE_URL + "/")


@pytest.fixture
def make_fetcher(settings):
    """Returns a factory: handler -> (fetcher, upstream recorder)."""

    def _make(handler):
        upstream = FakeUpstream(handler)
        client = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
        return UpstreamFetcher(settings, client), upstream

    return _make
