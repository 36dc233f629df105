# Shared test fixtures: a config rooted in tmp_path, a fake Notion API,
# Notion payload builders and a fake for requests.get.

import types

import pytest
import requests

from notion_sync.config import Config
from notion_sync.notion_api import NotionBlock, NotionPage

PAGE_ID = "11111111-2222-3333-4444-555555555555"


def rich_text(text, **annotations):
    return [{"type": "text", "plain_text": text, "annotations": annotations, "href": None}]


def make_page(
    page_id=PAGE_ID,
    title="Hello, World!",
    created_time="2024-01-01T15:00:00.000Z",
    last_edited_time="2024-01-05T03:04:00.000Z",
    cover=None,
    **extra_props,
):
    """API-shaped page dict; ``created_time`` default is 2024-01-02 in Seoul."""
    properties = {
        "제목": {"type": "title", "title": rich_text(title) if title else []},
        "배포": {"type": "checkbox", "checkbox": True},
    }
    properties.update(extra_props)
    page = {
        "object": "page",
        "id": page_id,
        "created_time": created_time,
        "last_edited_time": last_edited_time,
        "url": f"https://www.notion.so/{page_id.replace('-', '')}",
        "cover": None,
        "properties": properties,
    }
    if cover:
        page["cover"] = {"type": "external", "external": {"url": cover}}
    return page


def select(name):
    return {"type": "select", "select": {"name": name} if name else None}


def multi_select(*names):
    return {"type": "multi_select", "multi_select": [{"name": n} for n in names]}


def block(block_type, block_id="b", children=None, **content):
    b = NotionBlock.from_api_response(
        {"id": block_id, "type": block_type, "has_children": bool(children), block_type: content}
    )
    b.children = children or []
    return b


def paragraph(text):
    return block("paragraph", rich_text=rich_text(text))


def image(url, caption=""):
    return block(
        "image",
        type="external",
        external={"url": url},
        caption=rich_text(caption) if caption else [],
    )


class FakeNotionAPI:
    """Stands in for NotionAPI; every added page is in the deploy queue."""

    def __init__(self):
        self.pages = {}
        self.blocks = {}
        self.checkbox_updates = []
        self.checkbox_error = None
        self.request_count = 0

    def add_page(self, page, blocks=()):
        self.pages[page["id"]] = page
        self.blocks[page["id"]] = list(blocks)

    def query_deploy_queue(self):
        return [NotionPage.from_api_response(p) for p in self.pages.values()]

    def get_page(self, page_id):
        return NotionPage.from_api_response(self.pages[page_id])

    def get_page_blocks(self, page_id):
        return self.blocks[page_id]

    def set_checkbox(self, page_id, prop, value):
        if self.checkbox_error is not None:
            raise self.checkbox_error
        self.checkbox_updates.append((page_id, prop, value))


def make_response(url, status=200, content=b"", content_type="image/png"):
    response = requests.Response()
    response.status_code = status
    response._content = content
    response.headers["Content-Type"] = content_type
    response.url = url
    response.reason = "OK" if status < 400 else "Error"
    return response


@pytest.fixture
def config(tmp_path):
    return Config(notion_token="secret_test", database_id="db-id", repo_root=tmp_path)


@pytest.fixture
def notion():
    return FakeNotionAPI()


@pytest.fixture
def http(monkeypatch):
    """
    Replace requests.get.

    ``routes`` maps a URL to ``(status, content_type, body)`` or to an
    exception to raise; unknown URLs answer 404.
    """
    routes = {}
    calls = []

    def fake_get(url, headers=None, timeout=None, **kwargs):
        calls.append(url)
        route = routes.get(url, (404, "text/html", b"not found"))
        if isinstance(route, Exception):
            raise route
        status, content_type, body = route
        return make_response(url, status, body, content_type)

    monkeypatch.setattr(requests, "get", fake_get)
    return types.SimpleNamespace(routes=routes, calls=calls)
