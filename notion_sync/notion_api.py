"""
Notion API wrapper for the sync system.

Provides a clean interface to Notion's API with:
- Rate limiting compliance
- Paginated database queries
- Recursive block fetching
- Checkbox updates
"""

from dataclasses import dataclass
from typing import Any, Optional

from notion_client import Client
from notion_client.errors import APIResponseError
from ratelimit import limits, sleep_and_retry
from rich.console import Console

from .config import Config

console = Console()

# Notion API rate limit: 3 requests per second
RATE_LIMIT_CALLS = 3
RATE_LIMIT_PERIOD = 1  # second

QUERY_PAGE_SIZE = 50


@dataclass
class NotionPage:
    """Represents a Notion database page with its property bag."""

    id: str
    created_time: str
    last_edited_time: str
    cover: Optional[str] = None
    properties: Optional[dict] = None

    @classmethod
    def from_api_response(cls, page: dict) -> "NotionPage":
        """Create NotionPage from API response."""
        # Extract cover
        cover = None
        if page.get("cover"):
            if page["cover"]["type"] == "external":
                cover = page["cover"]["external"]["url"]
            elif page["cover"]["type"] == "file":
                cover = page["cover"]["file"]["url"]

        return cls(
            id=page["id"],
            created_time=page["created_time"],
            last_edited_time=page["last_edited_time"],
            cover=cover,
            properties=page.get("properties") or {},
        )


@dataclass
class NotionBlock:
    """Represents a Notion block."""

    id: str
    type: str
    has_children: bool
    content: dict
    children: list["NotionBlock"]

    @classmethod
    def from_api_response(cls, block: dict) -> "NotionBlock":
        """Create NotionBlock from API response."""
        block_type = block["type"]
        content = block.get(block_type, {})

        return cls(
            id=block["id"],
            type=block_type,
            has_children=block.get("has_children", False),
            content=content,
            children=[],
        )


class NotionAPI:
    """
    Wrapper around Notion API with rate limiting and utilities.

    Handles:
    - Authentication
    - Rate limiting (3 req/sec)
    - Deploy queue queries
    - Recursive block fetching
    - Property updates
    """

    def __init__(self, config: Config, client: Optional[Client] = None):
        """
        Initialize the Notion API client.

        Args:
            config: Configuration instance with Notion token.
            client: Pre-built client, mainly for tests.
        """
        self.config = config
        self.client = client or Client(auth=config.notion_token)
        self._request_count = 0

    @sleep_and_retry
    @limits(calls=RATE_LIMIT_CALLS, period=RATE_LIMIT_PERIOD)
    def _rate_limited_call(self, func, *args, **kwargs) -> Any:
        """Execute a rate-limited API call."""
        self._request_count += 1
        return func(*args, **kwargs)

    def query_deploy_queue(self) -> list[NotionPage]:
        """
        Get every database page whose deploy checkbox is set.

        Most recently edited pages come first. All result pages are
        fetched before returning.

        Returns:
            List of NotionPage objects.
        """
        pages = []
        has_more = True
        start_cursor = None

        while has_more:
            try:
                response = self._rate_limited_call(
                    self.client.databases.query,
                    database_id=self.config.database_id,
                    start_cursor=start_cursor,
                    page_size=QUERY_PAGE_SIZE,
                    filter={
                        "property": self.config.deploy_prop,
                        "checkbox": {"equals": True},
                    },
                    sorts=[{"timestamp": "last_edited_time", "direction": "descending"}],
                )
            except APIResponseError as e:
                console.print(f"[red]API Error querying database: {e}[/red]")
                raise

            pages.extend(
                NotionPage.from_api_response(page)
                for page in response.get("results", [])
            )

            has_more = response.get("has_more", False)
            start_cursor = response.get("next_cursor")

        return pages

    def get_page(self, page_id: str) -> NotionPage:
        """
        Get a single page by ID.

        Args:
            page_id: The Notion page ID.

        Returns:
            NotionPage object.
        """
        try:
            response = self._rate_limited_call(
                self.client.pages.retrieve,
                page_id=page_id,
            )
            return NotionPage.from_api_response(response)
        except APIResponseError as e:
            console.print(f"[red]API Error fetching page {page_id}: {e}[/red]")
            raise

    def get_page_blocks(self, page_id: str) -> list[NotionBlock]:
        """
        Get all blocks from a page, children included.

        Args:
            page_id: The Notion page ID.

        Returns:
            List of NotionBlock objects with children populated.
        """
        blocks = []
        has_more = True
        start_cursor = None

        while has_more:
            try:
                response = self._rate_limited_call(
                    self.client.blocks.children.list,
                    block_id=page_id,
                    start_cursor=start_cursor,
                )
            except APIResponseError as e:
                console.print(f"[red]API Error fetching blocks: {e}[/red]")
                raise

            for block_data in response.get("results", []):
                block = NotionBlock.from_api_response(block_data)
                if block.has_children:
                    block.children = self.get_page_blocks(block.id)
                blocks.append(block)

            has_more = response.get("has_more", False)
            start_cursor = response.get("next_cursor")

        return blocks

    def set_checkbox(self, page_id: str, prop: str, value: bool) -> None:
        """Set a single checkbox property on a page."""
        self._rate_limited_call(
            self.client.pages.update,
            page_id=page_id,
            properties={prop: {"checkbox": value}},
        )

    @property
    def request_count(self) -> int:
        """Number of API requests made."""
        return self._request_count
