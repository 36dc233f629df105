"""
Post metadata derived from Notion pages.

Covers everything needed to decide where a page lands on disk:
title and slug, publish date, categories and tags, and lookup of a
post that was written for the same page on an earlier run.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

import yaml
from rich.console import Console
from slugify import slugify

from .config import Config
from .front_matter import read_front_matter
from .notion_api import NotionPage

console = Console()

DEFAULT_TITLE = "Untitled"
DEFAULT_SLUG = "post"

# Checked after the configured title keys
FALLBACK_TITLE_KEYS = ("Name", "Title")
# Checked after the configured tag property
FALLBACK_TAG_PROPS = ("Tags", "Tag")


def plain_text(rich_text: Optional[list[dict]]) -> str:
    """Join the plain text of a rich text array."""
    return "".join(item.get("plain_text", "") for item in rich_text or []).strip()


def get_title(properties: dict, title_keys: list[str]) -> str:
    """
    Pick the page title from its properties.

    The first candidate holding non-empty title text wins, trying the
    configured keys before ``Name`` and ``Title``.
    """
    for key in [*title_keys, *FALLBACK_TITLE_KEYS]:
        title = plain_text((properties.get(key) or {}).get("title"))
        if title:
            return title
    return DEFAULT_TITLE


def slugify_title(title: str) -> str:
    """
    Generate a filesystem-safe slug from a post title.

    Examples:
        "Hello, World!" -> "hello-world"
        "Café Crème" -> "cafe-creme"
    """
    return slugify(title or DEFAULT_SLUG, lowercase=True) or DEFAULT_SLUG


def parse_page_date(value: str, tz: ZoneInfo) -> datetime:
    """
    Parse a Notion date or timestamp into a datetime in ``tz``.

    Date-only values mean midnight in ``tz``; values carrying an offset
    are converted.
    """
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=tz)
    return parsed.astimezone(tz)


def select_names(properties: dict, prop: str) -> list[str]:
    """Option names of a select or multi-select property."""
    value = properties.get(prop) or {}
    if value.get("multi_select"):
        return [option["name"] for option in value["multi_select"]]
    selected = value.get("select")
    if selected and selected.get("name"):
        return [selected["name"]]
    return []


def unique(values) -> list:
    """Drop empty values and duplicates, keeping first-seen order."""
    return list(dict.fromkeys(value for value in values if value))


def _raw_date(properties: dict, prop: str) -> Optional[str]:
    value = properties.get(prop) or {}
    if value.get("type") == "created_time":
        return value.get("created_time")
    return (value.get("date") or {}).get("start")


@dataclass
class PostMeta:
    """Normalized metadata for one page, ready to be written as a post."""

    page_id: str
    title: str
    slug: str
    published: datetime
    last_edited: str
    categories: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    @classmethod
    def from_page(cls, page: NotionPage, config: Config) -> "PostMeta":
        """Derive post metadata from a retrieved page."""
        props = page.properties or {}
        title = get_title(props, config.title_keys)

        raw_date = _raw_date(props, config.date_prop) or page.created_time

        primary = select_names(props, config.category_primary_prop)
        secondary = select_names(props, config.category_secondary_prop)
        categories = unique([*primary[:1], *secondary[:1]])[:2]

        tags = unique(
            name
            for prop in (config.tag_prop, *FALLBACK_TAG_PROPS)
            for name in select_names(props, prop)
        )

        return cls(
            page_id=page.id,
            title=title,
            slug=slugify_title(title),
            published=parse_page_date(raw_date, config.tz),
            last_edited=page.last_edited_time,
            categories=categories,
            tags=tags,
        )

    @property
    def file_date(self) -> str:
        return self.published.strftime("%Y-%m-%d")

    @property
    def front_matter_date(self) -> str:
        """Jekyll-style timestamp, e.g. ``2024-01-02 00:00:00 +0900``."""
        return self.published.strftime("%Y-%m-%d %H:%M:%S %z")

    @property
    def compact_date(self) -> str:
        return self.published.strftime("%Y%m%d")

    @property
    def year(self) -> str:
        return self.published.strftime("%Y")

    @property
    def filename(self) -> str:
        return f"{self.file_date}-{self.slug}.md"

    def img_path(self, asset_dir: str) -> str:
        """Site-absolute URL prefix of this post's images."""
        return f"/{asset_dir.strip('/')}/{self.year}/{self.slug}/"


def find_existing_post(posts_dir: Path, page_id: str, slug: str) -> Optional[Path]:
    """
    Find the post previously written for a page.

    Matching on the ``notion_id`` recorded in front matter survives
    title edits; when no file records the id, a file named
    ``*-<slug>.md`` (any date) is used instead.

    Returns:
        Path of the matching post, or None.
    """
    if not posts_dir.is_dir():
        return None

    files = sorted(
        path for path in posts_dir.iterdir()
        if path.is_file() and path.name.lower().endswith(".md")
    )

    for path in files:
        try:
            fm, _ = read_front_matter(path)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            console.print(f"[dim]Skipping unreadable post {path.name}: {e}[/dim]")
            continue
        if fm.get("notion_id") == page_id:
            return path

    suffix = f"-{slug}.md"
    for path in files:
        if path.name.endswith(suffix):
            return path

    return None


def existing_date(fm: dict) -> Optional[str]:
    """Front matter ``date`` of an existing post as written on disk."""
    value = fm.get("date")
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S %z").strip()
    if isinstance(value, date):
        return value.isoformat()
    return value or None
