"""YAML front matter for Jekyll posts."""

import re
from pathlib import Path
from typing import Any, Optional

import yaml

FRONT_MATTER_RE = re.compile(r"^---\n(.*?)\n---\n(.*)$", re.DOTALL)


def parse_front_matter(text: str) -> tuple[dict, str]:
    """
    Split a post into its front matter mapping and body.

    Text without a leading ``---`` block yields an empty mapping and the
    text unchanged.

    Raises:
        yaml.YAMLError: If the front matter block is not valid YAML.
    """
    match = FRONT_MATTER_RE.match(text)
    if not match:
        return {}, text
    fm = yaml.safe_load(match.group(1) or "")
    return (fm if isinstance(fm, dict) else {}), match.group(2)


def read_front_matter(path: Path) -> tuple[dict, str]:
    return parse_front_matter(path.read_text(encoding="utf-8"))


def build_front_matter(
    *,
    title: str,
    date: str,
    img_path: str,
    image_name: Optional[str],
    image_alt: str,
    categories: list[str],
    tags: list[str],
    notion_id: str,
    notion_last_edited: str,
) -> dict[str, Any]:
    """Assemble post front matter in Chirpy's field order, empties removed."""
    fm = {
        "title": title,
        "date": date,
        "img_path": img_path,
        "image": {"path": image_name, "alt": image_alt} if image_name else None,
        "categories": categories,
        "tags": tags,
        "notion_id": notion_id,
        "notion_last_edited": notion_last_edited,
    }
    return prune_empty(fm)


def prune_empty(fm: dict[str, Any]) -> dict[str, Any]:
    """Drop None values, empty lists and blank strings."""
    return {
        key: value
        for key, value in fm.items()
        if not (
            value is None
            or (isinstance(value, list) and not value)
            or (isinstance(value, str) and not value.strip())
        )
    }


def dump_front_matter(fm: dict[str, Any]) -> str:
    return yaml.safe_dump(fm, sort_keys=False, allow_unicode=True, width=100)


def render_post(fm: dict[str, Any], body: str) -> str:
    """Full post text: front matter block, blank line, body."""
    return f"---\n{dump_front_matter(fm)}---\n\n{body}\n"
