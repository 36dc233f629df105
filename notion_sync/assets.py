"""
Image downloading and Markdown image rewriting.

Images referenced by a post are saved under the post's asset directory
and the Markdown is pointed at them through ``{{ page.img_path }}``,
which Jekyll (Chirpy) resolves from the post's front matter.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import requests
from requests.utils import requote_uri
from rich.console import Console

console = Console()

USER_AGENT = "Mozilla/5.0 NotionSync"
DOWNLOAD_TIMEOUT = 30  # seconds
DEFAULT_EXTENSION = "png"
IMG_PATH_TOKEN = "{{ page.img_path }}"

# ![alt](url) / ![alt](<url>) / ![alt](url "title")
IMAGE_RE = re.compile(r'!\[([^\]]*)\]\(\s*<?([^)\s]+?)>?(?:\s+"[^"]*")?\)')
URL_EXTENSION_RE = re.compile(r"^[a-z0-9]{2,5}$")
UNSAFE_FILENAME_RE = re.compile(r"[^\w.\-]+", re.ASCII)


def extension_from_url(url: str) -> Optional[str]:
    """File extension of the URL path's last segment, if it looks like one."""
    name = urlparse(url).path.rsplit("/", 1)[-1]
    _, dot, ext = name.rpartition(".")
    if not dot or not ext:
        return None
    ext = ext.lower()
    return ext if URL_EXTENSION_RE.match(ext) else None


def extension_from_content_type(content_type: Optional[str]) -> Optional[str]:
    """Extension for an ``image/*`` content type (``jpeg`` becomes ``jpg``)."""
    if not content_type:
        return None
    mime = content_type.split(";")[0].strip().lower()
    if not mime.startswith("image/"):
        return None
    ext = mime.split("/", 1)[1]
    return "jpg" if ext == "jpeg" else ext


def sanitize_filename(name: str) -> str:
    return UNSAFE_FILENAME_RE.sub("_", name)


def unique_filename(directory: Path, base: str, ext: str) -> str:
    """``base.ext``, or ``base-01.ext``, ``base-02.ext``... whichever is free."""
    name = f"{base}.{ext}"
    index = 1
    while (directory / name).exists():
        name = f"{base}-{index:02d}.{ext}"
        index += 1
    return name


def save_image(url: str, target_dir: Path, base_hint: str = "img") -> Optional[str]:
    """
    Download an image into ``target_dir``.

    Args:
        url: Image URL (Notion-hosted or external).
        target_dir: Directory to save the image in, created if missing.
        base_hint: File name without extension.

    Returns:
        Name of the saved file, or None if the download failed.
    """
    target_dir.mkdir(parents=True, exist_ok=True)

    try:
        response = requests.get(
            requote_uri(url),
            headers={"User-Agent": USER_AGENT},
            timeout=DOWNLOAD_TIMEOUT,
        )
        response.raise_for_status()
    except requests.RequestException as e:
        console.print(f"[yellow]Warning: Failed to download image {url}: {e}[/yellow]")
        return None

    ext = (
        extension_from_url(url)
        or extension_from_content_type(response.headers.get("Content-Type"))
        or DEFAULT_EXTENSION
    )
    name = unique_filename(target_dir, sanitize_filename(base_hint or "img"), ext)
    (target_dir / name).write_bytes(response.content)
    return name


@dataclass
class BodyRewrite:
    """Outcome of localizing the images of a Markdown body."""

    body: str
    saved: dict[str, str] = field(default_factory=dict)
    first_image: Optional[str] = None
    first_alt: str = ""


def rewrite_body_images(body: str, target_dir: Path, base_prefix: str) -> BodyRewrite:
    """
    Download every remote image in ``body`` and point the Markdown at it.

    Each distinct URL is fetched once, named ``<base_prefix>-NN``.
    All occurrences of a saved URL are replaced; URLs that failed to
    download are left untouched.

    Args:
        body: Markdown text.
        target_dir: The post's asset directory.
        base_prefix: Name prefix, e.g. ``20240102-hello-world``.

    Returns:
        BodyRewrite with the new body and the first saved image.
    """
    result = BodyRewrite(body=body)
    seen: set[str] = set()

    for match in IMAGE_RE.finditer(body):
        alt, url = match.group(1), match.group(2)
        if not re.match(r"https?://", url, re.IGNORECASE) or url in seen:
            continue
        seen.add(url)

        name = save_image(url, target_dir, f"{base_prefix}-{len(seen):02d}")
        if name is None:
            continue

        result.saved[url] = name
        if result.first_image is None:
            result.first_image = name
            result.first_alt = alt

    # Longest first, so a URL that prefixes another cannot clobber it
    for url, name in sorted(result.saved.items(), key=lambda item: len(item[0]), reverse=True):
        result.body = result.body.replace(url, f"{IMG_PATH_TOKEN}{name}")

    return result
