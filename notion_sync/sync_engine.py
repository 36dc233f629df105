"""
Main sync engine for Notion → Jekyll synchronization.

Orchestrates, for every page flagged for deployment:
- Metadata derivation
- Content conversion
- Image download and link rewriting
- Front matter composition
- File writing
- Clearing the deploy flag
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import httpx
import yaml
from notion_client.errors import HTTPResponseError, RequestTimeoutError
from rich.console import Console
from rich.table import Table

from .assets import rewrite_body_images, save_image
from .config import Config
from .front_matter import build_front_matter, read_front_matter, render_post
from .markdown_converter import MarkdownConverter
from .notion_api import NotionAPI, NotionPage
from .posts import PostMeta, existing_date, find_existing_post

console = Console()


@dataclass
class SyncResult:
    """Result of a sync operation."""

    posts_written: list[Path] = field(default_factory=list)
    posts_unchanged: list[Path] = field(default_factory=list)
    flags_cleared: list[str] = field(default_factory=list)
    flags_failed: list[str] = field(default_factory=list)
    images_downloaded: int = 0


def write_if_changed(path: Path, content: str) -> bool:
    """
    Write ``content`` to ``path`` unless the file already holds it.

    Returns:
        True if the file was written.
    """
    data = content.encode("utf-8")
    if path.exists() and path.read_bytes() == data:
        return False
    path.write_bytes(data)
    return True


class SyncEngine:
    """
    Main orchestrator for Notion → Jekyll synchronization.

    Coordinates all components to perform the sync:
    1. Query pages flagged for deployment
    2. Convert each page to Markdown
    3. Download cover and body images
    4. Write the post if its content changed
    5. Clear the deploy flag
    """

    def __init__(self, config: Config, notion_api: Optional[NotionAPI] = None):
        """
        Initialize sync engine.

        Args:
            config: Configuration instance.
            notion_api: API wrapper to use instead of building one.
        """
        self.config = config
        self.notion_api = notion_api or NotionAPI(config)
        self.markdown_converter = MarkdownConverter()

    def sync(self) -> SyncResult:
        """
        Publish every page flagged for deployment.

        Pages are handled one after another. Failures other than image
        downloads and flag updates propagate and stop the run.

        Returns:
            SyncResult with details of the operation.
        """
        result = SyncResult()

        console.print("\n[bold blue]🔄 Starting Notion → Jekyll Sync[/bold blue]\n")
        if self.config.dry_run:
            console.print("[yellow]Dry run: nothing will be written or updated.[/yellow]")
        else:
            self.config.posts_path.mkdir(parents=True, exist_ok=True)

        pages = self.notion_api.query_deploy_queue()
        if not pages:
            console.print("[yellow]No pages are flagged for deployment.[/yellow]")

        for queued in pages:
            self._sync_page(queued, result)

        self._print_summary(result)
        console.print(f"\nDone. {len(result.posts_written)} file(s) updated.")

        return result

    def _sync_page(self, queued: NotionPage, result: SyncResult) -> None:
        """Write the post for one page, then clear its deploy flag."""
        page = self.notion_api.get_page(queued.id)
        post = PostMeta.from_page(page, self.config)

        if self.config.debug:
            console.print(f"[dim]{page.id}: {post.title!r} -> {post.slug}[/dim]")

        body = self.markdown_converter.convert(self.notion_api.get_page_blocks(page.id))

        # A post written earlier keeps its path, img_path and date
        existing_file = find_existing_post(self.config.posts_path, page.id, post.slug)
        existing_fm = {}
        if existing_file:
            try:
                existing_fm = read_front_matter(existing_file)[0]
            except yaml.YAMLError as e:
                console.print(
                    f"[yellow]Warning: Ignoring front matter of {existing_file.name}: {e}[/yellow]"
                )

        img_path, asset_dir = self._asset_location(post, existing_fm.get("img_path"))

        image_name, image_alt = None, ""
        if not self.config.dry_run:
            image_name, image_alt, body = self._localize_images(
                page, post, asset_dir, body, result
            )

        fm = build_front_matter(
            title=post.title,
            date=existing_date(existing_fm) or post.front_matter_date,
            img_path=img_path,
            image_name=image_name,
            image_alt=image_alt,
            categories=post.categories,
            tags=post.tags,
            notion_id=page.id,
            notion_last_edited=post.last_edited,
        )
        content = render_post(fm, body)

        target_path = existing_file or self.config.posts_path / post.filename

        if self.config.dry_run:
            console.print(f"[cyan]Would write:[/cyan] {target_path}")
            return

        if write_if_changed(target_path, content):
            console.print(f"[green]✅ Updated:[/green] {target_path}")
            result.posts_written.append(target_path)
        else:
            console.print(f"[dim]↔  No change: {target_path}[/dim]")
            result.posts_unchanged.append(target_path)

        self._clear_deploy_flag(page.id, result)

    def _asset_location(self, post: PostMeta, existing_img_path) -> tuple[str, Path]:
        """
        Pick the post's img_path and the directory its images are saved in.

        An img_path from an existing post is kept only when it resolves
        inside the asset root; img_path is site-absolute and the site root
        is repo_root.
        """
        default = post.img_path(self.config.asset_dir)
        assets_root = self.config.assets_path.resolve()

        if isinstance(existing_img_path, str) and existing_img_path.strip("/"):
            asset_dir = (self.config.repo_root / existing_img_path.strip("/")).resolve()
            if asset_dir.is_relative_to(assets_root):
                return existing_img_path, asset_dir
            console.print(
                f"[yellow]Warning: img_path {existing_img_path!r} is outside "
                f"{self.config.asset_dir}, using {default}[/yellow]"
            )

        return default, (self.config.repo_root / default.strip("/")).resolve()

    def _localize_images(
        self,
        page: NotionPage,
        post: PostMeta,
        asset_dir: Path,
        body: str,
        result: SyncResult,
    ) -> tuple[Optional[str], str, str]:
        """
        Download cover and body images.

        Returns:
            Tuple of (cover_file_name, cover_alt, rewritten_body).
        """
        asset_dir.mkdir(parents=True, exist_ok=True)
        cover_name, cover_alt = None, ""

        if self.config.download_cover and page.cover:
            cover_name = save_image(page.cover, asset_dir, "cover")
            if cover_name:
                result.images_downloaded += 1

        rewrite = rewrite_body_images(body, asset_dir, f"{post.compact_date}-{post.slug}")
        result.images_downloaded += len(rewrite.saved)

        if cover_name is None and rewrite.first_image:
            cover_name = rewrite.first_image
            cover_alt = rewrite.first_alt

        return cover_name, cover_alt, rewrite.body

    def _clear_deploy_flag(self, page_id: str, result: SyncResult) -> None:
        """Uncheck the deploy checkbox; failures only warn."""
        prop = self.config.deploy_prop
        try:
            self.notion_api.set_checkbox(page_id, prop, False)
        # ValueError covers an unparseable response body (JSONDecodeError)
        except (HTTPResponseError, RequestTimeoutError, httpx.HTTPError, ValueError) as e:
            console.print(
                f"[yellow]Warning: Failed to uncheck '{prop}' for {page_id}: {e}[/yellow]"
            )
            result.flags_failed.append(page_id)
            return

        console.print(f"[dim]🔓 Unchecked '{prop}' for page {page_id}[/dim]")
        result.flags_cleared.append(page_id)

    def _print_summary(self, result: SyncResult) -> None:
        """Print sync summary."""
        console.print("\n" + "=" * 50)
        console.print("[bold]Sync Summary[/bold]")
        console.print("=" * 50)

        table = Table(show_header=False, box=None)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="white")

        table.add_row("Posts written", str(len(result.posts_written)))
        table.add_row("Posts unchanged", str(len(result.posts_unchanged)))
        table.add_row("Images downloaded", str(result.images_downloaded))
        table.add_row("Deploy flags cleared", str(len(result.flags_cleared)))
        table.add_row("Deploy flags failed", str(len(result.flags_failed)))
        table.add_row("API requests", str(self.notion_api.request_count))

        console.print(table)

        if result.flags_failed:
            console.print(
                f"\n[yellow]Still flagged in Notion:[/yellow] {', '.join(result.flags_failed)}"
            )

    def status(self) -> None:
        """Print the pages currently flagged for deployment."""
        console.print("\n[bold]Deploy Queue[/bold]\n")

        pages = self.notion_api.query_deploy_queue()
        if not pages:
            console.print("[yellow]No pages are flagged for deployment.[/yellow]")
            return

        table = Table(title=f"Pages with '{self.config.deploy_prop}' checked")
        table.add_column("Title", style="cyan")
        table.add_column("Post", style="green")
        table.add_column("Last Edited", style="yellow")

        for page in pages:
            post = PostMeta.from_page(page, self.config)
            existing = find_existing_post(self.config.posts_path, page.id, post.slug)
            table.add_row(
                post.title,
                existing.name if existing else f"{post.filename} (new)",
                post.last_edited,
            )

        console.print(table)
