"""
Configuration management for Notion → Jekyll sync.

Loads settings from environment variables and provides
structured configuration for all sync components.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

DEFAULT_TITLE_KEYS = "제목,Title,Name"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class Config:
    """
    Central configuration for the sync system.

    Built once at startup and handed to every component.
    All secrets are loaded from env vars - never hardcoded.
    """

    # Notion settings
    notion_token: str
    database_id: str

    # Paths (posts_dir and asset_dir are relative to repo_root)
    repo_root: Path = field(default_factory=lambda: Path.cwd())
    posts_dir: str = "_posts"
    asset_dir: str = "assets/img/for_post"

    # Dates
    timezone: str = "Asia/Seoul"

    # Notion property names
    title_keys: list[str] = field(
        default_factory=lambda: DEFAULT_TITLE_KEYS.split(",")
    )
    date_prop: str = "생성일"
    deploy_prop: str = "배포"
    tag_prop: str = "태그"
    category_primary_prop: str = "카테고리"
    category_secondary_prop: str = "분류"

    # Sync behavior
    download_cover: bool = True
    debug: bool = False
    dry_run: bool = False

    @property
    def posts_path(self) -> Path:
        """Directory holding the generated posts."""
        return self.repo_root / self.posts_dir

    @property
    def assets_path(self) -> Path:
        """Root directory for downloaded post images."""
        return self.repo_root / self.asset_dir

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Config":
        """
        Load configuration from environment variables.

        Args:
            env_file: Optional path to .env file. If not provided,
                     looks for .env in current directory.

        Returns:
            Configured Config instance.

        Raises:
            ValueError: If required environment variables are missing
                or the timezone is unknown.
        """
        # Load .env file if it exists
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()

        # Required variables
        notion_token = os.getenv("NOTION_TOKEN")
        if not notion_token:
            raise ValueError(
                "NOTION_TOKEN environment variable is required.\n"
                "Create a Notion integration at https://www.notion.so/my-integrations"
            )

        database_id = os.getenv("NOTION_DATABASE_ID")
        if not database_id:
            raise ValueError(
                "NOTION_DATABASE_ID environment variable is required.\n"
                "This should be the ID of the database holding your posts."
            )

        repo_root_str = os.getenv("REPO_ROOT")
        repo_root = Path(repo_root_str) if repo_root_str else Path.cwd()

        title_keys = [
            key.strip()
            for key in os.getenv("TITLE_KEYS", DEFAULT_TITLE_KEYS).split(",")
            if key.strip()
        ]

        return cls(
            notion_token=notion_token,
            database_id=database_id,
            repo_root=repo_root,
            posts_dir=os.getenv("POSTS_DIR", "_posts"),
            asset_dir=os.getenv("ASSET_DIR", "assets/img/for_post"),
            timezone=os.getenv("TIMEZONE", "Asia/Seoul"),
            title_keys=title_keys,
            date_prop=os.getenv("DATE_PROP", "생성일"),
            deploy_prop=os.getenv("DEPLOY_PROP", "배포"),
            tag_prop=os.getenv("TAG_PROP", "태그"),
            category_primary_prop=os.getenv("CATEGORY_PRIMARY_PROP", "카테고리"),
            category_secondary_prop=os.getenv("CATEGORY_SECONDARY_PROP", "분류"),
            download_cover=_env_flag("DOWNLOAD_COVER", "true"),
            debug=_env_flag("DEBUG"),
            dry_run=_env_flag("DRY_RUN"),
        )

    def __post_init__(self):
        """Validate configuration after initialization."""
        # Ensure repo_root is a Path
        if isinstance(self.repo_root, str):
            self.repo_root = Path(self.repo_root)

        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown TIMEZONE: {self.timezone!r}") from None
