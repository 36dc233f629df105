"""
Notion blocks to Markdown converter.

Turns the block tree of a Notion page into the Markdown body of a post.
Media blocks are emitted as plain links to their Notion/external URLs;
downloading images is left to the asset rewriter so that every image,
whatever produced it, goes through the same naming rules.
"""

from typing import Callable, Optional

from .notion_api import NotionBlock

INDENT = "    "

LIST_TYPES = {"bulleted_list_item", "numbered_list_item", "to_do"}

# Notion language names that differ from fence info strings
CODE_LANGUAGES = {
    "plain text": "",
    "c++": "cpp",
    "c#": "csharp",
    "f#": "fsharp",
    "shell": "bash",
    "objective-c": "objectivec",
    "vb.net": "vbnet",
}


def media_url(content: dict) -> Optional[str]:
    """URL of a file/external media payload (images, files, covers)."""
    kind = content.get("type")
    if kind in ("external", "file"):
        return content.get(kind, {}).get("url")
    return None


class MarkdownConverter:
    """
    Converts Notion blocks to Markdown.

    Handles recursive block structures and keeps numbered lists
    counting across consecutive items.
    """

    def __init__(self):
        self._handlers: dict[str, Callable[[NotionBlock], str]] = {
            "paragraph": self._convert_paragraph,
            "heading_1": self._convert_heading,
            "heading_2": self._convert_heading,
            "heading_3": self._convert_heading,
            "bulleted_list_item": self._convert_list_item,
            "numbered_list_item": self._convert_list_item,
            "to_do": self._convert_list_item,
            "toggle": self._convert_toggle,
            "code": self._convert_code,
            "quote": self._convert_quote,
            "callout": self._convert_callout,
            "divider": lambda block: "---",
            "image": self._convert_image,
            "video": self._convert_media_link,
            "file": self._convert_media_link,
            "pdf": self._convert_media_link,
            "audio": self._convert_media_link,
            "embed": self._convert_url_link,
            "bookmark": self._convert_url_link,
            "link_preview": self._convert_url_link,
            "table": self._convert_table,
            "column_list": self._convert_column_list,
            "child_page": lambda block: f"**{block.content.get('title', 'Untitled')}**",
            "child_database": lambda block: f"**{block.content.get('title', 'Untitled')}**",
            "synced_block": lambda block: self.convert(block.children).strip(),
            "equation": lambda block: f"$$\n{block.content.get('expression', '')}\n$$",
            "breadcrumb": lambda block: "",
            "table_of_contents": lambda block: "",
        }
        self._numbered_counter = 0

    def convert(self, blocks: list[NotionBlock]) -> str:
        """
        Convert a list of Notion blocks to Markdown.

        Args:
            blocks: List of NotionBlock objects (children populated).

        Returns:
            Markdown text.
        """
        parts: list[str] = []
        prev_type = None
        counter = 0

        for block in blocks:
            if block.type == "numbered_list_item":
                counter = counter + 1 if prev_type == "numbered_list_item" else 1
            self._numbered_counter = counter

            markdown = self._convert_block(block)
            if markdown:
                # List items of the same kind stay tight, everything else
                # is separated by a blank line
                tight = block.type in LIST_TYPES and block.type == prev_type
                if parts:
                    parts.append("\n" if tight else "\n\n")
                parts.append(markdown)
            prev_type = block.type

        return self._normalize_whitespace("".join(parts))

    def _convert_block(self, block: NotionBlock) -> str:
        """Convert a single block to markdown."""
        handler = self._handlers.get(block.type)
        if handler is None:
            return f"<!-- Unsupported block type: {block.type} -->"
        return handler(block)

    def _convert_children(self, block: NotionBlock) -> str:
        """Convert child blocks, indented one level."""
        if not block.children:
            return ""
        text = self.convert(block.children)
        return "\n".join(INDENT + line if line else line for line in text.split("\n"))

    # =========================================================================
    # Rich text handling
    # =========================================================================

    def rich_text(self, items: list[dict]) -> str:
        """Convert Notion rich text array to markdown string."""
        parts = []
        for item in items or []:
            if item.get("type") == "equation":
                parts.append(f"${item['equation'].get('expression', '')}$")
                continue

            content = item.get("plain_text", "")
            annotations = item.get("annotations", {})
            if not content.strip():
                parts.append(content)
                continue

            if annotations.get("code"):
                content = f"`{content}`"
            if annotations.get("bold"):
                content = f"**{content}**"
            if annotations.get("italic"):
                content = f"_{content}_"
            if annotations.get("strikethrough"):
                content = f"~~{content}~~"
            if annotations.get("underline"):
                content = f"<u>{content}</u>"

            href = item.get("href")
            if href:
                content = f"[{content}]({href})"

            parts.append(content)

        return "".join(parts)

    # =========================================================================
    # Block type handlers
    # =========================================================================

    def _convert_paragraph(self, block: NotionBlock) -> str:
        text = self.rich_text(block.content.get("rich_text", []))
        children = self._convert_children(block)
        return f"{text}\n{children}" if children else text

    def _convert_heading(self, block: NotionBlock) -> str:
        level = int(block.type[-1])
        text = self.rich_text(block.content.get("rich_text", []))
        return f"{'#' * level} {text}"

    def _convert_list_item(self, block: NotionBlock) -> str:
        text = self.rich_text(block.content.get("rich_text", []))
        if block.type == "numbered_list_item":
            marker = f"{self._numbered_counter}."
        elif block.type == "to_do":
            marker = "- [x]" if block.content.get("checked") else "- [ ]"
        else:
            marker = "-"

        children = self._convert_children(block)
        item = f"{marker} {text}"
        return f"{item}\n{children}" if children else item

    def _convert_toggle(self, block: NotionBlock) -> str:
        """Toggle becomes a details/summary HTML block."""
        summary = self.rich_text(block.content.get("rich_text", []))
        inner = self.convert(block.children).strip()
        if inner:
            return f"<details>\n<summary>{summary}</summary>\n\n{inner}\n\n</details>"
        return f"<details>\n<summary>{summary}</summary>\n</details>"

    def _convert_code(self, block: NotionBlock) -> str:
        code = "".join(
            item.get("plain_text", "") for item in block.content.get("rich_text", [])
        )
        language = block.content.get("language", "").lower()
        lang = CODE_LANGUAGES.get(language, language)
        return f"```{lang}\n{code}\n```"

    def _quoted(self, text: str, block: NotionBlock) -> str:
        inner = self.convert(block.children).strip()
        if inner:
            text = f"{text}\n\n{inner}"
        return "\n".join(f"> {line}" if line else ">" for line in text.split("\n"))

    def _convert_quote(self, block: NotionBlock) -> str:
        return self._quoted(self.rich_text(block.content.get("rich_text", [])), block)

    def _convert_callout(self, block: NotionBlock) -> str:
        """Callout becomes a blockquote led by its emoji."""
        text = self.rich_text(block.content.get("rich_text", []))
        icon = block.content.get("icon") or {}
        if icon.get("type") == "emoji":
            text = f"{icon['emoji']} {text}"
        return self._quoted(text, block)

    def _convert_image(self, block: NotionBlock) -> str:
        url = media_url(block.content)
        if not url:
            return ""
        caption = self.rich_text(block.content.get("caption", []))
        return f"![{caption}]({url})"

    def _convert_media_link(self, block: NotionBlock) -> str:
        url = media_url(block.content)
        if not url:
            return ""
        label = (
            self.rich_text(block.content.get("caption", []))
            or block.content.get("name")
            or block.type
        )
        return f"[{label}]({url})"

    def _convert_url_link(self, block: NotionBlock) -> str:
        url = block.content.get("url", "")
        if not url:
            return ""
        label = self.rich_text(block.content.get("caption", [])) or block.type
        return f"[{label}]({url})"

    def _convert_table(self, block: NotionBlock) -> str:
        rows = [
            [
                self.rich_text(cell).replace("|", "\\|")
                for cell in row.content.get("cells", [])
            ]
            for row in block.children
            if row.type == "table_row"
        ]
        if not rows:
            return ""

        width = max(len(row) for row in rows)
        rows = [row + [""] * (width - len(row)) for row in rows]

        # Markdown tables need a header row; Notion tables may not have one
        if block.content.get("has_column_header"):
            header, body = rows[0], rows[1:]
        else:
            header, body = [""] * width, rows

        lines = [f"| {' | '.join(header)} |", f"| {' | '.join(['---'] * width)} |"]
        lines.extend(f"| {' | '.join(row)} |" for row in body)
        return "\n".join(lines)

    def _convert_column_list(self, block: NotionBlock) -> str:
        """Columns are flattened into sequential content."""
        parts = [self.convert(column.children).strip() for column in block.children]
        return "\n\n".join(part for part in parts if part)

    # =========================================================================
    # Utilities
    # =========================================================================

    def _normalize_whitespace(self, content: str) -> str:
        """Strip trailing spaces and collapse runs of blank lines outside code fences."""
        result = []
        blank = False
        in_fence = False
        for line in content.split("\n"):
            if line.lstrip().startswith("```"):
                in_fence = not in_fence
            elif in_fence:
                result.append(line)
                continue
            line = line.rstrip()
            if not line:
                if blank:
                    continue
                blank = True
            else:
                blank = False
            result.append(line)
        return "\n".join(result).strip("\n")
