from conftest import block, image, paragraph, rich_text
from notion_sync.markdown_converter import MarkdownConverter


def convert(*blocks):
    return MarkdownConverter().convert(list(blocks))


def test_paragraphs_and_headings():
    md = convert(
        block("heading_1", rich_text=rich_text("Title")),
        paragraph("First."),
        block("heading_2", rich_text=rich_text("Section")),
        paragraph("Second."),
    )
    assert md == "# Title\n\nFirst.\n\n## Section\n\nSecond."


def test_rich_text_annotations():
    items = (
        rich_text("bold", bold=True)
        + rich_text(" and ")
        + rich_text("code", code=True)
        + [{"type": "text", "plain_text": "link", "annotations": {}, "href": "https://x.io"}]
        + [{"type": "equation", "equation": {"expression": "e=mc^2"}, "plain_text": "e=mc^2"}]
    )
    assert MarkdownConverter().rich_text(items) == "**bold** and `code`[link](https://x.io)$e=mc^2$"


def test_lists_stay_tight_and_number_consecutively():
    md = convert(
        block("numbered_list_item", rich_text=rich_text("one")),
        block("numbered_list_item", rich_text=rich_text("two")),
        paragraph("break"),
        block("numbered_list_item", rich_text=rich_text("again")),
        block("to_do", rich_text=rich_text("done"), checked=True),
        block("to_do", rich_text=rich_text("todo"), checked=False),
    )
    assert md == "1. one\n2. two\n\nbreak\n\n1. again\n\n- [x] done\n- [ ] todo"


def test_nested_list_items_are_indented():
    child = block("bulleted_list_item", rich_text=rich_text("child"))
    parent = block("bulleted_list_item", children=[child], rich_text=rich_text("parent"))
    assert convert(parent) == "- parent\n    - child"


def test_code_block_keeps_blank_lines():
    code = block(
        "code",
        rich_text=rich_text("a = 1\n\n\nb = 2"),
        language="python",
    )
    assert convert(code) == "```python\na = 1\n\n\nb = 2\n```"


def test_image_is_left_as_remote_reference():
    md = convert(image("https://files.notion.so/x.png?sig=1", caption="A cat"))
    assert md == "![A cat](https://files.notion.so/x.png?sig=1)"


def test_callout_and_quote():
    md = convert(
        block("callout", rich_text=rich_text("Heads up"), icon={"type": "emoji", "emoji": "💡"}),
        block("quote", rich_text=rich_text("Quoted")),
    )
    assert md == "> 💡 Heads up\n\n> Quoted"


def test_table_with_header():
    rows = [
        block("table_row", cells=[rich_text("a"), rich_text("b")]),
        block("table_row", cells=[rich_text("1"), rich_text("x|y")]),
    ]
    md = convert(block("table", children=rows, has_column_header=True))
    assert md == "| a | b |\n| --- | --- |\n| 1 | x\\|y |"


def test_toggle_and_unknown_block():
    toggle = block("toggle", children=[paragraph("hidden")], rich_text=rich_text("More"))
    md = convert(toggle, block("mystery"))
    assert md == (
        "<details>\n<summary>More</summary>\n\nhidden\n\n</details>\n\n"
        "<!-- Unsupported block type: mystery -->"
    )


def test_links_for_media_and_bookmarks():
    md = convert(
        block("bookmark", url="https://example.com", caption=[]),
        block("file", type="file", file={"url": "https://files.notion.so/doc.pdf"}, name="doc.pdf", caption=[]),
        block("divider"),
    )
    assert md == "[bookmark](https://example.com)\n\n[doc.pdf](https://files.notion.so/doc.pdf)\n\n---"
