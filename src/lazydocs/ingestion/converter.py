"""HTML to plain text conversion for documentation pages.

Pages are rendered as light Markdown: headings keep their ``#`` level, code
blocks are fenced, list items are bulleted and tables become pipe rows. The
result is meant for reading in a terminal and for full-text indexing.
"""

from __future__ import annotations

from typing import List

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction

from lazydocs.errors import ConversionError
from lazydocs.utils.text import collapse_blank_lines, squash_spaces

IGNORED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)
SKIPPED_TAGS = {"script", "style", "noscript", "template", "iframe", "svg", "button"}
HEADING_LEVELS = {"h1": 1, "h2": 2, "h3": 3, "h4": 4, "h5": 5, "h6": 6}
BLOCK_TAGS = {
    "p", "div", "section", "article", "main", "header", "footer", "aside", "nav",
    "blockquote", "dl", "dt", "dd", "figure", "figcaption", "details", "summary",
    "ul", "ol", "li", "table", "pre", "hr", "body", "html", "form", "fieldset",
} | set(HEADING_LEVELS)


class HtmlConverter:
    """Stateless HTML to text converter, safe to share between threads."""

    parser = "html.parser"

    def convert(self, html: str) -> str:
        if not html or not html.strip():
            return ""
        try:
            soup = BeautifulSoup(html, self.parser)
            blocks = self._render_blocks(soup)
        except Exception as exc:
            raise ConversionError(f"failed to convert markup: {exc}") from exc
        return collapse_blank_lines("\n\n".join(blocks))

    def _render_blocks(self, node: Tag) -> List[str]:
        """Render a container's children as a list of text blocks."""
        blocks: List[str] = []
        inline: List[str] = []

        def flush() -> None:
            text = squash_spaces("".join(inline))
            if text:
                blocks.append(text)
            inline.clear()

        for child in node.children:
            if isinstance(child, IGNORED_STRINGS):
                continue
            if isinstance(child, NavigableString):
                inline.append(str(child))
                continue
            if not isinstance(child, Tag) or child.name in SKIPPED_TAGS:
                continue
            if child.name == "br":
                flush()
                continue
            if child.name in BLOCK_TAGS:
                flush()
                rendered = self._render_block(child)
                if rendered:
                    blocks.append(rendered)
            else:
                inline.append(self._render_inline(child))
        flush()
        return blocks

    def _render_block(self, tag: Tag) -> str:
        name = tag.name
        if name in HEADING_LEVELS:
            text = squash_spaces(self._render_inline(tag))
            return f"{'#' * HEADING_LEVELS[name]} {text}" if text else ""
        if name == "pre":
            code = tag.get_text().strip("\n")
            language = tag.get("data-language", "")
            return f"```{language}\n{code}\n```" if code.strip() else ""
        if name == "hr":
            return "---"
        if name in ("ul", "ol"):
            return self._render_list(tag, ordered=name == "ol")
        if name == "table":
            return self._render_table(tag)
        if name == "blockquote":
            inner = "\n\n".join(self._render_blocks(tag))
            return "\n".join(f"> {line}" if line else ">" for line in inner.split("\n"))
        return "\n\n".join(self._render_blocks(tag))

    def _render_inline(self, tag: Tag) -> str:
        if tag.name in SKIPPED_TAGS:
            return ""
        if tag.name == "code":
            text = tag.get_text()
            return f"`{text}`" if text.strip() else text
        if tag.name == "img":
            return tag.get("alt", "")
        parts = []
        for child in tag.children:
            if isinstance(child, IGNORED_STRINGS):
                continue
            if isinstance(child, NavigableString):
                parts.append(str(child))
            elif isinstance(child, Tag):
                if child.name == "br":
                    parts.append(" ")
                else:
                    parts.append(self._render_inline(child))
        return "".join(parts)

    def _render_list(self, tag: Tag, *, ordered: bool) -> str:
        lines = []
        items = tag.find_all("li", recursive=False)
        for number, item in enumerate(items, start=1):
            marker = f"{number}." if ordered else "-"
            body = "\n".join(self._render_blocks(item))
            first, *rest = body.split("\n") if body else [""]
            lines.append(f"{marker} {first}".rstrip())
            lines.extend(f"  {line}" if line else "" for line in rest)
        return "\n".join(lines)

    def _render_table(self, tag: Tag) -> str:
        rows = []
        for row in tag.find_all("tr"):
            cells = [
                squash_spaces(self._render_inline(cell)).replace("|", "\\|")
                for cell in row.find_all(["th", "td"], recursive=False)
            ]
            if cells:
                rows.append(cells)
        if not rows:
            return ""
        width = max(len(cells) for cells in rows)
        lines = []
        for index, cells in enumerate(rows):
            cells = cells + [""] * (width - len(cells))
            lines.append("| " + " | ".join(cells) + " |")
            if index == 0:
                lines.append("|" + "---|" * width)
        return "\n".join(lines)

