"""Parser configuration."""

from typing import Literal

from pydantic import BaseModel, Field


class MarkdownOptions(BaseModel):
    """Options forwarded to markdownify."""

    heading_style: Literal["ATX", "ATX_CLOSED", "SETEXT", "UNDERLINED"] = "ATX"
    bullets: str = "-"
    strip_links: bool = False


class ParserOptions(BaseModel):
    """Options controlling a single parse."""

    expand: bool = False  # Build HtmlNode trees for every section
    markdown: MarkdownOptions = Field(default_factory=MarkdownOptions)
