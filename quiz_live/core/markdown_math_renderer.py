"""Markdown + LaTeX rendering for question text sent to clients.

Question text is authored in Markdown with ``$...$`` math. The server renders
it to an HTML fragment once per frozen snapshot; math is left in place for
MathJax on the client.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from markdown_it import MarkdownIt

from quiz_live.core.models import QuestionSnapshot


@dataclass(slots=True)
class MarkdownMathRenderer:
    """Converts markdown-with-math into HTML fragments."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str | None) -> str:
        sanitized = (markdown_text or "").strip()
        if not sanitized:
            return ""
        return self._markdown.render(sanitized)

    def render_question(self, question: QuestionSnapshot) -> dict[str, object]:
        """Client payload for a question: snapshot fields plus ``question_html``."""
        payload = question.to_dict()
        payload["question_html"] = self.render_fragment(question.question_text)
        return payload


renderer = MarkdownMathRenderer()
