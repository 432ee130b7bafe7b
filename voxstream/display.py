"""Rich rendering of streamed answers.

Converts a Document into Rich renderables (headings, bullet and numbered
lists, paragraphs, verbatim code panels) and provides a Live display
that redraws the answer after every StreamChunk.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.panel import Panel
from rich.syntax import Syntax
from rich.text import Text

from voxstream.schemas.document import (
    Block,
    BulletListBlock,
    CodeBlock,
    Document,
    HeadingBlock,
    NumberedListBlock,
    ParagraphBlock,
)
from voxstream.schemas.streaming import StreamChunk

BRAND = {
    "mint": "#00ffbb",
    "green": "#00ff88",
    "gold": "#D4A843",
    "dim": "#6a8a6a",
    "red": "#ff4444",
}

_HEADING_STYLES: dict[int, str] = {
    1: f"bold underline {BRAND['mint']}",
    2: f"bold {BRAND['mint']}",
    3: f"bold {BRAND['green']}",
}

# First line of a fenced block that names its language (```python)
_LANG_HINT_RE = re.compile(r"^[A-Za-z0-9_+#.-]{1,20}$")


def _guess_lexer(content: str) -> str:
    """Pick a highlighting lexer from a leading language hint line.

    Only used for colouring; the content itself is rendered verbatim.
    """
    first, sep, _ = content.partition("\n")
    if sep and _LANG_HINT_RE.match(first.strip()):
        return first.strip().lower()
    return "text"


def render_block(block: Block) -> RenderableType:
    """Render a single block."""
    if isinstance(block, HeadingBlock):
        return Text(block.text, style=_HEADING_STYLES.get(block.level, "bold"))

    if isinstance(block, BulletListBlock):
        text = Text()
        for i, item in enumerate(block.items):
            if i:
                text.append("\n")
            text.append("  • ", style=BRAND["gold"])
            text.append(item)
        return text

    if isinstance(block, NumberedListBlock):
        text = Text()
        for i, item in enumerate(block.items, 1):
            if i > 1:
                text.append("\n")
            text.append(f"  {i}. ", style=BRAND["gold"])
            text.append(item)
        return text

    if isinstance(block, CodeBlock):
        syntax = Syntax(
            block.content,
            _guess_lexer(block.content),
            theme="monokai",
            word_wrap=False,
        )
        return Panel(syntax, border_style="dim", padding=(0, 1))

    if isinstance(block, ParagraphBlock):
        return Text(block.text)

    raise TypeError(f"Unknown block type: {type(block).__name__}")


def render_document(document: Document) -> Group:
    """Render every block of a document in order."""
    return Group(*(render_block(block) for block in document.blocks))


def render_answer_panel(
    document: Document,
    *,
    question: str = "",
    loading: bool = False,
) -> Panel:
    """Wrap a rendered document in the answer panel."""
    if document.is_empty:
        body: RenderableType = Text(
            "Thinking..." if loading else "—", style=BRAND["dim"], justify="center"
        )
    else:
        body = render_document(document)

    title = "[bold]AI[/bold]"
    if loading:
        title += f" [{BRAND['dim']}](streaming)[/{BRAND['dim']}]"
    subtitle = Text(question, style=BRAND["dim"], overflow="ellipsis") if question else None
    return Panel(
        body,
        title=title,
        title_align="left",
        subtitle=subtitle,
        border_style=BRAND["green"],
    )


class StreamingAnswerDisplay:
    """Live answer panel updated after every StreamChunk.

    Use as a context manager around ``ChatSession.ask`` and pass
    ``create_stream_callback()`` as the session's ``on_update``.
    """

    def __init__(self, console: Console, question: str = "") -> None:
        self._console = console
        self._question = question
        self._document = Document()
        self._complete = False
        self._live: Live | None = None

    @property
    def document(self) -> Document:
        return self._document

    def __enter__(self) -> StreamingAnswerDisplay:
        self._live = Live(
            self._build_panel(),
            console=self._console,
            refresh_per_second=8,
            transient=False,
        )
        self._live.__enter__()
        return self

    def __exit__(self, *args: object) -> None:
        if self._live:
            self._complete = True
            self._live.update(self._build_panel(), refresh=True)
            self._live.__exit__(*args)
            self._live = None

    def create_stream_callback(self) -> Callable[[StreamChunk], None]:
        """Create the ``on_update`` callback for a ChatSession."""

        def _on_stream(chunk: StreamChunk) -> None:
            self._document = chunk.document
            self._complete = chunk.is_complete
            self._refresh()

        return _on_stream

    def _refresh(self) -> None:
        if self._live:
            self._live.update(self._build_panel())

    def _build_panel(self) -> Panel:
        return render_answer_panel(
            self._document,
            question=self._question,
            loading=not self._complete,
        )
