"""Pretty-print support for schemachat output objects.

Uses rich library for formatted terminal output.

To avoid circular imports, this module does NOT import domain models
at module level. Functions access object attributes dynamically.
"""
from __future__ import annotations

import json
from typing import Any

from pydantic_core import to_jsonable_python
from rich.console import Console, Group
from rich.json import JSON
from rich.markdown import Markdown
from rich.panel import Panel
from rich.text import Text
from rich.theme import Theme

# Brighter markdown theme for dark terminals.
_MARKDOWN_THEME = Theme({
    "markdown.h1": "bold bright_white underline",
    "markdown.h2": "bold bright_white",
    "markdown.code": "bold white on grey11",
    "markdown.code_block": "white on grey11",
    "markdown.link": "bright_cyan underline",
    "markdown.strong": "bold bright_white",
    "markdown.em": "italic bright_white",
})


def _ensure_utf8_stdout() -> None:
    """Reconfigure stdout to UTF-8 on Windows to avoid cp1252 encoding errors."""
    import sys
    if sys.platform == "win32" and hasattr(sys.stdout, "reconfigure"):
        try:
            sys.stdout.reconfigure(encoding="utf-8")
        except Exception:
            pass


def _make_console(file: Any = None) -> Console:
    """Create a Console, optionally writing to a file-like object."""
    if file is not None:
        return Console(file=file, force_terminal=True, width=100, theme=_MARKDOWN_THEME)
    _ensure_utf8_stdout()
    return Console(theme=_MARKDOWN_THEME)


def data_to_json(data: Any, *, indent: int | None = 2) -> str:
    """Serialize validated data (models, dataclasses, dicts) to JSON text."""
    return json.dumps(to_jsonable_python(data), indent=indent, ensure_ascii=False)


def pprint_validated_response(response: Any, *, abbreviate: bool = False, file: Any = None) -> None:
    """Pretty-print a ValidatedResponse.

    Structured data is shown as highlighted JSON; schemaless text is
    rendered as Markdown.

    Args:
        response: A ValidatedResponse instance.
        abbreviate: If True, truncate long prompt/text. Default False.
        file: Optional file-like object for output (used in tests).
    """
    console = _make_console(file)

    prompt = getattr(response, "prompt", None)
    if prompt:
        prompt_text = prompt
        if abbreviate and len(prompt_text) > 200:
            prompt_text = prompt_text[:197] + "..."
        console.print(Panel(
            prompt_text,
            title="[bold]User[/bold]",
            border_style="blue",
        ))

    data = response.data
    if isinstance(data, str):
        text = data
        if abbreviate and len(text) > 200:
            text = text[:197] + "..."
        body: Any = Markdown(text) if text else Text("(empty response)")
        panel_title = "[bold]Assistant[/bold]"
        panel_border = "green"
    else:
        body = JSON(data_to_json(data))
        panel_title = f"[bold]{type(data).__name__}[/bold]"
        panel_border = "magenta"

    usage = getattr(response, "usage", None)
    if usage is not None:
        footer = Text.from_markup(
            f"[dim]{usage.prompt_tokens} prompt + {usage.completion_tokens} completion"
            f" = {usage.total_tokens} tokens[/dim]"
        )
        content: Any = Group(body, Text(""), footer)
    else:
        content = body

    console.print(Panel(content, title=panel_title, border_style=panel_border))
