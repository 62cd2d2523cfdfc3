"""Handlebars rendering shared by every prompt module.

Free text goes through triple-stash ({{{var}}}); double-stash HTML-escapes.
"""

from collections.abc import Callable
from typing import Any

import pybars

_compiler = pybars.Compiler()
_compiled: dict[str, Callable] = {}


class PromptError(Exception):
    """A prompt template failed to compile or render."""


# ── Helpers ──────────────────────────────────────────────


def _numbered(this, options, items):
    """{{#numbered rooms}}{{n}}. {{item.x}}{{/numbered}}, counting from 1."""
    out = []
    for n, item in enumerate(items or [], start=1):
        out.extend(options["fn"]({"n": n, "item": item}))
    return out


def _joined(this, items, separator=", "):
    """{{{joined names}}} renders a list as one comma-separated line."""
    return separator.join(str(i) for i in items or [])


HELPERS: dict[str, Callable] = {
    "numbered": _numbered,
    "joined": _joined,
}


def _template(source: str) -> Callable:
    template = _compiled.get(source)
    if template is None:
        template = _compiled[source] = _compiler.compile(source)
    return template


def render_prompt(source: str, context: dict[str, Any]) -> str:
    """Render `source` against `context`. Compiled templates are reused."""
    try:
        return str(_template(source)(context, helpers=HELPERS))
    except Exception as e:
        raise PromptError(f"Cannot render prompt template: {e}") from e
