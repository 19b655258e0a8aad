# resolver.py
from __future__ import annotations

import re

from .errors import ResolutionError
from .model import VariableTable

# `$$` is a literal dollar; `$name` is a reference (maximal identifier run).
# Any other `$` is left alone. Digits count as identifier characters, so a
# shell positional such as `$1` must be written `$$1`.
_TOKEN_RE = re.compile(r"\$(\$|[A-Za-z0-9_]+)")


def resolve_command(template: str, variables: VariableTable, *, task: str = "?") -> str:
    """
    Expand `$name` references in a command template.

    Single pass: substituted values are never scanned again, so a value
    containing `$x` reaches the shell unchanged.

    Raises:
        ResolutionError: on the first reference that is not in `variables`
    """
    def substitute(m: re.Match) -> str:
        name = m.group(1)
        if name == "$":
            return "$"
        try:
            return variables[name]
        except KeyError:
            raise ResolutionError(task=task, variable=name) from None

    return _TOKEN_RE.sub(substitute, template)
