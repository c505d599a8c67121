"""Command template rendering.

Toolchain commands are templates such as ``gcc {file} -o {dir}/a.out``.
Placeholders are written as ``{name}`` where ``name`` consists of letters,
digits and underscores.  Rendering is a single left-to-right pass, so a
substituted value is never scanned again, and placeholders without a
matching variable are left in place untouched.
"""

from __future__ import annotations

import re
from typing import Dict, List, Mapping

PLACEHOLDER_RE = re.compile(r"\{([A-Za-z0-9_]+)\}")


def build(template: str, variables: Mapping[str, str]) -> str:
    """Return ``template`` with every known ``{name}`` replaced by its value."""

    def _substitute(match: re.Match) -> str:
        name = match.group(1)
        if name in variables:
            return variables[name]
        return match.group(0)

    return PLACEHOLDER_RE.sub(_substitute, template)


def placeholders(template: str) -> List[str]:
    """List the placeholder names referenced by ``template`` in order of appearance."""
    seen: List[str] = []
    for name in PLACEHOLDER_RE.findall(template):
        if name not in seen:
            seen.append(name)
    return seen


class CommandBuilder:
    """Accumulates variables for a single command template."""

    def __init__(self, template: str) -> None:
        self.template = template
        self.variables: Dict[str, str] = {}

    def put_variable(self, name: str, value: str) -> "CommandBuilder":
        self.variables[name] = value
        return self

    def put_variables(self, variables: Mapping[str, str]) -> "CommandBuilder":
        self.variables.update(variables)
        return self

    def unresolved(self) -> List[str]:
        return [name for name in placeholders(self.template) if name not in self.variables]

    def build_command(self) -> str:
        return build(self.template, self.variables)
