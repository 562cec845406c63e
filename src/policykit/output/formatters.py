"""Plain-text/JSON output helpers.

These helpers only read what they are given: they never classify or
evaluate policy themselves.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from policykit.domain.classification import Grade
    from policykit.services.result import ServiceResult


def format_flag(value: bool) -> str:
    """Render a boolean as ``"Yes"`` / ``"No"``."""
    return "Yes" if value else "No"


def format_grade(grade: Grade | None, *, empty: str = "-") -> str:
    """Render a grade label, or *empty* when there is none."""
    return grade.label if grade is not None else empty


def _format_data_human(data: dict[str, Any]) -> str:
    """Format result data as indented key-value pairs."""
    lines: list[str] = []
    for key, value in data.items():
        if isinstance(value, (dict, list)):
            lines.append(f"  {key}: {_json.dumps(value, separators=(',', ':'), default=str)}")
        elif isinstance(value, bool):
            lines.append(f"  {key}: {format_flag(value)}")
        else:
            lines.append(f"  {key}: {value}")
    return "\n".join(lines)


def format_result(result: ServiceResult, *, json_output: bool = False) -> str:
    """Format a ServiceResult for display.

    Args:
        result: The service result to format.
        json_output: If True, return JSON; otherwise return human-readable text.
    """
    if json_output:
        return result.model_dump_json(indent=2)
    if result.ok:
        parts = [f"OK: {result.op}"]
        if result.data:
            parts.append(_format_data_human(result.data))
        return "\n".join(parts)
    lines = [f"ERROR: {result.op}"]
    lines.extend(f"  [{error.code}] {error.message}" for error in result.errors)
    return "\n".join(lines)
