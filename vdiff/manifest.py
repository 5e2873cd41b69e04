"""Manifest parsing for batches of image comparisons."""

from __future__ import annotations

import tomllib
from pathlib import Path

from vdiff.compare import CompareOptions


_REQUIRED_SECTIONS = ("case",)
_CASE_REQUIRED_FIELDS = ("name", "reference", "candidate")
_CASE_STRING_FIELDS = _CASE_REQUIRED_FIELDS + ("composition",)
_OPTION_DEFAULTS = {"max_delta": 1.0, "max_difference": 0.01, "max_offset": 0}


def load_compare_manifest(path: Path) -> dict:
    """Load and validate a comparison manifest TOML file.

    Required sections: [[case]], with at least one entry.
    Required case fields: name, reference, candidate (strings).
    Optional [options] table; defaults applied: max_delta=1.0,
    max_difference=0.01, max_offset=0.  Cases may override any option and
    may set ``composition`` to a path for the green/red overlay.

    Raises:
        ValueError: If required sections or fields are missing or have the
            wrong type.
    """
    with open(path, "rb") as f:
        data = tomllib.load(f)

    for section in _REQUIRED_SECTIONS:
        if section not in data:
            raise ValueError(f"Missing required section: [[{section}]]")

    cases = data["case"]
    if not isinstance(cases, list) or not cases:
        raise ValueError("Section [[case]] must contain at least one case")

    for i, case in enumerate(cases):
        if not isinstance(case, dict):
            raise ValueError(f"Case #{i + 1} must be a table")
        for field in _CASE_REQUIRED_FIELDS:
            if field not in case:
                raise ValueError(f"Missing required case field: {field} (case #{i + 1})")
        for field in _CASE_STRING_FIELDS:
            if field in case and not isinstance(case[field], str):
                raise ValueError(
                    f"Case field {field} must be a string, got {case[field]!r} (case #{i + 1})"
                )

    options = data.setdefault("options", {})
    for key, default in _OPTION_DEFAULTS.items():
        options.setdefault(key, default)

    return data


def _number(key: str, value: object) -> float:
    """Return *value* as a float, rejecting non-numeric TOML values."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number, got {value!r}")
    return float(value)


def options_for_case(manifest: dict, case: dict) -> CompareOptions:
    """Build the :class:`CompareOptions` for *case*.

    Per-case values override the manifest's [options] table.  A composition
    is rendered only when the case names a ``composition`` path.

    Raises:
        ValueError: If an option is not a number, or ``max_offset`` is not a
            whole number.
    """
    merged = {key: case.get(key, manifest["options"][key]) for key in _OPTION_DEFAULTS}

    max_offset = _number("max_offset", merged["max_offset"])
    if not max_offset.is_integer():
        raise ValueError(f"max_offset must be a whole number, got {merged['max_offset']!r}")

    return CompareOptions(
        max_delta=_number("max_delta", merged["max_delta"]),
        max_difference=_number("max_difference", merged["max_difference"]),
        max_offset=int(max_offset),
        render_composition="composition" in case,
    )
