"""Oracle answer parsing - structured JSON first, sentinel lines as fallback."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class Skip:
    """Oracle declined to estimate (subjective or unresolvable market)."""

    reason: str


@dataclass(frozen=True)
class Predict:
    """Probability estimate in [0, 1]."""

    probability: float
    reasoning: str


@dataclass(frozen=True)
class Unparseable:
    """Response matched neither grammar or carried an invalid probability."""

    raw: str


OracleAnswer = Union[Skip, Predict, Unparseable]

_PERCENT_RE = re.compile(r"^\s*([-+]?\d+(?:\.\d+)?)\s*%?\s*$")


def _valid_percent(value: Any) -> float | None:
    """Return value if it is a number in [0, 100], else None. Booleans are not numbers here."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    value = float(value)
    if not 0.0 <= value <= 100.0:
        return None
    return value


def parse_structured(text: str) -> OracleAnswer | None:
    """
    Parse `{"action": "predict"|"skip", "probability": 0-100, "reasoning": "..."}`.
    Returns None when the text is not a JSON object, so the caller can fall back.
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(data, dict):
        return None
    reasoning = data.get("reasoning")
    reasoning = reasoning if isinstance(reasoning, str) else ""
    action = data.get("action")
    probability = data.get("probability")
    if probability is not None and _valid_percent(probability) is None:
        return Unparseable(raw=text)
    if action == "skip":
        return Skip(reason=reasoning)
    if action == "predict":
        pct = _valid_percent(probability)
        if pct is None:
            return Unparseable(raw=text)
        return Predict(probability=pct / 100.0, reasoning=reasoning)
    return Unparseable(raw=text)


def parse_sentinel_lines(text: str) -> OracleAnswer:
    """
    Scan `REASONING: ...`, `PROBABILITY: NN%` and `SKIP` lines. The last occurrence of each field wins.
    SKIP forces a skip; an out-of-range last probability is unparseable.
    """
    reasoning = ""
    skip = False
    pct: float | None = None
    out_of_range = False
    for line in text.splitlines():
        stripped = line.strip()
        upper = stripped.upper()
        if upper.startswith("REASONING:"):
            reasoning = stripped[len("REASONING:"):].strip()
        elif upper.startswith("PROBABILITY:"):
            m = _PERCENT_RE.match(stripped[len("PROBABILITY:"):])
            if m is None:
                pct, out_of_range = None, False
                continue
            value = float(m.group(1))
            if 0.0 <= value <= 100.0:
                pct, out_of_range = value, False
            else:
                pct, out_of_range = None, True
        elif upper == "SKIP" or upper.startswith("SKIP:"):
            skip = True
            if not reasoning and ":" in stripped:
                reasoning = stripped.split(":", 1)[1].strip()
    if out_of_range:
        return Unparseable(raw=text)
    if skip:
        return Skip(reason=reasoning)
    if pct is None:
        return Unparseable(raw=text)
    return Predict(probability=pct / 100.0, reasoning=reasoning)


def parse_answer(text: str) -> OracleAnswer:
    """Parse a raw oracle response, auto-detecting the structured or sentinel-line format."""
    structured = parse_structured(text.strip())
    if structured is not None:
        return structured
    return parse_sentinel_lines(text)
