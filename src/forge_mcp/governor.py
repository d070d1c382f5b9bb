"""Output size governor for tools whose results can be arbitrarily large.

Outputs are treated as a sequence of whole records (log lines, diff lines,
JSON objects). When a sequence exceeds its budget the governor keeps the
largest head or tail window of whole records that fits and appends a marker
describing what was cut and how to ask for the rest. Records are never split.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

import tiktoken

UNIT_LINES = "lines"
UNIT_BYTES = "bytes"
UNIT_TOKENS = "tokens"
UNITS = (UNIT_LINES, UNIT_BYTES, UNIT_TOKENS)

WINDOW_HEAD = "head"
WINDOW_TAIL = "tail"

TOKEN_ENCODING = "cl100k_base"

_encoding = None


def get_encoding():
    """Tokenizer used for the ``tokens`` unit, loaded on first use."""
    global _encoding
    if _encoding is None:
        _encoding = tiktoken.get_encoding(TOKEN_ENCODING)
    return _encoding


def count_tokens(text: str) -> int:
    return len(get_encoding().encode(text))


def _measure_for(unit: str) -> Callable[[str], int]:
    if unit == UNIT_LINES:
        return lambda record: 1
    if unit == UNIT_BYTES:
        # Each record is followed by one newline separator when rejoined.
        return lambda record: len(record.encode("utf-8")) + 1
    if unit == UNIT_TOKENS:
        return count_tokens
    raise ValueError(f"unknown unit: {unit} (expected one of {', '.join(UNITS)})")


@dataclass
class GovernedOutput:
    records: list[str]
    total_records: int
    total_units: int
    kept_units: int
    truncated: bool
    marker: str = ""
    source: Optional[str] = None

    @property
    def kept_records(self) -> int:
        return len(self.records)

    def text(self) -> str:
        """Kept records joined by newlines, followed by the marker if any.

        Output governed from free text comes back exactly as given when
        nothing was cut.
        """
        if not self.truncated and self.source is not None:
            return self.source
        body = "\n".join(self.records)
        if not self.marker:
            return body
        if not body:
            return self.marker
        return f"{body}\n{self.marker}"


def govern(
    records: Sequence[str],
    budget: int,
    unit: str = UNIT_LINES,
    window: str = WINDOW_TAIL,
    hint: str = "",
    noun: str = "lines",
) -> GovernedOutput:
    """Bound ``records`` to ``budget`` units.

    Args:
        records: Whole records, in natural order.
        budget: Maximum units to return. Must be positive.
        unit: One of ``lines``, ``bytes`` or ``tokens``.
        window: ``tail`` keeps the most recent records, ``head`` the earliest.
        hint: Guidance appended to the marker on how to fetch the remainder.
        noun: What a record is called in the marker.

    Returns:
        GovernedOutput. ``truncated`` is False and the records are untouched
        when the total is within budget.
    """
    if budget <= 0:
        raise ValueError(f"budget must be positive, got {budget}")
    if window not in (WINDOW_HEAD, WINDOW_TAIL):
        raise ValueError(f"unknown window: {window}")
    measure = _measure_for(unit)
    records = list(records)
    costs = [measure(r) for r in records]
    total = sum(costs)

    if total <= budget:
        return GovernedOutput(
            records=records,
            total_records=len(records),
            total_units=total,
            kept_units=total,
            truncated=False,
        )

    order = range(len(records) - 1, -1, -1) if window == WINDOW_TAIL else range(len(records))
    kept_idx = []
    used = 0
    for i in order:
        if used + costs[i] > budget:
            break
        used += costs[i]
        kept_idx.append(i)
    kept_idx.sort()
    kept = [records[i] for i in kept_idx]

    position = "last" if window == WINDOW_TAIL else "first"
    marker = f"[truncated: showing {position} {len(kept)} of {len(records)} {noun}"
    if unit != UNIT_LINES:
        marker += f" ({used} of {total} {unit})"
    marker += "]"
    if hint:
        marker = f"{marker} {hint}"

    return GovernedOutput(
        records=kept,
        total_records=len(records),
        total_units=total,
        kept_units=used,
        truncated=True,
        marker=marker,
    )


def govern_text(
    text: str,
    budget: int,
    unit: str = UNIT_LINES,
    window: str = WINDOW_TAIL,
    hint: str = "",
) -> GovernedOutput:
    """Govern free text line by line.

    Lines end at ``\\n`` only, so ``\\r`` progress output and CRLF endings stay
    inside their line. A trailing newline does not count as a line.
    """
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    result = govern(lines, budget, unit=unit, window=window, hint=hint, noun="lines")
    result.source = text
    return result


def govern_json_records(
    items: Sequence[Any],
    budget: int,
    unit: str = UNIT_BYTES,
    window: str = WINDOW_HEAD,
    hint: str = "",
) -> tuple[list[Any], GovernedOutput]:
    """Govern a list of JSON-serialisable records by their compact encoding.

    Returns the kept items themselves alongside the governed output so callers
    can re-serialise them in whatever shape they like.
    """
    encoded = [json.dumps(item, separators=(",", ":"), sort_keys=True) for item in items]
    result = govern(encoded, budget, unit=unit, window=window, hint=hint, noun="records")
    if not result.truncated:
        return list(items), result
    if window == WINDOW_TAIL:
        kept = list(items)[len(items) - result.kept_records:] if result.kept_records else []
    else:
        kept = list(items)[:result.kept_records]
    return kept, result


@dataclass
class Page:
    records: list[Any]
    page: int
    per_page: int
    total_records: int

    @property
    def has_next(self) -> bool:
        return self.page * self.per_page < self.total_records

    @property
    def next_page(self) -> Optional[int]:
        return self.page + 1 if self.has_next else None


def paginate(records: Sequence[Any], page: int = 1, per_page: int = 30) -> Page:
    """Slice ``records`` into 1-based pages of ``per_page`` whole records."""
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if per_page < 1:
        raise ValueError(f"per_page must be >= 1, got {per_page}")
    start = (page - 1) * per_page
    return Page(
        records=list(records[start:start + per_page]),
        page=page,
        per_page=per_page,
        total_records=len(records),
    )
