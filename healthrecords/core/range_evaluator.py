"""Classify lab parameter values against their reference ranges."""

import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .report_normalizer import dig, get_parameters, normalize_report
from ..models.report import LabRow

BELOW = "below"
IN_RANGE = "in-range"
ABOVE = "above"
UNKNOWN = "unknown"

STATUS_COLORS = {
    IN_RANGE: "green",
    BELOW: "yellow",
    ABOVE: "red",
    UNKNOWN: "gray",
}

# Scan order matters: flags from every list accumulate (see evaluate()).
RANGE_KINDS = ("basic", "gender", "age")

_TEXT_RANGE = re.compile(r"(\d+\.?\d*)\s*-\s*(\d+\.?\d*)")


@dataclass
class RangeEvaluation:
    status: str
    display_range: str

    @property
    def color(self) -> str:
        return STATUS_COLORS[self.status]


def to_number(value: Any) -> Optional[float]:
    """Numeric reading of a lab value, or None when it is not a number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text or text.upper() == "N/A":
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number):
        return None
    return number


def _range_list(parameter: Dict[str, Any], kind: str) -> List[Dict[str, Any]]:
    if kind == "basic":
        entries = dig(parameter, "bioRefRange", "basicRange")
    else:
        entries = dig(parameter, "bioRefRange", "advanceRange", f"{kind}Range")
    if not isinstance(entries, list):
        return []
    return [entry for entry in entries if isinstance(entry, dict)]


def iter_ranges(parameter: Dict[str, Any]) -> List[Tuple[str, Dict[str, Any]]]:
    """All range entries as (kind, entry) pairs in scan order."""
    return [(kind, entry) for kind in RANGE_KINDS for entry in _range_list(parameter, kind)]


def range_label(kind: str, entry: Dict[str, Any]) -> str:
    if kind == "gender" and entry.get("genderRangeType"):
        gender = str(entry["genderRangeType"])
        return gender[:1].upper() + gender[1:]
    if kind == "age" and entry.get("ageRangeType"):
        age = str(entry["ageRangeType"])
        return age[:1].upper() + age[1:]
    if kind == "basic":
        return "Normal"
    return ""


def _format_bound(bound: Any) -> str:
    if isinstance(bound, float) and bound.is_integer():
        return str(int(bound))
    return "undefined" if bound is None else str(bound)


def format_range(kind: str, entry: Dict[str, Any]) -> str:
    unit = entry.get("unit")
    text = f"{range_label(kind, entry)}: {_format_bound(entry.get('min'))} - {_format_bound(entry.get('max'))}"
    return f"{text} {unit}" if unit else text


def range_strings(parameter: Dict[str, Any]) -> List[str]:
    if not isinstance(dig(parameter, "bioRefRange"), dict):
        return []
    return [format_range(kind, entry) for kind, entry in iter_ranges(parameter)]


def display_range(parameter: Dict[str, Any]) -> str:
    """Every reference range as one human-readable string, or "-"."""
    ranges = range_strings(parameter)
    return ", ".join(ranges) if ranges else "-"


def value_status(parameter: Dict[str, Any]) -> str:
    """below / in-range / above / unknown for one parameter.

    Flags are accumulated over basic, then gender, then age ranges and are
    only ever set. An in-range verdict requires that no entry flagged the
    value as below or above; when both below and above were flagged by
    different entries, below wins.
    """
    if not isinstance(parameter, dict):
        return UNKNOWN
    value = to_number(parameter.get("value"))
    if value is None:
        return UNKNOWN
    if not isinstance(parameter.get("bioRefRange"), dict):
        return UNKNOWN

    is_below = is_above = is_in_range = False
    for _, entry in iter_ranges(parameter):
        low = to_number(entry.get("min"))
        high = to_number(entry.get("max"))
        if low is None or high is None:
            continue
        if value < low:
            is_below = True
        elif value > high:
            is_above = True
        else:
            is_in_range = True

    if is_in_range and not is_below and not is_above:
        return IN_RANGE
    if is_below:
        return BELOW
    if is_above:
        return ABOVE
    return UNKNOWN


def evaluate(parameter: Dict[str, Any]) -> RangeEvaluation:
    return RangeEvaluation(status=value_status(parameter), display_range=display_range(parameter))


def primary_range(parameter: Dict[str, Any]) -> Optional[Tuple[str, Dict[str, Any]]]:
    """First range entry by kind priority (basic, gender, age)."""
    for kind in RANGE_KINDS:
        entries = _range_list(parameter, kind)
        if entries:
            return kind, entries[0]
    return None


def display_unit(parameter: Dict[str, Any]) -> str:
    if parameter.get("units"):
        return str(parameter["units"])
    primary = primary_range(parameter)
    if primary and primary[1].get("unit"):
        return str(primary[1]["unit"])
    return "N/A"


def display_value(parameter: Dict[str, Any]) -> Any:
    value = parameter.get("value")
    return "N/A" if value is None else value


def build_lab_rows(report: Any) -> List[LabRow]:
    """Evaluated table rows for every lab parameter of a report."""
    rows = []
    for parameter in get_parameters(normalize_report(report)):
        evaluation = evaluate(parameter)
        rows.append(LabRow(
            name=parameter.get("name"),
            value=display_value(parameter),
            unit=display_unit(parameter),
            status=evaluation.status,
            color=evaluation.color,
            displayRange=evaluation.display_range,
            ranges=range_strings(parameter),
        ))
    return rows


def is_value_in_range(value: Any, normal_range: Optional[str]) -> bool:
    """Check a value against a free-text range such as "12-17.5".

    Missing ranges, non-numeric values and unparseable ranges count as in
    range.
    """
    if not normal_range:
        return True
    number = to_number(value)
    if number is None:
        return True
    match = _TEXT_RANGE.search(str(normal_range))
    if not match:
        return True
    return float(match.group(1)) <= number <= float(match.group(2))
