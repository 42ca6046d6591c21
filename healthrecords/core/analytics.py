"""Chart series and summary numbers for the health dashboard."""

import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from .range_evaluator import ABOVE, BELOW, UNKNOWN, is_value_in_range, to_number, value_status
from .report_normalizer import get_parameters, normalize_report
from .report_types import is_object_id, report_type_names
from ..models.report import ReportStatus
from ..utils.date_utils import month_label, parse_date
from ..utils.log_utils import get_logger

logger = get_logger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_LONG_HEX = re.compile(r"^[a-f0-9]{20,}$", re.IGNORECASE)

HEALTHY_BMI = (18.5, 24.9)
ACCEPTABLE_BMI = (17.0, 30.0)

# Keyword -> (chart name, default normal range) for legacy keyword/value lists.
TRACKED_PARAMETERS = {
    "hemoglobin": ("Hemoglobin", (12.0, 17.5)),
    "hb": ("Hemoglobin", (12.0, 17.5)),
    "sugar": ("Sugar", (70.0, 100.0)),
    "glucose": ("Sugar", (70.0, 100.0)),
    "fbs": ("Sugar", (70.0, 100.0)),
    "creatinine": ("Creatinine", (0.6, 1.2)),
    "platelets": ("Blood Platelets", (150.0, 450.0)),
    "platelet": ("Blood Platelets", (150.0, 450.0)),
}

MAX_TRENDS = 4


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and not math.isnan(value)


def _chronological(entries: Sequence[Any], date_key: str) -> List[Dict[str, Any]]:
    """Sort by date; missing dates sort as the epoch, unreadable ones last."""
    def sort_key(entry):
        raw = entry.get(date_key)
        if not raw:
            return 0, _EPOCH
        parsed = parse_date(raw)
        if parsed is None:
            return 1, _EPOCH
        return 0, parsed

    return sorted([e for e in entries if isinstance(e, dict)], key=sort_key)


def _entry_labels(entries: List[Dict[str, Any]], with_year: bool) -> List[str]:
    labels = []
    for index, entry in enumerate(entries):
        parsed = parse_date(entry.get("updatedDate")) if entry.get("updatedDate") else None
        labels.append(month_label(parsed, with_year) if parsed else f"Entry {index + 1}")
    return labels


def bmi_value(entry: Dict[str, Any]) -> Optional[float]:
    """Stored BMI, or weight / (height in m)^2, rounded to one decimal."""
    bmi = entry.get("bmi")
    if bmi and _is_number(bmi):
        return round(bmi, 1)
    weight, height = entry.get("weight"), entry.get("height")
    if weight and height and _is_number(weight) and _is_number(height):
        computed = weight / (height / 100) ** 2
        if math.isfinite(computed):
            return round(computed, 1)
    return None


def bmi_series(bmi_entries: Any) -> Dict[str, List[Any]]:
    if not isinstance(bmi_entries, list):
        return {"labels": [], "values": []}
    ordered = _chronological(bmi_entries, "updatedDate")
    values = [bmi_value(entry) for entry in ordered]
    return {
        "labels": _entry_labels(ordered, with_year=True),
        "values": [v for v in values if v is not None],
    }


def weight_height_series(bmi_entries: Any) -> Dict[str, List[Any]]:
    if not isinstance(bmi_entries, list):
        return {"labels": [], "weights": [], "heights": []}
    ordered = _chronological(bmi_entries, "updatedDate")
    return {
        "labels": _entry_labels(ordered, with_year=False),
        "weights": [e["weight"] for e in ordered if _is_number(e.get("weight"))],
        "heights": [e["height"] for e in ordered if _is_number(e.get("height"))],
    }


def condition_frequency(conditions: Any) -> Dict[str, Any]:
    """Counts per diagnosed condition plus a dated timeline."""
    if not isinstance(conditions, list):
        return {"labels": [], "values": [], "timeline": []}
    ordered = _chronological(conditions, "date")

    counts: Dict[str, int] = {}
    timeline = []
    for condition in ordered:
        name = condition.get("condition") or "Unknown"
        counts[name] = counts.get(name, 0) + 1
        parsed = parse_date(condition.get("date")) if condition.get("date") else None
        timeline.append({
            "condition": name,
            "date": parsed.date().isoformat() if parsed else "Unknown",
        })

    return {"labels": list(counts), "values": list(counts.values()), "timeline": timeline}


def report_type_label(report: Dict[str, Any], type_names: Optional[Dict[str, str]] = None) -> str:
    label = (
        report.get("reportName")
        or report.get("testName")
        or report.get("name")
        or report.get("type")
        or report.get("documentType")
        or "Unknown"
    )
    label = str(label)
    if type_names and label in type_names:
        label = type_names[label]
    if _LONG_HEX.match(label):
        label = report.get("category") or report.get("reportCategory") or "Report"
    if _LONG_HEX.match(str(label)):
        label = "Report"
    return str(label)


def _report_month(report: Dict[str, Any]) -> Optional[datetime]:
    for key in ("reportDate", "uploadDate", "uploadedAt"):
        if report.get(key):
            return parse_date(report[key])
    return None


def report_stats(reports: Any, member_phone: Optional[str] = None, type_names: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """
    Totals by status, counts by report type and reports per month.

    Args:
        reports: Report records
        member_phone: Count only this member's reports when they have any
        type_names: Report type ID -> name map for ID-valued types

    Returns:
        Report statistics
    """
    reports = [r for r in (reports if isinstance(reports, list) else []) if isinstance(r, dict)]
    if member_phone:
        # A member without reports of their own sees the whole list
        reports = [r for r in reports if r.get("userId") == member_phone] or reports

    by_type: Dict[str, int] = {}
    for report in reports:
        label = report_type_label(report, type_names)
        by_type[label] = by_type.get(label, 0) + 1

    months: Dict[tuple, int] = {}
    for report in reports:
        when = _report_month(report)
        if when is not None:
            key = (when.year, when.month)
            months[key] = months.get(key, 0) + 1

    by_month = {
        month_label(datetime(year, month, 1)): count
        for (year, month), count in sorted(months.items())
    }

    return {
        "total": len(reports),
        "accepted": len([r for r in reports if r.get("status") == ReportStatus.ACCEPTED.value]),
        "pending": len([r for r in reports if r.get("status") == ReportStatus.PENDING.value]),
        "rejected": len([r for r in reports if r.get("status") == ReportStatus.REJECTED.value]),
        "reportTypes": by_type,
        "reportsByMonth": by_month,
    }


def average_bmi(values: Sequence[Any]) -> float:
    valid = [v for v in values if _is_number(v)]
    if not valid:
        return 0
    return round(sum(valid) / len(valid), 1)


def health_score(
    stats: Dict[str, Any],
    bmi_values: Sequence[Any],
    condition_labels: Sequence[Any],
    activities: Sequence[Any],
    food_allergies: Sequence[Any],
) -> int:
    """0-100 score: reports 40, BMI 20, conditions 20, activity 10, allergies 10."""
    score = 0.0

    if stats.get("total"):
        score += stats.get("accepted", 0) / stats["total"] * 40

    valid = [v for v in bmi_values if _is_number(v)]
    if valid:
        avg = sum(valid) / len(valid)
        if HEALTHY_BMI[0] <= avg <= HEALTHY_BMI[1]:
            score += 20
        elif ACCEPTABLE_BMI[0] <= avg <= ACCEPTABLE_BMI[1]:
            score += 10

    if len(condition_labels) == 0:
        score += 20
    elif len(condition_labels) <= 2:
        score += 10

    if activities:
        score += 10
    if food_allergies:
        score += 10

    return min(int(round(score)), 100)


def _legacy_readings(report: Dict[str, Any]):
    """(name, is_abnormal) for keyword/value lists stored as ``parsedData``."""
    parsed = report.get("parsedData")
    if not isinstance(parsed, list):
        return
    for entry in parsed:
        if not isinstance(entry, dict) or not entry.get("keyword") or not entry.get("value"):
            continue
        keyword = str(entry["keyword"]).lower()
        value = to_number(entry["value"])
        if value is None:
            continue
        for key, (name, (low, high)) in TRACKED_PARAMETERS.items():
            if key in keyword:
                if entry.get("normalRange"):
                    yield name, not is_value_in_range(value, entry["normalRange"])
                else:
                    yield name, value < low or value > high
                break


def _structured_readings(report: Dict[str, Any]):
    for parameter in get_parameters(normalize_report(report)):
        name = parameter.get("name")
        if not name:
            continue
        status = value_status(parameter)
        if status == UNKNOWN:
            continue
        yield str(name), status in (BELOW, ABOVE)


def parameter_trends(reports: Any) -> List[Dict[str, Any]]:
    """Parameters with the most out-of-range readings, at most four."""
    readings: Dict[str, Dict[str, int]] = {}
    for report in reports if isinstance(reports, list) else []:
        if not isinstance(report, dict):
            continue
        for name, abnormal in list(_legacy_readings(report)) + list(_structured_readings(report)):
            data = readings.setdefault(name, {"count": 0, "issues": 0})
            data["count"] += 1
            if abnormal:
                data["issues"] += 1

    trends = [
        {
            "name": name,
            "percentage": int(round((data["count"] - data["issues"]) / data["count"] * 100)),
            "issues": data["issues"],
        }
        for name, data in readings.items()
        if data["count"]
    ]
    trends.sort(key=lambda t: t["issues"], reverse=True)
    return trends[:MAX_TRENDS]


async def resolve_type_names(reports: Sequence[Any]) -> Dict[str, str]:
    """Names for every ID-valued report ``type``."""
    ids = {
        r.get("type") for r in reports
        if isinstance(r, dict) and is_object_id(r.get("type"))
    }
    return {type_id: await report_type_names.get_name(type_id) for type_id in ids}


async def build_analytics(profile: Optional[Dict[str, Any]], reports: Any, member_phone: Optional[str] = None) -> Dict[str, Any]:
    """All dashboard series for one profile and its reports."""
    profile = profile if isinstance(profile, dict) else {}
    reports = reports if isinstance(reports, list) else []

    bmi = bmi_series(profile.get("bmi"))
    conditions = condition_frequency(profile.get("diagnosedCondition"))
    stats = report_stats(reports, member_phone, await resolve_type_names(reports))
    activities = profile.get("activities") if isinstance(profile.get("activities"), list) else []
    food_allergies = profile.get("foodAllergies") if isinstance(profile.get("foodAllergies"), list) else []

    logger.debug(f"Built analytics for {profile.get('phoneNumber') or member_phone}: {stats['total']} reports")

    return {
        "bmi": bmi,
        "weightHeight": weight_height_series(profile.get("bmi")),
        "conditions": conditions,
        "reportStats": stats,
        "averageBmi": average_bmi(bmi["values"]),
        "healthScore": health_score(stats, bmi["values"], conditions["labels"], activities, food_allergies),
        "parameterTrends": parameter_trends(reports),
        "bmiEntries": len(profile.get("bmi") or []),
    }
