"""Canonical views over report records of varying historical shape.

Report records reach the service from several writers (user uploads, DC share
events, accept flows) and the same logical field can live in different
places. Each logical field gets one ordered list of accessors; the first
accessor that yields a present value wins.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

Accessor = Callable[[Dict[str, Any]], Any]


def is_present(value: Any) -> bool:
    """True for values that count as 'set' in a loosely-typed record."""
    if value is None or value is False:
        return False
    if isinstance(value, (str, list, dict, tuple)) and len(value) == 0:
        return False
    return True


def first_present(record: Any, accessors: Sequence[Accessor]) -> Any:
    """Fold over accessors, returning the first present value (or None)."""
    if not isinstance(record, dict):
        return None
    for accessor in accessors:
        value = accessor(record)
        if is_present(value):
            return value
    return None


def dig(data: Any, *path: str) -> Any:
    """Optional-chained lookup: ``dig(r, "a", "b")`` is ``r?.a?.b``."""
    current = data
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _dict_or_none(value: Any) -> Optional[Dict[str, Any]]:
    return value if isinstance(value, dict) else None


def _ref_id(value: Any) -> Optional[str]:
    """ID of a reference that is either an ID string or a populated object."""
    if isinstance(value, str):
        return value or None
    if isinstance(value, dict):
        ref = value.get("id") or value.get("_id")
        return str(ref) if ref else None
    return None


# Parsed lab data: pending DC reports nest it under reportData, accepted and
# uploaded reports keep it at the top level.
PARSED_DATA_ACCESSORS: Tuple[Accessor, ...] = (
    lambda r: _dict_or_none(dig(r, "reportData", "parsedData")),
    lambda r: _dict_or_none(r.get("parsedData")),
)

DC_ID_ACCESSORS: Tuple[Accessor, ...] = (
    lambda r: _ref_id(r.get("diagnosticCenterId")),
    lambda r: _ref_id(dig(r, "diagnosticCenter", "diagnostic")),
    lambda r: _ref_id(dig(r, "diagnosticCenter", "diagnostic", "diagnostic")),
)

BRANCH_ID_ACCESSORS: Tuple[Accessor, ...] = (
    lambda r: _ref_id(r.get("branchId")),
    lambda r: _ref_id(dig(r, "diagnosticCenter", "branch")),
    lambda r: _ref_id(dig(r, "diagnosticCenter", "branch", "branch")),
)

PATHOLOGIST_ID_ACCESSORS: Tuple[Accessor, ...] = (
    lambda r: dig(r, "pathologist", "id"),
    lambda r: dig(r, "pathologist", "_id"),
)

PATHOLOGIST_NAME_ACCESSORS: Tuple[Accessor, ...] = (
    lambda r: dig(r, "pathologist", "name"),
    lambda r: r.get("createdBy"),
)

REPORT_NAME_ACCESSORS: Tuple[Accessor, ...] = (
    lambda r: r.get("name"),
    lambda r: r.get("testName"),
)

UPDATED_DATE_ACCESSORS: Tuple[Accessor, ...] = (
    lambda r: r.get("uploadDate"),
    lambda r: r.get("uploadedAt"),
)


def normalize_report(report: Any) -> Any:
    """Ensure ``reportData.parsedData`` is populated where data exists.

    Returns the same object when it already carries ``reportData`` or has no
    object-shaped ``parsedData``; otherwise a shallow copy with a synthesized
    ``reportData``. Falsy input is returned as is.
    """
    if not report:
        return report
    if not isinstance(report, dict):
        return report

    if report.get("reportData") is not None:
        return report

    parsed_data = report.get("parsedData")
    if isinstance(parsed_data, dict):
        normalized = dict(report)
        normalized["reportData"] = {
            "reportName": first_present(report, REPORT_NAME_ACCESSORS) or "Report",
            "parsedData": parsed_data,
            "reportDate": report.get("reportDate"),
            "updatedDate": first_present(report, UPDATED_DATE_ACCESSORS),
        }
        return normalized

    return report


def get_parsed_data(report: Any) -> Optional[Dict[str, Any]]:
    return first_present(report, PARSED_DATA_ACCESSORS)


def get_parameters(report: Any) -> List[Dict[str, Any]]:
    """Lab parameters from whichever location holds them."""
    for accessor in PARSED_DATA_ACCESSORS:
        parsed = accessor(report) if isinstance(report, dict) else None
        parameters = dig(parsed, "parameters")
        if isinstance(parameters, list) and parameters:
            return [p for p in parameters if isinstance(p, dict)]
    return []


def get_components(report: Any) -> List[Dict[str, Any]]:
    """Free-text report sections from whichever location holds them."""
    for accessor in PARSED_DATA_ACCESSORS:
        parsed = accessor(report) if isinstance(report, dict) else None
        components = dig(parsed, "components")
        if isinstance(components, list) and components:
            return [c for c in components if isinstance(c, dict)]
    return []


def get_dc_id(report: Any) -> Optional[str]:
    return first_present(report, DC_ID_ACCESSORS)


def get_branch_id(report: Any) -> Optional[str]:
    return first_present(report, BRANCH_ID_ACCESSORS)


def get_pathologist_ref(report: Any) -> Tuple[Optional[str], Optional[str]]:
    """(pathologist_id, pathologist_name) as far as the record knows them."""
    pathologist_id = first_present(report, PATHOLOGIST_ID_ACCESSORS)
    pathologist_name = first_present(report, PATHOLOGIST_NAME_ACCESSORS)
    return (
        str(pathologist_id) if pathologist_id else None,
        pathologist_name if isinstance(pathologist_name, str) else None,
    )


def get_embedded_name(report: Any, key: str) -> Optional[str]:
    """Display name stored on the report itself for ``diagnostic``/``branch``.

    Covers the populated-object form ``diagnosticCenter.<key>.name`` and, for
    the center, a plain string ``diagnosticCenter`` (other than the generic
    placeholder the uploader writes). Top-level ``branch`` strings are used
    as branch names.
    """
    if not isinstance(report, dict):
        return None
    if key == "branch":
        branch = report.get("branch")
        if isinstance(branch, str) and branch:
            return branch
    else:
        center = report.get("diagnosticCenter")
        if isinstance(center, str) and center and center != "Diagnostic Center":
            return center
    name = dig(report, "diagnosticCenter", key, "name")
    return name if isinstance(name, str) and name else None
