"""Assemble everything a viewer needs to display one report."""

import asyncio
from typing import Any, Dict, Optional

import httpx

from .dc_client import DiagnosticCenterClient
from .file_resolver import describe_files
from .range_evaluator import build_lab_rows
from .report_classifier import PresentationMode, classify_report
from .report_normalizer import (
    get_branch_id,
    get_components,
    get_dc_id,
    get_embedded_name,
    get_pathologist_ref,
    normalize_report,
)
from .signed_url_cache import SignedUrlCache
from ..utils.error_utils import APIError, log_exception
from ..utils.log_utils import log_report_event, report_logger


async def _safe_lookup(coro, what: str) -> Optional[Dict[str, Any]]:
    """Await a DC lookup; failures are logged and yield None."""
    try:
        details = await coro
    except (APIError, httpx.HTTPError, ValueError) as e:
        log_exception(e, f"Error fetching {what}")
        return None
    return details.model_dump() if details is not None else None


async def fetch_dc_details(report: Dict[str, Any], dc_client: DiagnosticCenterClient) -> Dict[str, Optional[Dict[str, Any]]]:
    """Center, branch and pathologist details referenced by a report."""
    dc_id = get_dc_id(report)
    branch_id = get_branch_id(report)
    pathologist_id, pathologist_name = get_pathologist_ref(report)

    async def none():
        return None

    dc, branch, pathologist = await asyncio.gather(
        _safe_lookup(dc_client.get_dc_details(dc_id), "diagnostic center") if dc_id else none(),
        _safe_lookup(dc_client.get_branch_details(branch_id), "branch") if branch_id else none(),
        _safe_lookup(
            dc_client.get_pathologist_details(pathologist_id, branch_id, pathologist_name),
            "pathologist",
        ) if (pathologist_id or branch_id) else none(),
    )

    if dc is None and get_embedded_name(report, "diagnostic"):
        dc = {"dcId": dc_id, "centerName": get_embedded_name(report, "diagnostic")}
    if branch is None and get_embedded_name(report, "branch"):
        branch = {"branchId": branch_id, "branchName": get_embedded_name(report, "branch")}

    return {"dcDetails": dc, "branchDetails": branch, "pathologistDetails": pathologist}


async def build_report_view(
    report: Any,
    viewer_phone: Optional[str] = None,
    signer: Optional[SignedUrlCache] = None,
    dc_client: Optional[DiagnosticCenterClient] = None,
) -> Dict[str, Any]:
    """
    Build the view model for one report.

    Runs normalize -> classify -> lab rows -> files -> signed URLs -> DC
    details. Signed URLs are resolved concurrently in a fresh signing
    session. DC details are only fetched for the structured report view.

    Args:
        report: Report record in any of its stored shapes
        viewer_phone: Phone number of the viewing user
        signer: Signed URL session; a new one is created when omitted
        dc_client: Client for the DC service

    Returns:
        Report view
    """
    normalized = normalize_report(report) if isinstance(report, dict) else {}
    normalized = normalized or {}
    classification = classify_report(normalized, viewer_phone)

    lab_rows = []
    components = []
    if classification.show_diagnostic_report:
        lab_rows = [row.model_dump() for row in build_lab_rows(normalized)]
        components = get_components(normalized)

    signer = signer or SignedUrlCache()
    signer.clear()
    files = describe_files(normalized, classification.report_files)
    resolved = await signer.resolve_many([f["url"] for f in files])
    for entry in files:
        entry["signedUrl"] = resolved.get(entry["url"])
        entry["missing"] = signer.is_missing(entry["url"])

    details = {"dcDetails": None, "branchDetails": None, "pathologistDetails": None}
    if classification.show_diagnostic_report and classification.presentation != PresentationMode.EMBEDDED_VIEWER:
        details = await fetch_dc_details(normalized, dc_client or DiagnosticCenterClient())

    report_id = normalized.get("reportId") or normalized.get("id") or normalized.get("_id")
    log_report_event(report_logger, str(report_id) if report_id else None, "viewed", {
        "origin": classification.origin.value,
        "presentation": classification.presentation.value,
        "files": len(files),
        "missing": len([f for f in files if f["missing"]]),
    })

    return {
        "report": normalized,
        "classification": classification.to_dict(),
        "labRows": lab_rows,
        "components": components,
        "files": files,
        **details,
    }
