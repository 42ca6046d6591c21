"""Decide where a report came from and how a viewer should present it.

All predicates are computed once, in order, into a single
``ReportClassification`` so callers never re-derive overlapping flags.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional

from .file_resolver import has_valid_pdf, resolve_report_files
from .report_normalizer import dig, get_components, get_parameters, is_present
from ..config import settings


class ReportOrigin(str, Enum):
    MY_UPLOAD = "my-upload"
    DC_SHARED = "dc-shared"
    USER_SHARED = "user-shared"


class PresentationMode(str, Enum):
    EMBEDDED_VIEWER = "embedded-viewer"
    THUMBNAIL_GRID = "thumbnail-grid"
    DIAGNOSTIC_REPORT = "diagnostic-report"
    PDF_FALLBACK = "pdf-fallback"
    NO_FILES = "no-files"


@dataclass
class ReportClassification:
    origin: ReportOrigin
    presentation: PresentationMode
    report_files: List[str] = field(default_factory=list)
    is_shared_from_dc: bool = False
    is_omerald_shared: bool = False
    is_user_shared_report: bool = False
    is_user_uploaded_report: bool = False
    is_accepted_shared_report: bool = False
    is_own_report: bool = False
    has_parsed_data: bool = False
    has_report_files: bool = False
    has_valid_pdf: bool = False
    show_diagnostic_report: bool = False
    show_tabs: bool = False
    shared_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["origin"] = self.origin.value
        data["presentation"] = self.presentation.value
        return data


def _truthy(value: Any) -> bool:
    return is_present(value) and value != 0


def is_shared_from_dc(report: Dict[str, Any]) -> bool:
    diagnostic = dig(report, "diagnosticCenter", "diagnostic")
    parameters = dig(report, "reportData", "parsedData", "parameters")
    return bool(
        _truthy(report.get("isDCReport"))
        or _truthy(report.get("shareDetail"))
        or (isinstance(diagnostic, dict) and _truthy(diagnostic.get("id")))
        or (isinstance(parameters, list) and len(parameters) > 0 and not _truthy(report.get("userId")))
    )


def has_parsed_data(report: Dict[str, Any]) -> bool:
    return bool(get_parameters(report) or get_components(report))


def shared_count(report: Dict[str, Any]) -> int:
    details = report.get("sharedReportDetails")
    if isinstance(details, list):
        return len([d for d in details if not (isinstance(d, dict) and d.get("blocked"))])
    shared_with = report.get("sharedWith")
    if isinstance(shared_with, list):
        return len(shared_with)
    return 0


def classify_report(report: Any, viewer_phone: Optional[str] = None, force_embedded_viewer: Optional[bool] = None) -> ReportClassification:
    """Classify a (normalized) report record. Never raises.

    Args:
        report: Report record, ideally passed through ``normalize_report``
        viewer_phone: Phone number of the viewing user, if known
        force_embedded_viewer: Override for the global embedded-viewer switch

    Returns:
        ReportClassification
    """
    if not isinstance(report, dict):
        report = {}
    if force_embedded_viewer is None:
        force_embedded_viewer = settings.EMBEDDED_VIEWER_ENABLED

    # 1. DC share detection
    from_dc = is_shared_from_dc(report)

    # 2. Attachments
    files = resolve_report_files(report)
    has_files = len(files) > 0
    parsed = has_parsed_data(report)
    valid_pdf = has_valid_pdf(report)

    # 3-4. User-to-user sharing
    omerald_shared = _truthy(report.get("isOmeraldSharedReport")) or _truthy(report.get("isSharedReport"))
    user_shared = omerald_shared and not from_dc

    # 5. The viewer's own upload
    has_any_files = has_files or _truthy(report.get("reportDoc")) or _truthy(report.get("reportUrl"))
    user_uploaded = (
        not from_dc
        and not omerald_shared
        and not _truthy(report.get("shareDetail"))
        and not _truthy(report.get("isDCReport"))
        and (_truthy(report.get("userId")) or _truthy(report.get("createdBy")))
        and has_any_files
    )

    accepted_shared = (
        not from_dc
        and report.get("status") == "accepted"
        and (
            _truthy(report.get("originalReportId"))
            or (_truthy(report.get("userId")) and report.get("userId") == report.get("createdBy"))
        )
        and has_any_files
    )

    # 6. Origin as one tagged value
    if from_dc:
        origin = ReportOrigin.DC_SHARED
    elif user_shared:
        origin = ReportOrigin.USER_SHARED
    else:
        origin = ReportOrigin.MY_UPLOAD

    # 7. Presentation, first matching rule wins
    embedded = bool(force_embedded_viewer) and has_files
    show_diagnostic = (
        (parsed or from_dc)
        and not (user_shared and has_files)
        and not embedded
        and not user_uploaded
    )
    show_pdf = (
        not parsed
        and not from_dc
        and valid_pdf
        and not has_files
        and not embedded
        and not user_uploaded
    )

    if embedded:
        presentation = PresentationMode.EMBEDDED_VIEWER
    elif has_files:
        presentation = PresentationMode.THUMBNAIL_GRID
    elif show_diagnostic:
        presentation = PresentationMode.DIAGNOSTIC_REPORT
    # Any PDF in reportUrl/reportDoc also resolves as a file, so the grid wins first
    elif show_pdf:
        presentation = PresentationMode.PDF_FALLBACK
    else:
        presentation = PresentationMode.NO_FILES

    return ReportClassification(
        origin=origin,
        presentation=presentation,
        report_files=files,
        is_shared_from_dc=from_dc,
        is_omerald_shared=omerald_shared,
        is_user_shared_report=user_shared,
        is_user_uploaded_report=user_uploaded,
        is_accepted_shared_report=accepted_shared,
        is_own_report=bool(viewer_phone) and report.get("userId") == viewer_phone,
        has_parsed_data=parsed,
        has_report_files=has_files,
        has_valid_pdf=valid_pdf,
        show_diagnostic_report=show_diagnostic,
        show_tabs=show_diagnostic,
        shared_count=shared_count(report),
    )
