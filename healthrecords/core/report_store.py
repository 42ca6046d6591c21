"""Persistence of report records in the reports collection."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError
from pydantic import ValidationError

from .database import reports_collection
from .file_resolver import resolve_report_files
from .report_normalizer import dig, get_parameters, get_parsed_data, normalize_report
from ..models.report import ReportRecord, ReportStatus
from ..utils.date_utils import parse_date
from ..utils.error_utils import APIError, ConflictError, MissingFieldError, NotFoundError
from ..utils.log_utils import log_report_event, report_logger
from ..utils.mongo_helpers import sanitize_mongodb_document, to_object_id

DATE_FIELDS = ("reportDate", "uploadDate", "uploadedAt")


def _id_query(report_id: str) -> Dict[str, Any]:
    """Match a report by Mongo ``_id`` when given one, else by ``reportId``."""
    object_id = to_object_id(report_id)
    if object_id is not None:
        return {"_id": object_id}
    return {"reportId": report_id}


def _parse_dates(data: Dict[str, Any]) -> Dict[str, Any]:
    for key in DATE_FIELDS:
        if data.get(key):
            parsed = parse_date(data[key])
            if parsed is not None:
                data[key] = parsed
    return data


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _check_status(status: Any) -> None:
    allowed = [s.value for s in ReportStatus]
    if status not in allowed:
        raise APIError(f"Invalid status {status!r}; expected one of {', '.join(allowed)}", code="INVALID_STATUS")


class ReportStore:
    """Create, read, update and delete report records."""

    @staticmethod
    async def insert_report(data: Dict[str, Any]) -> Tuple[Dict[str, Any], bool]:
        """
        Insert a new report record.

        A report that copies a shared report (``originalReportId``) is stored
        at most once per user; inserting it again returns the existing record.

        Args:
            data: Report fields as sent by the client

        Returns:
            (report, created) tuple
        """
        if not data or not data.get("userId"):
            raise MissingFieldError("userId is required", code="MISSING_USER_ID")

        user_id = data["userId"]
        original_report_id = data.get("originalReportId")

        if original_report_id:
            existing = await reports_collection.find_one({"userId": user_id, "originalReportId": original_report_id})
            if existing:
                log_report_event(report_logger, original_report_id, "already_accepted", {"userId": user_id})
                return sanitize_mongodb_document(existing), False

        if data.get("reportId") and not original_report_id:
            existing = await reports_collection.find_one({"reportId": data["reportId"]})
            if existing:
                raise ConflictError("A report with this reportId already exists", code="DUPLICATE_REPORT_ID")

        fields = _parse_dates({key: value for key, value in data.items() if key not in ("_id", "id")})
        parameters = fields.get("parameters")
        if parameters is not None:
            fields["parameters"] = parameters if isinstance(parameters, list) else []
            fields["parametersScanned"] = True
        else:
            # Lift structured DC parameters out of parsedData
            fields["parameters"] = get_parameters(normalize_report(fields))
            fields["parametersScanned"] = bool(fields["parameters"])
        fields.setdefault("createdBy", user_id)
        fields.setdefault("updatedBy", user_id)
        if not fields.get("status"):
            fields["status"] = ReportStatus.PENDING.value
        for key in ("parsedData", "sharedWith", "conditions"):
            if fields.get(key) is None:
                fields.pop(key, None)

        try:
            document = ReportRecord(**fields).model_dump()
        except ValidationError as e:
            raise APIError(f"Invalid report: {e.errors()[0].get('msg')}", code="INVALID_REPORT")

        try:
            result = await reports_collection.insert_one(document)
        except DuplicateKeyError:
            raise ConflictError("A report with this reportId already exists", code="DUPLICATE_REPORT_ID")

        document["_id"] = result.inserted_id
        report = sanitize_mongodb_document(document)
        log_report_event(report_logger, report.get("id"), "inserted", {"userId": user_id, "status": report.get("status")})
        return report, True

    @staticmethod
    async def get_report(report_id: str) -> Dict[str, Any]:
        report = await reports_collection.find_one(_id_query(report_id))
        if not report:
            raise NotFoundError(f"Report with ID {report_id} not found", code="REPORT_NOT_FOUND")
        return sanitize_mongodb_document(report)

    @staticmethod
    async def list_reports(user_id: str, status: Optional[str] = None) -> List[Dict[str, Any]]:
        """All reports of a user, newest ``reportDate`` first."""
        if not user_id:
            raise MissingFieldError("userId query parameter is required", code="MISSING_USER_ID")

        query: Dict[str, Any] = {"userId": user_id}
        if status:
            query["status"] = status

        cursor = reports_collection.find(query).sort("reportDate", -1)
        reports = await cursor.to_list(length=None)
        return [sanitize_mongodb_document(report) for report in reports]

    @staticmethod
    async def update_report(report_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply field changes to a report.

        ``$pull`` in ``changes`` is passed through as a MongoDB operator; all
        other keys are set.

        Args:
            report_id: Mongo ``_id`` or ``reportId`` of the report
            changes: Fields to set, optionally with a ``$pull`` entry

        Returns:
            The updated report
        """
        if not report_id:
            raise MissingFieldError("Report ID is required", code="MISSING_REPORT_ID")
        if not changes:
            raise MissingFieldError("Request body cannot be empty", code="EMPTY_BODY")

        fields = {key: value for key, value in changes.items() if key not in ("_id", "id")}
        pull = fields.pop("$pull", None)
        if "status" in fields:
            _check_status(fields["status"])
        fields = _parse_dates(fields)
        fields["updatedTime"] = _now()

        update: Dict[str, Any] = {"$set": fields}
        if pull:
            update["$pull"] = pull

        updated = await reports_collection.find_one_and_update(
            _id_query(report_id),
            update,
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise NotFoundError(f"Report with ID {report_id} not found", code="REPORT_NOT_FOUND")

        log_report_event(report_logger, report_id, "updated", {"fields": sorted(fields), "pull": bool(pull)})
        return sanitize_mongodb_document(updated)

    @staticmethod
    async def delete_report(report_id: str) -> bool:
        if not report_id:
            raise MissingFieldError("Report ID is required", code="MISSING_REPORT_ID")

        result = await reports_collection.delete_one(_id_query(report_id))
        if result.deleted_count == 0:
            raise NotFoundError(f"Report with ID {report_id} not found", code="REPORT_NOT_FOUND")

        log_report_event(report_logger, report_id, "deleted")
        return True

    @staticmethod
    async def accept_shared_report(report: Dict[str, Any], user_id: str) -> Tuple[Dict[str, Any], bool]:
        """
        Store a copy of a shared (DC or user) report in the user's records.

        Accepting the same report twice returns the first copy.

        Args:
            report: The shared report as the viewer received it
            user_id: Phone number of the accepting user

        Returns:
            (report, created) tuple
        """
        if not user_id:
            raise MissingFieldError("userId is required", code="MISSING_USER_ID")
        if not isinstance(report, dict) or not report:
            raise MissingFieldError("report is required", code="MISSING_REPORT")

        original_report_id = report.get("reportId") or report.get("id") or report.get("_id")
        if not original_report_id:
            raise MissingFieldError("report has no reportId", code="MISSING_REPORT_ID")

        normalized = normalize_report(report)
        report_data = normalized.get("reportData") if isinstance(normalized.get("reportData"), dict) else {}

        data = {
            "userId": user_id,
            "originalReportId": str(original_report_id),
            "name": report_data.get("reportName") or report.get("name") or report.get("testName"),
            "testName": report.get("testName"),
            "type": report.get("type"),
            "documentType": report.get("documentType"),
            "reportDate": report_data.get("reportDate") or report.get("reportDate"),
            "parsedData": get_parsed_data(normalized) or [],
            "parameters": get_parameters(normalized),
            "reportDoc": resolve_report_files(report),
            "fileType": report.get("fileType"),
            "diagnosticCenter": report.get("diagnosticCenter"),
            "userName": report.get("userName") or dig(report, "patient", "name"),
            "status": ReportStatus.ACCEPTED.value,
            "createdBy": user_id,
            "updatedBy": user_id,
        }
        return await ReportStore.insert_report({key: value for key, value in data.items() if value is not None})
