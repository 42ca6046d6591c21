from pydantic import BaseModel
from typing import List, Optional, Dict, Any

# Identifier fields are optional so handlers can answer with the envelope's
# MISSING_* codes instead of a validation error.


class DCDetailsRequest(BaseModel):
    """Request schema for diagnostic center details."""
    dcId: Optional[str] = None


class BranchDetailsRequest(BaseModel):
    """Request schema for branch details."""
    branchId: Optional[str] = None


class PathologistDetailsRequest(BaseModel):
    """Request schema for pathologist details."""
    pathologistId: Optional[str] = None
    branchId: Optional[str] = None
    pathologistName: Optional[str] = None


class ReportViewRequest(BaseModel):
    """Request schema for report view and classification."""
    report: Optional[Dict[str, Any]] = None
    viewerPhone: Optional[str] = None


class EvaluateParameterRequest(BaseModel):
    parameter: Optional[Dict[str, Any]] = None


class AcceptSharedReportRequest(BaseModel):
    report: Optional[Dict[str, Any]] = None
    userId: Optional[str] = None


class RejectReportRequest(BaseModel):
    reportId: Optional[str] = None
    userContact: Optional[str] = None


class AnalyticsRequest(BaseModel):
    """Request schema for the analytics summary."""
    profile: Optional[Dict[str, Any]] = None
    reports: Optional[List[Dict[str, Any]]] = None
    memberPhone: Optional[str] = None
