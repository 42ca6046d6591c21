from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any, Union
from datetime import datetime
from enum import Enum


class ReportStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class LabRow(BaseModel):
    """A lab parameter as displayed in the structured report table."""
    name: Optional[str] = None
    value: Union[float, int, str] = "N/A"
    unit: str = "N/A"
    status: str = "unknown"  # below, in-range, above, unknown
    color: str = "gray"
    displayRange: str = "-"
    ranges: List[str] = Field(default_factory=list)


class DCDetails(BaseModel):
    dcId: Optional[str] = None
    centerName: Optional[str] = None
    logoUrl: Optional[str] = None
    phoneNumber: Optional[str] = None
    email: Optional[str] = None
    brandingInfo: Optional[Dict[str, Any]] = None


class BranchDetails(BaseModel):
    branchId: Optional[str] = None
    branchName: Optional[str] = None
    branchAddress: Optional[str] = None


class PathologistDetails(BaseModel):
    pathologistId: Optional[str] = None
    name: Optional[str] = None
    signature: Optional[str] = None
    designation: str = "Pathologist"


class SharedWith(BaseModel):
    profileId: Optional[str] = None
    phoneNumber: Optional[str] = None
    name: Optional[str] = None
    sharedAt: datetime = Field(default_factory=datetime.now)

    model_config = {
        "extra": "allow"
    }


class ReportRecord(BaseModel):
    """Report document as written to the reports collection.

    Unknown legacy fields are kept so records round-trip unchanged.
    """
    userId: str
    reportId: Optional[str] = None
    originalReportId: Optional[str] = None
    userName: Optional[str] = None
    name: Optional[str] = None
    testName: Optional[str] = None
    type: Optional[str] = None
    documentType: Optional[str] = None
    reportUrl: Optional[Union[str, List[str]]] = None
    reportDoc: Optional[Union[str, List[str]]] = None
    fileType: Optional[str] = None
    status: ReportStatus = ReportStatus.PENDING
    parsedData: Optional[Union[Dict[str, Any], List[Any]]] = Field(default_factory=list)
    parameters: List[Dict[str, Any]] = Field(default_factory=list)
    parametersScanned: bool = False
    conditions: List[str] = Field(default_factory=list)
    sharedWith: List[SharedWith] = Field(default_factory=list)
    diagnosticCenter: Optional[Union[str, Dict[str, Any]]] = None
    description: Optional[str] = None
    remarks: Optional[str] = None
    reportDate: datetime = Field(default_factory=datetime.now)
    uploadDate: datetime = Field(default_factory=datetime.now)
    uploadedAt: datetime = Field(default_factory=datetime.now)
    updatedTime: datetime = Field(default_factory=datetime.now)
    createdBy: Optional[str] = None
    updatedBy: Optional[str] = None

    model_config = {
        "extra": "allow",
        "populate_by_name": True,
        "use_enum_values": True
    }
