from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any
from datetime import datetime


class ErrorBody(BaseModel):
    code: str
    message: str


class BaseResponse(BaseModel):
    """Base response schema for all API responses."""
    success: bool = True
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.now)


class DataResponse(BaseResponse):
    """Response carrying a single payload."""
    data: Any = None


class ListResponse(BaseResponse):
    """Response carrying a list of records."""
    data: List[Dict[str, Any]] = Field(default_factory=list)
    count: int = 0


class ParameterEvaluation(BaseModel):
    """Evaluation of a single lab parameter."""
    status: str
    displayRange: str
    color: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: ErrorBody
