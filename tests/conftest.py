"""Global test configuration and fixtures."""

import json
import pytest
import httpx
from unittest.mock import AsyncMock, MagicMock, patch

from healthrecords.core.dc_client import branch_name_cache, dc_name_cache
from healthrecords.core.report_types import report_type_names


# Sample DC-shared report with structured lab data and no attachments
SAMPLE_DC_REPORT = {
    "reportId": "DC-REP-001",
    "isDCReport": True,
    "status": "pending",
    "diagnosticCenter": {
        "diagnostic": {"id": "dc-1", "name": "City Diagnostics"},
        "branch": {"id": "br-1", "name": "Main Branch"},
    },
    "pathologist": {"id": "path-1", "name": "Dr. Rao"},
    "reportData": {
        "reportName": "Complete Blood Count",
        "reportDate": "2024-03-10T09:00:00Z",
        "parsedData": {
            "parameters": [
                {
                    "name": "Glucose",
                    "value": 85,
                    "units": "mg/dL",
                    "bioRefRange": {"basicRange": [{"min": 70, "max": 100, "unit": "mg/dL"}]},
                },
                {
                    "name": "Hemoglobin",
                    "value": "10.5",
                    "bioRefRange": {
                        "basicRange": [{"min": 12, "max": 17.5, "unit": "g/dL"}],
                        "advanceRange": {
                            "genderRange": [{"genderRangeType": "male", "min": 13.5, "max": 17.5, "unit": "g/dL"}],
                        },
                    },
                },
            ],
            "components": [],
        },
    },
}

# Sample user upload with two image files
SAMPLE_USER_UPLOAD = {
    "_id": "65f1c0ffee0000000000abcd",
    "userId": "+911234567890",
    "createdBy": "+911234567890",
    "name": "X-Ray",
    "status": "accepted",
    "reportDoc": "https://bucket.s3.ap-south-1.amazonaws.com/reports/a.jpg, https://bucket.s3.ap-south-1.amazonaws.com/reports/b.png",
}

# Sample report shared by another user with a JSON payload in reportData
SAMPLE_USER_SHARED = {
    "isOmeraldSharedReport": True,
    "userId": "+919999999999",
    "reportData": json.dumps({"files": [{"url": "https://cdn.example.com/shared.pdf"}, "https://cdn.example.com/extra.jpg"]}),
}


@pytest.fixture
def dc_report():
    return json.loads(json.dumps(SAMPLE_DC_REPORT))


@pytest.fixture
def user_upload():
    return dict(SAMPLE_USER_UPLOAD)


@pytest.fixture
def user_shared_report():
    return dict(SAMPLE_USER_SHARED)


# Process-wide lookup caches must not leak between tests
@pytest.fixture(autouse=True)
def clear_lookup_caches():
    dc_name_cache.clear()
    branch_name_cache.clear()
    report_type_names.clear()
    yield


def make_async_client(handler):
    """httpx.AsyncClient whose requests are answered by ``handler``."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def mock_reports_collection():
    """Patch the motor reports collection used by the report store."""
    collection = MagicMock()
    collection.find_one = AsyncMock(return_value=None)
    collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id="65f1c0ffee0000000000beef"))
    collection.find_one_and_update = AsyncMock(return_value=None)
    collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))

    with patch("healthrecords.core.report_store.reports_collection", collection):
        yield collection
