"""Tests for the HTTP API."""

import httpx
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock

from healthrecords.api.dependencies import get_dc_client, get_signer
from healthrecords.core.dc_client import DiagnosticCenterClient
from healthrecords.core.signed_url_cache import SignedUrlCache
from healthrecords.main import app
from healthrecords.models.report import BranchDetails, DCDetails, PathologistDetails
from healthrecords.utils.error_utils import NotFoundError

from conftest import make_async_client

REPORT_OID = "65f1c0ffee0000000000abcd"


@pytest.fixture
def dc_client():
    client = MagicMock()
    client.get_dc_details = AsyncMock(return_value=DCDetails(dcId="dc-1", centerName="City Diagnostics", logoUrl="https://logo.test/l.png"))
    client.get_branch_details = AsyncMock(return_value=BranchDetails(branchId="br-1", branchName="Main", branchAddress="1 Road"))
    client.get_pathologist_details = AsyncMock(return_value=PathologistDetails(pathologistId="p-1", name="Dr. Rao"))
    client.reject_report = AsyncMock(return_value={"status": "rejected"})
    client.get_dc_name = AsyncMock(return_value="City Diagnostics")
    client.get_branch_name = AsyncMock(return_value="Main")
    return client


@pytest.fixture
def client(dc_client):
    signer = MagicMock(spec=SignedUrlCache)
    signer.resolve_many = AsyncMock(side_effect=lambda urls: {url: url for url in urls})
    signer.is_missing.return_value = False

    app.dependency_overrides[get_dc_client] = lambda: dc_client
    app.dependency_overrides[get_signer] = lambda: signer
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestServiceEndpoints:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_request_id_header(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"
        assert "X-Response-Time" in response.headers


class TestDiagnosticCenterRoutes:
    def test_dc_details(self, client):
        response = client.post("/api/diagnosticCenter/getDCDetails", json={"dcId": "dc-1"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["centerName"] == "City Diagnostics"
        assert body["data"]["logoUrl"] == "https://logo.test/l.png"

    def test_dc_details_missing_id(self, client):
        response = client.post("/api/diagnosticCenter/getDCDetails", json={})

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert response.json()["error"]["code"] == "MISSING_DC_ID"

    def test_branch_details_missing_id(self, client):
        response = client.post("/api/diagnosticCenter/getBranchDetails", json={})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MISSING_BRANCH_ID"

    def test_branch_details(self, client):
        response = client.post("/api/diagnosticCenter/getBranchDetails", json={"branchId": "br-1"})
        assert response.json()["data"] == {"branchId": "br-1", "branchName": "Main", "branchAddress": "1 Road"}

    def test_pathologist_requires_an_id(self, client):
        response = client.post("/api/diagnosticCenter/getPathologistDetails", json={"pathologistName": "Dr. Rao"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MISSING_PARAMS"

    def test_pathologist_not_found(self, client, dc_client):
        dc_client.get_pathologist_details.side_effect = NotFoundError("Pathologist not found", code="PATHOLOGIST_NOT_FOUND")

        response = client.post("/api/diagnosticCenter/getPathologistDetails", json={"branchId": "br-1"})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PATHOLOGIST_NOT_FOUND"

    def test_pathologist_details(self, client, dc_client):
        response = client.post(
            "/api/diagnosticCenter/getPathologistDetails",
            json={"branchId": "br-1", "pathologistName": "Dr. Rao"},
        )
        assert response.json()["data"]["designation"] == "Pathologist"
        dc_client.get_pathologist_details.assert_awaited_once_with(None, "br-1", "Dr. Rao")

    def test_dc_name(self, client, dc_client):
        response = client.post("/api/diagnosticCenter/getDCName", json={"dcId": "dc-1"})

        assert response.status_code == 200
        assert response.json()["data"] == {"dcId": "dc-1", "centerName": "City Diagnostics"}
        dc_client.get_dc_name.assert_awaited_once_with("dc-1")

    def test_dc_name_missing_id(self, client):
        response = client.post("/api/diagnosticCenter/getDCName", json={})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MISSING_DC_ID"

    def test_dc_name_unknown(self, client, dc_client):
        dc_client.get_dc_name.return_value = None

        response = client.post("/api/diagnosticCenter/getDCName", json={"dcId": "dc-x"})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "DC_NOT_FOUND"

    def test_branch_name(self, client):
        response = client.post("/api/diagnosticCenter/getBranchName", json={"branchId": "br-1"})
        assert response.json()["data"] == {"branchId": "br-1", "branchName": "Main"}

    def test_branch_name_unknown(self, client, dc_client):
        dc_client.get_branch_name.return_value = None

        response = client.post("/api/diagnosticCenter/getBranchName", json={"branchId": "br-x"})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "BRANCH_NOT_FOUND"

    def test_names_are_cached_across_requests(self, client):
        calls = []

        def dc_service(request):
            calls.append(request.url.path)
            return httpx.Response(200, json={"success": True, "data": {"centerName": "Lab One"}})

        app.dependency_overrides[get_dc_client] = lambda: DiagnosticCenterClient("https://dc.test", make_async_client(dc_service))

        for _ in range(2):
            response = client.post("/api/diagnosticCenter/getDCName", json={"dcId": "dc-1"})
            assert response.json()["data"]["centerName"] == "Lab One"

        assert calls == ["/api/profiles/dc-1"]


class TestReportRoutes:
    def test_view(self, client, dc_report):
        response = client.post("/api/reports/view", json={"report": dc_report, "viewerPhone": "+91000"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["classification"]["presentation"] == "diagnostic-report"
        assert len(data["labRows"]) == 2
        assert data["dcDetails"]["centerName"] == "City Diagnostics"

    def test_view_requires_report(self, client):
        response = client.post("/api/reports/view", json={})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MISSING_REPORT"

    def test_classify(self, client, user_upload):
        response = client.post("/api/reports/classify", json={"report": user_upload})

        data = response.json()["data"]
        assert data["origin"] == "my-upload"
        assert data["presentation"] == "thumbnail-grid"

    def test_evaluate_parameter(self, client):
        parameter = {"name": "Glucose", "value": 150, "bioRefRange": {"basicRange": [{"min": 70, "max": 100}]}}

        response = client.post("/api/reports/evaluateParameter", json={"parameter": parameter})

        assert response.json()["data"] == {"status": "above", "displayRange": "Normal: 70 - 100", "color": "red"}

    def test_insert_report(self, client, mock_reports_collection):
        response = client.post("/api/reports/insertReport", json={"userId": "+91000", "name": "CBC"})

        assert response.status_code == 201
        assert response.json()["data"]["userId"] == "+91000"
        assert response.json()["message"] == "Report created successfully"

    def test_insert_report_requires_user(self, client, mock_reports_collection):
        response = client.post("/api/reports/insertReport", json={"name": "CBC"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MISSING_USER_ID"

    def test_insert_duplicate(self, client, mock_reports_collection):
        mock_reports_collection.find_one.return_value = {"_id": ObjectId(REPORT_OID), "reportId": "R-1"}

        response = client.post("/api/reports/insertReport", json={"userId": "+91000", "reportId": "R-1"})

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "DUPLICATE_REPORT_ID"

    def test_update_report(self, client, mock_reports_collection):
        mock_reports_collection.find_one_and_update.return_value = {"_id": ObjectId(REPORT_OID), "remarks": "seen"}

        response = client.put(f"/api/reports/updateReport?id={REPORT_OID}", json={"remarks": "seen"})

        assert response.status_code == 200
        assert response.json()["data"]["remarks"] == "seen"

    def test_update_report_invalid_status(self, client, mock_reports_collection):
        response = client.put(f"/api/reports/updateReport?id={REPORT_OID}", json={"status": "archived"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_STATUS"
        mock_reports_collection.find_one_and_update.assert_not_called()

    def test_update_report_requires_id(self, client, mock_reports_collection):
        response = client.put("/api/reports/updateReport", json={"remarks": "seen"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MISSING_REPORT_ID"

    def test_delete_missing_report(self, client, mock_reports_collection):
        mock_reports_collection.delete_one.return_value.deleted_count = 0

        response = client.delete(f"/api/reports/deleteReport?id={REPORT_OID}")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "REPORT_NOT_FOUND"

    def test_get_reports(self, client, mock_reports_collection):
        cursor = mock_reports_collection.find.return_value.sort.return_value
        cursor.to_list = AsyncMock(return_value=[{"_id": ObjectId(REPORT_OID), "userId": "+91000"}])

        response = client.get("/api/reports/getReports", params={"userId": "+91000"})

        assert response.json()["count"] == 1
        assert response.json()["data"][0]["id"] == REPORT_OID

    def test_accept_shared_report_twice(self, client, mock_reports_collection, dc_report):
        mock_reports_collection.find_one.return_value = {"_id": ObjectId(REPORT_OID), "originalReportId": "DC-REP-001"}

        response = client.post("/api/reports/acceptSharedReport", json={"report": dc_report, "userId": "+91000"})

        assert response.status_code == 200
        assert response.json()["message"] == "Report already accepted"

    def test_reject(self, client, dc_client):
        response = client.post("/api/reports/reject", json={"reportId": "DC-REP-001", "userContact": "+91000"})

        assert response.status_code == 200
        assert response.json()["data"] == {"status": "rejected"}
        dc_client.reject_report.assert_awaited_once_with("DC-REP-001", "+91000")

    def test_reject_requires_fields(self, client):
        response = client.post("/api/reports/reject", json={"reportId": "DC-REP-001"})
        assert response.status_code == 400


class TestAnalyticsRoutes:
    def test_summary_with_reports(self, client):
        payload = {
            "profile": {"bmi": [{"bmi": 23.0}], "diagnosedCondition": []},
            "reports": [{"userId": "+91000", "status": "accepted", "name": "CBC"}],
        }

        response = client.post("/api/analytics/summary", json=payload)

        data = response.json()["data"]
        assert data["reportStats"]["total"] == 1
        assert data["averageBmi"] == 23.0

    def test_summary_loads_reports(self, client, mock_reports_collection):
        cursor = mock_reports_collection.find.return_value.sort.return_value
        cursor.to_list = AsyncMock(return_value=[{"_id": ObjectId(REPORT_OID), "userId": "+91000", "status": "pending"}])

        response = client.post("/api/analytics/summary", json={"profile": {}, "memberPhone": "+91000"})

        assert response.json()["data"]["reportStats"]["pending"] == 1
        mock_reports_collection.find.assert_called_once_with({"userId": "+91000"})

    def test_summary_requires_member(self, client):
        response = client.post("/api/analytics/summary", json={"profile": {}})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MISSING_MEMBER"
