"""Client for the diagnostic-center (DC) service."""

from typing import Any, Dict, Optional

import httpx

from ..config import settings
from ..models.report import BranchDetails, DCDetails, PathologistDetails
from ..utils.error_utils import NotFoundError, UpstreamServiceError
from ..utils.log_utils import dc_logger


class LookupCache:
    """Process-wide ID -> display name cache for static lookups."""

    def __init__(self):
        self._names: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._names.get(key)

    def set(self, key: str, name: str) -> None:
        self._names[key] = name

    def __contains__(self, key: str) -> bool:
        return key in self._names

    def clear(self) -> None:
        self._names.clear()


dc_name_cache = LookupCache()
branch_name_cache = LookupCache()


class DiagnosticCenterClient:
    """Fetch center, branch and pathologist records from the DC service."""

    def __init__(self, base_url: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        self.base_url = (base_url or settings.DC_API_BASE_URL).rstrip("/")
        self._client = client

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = f"{self.base_url}{path}"
        if self._client is not None:
            return await self._client.request(method, url, **kwargs)
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
            return await client.request(method, url, **kwargs)

    async def _get_json(self, path: str, error_code: str, what: str) -> Dict[str, Any]:
        response = await self._request("GET", path)
        if response.is_error:
            raise UpstreamServiceError(
                f"Failed to fetch {what}: {response.reason_phrase}",
                status_code=response.status_code,
                code=error_code,
            )
        result = response.json()
        return result if isinstance(result, dict) else {}

    async def get_dc_details(self, dc_id: str) -> DCDetails:
        result = await self._get_json(f"/api/profiles/{dc_id}", "DC_API_ERROR", "diagnostic center")
        data = result.get("data")
        if not result.get("success") or not isinstance(data, dict):
            raise NotFoundError("Diagnostic center not found", code="DC_NOT_FOUND")

        branding = data.get("brandingInfo") if isinstance(data.get("brandingInfo"), dict) else None
        return DCDetails(
            dcId=dc_id,
            centerName=data.get("centerName") or data.get("name"),
            logoUrl=(branding or {}).get("logoUrl"),
            phoneNumber=data.get("phoneNumber"),
            email=data.get("email"),
            brandingInfo=branding,
        )

    async def get_branch_details(self, branch_id: str) -> BranchDetails:
        result = await self._get_json(f"/api/branches/{branch_id}", "BRANCH_API_ERROR", "branch")
        data = result.get("data")
        if not result.get("success") or not isinstance(data, dict):
            raise NotFoundError("Branch not found", code="BRANCH_NOT_FOUND")

        return BranchDetails(
            branchId=branch_id,
            branchName=data.get("branchName") or data.get("name"),
            branchAddress=data.get("branchAddress") or data.get("address"),
        )

    async def get_pathologist_details(
        self,
        pathologist_id: Optional[str] = None,
        branch_id: Optional[str] = None,
        pathologist_name: Optional[str] = None,
    ) -> PathologistDetails:
        """Look a pathologist up by ID, or among a branch's pathologists.

        Branch lookups prefer a case-insensitive name match, then an ID match,
        then the branch's first pathologist.
        """
        if pathologist_id:
            result = await self._get_json(f"/api/pathologists/{pathologist_id}", "PATHOLOGIST_API_ERROR", "pathologist")
            data = result.get("data")
            if result.get("success") and isinstance(data, dict):
                return PathologistDetails(
                    pathologistId=pathologist_id,
                    name=data.get("name") or pathologist_name,
                    signature=data.get("signature"),
                    designation=data.get("designation") or "Pathologist",
                )

        if branch_id:
            result = await self._get_json(f"/api/branches/{branch_id}/pathologists", "BRANCH_PATHOLOGISTS_API_ERROR", "branch pathologists")
            data = result.get("data")
            pathologists = data.get("pathologists") if isinstance(data, dict) else None
            if result.get("success") and isinstance(pathologists, list):
                pathologists = [p for p in pathologists if isinstance(p, dict)]
                match = None
                if pathologist_name:
                    wanted = pathologist_name.lower()
                    match = next((p for p in pathologists if (p.get("name") or "").lower() == wanted), None)
                if match is None and pathologist_id:
                    match = next((p for p in pathologists if pathologist_id in (p.get("id"), p.get("_id"))), None)
                if match is None and pathologists:
                    match = pathologists[0]

                if match is not None:
                    return PathologistDetails(
                        pathologistId=match.get("id") or match.get("_id"),
                        name=match.get("name") or pathologist_name,
                        signature=match.get("signature"),
                        designation=match.get("designation") or "Pathologist",
                    )

        raise NotFoundError("Pathologist not found", code="PATHOLOGIST_NOT_FOUND")

    async def reject_report(self, report_id: str, user_contact: str) -> Dict[str, Any]:
        """Tell the DC service the user rejected a shared report."""
        response = await self._request(
            "POST",
            "/api/reports/reject",
            json={"reportId": report_id, "userContact": user_contact},
        )
        try:
            result = response.json()
        except ValueError:
            result = {}
        if response.is_error:
            error = result.get("error") if isinstance(result, dict) else None
            message = (error or {}).get("message") if isinstance(error, dict) else None
            raise UpstreamServiceError(
                message or result.get("message") or f"Failed to reject report: {response.reason_phrase}",
                status_code=response.status_code,
                code="DC_REJECT_FAILED",
            )
        if isinstance(result, dict) and "data" in result:
            return result["data"]
        return result

    async def get_dc_name(self, dc_id: str) -> Optional[str]:
        """Center name by ID, cached process-wide; None when unavailable."""
        if not dc_id:
            return None
        if dc_id in dc_name_cache:
            return dc_name_cache.get(dc_id)
        try:
            details = await self.get_dc_details(dc_id)
        except (httpx.HTTPError, UpstreamServiceError, NotFoundError, ValueError) as e:
            dc_logger.error(f"Error fetching diagnostic center {dc_id}: {e}")
            return None
        if details.centerName:
            dc_name_cache.set(dc_id, details.centerName)
        return details.centerName

    async def get_branch_name(self, branch_id: str) -> Optional[str]:
        """Branch name by ID, cached process-wide; None when unavailable."""
        if not branch_id:
            return None
        if branch_id in branch_name_cache:
            return branch_name_cache.get(branch_id)
        try:
            details = await self.get_branch_details(branch_id)
        except (httpx.HTTPError, UpstreamServiceError, NotFoundError, ValueError) as e:
            dc_logger.error(f"Error fetching branch {branch_id}: {e}")
            return None
        if details.branchName:
            branch_name_cache.set(branch_id, details.branchName)
        return details.branchName
