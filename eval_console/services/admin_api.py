"""
Admin API Client - Evaluation Console
eval_console/services/admin_api.py

Typed async wrapper of the admin REST backend. Every response body is parsed
into the pydantic models in eval_console/models; every failure surfaces as
an AdminApiException subclass.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from eval_console.config import Settings
from eval_console.core.auth import AuthContext
from eval_console.core.exceptions import (
    ApiConnectionException,
    ApiRequestException,
    ApiResponseException,
    AuthenticationRequiredException,
)
from eval_console.models.evaluation import (
    AdminProfile,
    Business,
    BusinessReviewsResponse,
    EvaluationFlag,
    EvaluationRunDetail,
    EvaluationRunSummary,
    EvaluationScoresResponse,
    RunEvaluationResponse,
)
from eval_console.models.report import RefinedReportResponse

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_BUSINESS_LIST = TypeAdapter(List[Business])
_RUN_LIST = TypeAdapter(List[EvaluationRunSummary])
_FLAG_LIST = TypeAdapter(List[EvaluationFlag])


def _error_detail(response: httpx.Response) -> str:
    """`detail` from a JSON error body, else "HTTP <status>"."""
    try:
        body = response.json()
    except ValueError:
        body = None
    detail = body.get("detail") if isinstance(body, dict) else None
    if not detail:
        return f"HTTP {response.status_code}"
    return detail if isinstance(detail, str) else str(detail)


class AdminApiClient:
    """Async client for the /admin and /evaluation endpoints."""

    def __init__(
        self,
        settings: Settings,
        auth: AuthContext,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.auth = auth
        self._client = httpx.AsyncClient(
            base_url=settings.ADMIN_API_URL,
            timeout=settings.API_TIMEOUT_SECONDS,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "AdminApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        authenticated: bool = True,
    ) -> Any:
        if authenticated and not self.auth.is_authenticated:
            raise AuthenticationRequiredException()

        try:
            response = await self._client.request(
                method,
                path,
                params=params,
                json=json,
                headers=self.auth.headers(),
            )
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {e!r}")
            raise ApiConnectionException(f"Could not reach admin API: {e}") from e

        if response.is_error:
            detail = _error_detail(response)
            logger.warning(f"{method} {path} -> {response.status_code}: {detail}")
            raise ApiRequestException(response.status_code, detail)

        try:
            return response.json()
        except ValueError as e:
            raise ApiResponseException(f"{method} {path} returned a non-JSON body") from e

    @staticmethod
    def _parse(model: Type[M], data: Any) -> M:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ApiResponseException(
                f"Unexpected {model.__name__} payload: {e.error_count()} validation errors"
            ) from e

    @staticmethod
    def _parse_list(adapter: TypeAdapter, data: Any, what: str) -> list:
        try:
            return adapter.validate_python(data or [])
        except ValidationError as e:
            raise ApiResponseException(
                f"Unexpected {what} payload: {e.error_count()} validation errors"
            ) from e

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def login(self, email: str, password: str) -> AdminProfile:
        """Exchange credentials for a token, store it, and return the profile."""
        data = await self._request(
            "POST",
            "/admin/login",
            json={"email": email, "password": password},
            authenticated=False,
        )
        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise ApiResponseException("Login response carried no access_token")
        self.auth.set(token)
        return await self.get_me()

    async def get_me(self) -> AdminProfile:
        return self._parse(AdminProfile, await self._request("GET", "/admin/me"))

    def logout(self) -> None:
        self.auth.clear()

    # ------------------------------------------------------------------
    # Businesses and reviews
    # ------------------------------------------------------------------

    async def get_businesses_with_evaluations(self) -> List[Business]:
        data = await self._request("GET", "/admin/businesses-with-reviews")
        return self._parse_list(_BUSINESS_LIST, data, "business list")

    async def get_business_reviews(self, business_id: str) -> BusinessReviewsResponse:
        data = await self._request("GET", f"/admin/businesses/{business_id}/reviews")
        return self._parse(BusinessReviewsResponse, data)

    # ------------------------------------------------------------------
    # Evaluation runs
    # ------------------------------------------------------------------

    async def run_evaluation(
        self,
        assessment_id: str,
        config_overrides: Optional[Dict[str, Any]] = None,
        dry_run: Optional[bool] = None,
    ) -> RunEvaluationResponse:
        body: Dict[str, Any] = {"assessment_id": assessment_id}
        if config_overrides is not None:
            body["config_overrides"] = config_overrides
        if dry_run is not None:
            body["dry_run"] = dry_run
        data = await self._request("POST", "/evaluation/run", json=body)
        return self._parse(RunEvaluationResponse, data)

    async def get_evaluation_runs(
        self,
        assessment_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[EvaluationRunSummary]:
        params = {}
        if assessment_id:
            params["assessment_id"] = assessment_id
        if status:
            params["status"] = status
        data = await self._request("GET", "/evaluation/runs", params=params or None)
        return self._parse_list(_RUN_LIST, data, "run list")

    async def get_assessment_evaluation_runs(
        self, assessment_id: str
    ) -> List[EvaluationRunSummary]:
        data = await self._request("GET", f"/evaluation/assessments/{assessment_id}/runs")
        return self._parse_list(_RUN_LIST, data, "run list")

    async def get_evaluation_run(
        self, run_id: str, include_audit_log: bool = False
    ) -> EvaluationRunDetail:
        params = {"include_audit_log": "true"} if include_audit_log else None
        data = await self._request("GET", f"/evaluation/runs/{run_id}", params=params)
        return self._parse(EvaluationRunDetail, data)

    async def get_evaluation_scores(self, run_id: str) -> EvaluationScoresResponse:
        data = await self._request("GET", f"/evaluation/runs/{run_id}/scores")
        return self._parse(EvaluationScoresResponse, data)

    async def get_evaluation_flags(
        self, run_id: str, requires_review_only: bool = False
    ) -> List[EvaluationFlag]:
        params = {"requires_review_only": "true"} if requires_review_only else None
        data = await self._request("GET", f"/evaluation/runs/{run_id}/flags", params=params)
        return self._parse_list(_FLAG_LIST, data, "flag list")

    async def resolve_flag(
        self,
        flag_id: str,
        resolution: str,
        override_score: Optional[float] = None,
    ) -> Dict[str, Any]:
        data = await self._request(
            "POST",
            f"/evaluation/flags/{flag_id}/resolve",
            json={"resolution": resolution, "override_score": override_score},
        )
        return data if isinstance(data, dict) else {"message": str(data)}

    async def get_latest_evaluation(self, assessment_id: str) -> EvaluationRunDetail:
        data = await self._request("GET", f"/evaluation/assessments/{assessment_id}/latest")
        return self._parse(EvaluationRunDetail, data)

    async def get_refined_report(self, run_id: str) -> RefinedReportResponse:
        data = await self._request("GET", f"/evaluation/runs/{run_id}/refined-report")
        return self._parse(RefinedReportResponse, data)
