"""
Async REST client for the brand analytics backend.
"""

from __future__ import annotations

import asyncio
import time
import typing as t
from datetime import datetime

import httpx
import structlog

from brandscope.exceptions import (
    ApiError,
    BatchStartError,
    BrandscopeError,
    NotFoundError,
    error_message_from_body,
)
from brandscope.models import (
    BatchExecution,
    BatchStartResponse,
    BatchStatistic,
    EmailSendResponse,
    IdentityCard,
    PromptSet,
    PromptTemplates,
    RawResponse,
    ReportList,
)
from brandscope.settings import Settings, load_settings
from brandscope.status import ResultType
from brandscope.utils.logging import mask_headers

log = structlog.get_logger(__name__)


class BrandscopeClient:
    """
    Thin async wrapper around the backend REST surface.

    Every call opens a short-lived ``httpx.AsyncClient`` from the client
    factory, so tests can swap the transport for an ``httpx.MockTransport``.

    Parameters
    ----------
    settings : Settings | None
        Client settings; loaded from the environment when omitted.
    client_factory : typing.Callable[[], httpx.AsyncClient] | None
        Factory creating the HTTP client used for each request.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client_factory: t.Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self.settings = settings or load_settings()
        self._client_factory: t.Callable[[], httpx.AsyncClient] = client_factory or (
            lambda: httpx.AsyncClient(timeout=self.settings.timeout_seconds)
        )

    def _url(self, path: str) -> str:
        return f"{self.settings.api_url}/{path.lstrip('/')}"

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, t.Any] | None = None,
        params: dict[str, t.Any] | None = None,
    ) -> t.Any:
        """
        Execute one backend request and decode its JSON body.

        Parameters
        ----------
        method : str
            HTTP method.
        path : str
            Path relative to the configured API URL.
        json : dict[str, typing.Any] | None
            Optional JSON payload.
        params : dict[str, typing.Any] | None
            Optional query parameters; ``None`` values are dropped.

        Returns
        -------
        typing.Any
            Decoded JSON body, ``None`` for empty bodies.

        Raises
        ------
        ApiError
            If the backend answers with a non-2xx status code.
        """
        url = self._url(path)
        headers = self.settings.headers
        query = {key: value for key, value in (params or {}).items() if value is not None}
        log.debug(
            event="Sending backend request",
            method=method,
            url=url,
            params=query or None,
            headers=mask_headers(headers),
        )
        async with self._client_factory() as client:
            response = await client.request(
                method=method,
                url=url,
                headers=headers,
                json=json,
                params=query or None,
            )
        if response.is_error:
            try:
                error_body = response.json()
            except ValueError:
                error_body = response.text
            log.error(
                event="Backend request failed",
                method=method,
                url=url,
                status_code=response.status_code,
            )
            error_cls = NotFoundError if response.status_code == 404 else ApiError
            raise error_cls(
                error_message_from_body(
                    body=error_body,
                    default=f"{method} {path} failed with status {response.status_code}",
                ),
                status_code=response.status_code,
                url=url,
                body=error_body,
            )
        if not response.content:
            return None
        return response.json()

    # Identity cards

    async def list_identity_cards(self) -> list[IdentityCard]:
        data = await self._request("GET", "/identity-card")
        return [IdentityCard.model_validate(item) for item in data or []]

    async def get_identity_card(self, identity_card_id: str) -> IdentityCard:
        data = await self._request("GET", f"/identity-card/{identity_card_id}")
        return IdentityCard.model_validate(data)

    async def create_identity_card_from_url(
        self, url: str, user_id: str | None = None, market: str | None = None
    ) -> IdentityCard:
        data = await self._request(
            "POST",
            "/identity-card/from-url",
            json={"url": url, "userId": user_id, "market": market},
        )
        return IdentityCard.model_validate(data)

    async def update_identity_card(
        self,
        identity_card_id: str,
        key_brand_attributes: list[str] | None = None,
        competitors: list[str] | None = None,
    ) -> IdentityCard:
        payload: dict[str, t.Any] = {}
        if key_brand_attributes is not None:
            payload["keyBrandAttributes"] = key_brand_attributes
        if competitors is not None:
            payload["competitors"] = competitors
        data = await self._request("PATCH", f"/identity-card/{identity_card_id}", json=payload)
        return IdentityCard.model_validate(data)

    async def delete_identity_card(self, identity_card_id: str) -> None:
        await self._request("DELETE", f"/identity-card/{identity_card_id}")

    # Prompt sets

    async def get_prompt_set(self, company_id: str) -> PromptSet | None:
        """Return the prompt set of a company, ``None`` while it does not exist yet."""
        try:
            data = await self._request("GET", f"/prompt-set/{company_id}")
        except NotFoundError:
            return None
        if not data:
            return None
        return PromptSet.model_validate(data)

    async def update_prompt_set(
        self,
        company_id: str,
        spontaneous: list[str] | None = None,
        direct: list[str] | None = None,
        comparison: list[str] | None = None,
        accuracy: list[str] | None = None,
    ) -> PromptSet:
        payload = {
            key: value
            for key, value in {
                "spontaneous": spontaneous,
                "direct": direct,
                "comparison": comparison,
                "accuracy": accuracy,
            }.items()
            if value is not None
        }
        data = await self._request("PATCH", f"/prompt-set/{company_id}", json=payload)
        return PromptSet.model_validate(data)

    async def regenerate_prompt_set(self, company_id: str) -> PromptSet:
        data = await self._request("POST", f"/prompt-set/{company_id}/regenerate")
        return PromptSet.model_validate(data)

    async def get_prompt_templates(self, company_id: str) -> PromptTemplates:
        data = await self._request("GET", f"/prompt-set/templates/{company_id}")
        return PromptTemplates.model_validate(data)

    async def wait_for_prompt_set(
        self,
        company_id: str,
        timeout: float | None = None,
        interval: float | None = None,
    ) -> PromptSet | None:
        """
        Poll until the prompt set of a freshly created company exists.

        Parameters
        ----------
        company_id : str
            Company / project identifier.
        timeout : float | None
            Seconds to wait before giving up; defaults to the settings value.
        interval : float | None
            Seconds between lookups; defaults to the settings value.

        Returns
        -------
        PromptSet | None
            The prompt set, or ``None`` if it is still missing after ``timeout``.
        """
        timeout = self.settings.prompt_set_timeout_seconds if timeout is None else timeout
        interval = self.settings.prompt_set_interval_seconds if interval is None else interval
        start = time.monotonic()
        while time.monotonic() - start < timeout:
            try:
                prompt_set = await self.get_prompt_set(company_id)
            except BrandscopeError as error:
                # generation may still be in progress
                log.debug(
                    event="Prompt set not ready",
                    company_id=company_id,
                    error=error.message,
                )
                prompt_set = None
            if prompt_set is not None:
                return prompt_set
            await asyncio.sleep(delay=interval)
        log.warning(
            event="Timed out waiting for prompt set", company_id=company_id, timeout=timeout
        )
        return None

    # Batches

    async def _start(self, path: str, *, default_error: str) -> BatchStartResponse:
        data = await self._request("POST", path)
        response = BatchStartResponse.model_validate(data or {})
        if not response.success:
            raise BatchStartError(error_message_from_body(body=data, default=default_error))
        if not response.batch_execution_id:
            raise BatchStartError("Invalid response from batch processing")
        return response

    async def start_batch(self, project_id: str) -> BatchStartResponse:
        """
        Ask the backend to run every pipeline for a project.

        Parameters
        ----------
        project_id : str
            Project / identity card identifier.

        Returns
        -------
        BatchStartResponse
            Start acknowledgement holding the batch execution id to poll.

        Raises
        ------
        BatchStartError
            If the backend answers ``success: false`` or omits the execution id.
        """
        return await self._start(
            f"/batch/process/{project_id}", default_error="Failed to run batch analysis"
        )

    async def start_pipeline(
        self, result_type: ResultType | str, project_id: str
    ) -> BatchStartResponse:
        """Ask the backend to run a single pipeline for a project."""
        pipeline = ResultType.parse(result_type)
        return await self._start(
            f"/batch/pipeline/{pipeline.legacy_name}/{project_id}",
            default_error=f"Failed to run {pipeline.value} analysis",
        )

    async def orchestrate(self, project_id: str) -> dict[str, t.Any]:
        data = await self._request("POST", f"/batch/orchestrate/{project_id}")
        if not data or not data.get("success"):
            raise BatchStartError(
                error_message_from_body(body=data, default="Failed to orchestrate batches")
            )
        return data

    async def get_batch_execution(self, batch_execution_id: str) -> BatchExecution:
        data = await self._request("GET", f"/batch-executions/{batch_execution_id}")
        return BatchExecution.model_validate(data)

    async def list_batch_executions(
        self, company_id: str | None = None, project_id: str | None = None
    ) -> list[BatchExecution]:
        data = await self._request(
            "GET",
            "/batch-executions",
            params={"companyId": company_id, "projectId": project_id},
        )
        if isinstance(data, dict):
            data = data.get("data") or data.get("items") or []
        return [BatchExecution.model_validate(item) for item in data or []]

    async def get_raw_responses(self, batch_execution_id: str) -> list[RawResponse]:
        data = await self._request("GET", f"/batch-executions/{batch_execution_id}/raw-responses")
        return [RawResponse.model_validate(item) for item in data or []]

    async def get_batch_statistics(
        self, start_date: datetime, end_date: datetime
    ) -> list[BatchStatistic]:
        data = await self._request(
            "GET",
            "/batch-executions/statistics/by-day",
            params={"startDate": start_date.isoformat(), "endDate": end_date.isoformat()},
        )
        return [BatchStatistic.model_validate(item) for item in data or []]

    # Reports

    async def list_reports(self, company_id: str) -> ReportList:
        data = await self._request("GET", f"/reports/{company_id}/all")
        return ReportList.model_validate(data or {})

    async def send_report_email(
        self,
        report_id: str,
        company_id: str,
        email: str,
        subject: str | None = None,
    ) -> EmailSendResponse:
        data = await self._request(
            "POST",
            "/reports/send-email",
            json={
                "reportId": report_id,
                "companyId": company_id,
                "email": email,
                "subject": subject,
            },
        )
        return EmailSendResponse.model_validate(data)
