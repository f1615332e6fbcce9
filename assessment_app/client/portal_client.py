"""HTTP implementation of the portal gateway on top of httpx."""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from assessment_app.constants.network_constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
)
from assessment_app.core.errors import (
    GradingFetchError,
    ImageMissingError,
    NetworkError,
    NotFoundError,
    ResultWriteError,
)
from assessment_app.core.gateway import PortalGateway
from assessment_app.core.models import Assessment, ResultRecord
from assessment_app.core.wire_schemas import (
    AssessmentSummaryPayload,
    CanonicalAssessmentPayload,
    ImagePayload,
    ResultExistsPayload,
    ResultPayload,
    StudentAssessmentPayload,
)

logger = logging.getLogger(__name__)


class HttpPortalGateway(PortalGateway):
    """Talks to the portal API; every call has a bounded timeout.

    Transport failures surface as ``NetworkError`` unless the call has its
    own failure type, e.g. ``GradingFetchError`` for the answer key.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE_URL,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                return await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise NetworkError(f"{method} {path} failed: {exc}") from exc

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.status_code == 404:
            raise NotFoundError(_detail(response))
        if response.status_code >= 400:
            raise NetworkError(
                f"{response.request.method} {response.request.url.path} "
                f"returned {response.status_code}: {_detail(response)}"
            )

    async def list_assessments(self, student_id: str | None = None) -> list[AssessmentSummaryPayload]:
        params = {"student_id": student_id} if student_id else None
        response = await self._request("GET", "/assessments", params=params)
        self._raise_for_status(response)
        try:
            return [AssessmentSummaryPayload.model_validate(item) for item in response.json()]
        except (ValueError, TypeError) as exc:
            raise NetworkError(f"Malformed assessment listing: {exc}") from exc

    async def fetch_student_assessment(self, assessment_id: str) -> Assessment:
        response = await self._request("GET", f"/assessments/{assessment_id}/student")
        self._raise_for_status(response)
        return _parse(response, StudentAssessmentPayload).to_domain()

    async def fetch_canonical_assessment(self, assessment_id: str) -> Assessment:
        try:
            response = await self._request("GET", f"/assessments/{assessment_id}/canonical")
            self._raise_for_status(response)
            payload = _parse(response, CanonicalAssessmentPayload)
        except (NetworkError, NotFoundError) as exc:
            raise GradingFetchError(
                f"Could not fetch answer key for {assessment_id}: {exc}"
            ) from exc
        return payload.to_domain()

    async def has_existing_result(self, student_id: str, assessment_id: str) -> bool:
        response = await self._request(
            "GET", f"/students/{student_id}/results/{assessment_id}/exists"
        )
        self._raise_for_status(response)
        return _parse(response, ResultExistsPayload).has_result

    async def write_result(self, record: ResultRecord) -> None:
        payload = ResultPayload.from_domain(record)
        try:
            response = await self._request(
                "POST",
                f"/students/{record.student_id}/results",
                json=payload.model_dump(mode="json"),
            )
        except NetworkError as exc:
            raise ResultWriteError(str(exc)) from exc
        if response.status_code == 409:
            raise ResultWriteError(
                f"Result for {record.assessment_id} already exists: {_detail(response)}"
            )
        if response.status_code >= 400:
            raise ResultWriteError(
                f"Result write returned {response.status_code}: {_detail(response)}"
            )

    async def fetch_result(self, student_id: str, assessment_id: str) -> ResultRecord:
        response = await self._request("GET", f"/students/{student_id}/results/{assessment_id}")
        self._raise_for_status(response)
        return _parse(response, ResultPayload).to_domain()

    async def reset_result(self, student_id: str, assessment_id: str) -> None:
        """Delete a stored result so the student can take the assessment again."""
        response = await self._request(
            "DELETE", f"/students/{student_id}/results/{assessment_id}"
        )
        self._raise_for_status(response)

    async def resolve_image(self, image_ref: str) -> str:
        try:
            response = await self._request("GET", "/images", params={"ref": image_ref})
            self._raise_for_status(response)
        except NotFoundError as exc:
            raise ImageMissingError(f"No image for {image_ref!r}") from exc
        try:
            return _parse(response, ImagePayload).url
        except NetworkError as exc:
            raise ImageMissingError(f"Unusable image payload for {image_ref!r}") from exc


PayloadT = TypeVar("PayloadT", bound=BaseModel)


def _parse(response: httpx.Response, model: type[PayloadT]) -> PayloadT:
    """Validate a response body; a malformed body counts as a failed call."""
    try:
        return model.model_validate(response.json())
    except (ValueError, ValidationError) as exc:
        raise NetworkError(
            f"Malformed {model.__name__} from {response.request.url.path}: {exc}"
        ) from exc


def _detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and "detail" in body:
        return str(body["detail"])
    return response.text
