import json
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from core.config import INTERVIEW_API_BASE_URL, INTERVIEW_API_TIMEOUT_SEC
from core.logger import log_event
from interviewer.errors import ServiceUnavailableError
from interviewer.schemas import (
    GenerateQuestionsResponse,
    HealthStatus,
    ScoringPayload,
    ScoringResponse,
)

logger = logging.getLogger("interview_api")


def _payload_size(payload: Any) -> int:
    try:
        return len(json.dumps(payload, default=str))
    except (TypeError, ValueError):
        return 0


class InterviewApiClient:
    """HTTP client for the resume parsing / question generation / scoring service."""

    def __init__(
        self,
        base_url: str = INTERVIEW_API_BASE_URL,
        timeout_sec: float = INTERVIEW_API_TIMEOUT_SEC,
        transport: httpx.AsyncBaseTransport | None = None,
        session_id: str = "",
    ):
        self.base_url = str(base_url or "").rstrip("/")
        self.timeout_sec = float(timeout_sec)
        self._transport = transport
        self.session_id = session_id

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout_sec,
            transport=self._transport,
        )

    async def _post(self, endpoint: str, **kwargs) -> Any:
        try:
            async with self._client() as client:
                response = await client.post(f"/{endpoint}", **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning("%s timeout | err=%s", endpoint, exc)
            raise ServiceUnavailableError(endpoint, "request timed out") from exc
        except httpx.HTTPError as exc:
            logger.warning("%s transport failure | err=%s", endpoint, exc)
            raise ServiceUnavailableError(endpoint, str(exc) or exc.__class__.__name__) from exc

        if response.status_code < 200 or response.status_code >= 300:
            raise ServiceUnavailableError(
                endpoint,
                f"{response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise ServiceUnavailableError(endpoint, "response body is not JSON", response.status_code) from exc

    async def parse_resume(self, file_name: str, content: bytes, content_type: str | None = None) -> dict:
        files = {"file": (file_name, content, content_type or "application/octet-stream")}
        data = await self._post("parse-resume", files=files)
        if not isinstance(data, dict):
            raise ServiceUnavailableError("parse-resume", "unexpected response shape")

        personal_info = data.get("personal_info") if isinstance(data.get("personal_info"), dict) else {}
        skills = data.get("skills") if isinstance(data.get("skills"), dict) else {}
        log_event(
            "interview_api",
            "parse_resume",
            self.session_id,
            file_name=file_name,
            file_size=len(content or b""),
            has_name=bool(personal_info.get("name")),
            skill_groups=sorted(skills.keys()),
            experience_count=len(data.get("experience") or []),
            projects_count=len(data.get("projects") or []),
            response_size=_payload_size(data),
        )
        return data

    async def generate_questions(self, resume_data: dict) -> GenerateQuestionsResponse:
        data = await self._post("generate-questions", json=resume_data)
        try:
            result = GenerateQuestionsResponse.model_validate(data)
        except ValidationError as exc:
            raise ServiceUnavailableError("generate-questions", "invalid response payload") from exc

        log_event(
            "interview_api",
            "generate_questions",
            self.session_id,
            request_size=_payload_size(resume_data),
            response_size=_payload_size(data),
            questions_count=len(result.questions),
            technology=result.technology or "not specified",
            difficulties=[q.difficulty for q in result.questions],
        )
        return result

    async def score_answers(self, payload: ScoringPayload) -> ScoringResponse:
        body = payload.model_dump()
        data = await self._post("score-answers", json=body)
        try:
            result = ScoringResponse.model_validate(data)
        except ValidationError as exc:
            raise ServiceUnavailableError("score-answers", "invalid response payload") from exc

        log_event(
            "interview_api",
            "score_answers",
            self.session_id,
            request_size=_payload_size(body),
            response_size=_payload_size(data),
            questions_count=len(payload.interview_data),
            answer_lengths=[len(item.answer) for item in payload.interview_data],
            overall_score=result.final_score.overall_score,
            recommendation=result.recommendation,
        )
        return result

    async def health_check(self) -> HealthStatus:
        try:
            async with self._client() as client:
                response = await client.get("/health")
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("health check failed | err=%s", exc)
            return HealthStatus(status="error", message="Failed to connect to API")
        return HealthStatus(status="success", message="API is connected")
