"""FastAPI trigger surface: periodic and manual ingestion plus claim submission."""

from __future__ import annotations

import secrets
from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import Annotated, Any, Final

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from claimsync import __version__
from claimsync.app import run_claims_ingest, run_updates_ingest, submit_manual_claim
from claimsync.config import TriggerConfig, get_trigger_config
from claimsync.domain.claims import SubmissionRequest, SubmissionResult
from claimsync.domain.errors import InvalidSubmissionError, StorageError
from claimsync.domain.model import RunStatus
from claimsync.domain.orchestrator import RunReport

log = getLogger(__name__)

BEARER_PREFIX: Final[str] = "Bearer "

_STATUS_CODES: Final[dict[RunStatus, int]] = {
    RunStatus.COMPLETED: status.HTTP_200_OK,
    RunStatus.LOCKED: status.HTTP_409_CONFLICT,
    RunStatus.FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@dataclass(frozen=True, slots=True)
class Services:
    """The application calls behind each route, replaceable in tests."""

    run_updates: Callable[[], RunReport] = run_updates_ingest
    run_claims: Callable[[], RunReport] = run_claims_ingest
    submit: Callable[[SubmissionRequest], SubmissionResult] = submit_manual_claim


class ClaimSubmissionBody(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    subject_name: str = Field(min_length=1, max_length=200)
    claim_text: str = Field(min_length=1, max_length=2000)
    source_url: str = Field(min_length=1, max_length=2000)
    subject_url: str | None = None
    author: str | None = None
    details_text: str | None = Field(default=None, max_length=5000)
    tags: list[str] = Field(default_factory=list)

    def to_request(self) -> SubmissionRequest:
        return SubmissionRequest(
            subject_name=self.subject_name,
            claim_text=self.claim_text,
            source_url=self.source_url,
            subject_url=self.subject_url or None,
            author=self.author or None,
            details_text=self.details_text,
            tags=tuple(self.tags),
        )


class ClaimSubmissionResponse(BaseModel):
    id: str
    subject_id: str
    value: int
    currency: str
    derived: bool
    confidence: str
    confidence_reason: str

    @classmethod
    def from_result(cls, result: SubmissionResult) -> ClaimSubmissionResponse:
        return cls(
            id=str(result.claim_id),
            subject_id=str(result.subject_id),
            value=result.value,
            currency=result.currency,
            derived=result.derived,
            confidence=result.confidence_level.value,
            confidence_reason=result.confidence_reason,
        )


def create_app(
    *,
    trigger: TriggerConfig | None = None,
    services: Services | None = None,
) -> FastAPI:
    trigger_config = trigger or get_trigger_config()
    effective_services = services or Services()
    if not trigger_config.protected:
        log.warning("INGEST_TRIGGER_SECRET is not set; trigger endpoints are unprotected")

    def authorize(authorization: Annotated[str | None, Header()] = None) -> None:
        if trigger_config.secret is None:
            log.warning("Accepting unauthenticated trigger request")
            return
        supplied = ""
        if authorization is not None and authorization.startswith(BEARER_PREFIX):
            supplied = authorization.removeprefix(BEARER_PREFIX).strip()
        if not secrets.compare_digest(supplied.encode(), trigger_config.secret.encode()):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Unauthorized",
                headers={"WWW-Authenticate": "Bearer"},
            )

    app = FastAPI(
        title="claimsync",
        description="Ingestion triggers for capability updates and revenue claims",
        version=__version__,
    )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
        )

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @app.get("/cron/updates", dependencies=[Depends(authorize)])
    def cron_updates() -> JSONResponse:
        return _run_response(effective_services.run_updates)

    @app.post("/ingest/updates", dependencies=[Depends(authorize)])
    def ingest_updates() -> JSONResponse:
        return _run_response(effective_services.run_updates)

    @app.get("/cron/claims", dependencies=[Depends(authorize)])
    def cron_claims() -> JSONResponse:
        return _run_response(effective_services.run_claims)

    @app.post("/ingest/claims", dependencies=[Depends(authorize)])
    def ingest_claims() -> JSONResponse:
        return _run_response(effective_services.run_claims)

    @app.post("/claims", status_code=status.HTTP_201_CREATED)
    def submit_claim(body: ClaimSubmissionBody) -> ClaimSubmissionResponse:
        try:
            result = effective_services.submit(body.to_request())
        except InvalidSubmissionError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
        except StorageError as exc:
            log.exception("Storing a submitted claim failed")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Storage unavailable",
            ) from exc
        return ClaimSubmissionResponse.from_result(result)

    return app


def _run_response(run: Callable[[], RunReport]) -> JSONResponse:
    report = run()
    payload: dict[str, Any] = report.to_dict()
    return JSONResponse(status_code=_STATUS_CODES[report.status], content=payload)
