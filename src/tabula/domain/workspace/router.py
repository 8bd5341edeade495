"""Admin REST endpoint for the bulk Project Manager purge.

``DELETE /admin/project-managers`` with body ``{"identifiers": [...]}``.

Authentication (401) is enforced by the JWT middleware and the
``CurrentPrincipal`` dependency, the privileged role (403) by
``require_privileged_role``; both answer with RFC 7807 problem bodies before
the record store is touched. Everything after that answers with the purge
contract body ``{success, message, details}``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Annotated, Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tabula.domain.workspace.infrastructure.record_store import SqlRecordStore
from tabula.domain.workspace.normalization import IDENTIFIERS_FIELD
from tabula.domain.workspace.outcomes import PurgeStatus, WrongRole
from tabula.domain.workspace.purge_service import ProjectManagerPurgeService
from tabula.domain.workspace.settings import PurgeSettings, get_purge_settings
from tabula.foundation.domain.exceptions import BadInputError
from tabula.foundation.domain.ports import RecordStorePort
from tabula.infra.auth.dependencies import CurrentPrincipal, require_role
from tabula.infra.persistence.database import get_sync_session_factory

if TYPE_CHECKING:
    from tabula.domain.workspace.outcomes import BatchResult, PurgeOutcome, Rejection

router = APIRouter(prefix="/admin", tags=["admin"])
logger = logging.getLogger(__name__)

INVALID_JSON_MESSAGE = "Bad Request: Invalid JSON payload."


# -- Request / Response models ------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PurgeRequest(BaseModel):
    identifiers: list[str] = Field(..., min_length=1, examples=[["pm1@example.com"]])


class RejectionResponse(_CamelModel):
    identifier: str
    reason: str
    message: str
    actual_role: str | None = None


class CountDiscrepancyResponse(_CamelModel):
    category: str
    requested: int
    deleted: int


class PurgeDetails(_CamelModel):
    valid_processed: list[str]
    invalid_or_skipped: list[RejectionResponse]
    deleted_counts_by_category: dict[str, int]
    count_discrepancies: list[CountDiscrepancyResponse]
    possibly_partially_applied: bool


class PurgeResponse(_CamelModel):
    success: bool
    message: str
    details: PurgeDetails | None = None


# -- Dependencies -------------------------------------------------------------


def require_privileged_role(
    principal: CurrentPrincipal,
    settings: Annotated[PurgeSettings, Depends(get_purge_settings)],
) -> None:
    """Reject principals lacking the configured privileged role (403)."""
    require_role(settings.privileged_role)(principal)


def get_record_store(principal: CurrentPrincipal) -> RecordStorePort:
    """Record store restricted to the principal's tenant."""
    return SqlRecordStore(get_sync_session_factory(), tenant_id=principal.tenant_id)


# -- Endpoints ----------------------------------------------------------------


@router.delete(
    "/project-managers",
    response_model=PurgeResponse,
    responses={
        207: {"model": PurgeResponse, "description": "Some identifiers invalid or skipped"},
        400: {"model": PurgeResponse, "description": "Unusable payload or no usable identifiers"},
        404: {"model": PurgeResponse, "description": "No identifier resolved to a target"},
        500: {"model": PurgeResponse, "description": "Store failure; partial details included"},
    },
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": PurgeRequest.model_json_schema()}},
        }
    },
)
async def purge_project_managers(
    request: Request,
    principal: CurrentPrincipal,
    _: Annotated[None, Depends(require_privileged_role)],
    store: Annotated[RecordStorePort, Depends(get_record_store)],
    settings: Annotated[PurgeSettings, Depends(get_purge_settings)],
) -> JSONResponse:
    """Delete Project Managers by email together with everything they own."""
    try:
        body = await request.json()
    except ValueError:
        logger.info("purge_rejected_invalid_json", extra={"tenant_id": principal.tenant_id})
        return _message_response(PurgeStatus.BAD_INPUT, INVALID_JSON_MESSAGE)

    raw = body.get(IDENTIFIERS_FIELD) if isinstance(body, dict) else None
    service = ProjectManagerPurgeService(store, settings)
    try:
        outcome = await service.purge(principal, raw)
    except BadInputError as exc:
        return _message_response(PurgeStatus.BAD_INPUT, exc.message)

    return _outcome_response(outcome)


# -- Helpers ------------------------------------------------------------------


def _rejection_response(rejection: Rejection) -> RejectionResponse:
    return RejectionResponse(
        identifier=rejection.identifier,
        reason=rejection.status.value,
        message=rejection.message,
        actual_role=rejection.actual_role if isinstance(rejection, WrongRole) else None,
    )


def _details(result: BatchResult) -> PurgeDetails:
    return PurgeDetails(
        valid_processed=list(result.valid_processed),
        invalid_or_skipped=[_rejection_response(r) for r in result.invalid_or_skipped],
        deleted_counts_by_category=dict(result.deleted_counts),
        count_discrepancies=[
            CountDiscrepancyResponse(category=d.category, requested=d.requested, deleted=d.deleted)
            for d in result.count_discrepancies
        ],
        possibly_partially_applied=result.possibly_partially_applied,
    )


def _outcome_response(outcome: PurgeOutcome) -> JSONResponse:
    body = PurgeResponse(
        success=outcome.success,
        message=outcome.message,
        details=_details(outcome.result),
    )
    return _json(outcome.status, body)


def _message_response(status: PurgeStatus, message: str) -> JSONResponse:
    return _json(status, PurgeResponse(success=False, message=message))


def _json(status: PurgeStatus, body: PurgeResponse) -> JSONResponse:
    content: dict[str, Any] = body.model_dump(by_alias=True, exclude_none=True)
    return JSONResponse(status_code=int(status), content=content)
