# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student engagement API endpoints.

This module provides endpoints for engagement signals and remedial tasks:
- GET /student/{student_id}/status - Current state and pending intervention
- POST /daily-checkin - Submit quiz score and focus time
- POST /report-cheat - Report a focus violation from the session monitor
- POST /assign-intervention - Assign a remedial task (mentor)
- POST /complete-intervention - Complete a remedial task (student)

Errors are returned as {"error": message}: 400 for missing fields, 404
for unknown students or interventions, 409 for a second pending
intervention, 500 when the store fails.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status

from src.api.dependencies import get_engagement_service, get_intervention_service
from src.api.middleware.rate_limit import RATE_LIMIT_SIGNALS, limiter
from src.domains.engagement.exceptions import (
    DuplicateInterventionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from src.domains.engagement.service import EngagementService
from src.domains.intervention.service import InterventionService
from src.models.engagement import (
    AssignInterventionRequest,
    AssignInterventionResponse,
    CompleteInterventionRequest,
    CompleteInterventionResponse,
    DailyCheckinRequest,
    ReportViolationRequest,
    SignalResponse,
    StudentStatusResponse,
)
from src.utils.logging import bind_context

logger = logging.getLogger(__name__)

router = APIRouter()


def _bad_request(e: ValidationError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)


def _not_found(e: NotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


def _server_error(e: PersistenceError, detail: str) -> HTTPException:
    logger.error("%s: %s", detail, e.original_error or e.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


@router.get(
    "/student/{student_id}/status",
    response_model=StudentStatusResponse,
    summary="Get student status",
)
async def get_student_status(
    student_id: str,
    service: Annotated[EngagementService, Depends(get_engagement_service)],
) -> StudentStatusResponse:
    """Get the student's engagement state and latest pending intervention."""
    bind_context(student_id=student_id)
    try:
        result = await service.get_status(student_id)
    except NotFoundError as e:
        raise _not_found(e)
    except PersistenceError as e:
        raise _server_error(e, "Database error")

    return StudentStatusResponse.model_validate(result)


@router.post(
    "/daily-checkin",
    response_model=SignalResponse,
    response_model_exclude_none=True,
    summary="Submit daily check-in",
)
@limiter.limit(RATE_LIMIT_SIGNALS)
async def daily_checkin(
    request: Request,
    data: DailyCheckinRequest,
    service: Annotated[EngagementService, Depends(get_engagement_service)],
) -> SignalResponse:
    """Evaluate a daily check-in.

    Returns "On Track" when both quiz score and focus time clear their
    thresholds, otherwise "Pending Mentor Review" after alerting a mentor.
    A warning is included when the mentor alert was not confirmed.
    """
    bind_context(student_id=data.student_id)
    try:
        outcome = await service.daily_checkin(data.model_dump())
    except ValidationError as e:
        raise _bad_request(e)
    except NotFoundError as e:
        raise _not_found(e)
    except PersistenceError as e:
        raise _server_error(e, "Failed to process daily check-in")

    return SignalResponse(status=outcome.status, state=outcome.state, warning=outcome.warning)


@router.post(
    "/report-cheat",
    response_model=SignalResponse,
    response_model_exclude_none=True,
    summary="Report focus violation",
)
@limiter.limit(RATE_LIMIT_SIGNALS)
async def report_cheat(
    request: Request,
    data: ReportViolationRequest,
    service: Annotated[EngagementService, Depends(get_engagement_service)],
) -> SignalResponse:
    """Record a focus violation and alert a mentor."""
    bind_context(student_id=data.student_id)
    try:
        outcome = await service.report_violation(data.model_dump())
    except ValidationError as e:
        raise _bad_request(e)
    except NotFoundError as e:
        raise _not_found(e)
    except PersistenceError as e:
        raise _server_error(e, "Failed to log cheat")

    return SignalResponse(status=outcome.status, state=outcome.state, warning=outcome.warning)


@router.post(
    "/assign-intervention",
    response_model=AssignInterventionResponse,
    summary="Assign remedial task",
)
async def assign_intervention(
    data: AssignInterventionRequest,
    service: Annotated[InterventionService, Depends(get_intervention_service)],
) -> AssignInterventionResponse:
    """Assign a remedial task and move the student to remedial."""
    bind_context(student_id=data.student_id)
    try:
        intervention = await service.assign(data.model_dump())
    except ValidationError as e:
        raise _bad_request(e)
    except NotFoundError as e:
        raise _not_found(e)
    except DuplicateInterventionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except PersistenceError as e:
        raise _server_error(e, "Failed to assign intervention")

    return AssignInterventionResponse(intervention_id=intervention["id"])


@router.post(
    "/complete-intervention",
    response_model=CompleteInterventionResponse,
    summary="Complete remedial task",
)
async def complete_intervention(
    data: CompleteInterventionRequest,
    service: Annotated[InterventionService, Depends(get_intervention_service)],
) -> CompleteInterventionResponse:
    """Complete a pending remedial task and return the student to normal."""
    bind_context(student_id=data.student_id)
    try:
        await service.complete(data.model_dump())
    except ValidationError as e:
        raise _bad_request(e)
    except NotFoundError as e:
        raise _not_found(e)
    except PersistenceError as e:
        raise _server_error(e, "Failed to complete intervention")

    return CompleteInterventionResponse()
