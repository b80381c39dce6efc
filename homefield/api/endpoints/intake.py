"""
Intake Endpoints
Public form submissions: client onboarding, VSL confirmations and the
roofing demo call trigger
"""
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from homefield.api.dependencies import get_intake_service, get_vapi_client
from homefield.core.config import Settings, get_settings
from homefield.domain.models.intake import OnboardingSubmission, RoofingCallRequest, VslSubmission
from homefield.domain.services.intake_normalizer import IntakeService
from homefield.infrastructure.voice.vapi import (
    VapiCallError,
    VapiClient,
    describe_concern,
    format_phone_e164,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/intake", tags=["intake"])


async def _read_json(request: Request) -> Any:
    """Raw JSON body; malformed payloads become a 500 like any other crash."""
    try:
        return await request.json()
    except ValueError as e:
        logger.error(f"Unparseable intake payload on {request.url.path}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/onboard")
async def submit_onboarding(
    request: Request,
    intake: IntakeService = Depends(get_intake_service),
):
    """
    Create an agency client from the onboarding form.

    Always answers success with a client id; a store outage yields a
    locally generated id and webhook failures are only logged.
    """
    body = await _read_json(request)
    try:
        submission = OnboardingSubmission.model_validate(body)
    except ValidationError as e:
        logger.error(f"Onboarding payload rejected: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    outcome = await intake.submit_onboarding(submission)
    logger.info(
        f"Onboarding received for client {outcome.client_id} "
        f"(persisted={outcome.persisted}, notified={outcome.notified})"
    )
    return {"success": True, "clientId": outcome.client_id}


@router.post("/vsl-confirmation")
async def confirm_vsl(
    request: Request,
    intake: IntakeService = Depends(get_intake_service),
):
    body = await _read_json(request)
    try:
        submission = VslSubmission.model_validate(body)
    except ValidationError as e:
        logger.error(f"VSL payload rejected: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    await intake.submit_vsl(submission)
    return {"success": True}


@router.post("/roofing-call")
async def trigger_roofing_call(
    request: Request,
    vapi: Optional[VapiClient] = Depends(get_vapi_client),
    settings: Settings = Depends(get_settings),
):
    """
    Start an outbound AI call to a homeowner from the roofing demo form.

    Returns {success: false} with 200 when VAPI is not configured.
    """
    body = await _read_json(request)
    try:
        call_request = RoofingCallRequest.model_validate(body)
    except ValidationError as e:
        logger.error(f"Roofing call payload rejected: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": "Failed to trigger call"})

    if vapi is None:
        logger.info("VAPI not configured yet for roofing")
        return {"success": False, "message": "VAPI not configured"}

    try:
        call_id = await vapi.start_phone_call(
            assistant_id=settings.roofing_assistant_id,
            customer_number=format_phone_e164(call_request.phone),
            customer_name=call_request.name,
            variable_values={
                "customerName": call_request.name,
                "customerAddress": call_request.address,
                "roofingConcern": describe_concern(call_request.roofing_concern),
            },
        )
    except VapiCallError as e:
        return JSONResponse(status_code=500, content={"success": False, "error": e.message})

    return {"success": True, "callId": call_id}
