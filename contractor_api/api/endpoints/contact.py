"""
Contact form endpoints.

POST /api/contact is the public submission endpoint; the listing and status
endpoints are for the admin dashboard.
"""

import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from fastapi.responses import JSONResponse

from contractor_api.core.config import Settings
from contractor_api.core.request_context import RequestContext
from contractor_api.models.contact import ContactStatusUpdate
from contractor_api.services.contact_handler import submit_contact
from contractor_api.services.contact_store import ContactStore
from contractor_api.services.notifications import EmailNotifier

router = APIRouter()
logger = logging.getLogger(__name__)


def get_contact_store(request: Request) -> ContactStore:
    return request.app.state.contact_store


def get_notifier(request: Request) -> EmailNotifier:
    return request.app.state.notifier


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_request_context() -> RequestContext:
    return RequestContext()


async def read_json_body(request: Request) -> Any:
    """Decoded JSON body, or None if the body is missing or not valid JSON"""
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


@router.post("/contact")
async def create_contact(
    request: Request,
    background_tasks: BackgroundTasks,
    context: RequestContext = Depends(get_request_context),
    store: ContactStore = Depends(get_contact_store),
    notifier: EmailNotifier = Depends(get_notifier),
    settings: Settings = Depends(get_app_settings),
):
    """
    Accept a contact form submission.

    Body: {name, email, phone?, service, message}
    """
    payload = await read_json_body(request)
    result = await submit_contact(
        payload,
        context,
        store,
        strict_validation=settings.strict_validation,
        expose_error_details=settings.expose_error_details,
    )

    if result.accepted and notifier.enabled:
        background_tasks.add_task(notifier.send_submission_emails, result.record, context.request_id)

    return JSONResponse(
        status_code=result.status_code,
        content=result.body,
        headers={"X-Request-ID": context.request_id},
    )


@router.get("/contacts", status_code=status.HTTP_200_OK)
async def list_contacts(
    context: RequestContext = Depends(get_request_context),
    store: ContactStore = Depends(get_contact_store),
) -> Dict[str, Any]:
    """
    Get all contacts, newest first.

    Returns:
        dict: contacts plus the storage tier that served them
    """
    try:
        outcome = await store.list(context)
        return {
            "success": True,
            "data": [record.to_response() for record in outcome.records],
            "count": len(outcome.records),
            "source": outcome.tier.value,
        }
    except Exception as e:
        logger.error(f"[{context.request_id}] Error fetching contacts: {str(e)}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": "Error fetching contacts"},
        )


@router.patch("/contacts/{contact_id}/status", status_code=status.HTTP_200_OK)
async def update_contact_status(
    contact_id: str,
    update: ContactStatusUpdate,
    context: RequestContext = Depends(get_request_context),
    store: ContactStore = Depends(get_contact_store),
):
    """
    Set a contact's follow-up status (new / contacted / completed).
    """
    try:
        record = await store.update_status(contact_id, update.status, context)
    except Exception as e:
        logger.error(f"[{context.request_id}] Error updating contact {contact_id}: {str(e)}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": "Error updating contact"},
        )

    if record is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"success": False, "message": "Contact not found"},
        )

    return {"success": True, "data": record.to_response()}
