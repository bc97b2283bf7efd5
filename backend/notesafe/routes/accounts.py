"""
NoteSafe Backend — Account Route Handlers
===========================================

What:  DELETE /api/users/{user_id}: removes a user, their notes and images.
Who:   Called by the admin console. The API gateway has already verified the
       caller may delete the target account before the request reaches us.

Response Timing:
    The database cascade completes before the response is sent (success or
    failure is final). Image cleanup either runs inline or, by default, as a
    background task after the response, since it can't change the outcome.
"""

import logging

from fastapi import APIRouter, BackgroundTasks

from notesafe.config import settings
from notesafe.middleware.request_id import request_id_var
from notesafe.schemas.cascade import DeleteAccountResponse, ErrorResponse
from notesafe.services.account_service import account_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Accounts"])


@router.delete(
    "/users/{user_id}",
    response_model=DeleteAccountResponse,
    responses={
        200: {"description": "User, notes and (scheduled) images deleted", "model": DeleteAccountResponse},
        404: {"description": "User not found", "model": ErrorResponse},
        409: {"description": "Conflicting concurrent change; retry", "model": ErrorResponse},
        500: {"description": "Server error; nothing was deleted", "model": ErrorResponse},
    },
    summary="Delete a user and everything they own",
)
async def delete_account(user_id: str, background_tasks: BackgroundTasks) -> DeleteAccountResponse:
    in_background = settings.cleanup_in_background
    result = await account_service.delete_account(user_id, run_cleanup=not in_background)

    if result.error is not None:
        # Rendered as 404 by the global NotFoundError handler
        raise result.error

    deleted_note_ids = [note.id for note in result.notes]

    if in_background:
        background_tasks.add_task(
            account_service.cleanup_images, user_id, result.notes, request_id_var.get("")
        )
        return DeleteAccountResponse(
            user_id=user_id,
            deleted_note_ids=deleted_note_ids,
            image_cleanup="scheduled",
        )

    report = result.cleanup
    if report is None:
        image_cleanup = "failed"
    elif report.ok:
        image_cleanup = "completed"
    else:
        image_cleanup = "partial"

    return DeleteAccountResponse(
        user_id=user_id,
        deleted_note_ids=deleted_note_ids,
        image_cleanup=image_cleanup,
        failed_images=report.failed if report else [],
    )
