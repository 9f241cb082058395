import uuid
from typing import Optional
from fastapi import APIRouter, Depends, status, BackgroundTasks, Form, File, UploadFile

from app.core.dependencies import get_current_actor, get_discussion_service
from app.services.discussion import DiscussionService
from app.models.auth import Actor
from app.models.discussion import DiscussionThreadRead, MessageRead

router = APIRouter()


@router.get(
    "/{stand_id}/discussion",
    response_model=DiscussionThreadRead,
    status_code=status.HTTP_200_OK,
    summary="Get Stand Discussion",
    description="The full message log of a stand, grouped by calendar day."
)
def get_discussion(
    stand_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    service: DiscussionService = Depends(get_discussion_service)
):
    return service.get_thread(actor, stand_id)


@router.post(
    "/{stand_id}/discussion",
    response_model=MessageRead,
    status_code=status.HTTP_201_CREATED,
    summary="Send Stand Message",
    description="Multipart/Form-Data. Text, an image attachment, or both."
)
def send_message(
    stand_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    message: Optional[str] = Form(None),
    attachment: Optional[UploadFile] = File(
        None, description="Image file, at most the configured attachment size."),
    actor: Actor = Depends(get_current_actor),
    service: DiscussionService = Depends(get_discussion_service)
):
    return service.send_message(actor, stand_id, message, attachment, background_tasks)
