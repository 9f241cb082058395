import uuid
import json
from enum import Enum
from typing import List, Optional
from fastapi import APIRouter, Depends, status, Query, BackgroundTasks, Form, File, UploadFile, HTTPException
from pydantic import ValidationError

from app.core.dependencies import (
    require_admin, require_partner,
    get_stand_service, get_review_service, get_submission_service, get_discussion_service
)
from app.services.stand import StandService, to_stand_read
from app.services.review import ReviewWorkflowService
from app.services.submission import SubmissionService
from app.services.discussion import DiscussionService
from app.models.auth import Actor
from app.models.stand import (
    StandCreate,
    StandAdminUpdate,
    StandRead,
    StandListItem,
    StandStatusSummary,
    ReviewPayload,
    CommentInput,
    CommentRead,
    ConstructionTypeInput,
    AVPowerUpdate
)
from app.models.submission import ArtworkSubmissionCreate, FileSubmissionCreate
from app.db.schema import StandStatus, FileSubmissionKind, DrawingType

router = APIRouter()


class FileCollection(str, Enum):
    LOGOS = "logos"
    RENDERS = "renders"
    DRAWINGS = "drawings"


COLLECTION_KINDS = {
    FileCollection.LOGOS: FileSubmissionKind.LOGO,
    FileCollection.RENDERS: FileSubmissionKind.RENDER,
    FileCollection.DRAWINGS: FileSubmissionKind.TECHNICAL_DRAWING,
}


def _comment_read(entry) -> CommentRead:
    return CommentRead(
        id=entry.id,
        comment=entry.comment,
        created_by=entry.created_by,
        created_at=entry.created_at
    )


# ==============================================================================
# PARTNER WORKFLOW (OWN STAND)
# ==============================================================================


@router.get(
    "/mine",
    response_model=StandRead,
    status_code=status.HTTP_200_OK,
    summary="Get My Stand",
    description="The partner's stand. Created on first visit with the default template's voltages."
)
def get_my_stand(
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_partner),
    service: StandService = Depends(get_stand_service)
):
    return to_stand_read(service.get_or_create_mine(actor, background_tasks))


@router.put(
    "/mine/construction-type",
    response_model=StandRead,
    status_code=status.HTTP_200_OK,
    summary="Choose Booth Construction Type",
    description="Only possible while the stand is still pending partner review."
)
def set_construction_type(
    data: ConstructionTypeInput,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_partner),
    service: SubmissionService = Depends(get_submission_service)
):
    return to_stand_read(service.set_construction_type(actor, data, background_tasks))


@router.post(
    "/mine/artwork",
    response_model=StandRead,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Artwork",
    description="Multipart/Form-Data: a JSON `payload` matching ArtworkSubmissionCreate plus an optional `file`. Sends the stand to organizer review."
)
def submit_artwork(
    background_tasks: BackgroundTasks,
    payload: str = Form(
        ..., description="JSON string matching the ArtworkSubmissionCreate model."),
    file: Optional[UploadFile] = File(
        None, description="Artwork file, when submission_type is 'file'."),
    actor: Actor = Depends(require_partner),
    service: SubmissionService = Depends(get_submission_service)
):
    try:
        data = ArtworkSubmissionCreate(**json.loads(payload))
    except (ValueError, TypeError, ValidationError) as e:
        raise HTTPException(
            status_code=422, detail=f"Invalid JSON payload: {str(e)}")

    artwork = service.submit_artwork(actor, data, file, background_tasks)
    return to_stand_read(artwork.stand)


@router.delete(
    "/mine/artwork/{artwork_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete Artwork"
)
def delete_artwork(
    artwork_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_partner),
    service: SubmissionService = Depends(get_submission_service)
):
    return service.delete_artwork(actor, artwork_id, background_tasks)


@router.post(
    "/mine/artwork/{artwork_id}/comments",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Comment On Artwork"
)
def comment_on_artwork(
    artwork_id: uuid.UUID,
    data: CommentInput,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_partner),
    service: SubmissionService = Depends(get_submission_service)
):
    return _comment_read(service.comment_on_artwork(actor, artwork_id, data.comment, background_tasks))


@router.put(
    "/mine/av-power",
    response_model=StandRead,
    status_code=status.HTTP_200_OK,
    summary="Save AV and Power Requirements",
    description="Overwrites the given fields and sends the stand to organizer review."
)
def update_av_power(
    data: AVPowerUpdate,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_partner),
    service: SubmissionService = Depends(get_submission_service)
):
    return to_stand_read(service.update_av_power(actor, data, background_tasks))


@router.post(
    "/mine/comments",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add Stand Comment",
    description="A free-text note on the stand. Allowed in every status."
)
def add_partner_comment(
    data: CommentInput,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_partner),
    service: DiscussionService = Depends(get_discussion_service)
):
    return _comment_read(service.add_partner_comment(actor, data.comment, background_tasks))


@router.post(
    "/mine/{collection}",
    response_model=StandRead,
    status_code=status.HTTP_201_CREATED,
    summary="Upload Logo, Render or Technical Drawing",
    description="Multipart/Form-Data. Technical drawings require a `drawing_type`."
)
def submit_file(
    collection: FileCollection,
    background_tasks: BackgroundTasks,
    file: Optional[UploadFile] = File(None),
    description: Optional[str] = Form(None),
    drawing_type: Optional[DrawingType] = Form(None),
    actor: Actor = Depends(require_partner),
    service: SubmissionService = Depends(get_submission_service)
):
    data = FileSubmissionCreate(description=description, drawing_type=drawing_type)
    entry = service.submit_file(
        actor, COLLECTION_KINDS[collection], data, file, background_tasks)
    return to_stand_read(entry.stand)


@router.delete(
    "/mine/{collection}/{submission_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete Logo, Render or Technical Drawing"
)
def delete_file(
    collection: FileCollection,
    submission_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_partner),
    service: SubmissionService = Depends(get_submission_service)
):
    return service.delete_file(actor, COLLECTION_KINDS[collection], submission_id, background_tasks)


# ==============================================================================
# ORGANIZER WORKFLOW
# ==============================================================================


@router.get(
    "/",
    response_model=List[StandListItem],
    status_code=status.HTTP_200_OK,
    summary="List Stands",
    description="All partner stands, most recently updated first."
)
def list_stands(
    stand_status: Optional[StandStatus] = Query(None, alias="status"),
    actor: Actor = Depends(require_admin),
    service: StandService = Depends(get_stand_service)
):
    return service.list_stands(stand_status)


@router.get(
    "/summary",
    response_model=StandStatusSummary,
    status_code=status.HTTP_200_OK,
    summary="Stand Status Counts"
)
def stand_summary(
    actor: Actor = Depends(require_admin),
    service: StandService = Depends(get_stand_service)
):
    return service.status_summary()


@router.post(
    "/",
    response_model=StandRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Stand",
    description="Creates the stand for a partner. A partner can only have one stand."
)
def create_stand(
    data: StandCreate,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_admin),
    service: StandService = Depends(get_stand_service)
):
    return to_stand_read(service.create_stand(actor, data, background_tasks))


@router.get(
    "/{stand_id}",
    response_model=StandRead,
    status_code=status.HTTP_200_OK,
    summary="Get Stand"
)
def get_stand(
    stand_id: uuid.UUID,
    actor: Actor = Depends(require_admin),
    service: StandService = Depends(get_stand_service)
):
    return to_stand_read(service.get_stand(stand_id))


@router.patch(
    "/{stand_id}",
    response_model=StandRead,
    status_code=status.HTTP_200_OK,
    summary="Update Stand",
    description="Organizer edits. Allowed in every status. A changed `status` is recorded in the revision history."
)
def update_stand(
    stand_id: uuid.UUID,
    data: StandAdminUpdate,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_admin),
    service: StandService = Depends(get_stand_service)
):
    return to_stand_read(service.admin_update(actor, stand_id, data, background_tasks))


@router.delete(
    "/{stand_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete Stand"
)
def delete_stand(
    stand_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_admin),
    service: StandService = Depends(get_stand_service)
):
    return service.delete_stand(actor, stand_id, background_tasks)


@router.post(
    "/{stand_id}/review",
    response_model=StandRead,
    status_code=status.HTTP_200_OK,
    summary="Review Stand",
    description="Approve, request a revision (feedback required), complete or reopen a stand."
)
def review_stand(
    stand_id: uuid.UUID,
    data: ReviewPayload,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_admin),
    service: ReviewWorkflowService = Depends(get_review_service)
):
    return to_stand_read(service.review_stand(actor, stand_id, data.status, data.feedback, background_tasks))


@router.post(
    "/{stand_id}/artwork/{artwork_id}/feedback",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add Artwork Feedback"
)
def add_artwork_feedback(
    stand_id: uuid.UUID,
    artwork_id: uuid.UUID,
    data: CommentInput,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_admin),
    service: ReviewWorkflowService = Depends(get_review_service)
):
    return _comment_read(service.add_artwork_feedback(actor, stand_id, artwork_id, data.comment, background_tasks))
