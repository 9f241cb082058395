from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, status, Query, BackgroundTasks, HTTPException

from app.core.dependencies import (
    get_current_actor, require_admin, get_stand_configuration_service
)
from app.services.stand_configuration import StandConfigurationService, to_configuration_read
from app.models.auth import Actor
from app.models.stand_configuration import (
    ArtworkRequirement,
    StandConfigurationCreate,
    StandConfigurationUpdate,
    StandConfigurationRead,
    VoltageInput
)
from app.db.schema import ConfigurationStatus

router = APIRouter()


@router.get(
    "/",
    response_model=List[StandConfigurationRead],
    status_code=status.HTTP_200_OK,
    summary="List Stand Configurations",
    description="All requirement templates, newest first. Optionally filtered by status."
)
def list_configurations(
    config_status: Optional[ConfigurationStatus] = Query(
        None, alias="status", description="Filter by draft, active or archived"),
    actor: Actor = Depends(require_admin),
    service: StandConfigurationService = Depends(
        get_stand_configuration_service)
):
    return [to_configuration_read(c) for c in service.list_configurations(config_status)]


@router.get(
    "/default",
    response_model=StandConfigurationRead,
    status_code=status.HTTP_200_OK,
    summary="Get Default Configuration",
    description="The template applied to stands that do not pin one. Available to partners."
)
def get_default_configuration(
    actor: Actor = Depends(get_current_actor),
    service: StandConfigurationService = Depends(
        get_stand_configuration_service)
):
    config = service.get_default()
    if not config:
        raise HTTPException(
            status_code=404, detail="No default configuration has been set.")
    return to_configuration_read(config)


@router.post(
    "/",
    response_model=StandConfigurationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Configuration",
    description="Creates a draft template with the standard voltages and no artwork requirements."
)
def create_configuration(
    data: StandConfigurationCreate,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_admin),
    service: StandConfigurationService = Depends(
        get_stand_configuration_service)
):
    return to_configuration_read(service.create_configuration(actor, data.name, background_tasks))


@router.get(
    "/{config_id}",
    response_model=StandConfigurationRead,
    status_code=status.HTTP_200_OK,
    summary="Get Configuration"
)
def get_configuration(
    config_id: UUID,
    actor: Actor = Depends(require_admin),
    service: StandConfigurationService = Depends(
        get_stand_configuration_service)
):
    return to_configuration_read(service.get_configuration(config_id))


@router.patch(
    "/{config_id}",
    response_model=StandConfigurationRead,
    status_code=status.HTTP_200_OK,
    summary="Update Configuration",
    description="Partial update. Changing the version label records the previous one in the version history."
)
def update_configuration(
    config_id: UUID,
    data: StandConfigurationUpdate,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_admin),
    service: StandConfigurationService = Depends(
        get_stand_configuration_service)
):
    return to_configuration_read(service.update_configuration(actor, config_id, data, background_tasks))


@router.delete(
    "/{config_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete Configuration",
    description="Removes a template. The default template cannot be deleted."
)
def delete_configuration(
    config_id: UUID,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_admin),
    service: StandConfigurationService = Depends(
        get_stand_configuration_service)
):
    return service.delete_configuration(actor, config_id, background_tasks)


@router.post(
    "/{config_id}/duplicate",
    response_model=StandConfigurationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Duplicate Configuration"
)
def duplicate_configuration(
    config_id: UUID,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_admin),
    service: StandConfigurationService = Depends(
        get_stand_configuration_service)
):
    return to_configuration_read(service.duplicate_configuration(actor, config_id, background_tasks))


@router.post(
    "/{config_id}/set-default",
    response_model=StandConfigurationRead,
    status_code=status.HTTP_200_OK,
    summary="Set Default Configuration",
    description="Clears the default flag everywhere else and activates this template, in one transaction."
)
def set_default_configuration(
    config_id: UUID,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_admin),
    service: StandConfigurationService = Depends(
        get_stand_configuration_service)
):
    return to_configuration_read(service.set_default(actor, config_id, background_tasks))


@router.post(
    "/{config_id}/archive",
    response_model=StandConfigurationRead,
    status_code=status.HTTP_200_OK,
    summary="Archive Configuration"
)
def archive_configuration(
    config_id: UUID,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_admin),
    service: StandConfigurationService = Depends(
        get_stand_configuration_service)
):
    return to_configuration_read(service.archive_configuration(actor, config_id, background_tasks))


@router.post(
    "/{config_id}/artwork-requirements",
    response_model=StandConfigurationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add Artwork Requirement"
)
def add_artwork_requirement(
    config_id: UUID,
    data: ArtworkRequirement,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_admin),
    service: StandConfigurationService = Depends(
        get_stand_configuration_service)
):
    return to_configuration_read(service.add_artwork_requirement(actor, config_id, data, background_tasks))


@router.delete(
    "/{config_id}/artwork-requirements/{index}",
    response_model=StandConfigurationRead,
    status_code=status.HTTP_200_OK,
    summary="Remove Artwork Requirement",
    description="Removes the requirement at the given position. Re-read the template first; positions shift after every removal."
)
def remove_artwork_requirement(
    config_id: UUID,
    index: int,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_admin),
    service: StandConfigurationService = Depends(
        get_stand_configuration_service)
):
    return to_configuration_read(service.remove_artwork_requirement(actor, config_id, index, background_tasks))


@router.post(
    "/{config_id}/voltages",
    response_model=StandConfigurationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add Voltage Option"
)
def add_voltage(
    config_id: UUID,
    data: VoltageInput,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_admin),
    service: StandConfigurationService = Depends(
        get_stand_configuration_service)
):
    return to_configuration_read(service.add_voltage(actor, config_id, data.voltage, background_tasks))


@router.delete(
    "/{config_id}/voltages/{index}",
    response_model=StandConfigurationRead,
    status_code=status.HTTP_200_OK,
    summary="Remove Voltage Option"
)
def remove_voltage(
    config_id: UUID,
    index: int,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_admin),
    service: StandConfigurationService = Depends(
        get_stand_configuration_service)
):
    return to_configuration_read(service.remove_voltage(actor, config_id, index, background_tasks))
