import copy
import uuid
from datetime import datetime
from typing import List, Optional
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select, update, col
from fastapi import HTTPException, BackgroundTasks

from app.core.config import settings
from app.core.audit import _perform_audit_log
from app.core.exceptions import ConfigurationNotFoundError, WorkflowValidationError
from app.db.schema import (
    StandConfiguration, ConfigurationStatus, BoothType, AuditAction, Stand
)
from app.models.auth import Actor
from app.models.stand_configuration import (
    ArtworkRequirement, Guidelines, StandConfigurationUpdate,
    StandConfigurationRead, VersionHistoryEntry
)


def to_configuration_read(config: StandConfiguration) -> StandConfigurationRead:
    return StandConfigurationRead(
        id=config.id,
        name=config.name,
        description=config.description,
        status=config.status,
        version=config.version,
        version_history=[VersionHistoryEntry(**v)
                         for v in config.version_history or []],
        artwork_requirements=[ArtworkRequirement(**r)
                              for r in config.artwork_requirements or []],
        available_voltages=list(config.available_voltages or []),
        guidelines=Guidelines(**(config.guidelines or {})),
        applicable_booth_types=list(config.applicable_booth_types or []),
        is_default=config.is_default,
        created_at=config.created_at,
        updated_at=config.updated_at
    )


class StandConfigurationService:
    """
    Requirement Template Store.
    JSON list columns are always reassigned (never mutated in place) so the
    ORM sees the change.
    """

    def __init__(self, session: Session):
        self.session = session

    # ==========================================================================
    # HELPERS
    # ==========================================================================

    def _get_or_404(self, config_id: uuid.UUID) -> StandConfiguration:
        config = self.session.get(StandConfiguration, config_id)
        if not config:
            raise ConfigurationNotFoundError()
        return config

    def _commit(self, config: StandConfiguration, failure: str) -> StandConfiguration:
        try:
            self.session.add(config)
            self.session.commit()
            self.session.refresh(config)
            return config
        except Exception as e:
            self.session.rollback()
            logger.error(f"Stand configuration write failed: {e}")
            raise HTTPException(status_code=500, detail=failure)

    def _audit(self, background_tasks: BackgroundTasks, actor: Actor, config_id: uuid.UUID, action: AuditAction, changes: dict):
        background_tasks.add_task(
            _perform_audit_log,
            actor_email=actor.email,
            entity_type="StandConfiguration",
            entity_id=config_id,
            action=action,
            changes=changes
        )

    # ==========================================================================
    # READ OPERATIONS
    # ==========================================================================

    def list_configurations(self, status: Optional[ConfigurationStatus] = None) -> List[StandConfiguration]:
        statement = select(StandConfiguration)
        if status:
            statement = statement.where(StandConfiguration.status == status)
        statement = statement.order_by(col(StandConfiguration.created_at).desc())
        return list(self.session.exec(statement).all())

    def get_configuration(self, config_id: uuid.UUID) -> StandConfiguration:
        return self._get_or_404(config_id)

    def get_default(self) -> Optional[StandConfiguration]:
        return self.session.exec(
            select(StandConfiguration).where(StandConfiguration.is_default == True)
        ).first()

    def resolve_for_stand(self, stand: Stand) -> Optional[StandConfiguration]:
        """The stand's own template if it has one, else the store default."""
        if stand.configuration_id:
            config = self.session.get(StandConfiguration, stand.configuration_id)
            if config:
                return config
            logger.warning(
                f"Stand {stand.id} points to missing configuration {stand.configuration_id}; using default.")
        return self.get_default()

    # ==========================================================================
    # WRITE OPERATIONS
    # ==========================================================================

    def create_configuration(self, actor: Actor, name: str, background_tasks: BackgroundTasks) -> StandConfiguration:
        """
        New template in DRAFT with the standard voltage list and an empty
        requirement list.
        """
        config = StandConfiguration(
            name=name.strip(),
            status=ConfigurationStatus.DRAFT,
            version="1.0",
            version_history=[],
            artwork_requirements=[],
            available_voltages=list(settings.default_voltages),
            guidelines=Guidelines().model_dump(),
            applicable_booth_types=[t.value for t in BoothType],
            is_default=False
        )
        config = self._commit(config, "Could not create configuration.")
        logger.info(f"Configuration '{config.name}' ({config.id}) created by {actor.email}")
        self._audit(background_tasks, actor, config.id,
                    AuditAction.CREATE, {"name": config.name})
        return config

    def duplicate_configuration(self, actor: Actor, config_id: uuid.UUID, background_tasks: BackgroundTasks) -> StandConfiguration:
        """
        Deep copy with a fresh identity. The copy is a DRAFT, not default,
        and starts a new version line.
        """
        source = self._get_or_404(config_id)

        clone = StandConfiguration(
            name=f"{source.name} (Copy)",
            description=source.description,
            status=ConfigurationStatus.DRAFT,
            version="1.0",
            version_history=[],
            artwork_requirements=copy.deepcopy(source.artwork_requirements or []),
            available_voltages=list(source.available_voltages or []),
            guidelines=copy.deepcopy(source.guidelines or {}),
            applicable_booth_types=list(source.applicable_booth_types or []),
            is_default=False
        )
        clone = self._commit(clone, "Could not duplicate configuration.")
        self._audit(background_tasks, actor, clone.id, AuditAction.CREATE,
                    {"duplicated_from": str(source.id)})
        return clone

    def set_default(self, actor: Actor, config_id: uuid.UUID, background_tasks: BackgroundTasks) -> StandConfiguration:
        """
        Makes this template the single default and activates it.
        The clear-all and the set happen in one transaction, so no reader
        ever sees zero or two defaults.
        """
        config = self._get_or_404(config_id)

        try:
            # Archived templates included
            self.session.exec(
                update(StandConfiguration)
                .where(StandConfiguration.id != config.id)
                .where(StandConfiguration.is_default == True)
                .values(is_default=False)
            )
            config.is_default = True
            config.status = ConfigurationStatus.ACTIVE
            self.session.add(config)
            self.session.commit()
            self.session.refresh(config)
        except IntegrityError as e:
            self.session.rollback()
            logger.warning(f"Concurrent default change on {config.id}: {e}")
            raise HTTPException(
                status_code=409, detail="Another template was made default at the same time. Try again.")
        except Exception as e:
            self.session.rollback()
            logger.error(f"Setting default configuration failed: {e}")
            raise HTTPException(
                status_code=500, detail="Could not set default configuration.")

        logger.info(f"Configuration {config.id} is now the default ({actor.email})")
        self._audit(background_tasks, actor, config.id,
                    AuditAction.UPDATE, {"is_default": True, "status": config.status})
        return config

    def archive_configuration(self, actor: Actor, config_id: uuid.UUID, background_tasks: BackgroundTasks) -> StandConfiguration:
        config = self._get_or_404(config_id)
        was_default = config.is_default

        config.status = ConfigurationStatus.ARCHIVED
        config.is_default = False
        config = self._commit(config, "Could not archive configuration.")

        if was_default:
            logger.warning(
                f"Default configuration {config.id} archived; the store has no default now.")
        self._audit(background_tasks, actor, config.id, AuditAction.UPDATE,
                    {"status": config.status, "was_default": was_default})
        return config

    def update_configuration(
        self,
        actor: Actor,
        config_id: uuid.UUID,
        data: StandConfigurationUpdate,
        background_tasks: BackgroundTasks
    ) -> StandConfiguration:
        """
        Partial update. A version label change is recorded in the version
        history before the new label is stored.
        """
        config = self._get_or_404(config_id)
        patch = data.model_dump(exclude_unset=True, mode="json")

        if "name" in patch and not (patch["name"] or "").strip():
            raise WorkflowValidationError("Configuration name cannot be empty.")

        requirements = patch.get("artwork_requirements")
        if requirements is not None:
            self._check_requirement_names(requirements)

        new_version = patch.get("version")
        if new_version is not None and new_version != config.version:
            config.version_history = list(config.version_history or []) + [{
                "version": config.version,
                "changed_at": datetime.utcnow().isoformat(),
                "change_notes": f"Updated to v{new_version}"
            }]

        if patch.get("status") == ConfigurationStatus.ARCHIVED.value:
            patch["is_default"] = False

        for field, value in patch.items():
            setattr(config, field, value)

        config = self._commit(config, "Could not update configuration.")
        self._audit(background_tasks, actor, config.id,
                    AuditAction.UPDATE, {"fields": sorted(patch.keys())})
        return config

    def delete_configuration(self, actor: Actor, config_id: uuid.UUID, background_tasks: BackgroundTasks):
        config = self._get_or_404(config_id)
        if config.is_default:
            raise HTTPException(
                status_code=409,
                detail="The default configuration cannot be deleted. Set another default first."
            )

        snapshot_name = config.name
        try:
            # Stands pinned to this template fall back to the default
            self.session.exec(
                update(Stand)
                .where(Stand.configuration_id == config.id)
                .values(configuration_id=None)
            )
            self.session.delete(config)
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error(f"Configuration delete failed: {e}")
            raise HTTPException(
                status_code=500, detail="Could not delete configuration.")

        self._audit(background_tasks, actor, config_id,
                    AuditAction.DELETE, {"name": snapshot_name})
        return {"message": "Configuration deleted successfully."}

    # ==========================================================================
    # POSITION-ADDRESSED LIST EDITS
    # ==========================================================================

    def _check_requirement_names(self, requirements: List[dict]):
        names = [(r.get("name") or "").strip() for r in requirements]
        if any(not n for n in names):
            raise WorkflowValidationError("Every artwork requirement needs a name.")
        if len(set(names)) != len(names):
            raise WorkflowValidationError("Artwork requirement names must be unique.")

    def add_artwork_requirement(
        self,
        actor: Actor,
        config_id: uuid.UUID,
        requirement: ArtworkRequirement,
        background_tasks: BackgroundTasks
    ) -> StandConfiguration:
        config = self._get_or_404(config_id)
        requirements = list(config.artwork_requirements or []) + \
            [requirement.model_dump(mode="json")]
        self._check_requirement_names(requirements)

        config.artwork_requirements = requirements
        config = self._commit(config, "Could not add artwork requirement.")
        self._audit(background_tasks, actor, config.id, AuditAction.UPDATE,
                    {"artwork_requirement_added": requirement.name})
        return config

    def remove_artwork_requirement(
        self,
        actor: Actor,
        config_id: uuid.UUID,
        index: int,
        background_tasks: BackgroundTasks
    ) -> StandConfiguration:
        """
        Removes the entry at `index`. Callers must hold the index from a fresh read.
        """
        config = self._get_or_404(config_id)
        requirements = list(config.artwork_requirements or [])
        if index < 0 or index >= len(requirements):
            raise HTTPException(
                status_code=404, detail=f"No artwork requirement at position {index}.")

        removed = requirements[index]
        config.artwork_requirements = [
            r for i, r in enumerate(requirements) if i != index]
        config = self._commit(config, "Could not remove artwork requirement.")
        self._audit(background_tasks, actor, config.id, AuditAction.UPDATE,
                    {"artwork_requirement_removed": removed.get("name"), "index": index})
        return config

    def add_voltage(self, actor: Actor, config_id: uuid.UUID, voltage: str, background_tasks: BackgroundTasks) -> StandConfiguration:
        config = self._get_or_404(config_id)
        voltage = voltage.strip()
        if not voltage:
            raise WorkflowValidationError("Voltage cannot be empty.")
        if voltage in (config.available_voltages or []):
            raise WorkflowValidationError(f"Voltage '{voltage}' is already listed.")

        config.available_voltages = list(config.available_voltages or []) + [voltage]
        config = self._commit(config, "Could not add voltage.")
        self._audit(background_tasks, actor, config.id,
                    AuditAction.UPDATE, {"voltage_added": voltage})
        return config

    def remove_voltage(self, actor: Actor, config_id: uuid.UUID, index: int, background_tasks: BackgroundTasks) -> StandConfiguration:
        config = self._get_or_404(config_id)
        voltages = list(config.available_voltages or [])
        if index < 0 or index >= len(voltages):
            raise HTTPException(
                status_code=404, detail=f"No voltage at position {index}.")

        removed = voltages[index]
        config.available_voltages = [
            v for i, v in enumerate(voltages) if i != index]
        config = self._commit(config, "Could not remove voltage.")
        self._audit(background_tasks, actor, config.id, AuditAction.UPDATE,
                    {"voltage_removed": removed, "index": index})
        return config
