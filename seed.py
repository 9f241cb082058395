from loguru import logger
from sqlmodel import Session, SQLModel, select
from app.core.config import settings
from app.db.core import engine
from app.db.schema import StandConfiguration, ConfigurationStatus, BoothType
from app.models.stand_configuration import ArtworkRequirement, Guidelines


DEFAULT_TEMPLATE_NAME = "Standard Booth"

# Artwork slots of the standard booth (meters)
DEFAULT_REQUIREMENTS = [
    ArtworkRequirement(name="Main Banner", width=6.0, height=3.0, is_required=True),
    ArtworkRequirement(name="Side Panel", width=2.0, height=3.0, is_required=True),
    ArtworkRequirement(name="Counter Front", width=1.5, height=1.0),
]


def seed_default_configuration(session: Session) -> StandConfiguration:
    """Creates the default template if no template carries the default flag."""
    logger.info("--- Seeding Default Stand Configuration ---")

    config = session.exec(select(StandConfiguration).where(
        StandConfiguration.is_default == True)).first()
    if config:
        logger.info(f"Existing default configuration: {config.name}")
        return config

    config = StandConfiguration(
        name=DEFAULT_TEMPLATE_NAME,
        description="Seeded template for the standard organizer-built booth.",
        status=ConfigurationStatus.ACTIVE,
        version="1.0",
        version_history=[],
        artwork_requirements=[r.model_dump() for r in DEFAULT_REQUIREMENTS],
        available_voltages=list(settings.default_voltages),
        guidelines=Guidelines().model_dump(),
        applicable_booth_types=[t.value for t in BoothType],
        is_default=True
    )
    session.add(config)
    session.flush()
    logger.info(f"Created default configuration: {config.name}")
    return config


def main():
    # Ensure tables exist (if not using Alembic)
    SQLModel.metadata.create_all(engine)

    with Session(engine) as session:
        try:
            seed_default_configuration(session)

            session.commit()
            logger.info("Database seeding completed successfully.")

        except Exception as e:
            session.rollback()
            logger.error(f"Seeding failed: {e}")
            raise e


if __name__ == "__main__":
    main()
