import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jwt.exceptions import InvalidTokenError
from loguru import logger
from sqlmodel import Session
from pydantic import ValidationError

from app.core.config import settings
from app.db.core import get_session
from app.models.auth import Actor, ActorRole, TokenData

from app.services.stand_configuration import StandConfigurationService
from app.services.stand import StandService
from app.services.review import ReviewWorkflowService
from app.services.submission import SubmissionService
from app.services.discussion import DiscussionService

# Tokens are issued by the external identity provider
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="signin")

ALGORITHM = "HS256"


def get_stand_configuration_service(session: Session = Depends(get_session)) -> StandConfigurationService:
    return StandConfigurationService(session)


def get_stand_service(session: Session = Depends(get_session)) -> StandService:
    return StandService(session)


def get_review_service(session: Session = Depends(get_session)) -> ReviewWorkflowService:
    return ReviewWorkflowService(session)


def get_submission_service(session: Session = Depends(get_session)) -> SubmissionService:
    return SubmissionService(session)


def get_discussion_service(session: Session = Depends(get_session)) -> DiscussionService:
    return DiscussionService(session)


def get_current_actor(token: str = Depends(oauth2_scheme)) -> Actor:
    """
    Validates the bearer token and resolves the acting identity.
    This is the gatekeeper for every stand route.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(token, settings.secret_key,
                             algorithms=[ALGORITHM])
        token_data = TokenData(**payload)
    except (InvalidTokenError, ValidationError):
        raise credentials_exception

    if token_data.role == ActorRole.PARTNER and token_data.partner_id is None:
        logger.warning(
            f"Access denied: partner token for {token_data.sub} has no partner_id.")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account is not linked to a partner."
        )

    return Actor(
        email=token_data.sub,
        name=token_data.name or token_data.sub,
        title=token_data.title or "",
        role=token_data.role,
        partner_id=token_data.partner_id
    )


def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    if actor.role != ActorRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access Forbidden. Only organizers can perform this action."
        )
    return actor


def require_partner(actor: Actor = Depends(get_current_actor)) -> Actor:
    if actor.role != ActorRole.PARTNER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access Forbidden. Only partners can perform this action."
        )
    return actor
