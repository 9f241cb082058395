import io
from datetime import datetime, timedelta

import jwt
from fastapi import UploadFile
from starlette.datastructures import Headers

from app.core.config import settings
from app.models.auth import Actor


def make_upload(filename: str = "banner.pdf", content: bytes = b"%PDF-1.4 test",
                content_type: str = "application/pdf") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type})
    )


def make_token(actor: Actor, expires_in: timedelta = timedelta(hours=1), secret: str = None) -> str:
    claims = {
        "sub": actor.email,
        "role": actor.role.value,
        "name": actor.name,
        "title": actor.title,
        "exp": datetime.utcnow() + expires_in,
    }
    if actor.partner_id:
        claims["partner_id"] = str(actor.partner_id)
    return jwt.encode(claims, secret or settings.secret_key, algorithm="HS256")


def auth_headers(actor: Actor) -> dict:
    return {"Authorization": f"Bearer {make_token(actor)}"}
