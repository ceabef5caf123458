from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app


def create_access_token(user):
    """Sign a bearer token identifying the user; role is informational only."""
    expires = datetime.now(timezone.utc) + timedelta(
        hours=current_app.config["JWT_EXPIRES_HOURS"]
    )
    payload = {"id": user.id, "role": user.role, "exp": expires}
    return jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm="HS256")


def decode_access_token(token):
    # raises jwt.ExpiredSignatureError / jwt.InvalidTokenError
    return jwt.decode(token, current_app.config["JWT_SECRET"], algorithms=["HS256"])
