import logging

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from extensions import db
from models.user import User
from services.errors import (
    AcadenceError, Conflict, NotFound, ValidationError, persistence_guard
)
from utils.password_utils import hash_password, verify_password
from utils.validators import normalize_email, require_email

logger = logging.getLogger(__name__)

SIGNUP_ROLES = ("student", "teacher")
MIN_PASSWORD_LENGTH = 6


class AuthenticationFailed(AcadenceError):
    status_code = 401


class EmailNotVerified(AcadenceError):
    status_code = 403


def authenticate_user(email: str, password: str):
    if not email or not password:
        raise ValidationError("Email and password are required")
    email = require_email(email)

    user = User.query.filter_by(email=email).first()
    if not user or not verify_password(password, user.password_hash):
        raise AuthenticationFailed("Invalid credentials")

    if user.role != "admin" and not user.email_verified:
        raise EmailNotVerified(
            "Please verify your email before logging in. Check your inbox for the verification link.",
            emailNotVerified=True,
            email=email
        )

    return user


@persistence_guard("Error creating account")
def register_user(name, email, password, role):
    if not name or not email or not password or not role:
        raise ValidationError("All fields are required")
    email = require_email(email)
    role = str(role).lower()
    if role not in SIGNUP_ROLES:
        raise ValidationError("Role must be 'student' or 'teacher'")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    if User.query.filter_by(email=email).first():
        raise Conflict("Email already exists")

    user = User(
        name=name.strip(),
        email=email,
        password_hash=hash_password(password),
        role=role,
        email_verified=False
    )
    db.session.add(user)
    db.session.commit()

    send_verification_link(user)
    return user


def _serializer():
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt="email-verify")


def issue_verification_token(user):
    return _serializer().dumps({"id": user.id, "email": user.email})


def send_verification_link(user):
    # delivery belongs to the mail provider; the link is handed off via the log
    token = issue_verification_token(user)
    link = f"{current_app.config['FRONTEND_URL']}/verify-email?token={token}"
    logger.info("Verification link for %s: %s", user.email, link)
    return token


def resend_verification(email):
    if not email:
        raise ValidationError("Email is required")
    user = User.query.filter_by(email=normalize_email(email)).first()
    if not user:
        raise NotFound("No account registered with this email")
    if user.email_verified:
        raise Conflict("Email is already verified")
    return send_verification_link(user)


@persistence_guard("Error verifying email")
def confirm_verification(token):
    if not token:
        raise ValidationError("Verification token is required")
    try:
        data = _serializer().loads(token, max_age=current_app.config["VERIFICATION_MAX_AGE"])
    except SignatureExpired:
        raise ValidationError("Verification link has expired")
    except BadSignature:
        raise ValidationError("Invalid verification link")

    user = db.session.get(User, data.get("id"))
    if not user or user.email != data.get("email"):
        raise NotFound("Account not found")

    if not user.email_verified:
        user.email_verified = True
        db.session.commit()
        logger.info("Email verified for user %s", user.id)
    return user
