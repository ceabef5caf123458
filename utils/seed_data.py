import logging

from flask import current_app

from extensions import db
from models.user import User
from utils.password_utils import hash_password

logger = logging.getLogger(__name__)

DEFAULT_ADMINS = [
    {"name": "Admin One", "email": "admin1@acadence.com"},
    {"name": "Admin Two", "email": "admin2@acadence.com"},
    {"name": "Admin Three", "email": "admin3@acadence.com"},
]

DEFAULT_TEACHERS = [
    {"name": "Vijay Pradeep", "email": "vijay.pradeep@acadence.com"},
    {"name": "Vikas Shrivastav", "email": "vikas.shrivastav@acadence.com"},
    {"name": "Vanshika Mehta", "email": "vanshika.mehta@acadence.com"},
]


def seed_accounts(accounts, role, password):
    password_hash = hash_password(password)
    created = 0

    for a in accounts:
        existing = User.query.filter_by(email=a["email"]).first()

        if existing:
            existing.role = role
            existing.email_verified = True
            existing.password_hash = password_hash
        else:
            db.session.add(
                User(
                    name=a["name"],
                    email=a["email"],
                    password_hash=password_hash,
                    role=role,
                    email_verified=True
                )
            )
            created += 1

    db.session.commit()
    logger.info("%s accounts verified (%d new)", role.title(), created)
    return created


def run_seed():
    seed_accounts(DEFAULT_ADMINS, "admin", current_app.config["SEED_ADMIN_PASSWORD"])
    seed_accounts(DEFAULT_TEACHERS, "teacher", current_app.config["SEED_TEACHER_PASSWORD"])
