import logging

from extensions import db
from models import ClassSection, User
from models.user import ROLES
from services.errors import Conflict, NotFound, ValidationError, persistence_guard
from utils.password_utils import hash_password
from utils.validators import require_email, require_group, to_int

logger = logging.getLogger(__name__)


def list_users():
    return User.query.order_by(User.created_at.desc(), User.id.desc()).all()


@persistence_guard("Error creating user")
def create_user(data):
    name = (data.get("name") or "").strip()
    email = data.get("email")
    password = data.get("password")
    role = data.get("role")

    if not name or not email or not password or not role:
        raise ValidationError("All fields required")
    if role not in ROLES:
        raise ValidationError("Invalid role")
    email = require_email(email)

    group_name = data.get("group_name")
    if group_name:
        require_group(group_name)

    if User.query.filter_by(email=email).first():
        raise Conflict("Email already exists")

    # accounts created by an administrator skip e-mail verification
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        group_name=group_name or None,
        email_verified=True
    )
    db.session.add(user)
    db.session.commit()
    logger.info("Created %s account %s", role, email)
    return user


@persistence_guard("Error deleting user")
def delete_user(user_id):
    user = db.session.get(User, to_int(user_id, "id"))
    if not user:
        raise NotFound("User not found")

    owned = ClassSection.query.filter_by(teacher_id=user.id).count()
    if owned:
        raise Conflict(f"Teacher still owns {owned} class(es); reassign or delete them first")

    db.session.delete(user)
    db.session.commit()
    logger.info("Deleted user %s", user_id)


@persistence_guard("Error updating student group")
def set_group(user_id, group_name):
    require_group(group_name)
    user = db.session.get(User, to_int(user_id, "userId"))
    if not user:
        raise NotFound("User not found")
    user.group_name = group_name
    db.session.commit()
    return user


@persistence_guard("Error updating student groups")
def bulk_set_group(user_ids, group_name):
    if not user_ids or not isinstance(user_ids, list):
        raise ValidationError("userIds array is required")
    require_group(group_name)

    ids = [to_int(user_id, "userIds") for user_id in user_ids]
    users = User.query.filter(User.id.in_(ids)).all()
    for user in users:
        user.group_name = group_name
    db.session.commit()
    logger.info("Assigned %d user(s) to group %s", len(users), group_name)
    return users
