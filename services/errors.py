import logging
from functools import wraps

from sqlalchemy.exc import SQLAlchemyError

from extensions import db

logger = logging.getLogger(__name__)


class AcadenceError(Exception):
    """Base for errors that map onto an HTTP status and a JSON body."""

    status_code = 500

    def __init__(self, message, error=None, status_code=None, **payload):
        super().__init__(message)
        self.message = message
        self.error = error
        self.payload = payload
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        body = {"message": self.message}
        if self.error:
            body["error"] = self.error
        body.update(self.payload)
        return body


class ValidationError(AcadenceError):
    status_code = 400


class PermissionDenied(AcadenceError):
    status_code = 403


class NotFound(AcadenceError):
    status_code = 404


class Conflict(AcadenceError):
    # duplicate enrollments have always been answered with 400
    status_code = 400


class PersistenceError(AcadenceError):
    status_code = 500


def persistence_guard(message):
    """Roll back and re-raise store and unexpected failures as PersistenceError."""

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except AcadenceError:
                db.session.rollback()
                raise
            except SQLAlchemyError as e:
                db.session.rollback()
                logger.exception("%s: %s", message, func.__name__)
                raise PersistenceError(message, error=str(e)) from e
            except Exception as e:
                db.session.rollback()
                logger.exception("Unexpected failure in %s", func.__name__)
                raise PersistenceError(message, error=str(e)) from e
        return wrapper
    return decorator
