"""Helpers shared by the repositories: object-id parsing and driver error translation."""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Tuple

from bson import ObjectId
from pymongo.errors import DuplicateKeyError, PyMongoError

from finsolvz.exceptions import ConflictError, DatabaseError, ValidationError

logger = logging.getLogger(__name__)


def is_object_id(value: Any) -> bool:
    """True for a 24-character hex string (the only accepted textual id form)."""
    return isinstance(value, str) and len(value) == 24 and ObjectId.is_valid(value)


def parse_object_id(value: Any, code: str, label: str, field: Optional[str] = None) -> ObjectId:
    """
    Convert a hex string to an ObjectId or raise a 400 with the caller's code.

    Example:
        parse_object_id("abc", "INVALID_COMPANY_ID", "company")
        → ValidationError(code="INVALID_COMPANY_ID", message="Invalid company ID")
    """
    if isinstance(value, ObjectId):
        return value
    if not is_object_id(value):
        raise ValidationError(message=f"Invalid {label} ID", code=code, field=field)
    return ObjectId(value)


def parse_object_ids(values: List[Any], code: str, label: str, field: Optional[str] = None) -> List[ObjectId]:
    return [parse_object_id(v, code, label, field) for v in values]


@contextmanager
def store_errors(operation: str, conflict: Optional[Tuple[str, str]] = None) -> Iterator[None]:
    """
    Translate driver exceptions raised inside the block.

    Args:
        operation: Short description used in logs and error details
        conflict:  (code, message) for a unique-index violation; without it a
                   duplicate key is reported as a plain database error
    """
    try:
        yield
    except DuplicateKeyError as e:
        if conflict is None:
            logger.error("Unexpected duplicate key during %s: %s", operation, e)
            raise DatabaseError(details={"operation": operation}, cause=e) from e
        code, message = conflict
        raise ConflictError(message=message, code=code, cause=e) from e
    except PyMongoError as e:
        logger.error("Database error during %s: %s", operation, e)
        raise DatabaseError(details={"operation": operation}, cause=e) from e
