"""
Error mapping helpers shared by services and main.py.

Database results are turned into HTTPExceptions here; semantic validation
failures are raised as RequestValidationError so they share the field-level
400 body produced by the handler in main.py.
"""

from fastapi import HTTPException, status
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict, List, Optional
import logging

from app.database.repository import QueryResult

logger = logging.getLogger(__name__)

VALIDATION_MESSAGE = "Validation failed"
_VALUE_ERROR_PREFIX = "Value error, "


def raise_for_result(
    result: QueryResult,
    not_found: str = "Resource not found",
    failure: str = "Database operation failed"
) -> Any:
    """Return result.data, or raise 404 for not-found and 500 for any other error."""
    if result.error is None:
        return result.data
    if result.error.is_not_found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=not_found)
    logger.error(f"{failure}: {result.error.message}")
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=failure)


def validation_error(field: str, message: str) -> RequestValidationError:
    return RequestValidationError([{
        "loc": ("body", field),
        "msg": message,
        "type": "value_error",
    }])


def format_validation_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Flatten pydantic errors into [{"field", "message"}], dropping the body/query prefix."""
    details = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path", "form"):
            loc = loc[1:]
        message = str(error.get("msg", "Invalid value"))
        if message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX):]
        details.append({"field": ".".join(loc) or "body", "message": message})
    return details


def validation_body(errors: List[Dict[str, Any]], message: Optional[str] = None) -> Dict[str, Any]:
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": message or VALIDATION_MESSAGE,
            "details": format_validation_errors(errors),
        }
    }
