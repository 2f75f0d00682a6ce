import logging

from fastapi.responses import JSONResponse

from bookings.application.exceptions import BookingError, InvalidTransitionError

logger = logging.getLogger(__name__)

_STATUS_BY_CLASSIFICATION = {
    "validation": 400,
    "not-found": 404,
    "transport": 502,
}


def error_response(error: BookingError) -> JSONResponse:
    if isinstance(error, InvalidTransitionError):
        status = 409
    else:
        status = _STATUS_BY_CLASSIFICATION.get(error.classification, 500)

    if status >= 500:
        logger.error(
            "Request failed",
            extra={"error": repr(error), "status": status},
        )
    return JSONResponse(status_code=status, content={"error": str(error)})
