from app.schemas.common import ErrorOut


_ERROR_EXAMPLES: dict[int, str] = {
    400: "Bad request",
    401: "Unauthorized",
    403: "Insufficient role for this action",
    404: "Resource not found",
    500: "Internal server error",
}


def error_responses(*status_codes: int) -> dict[int, dict]:
    responses: dict[int, dict] = {}
    for status_code in status_codes:
        message = _ERROR_EXAMPLES.get(status_code, "HTTP error")
        responses[status_code] = {
            "model": ErrorOut,
            "description": message,
            "content": {
                "application/json": {
                    "example": {
                        "success": False,
                        "message": message,
                        "request_id": "request-id",
                        "details": None,
                    }
                }
            },
        }
    return responses
