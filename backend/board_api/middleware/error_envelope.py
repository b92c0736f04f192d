"""
Error envelope middleware - surface contract errors as ApiError bodies.

Response format:
{
    "error": {
        "code": "PAGINATION_INVALID",
        "message": "1 pagination error(s)",
        "details": {"violations": [...]},
        "requestId": "uuid"
    }
}
"""

import logging
from flask import Flask, jsonify, g
from werkzeug.exceptions import HTTPException

from board_api.contracts.errors import ERROR_STATUS, ContractViolation, CredentialLeak
from board_api.serializers.response import error_from_exception, wrap_error


logger = logging.getLogger('board_api.middleware.error')


def setup_error_handlers(app: Flask) -> None:
    """
    Set up standardized error handlers on Flask app.

    Handles:
    - ContractViolation subclasses (status from ERROR_STATUS)
    - Unhandled Python exceptions (INTERNAL_ERROR, 500)

    HTTP exceptions (404, 405, ...) keep Werkzeug's own responses.
    """

    @app.errorhandler(ContractViolation)
    def handle_contract_violation(error):
        request_id = getattr(g, 'request_id', None)

        log = logger.error if isinstance(error, CredentialLeak) else logger.warning
        log(
            f"Contract error {error.code}: {error.message}",
            extra={
                "event": "contract_error",
                "code": error.code,
                "request_id": request_id,
            }
        )

        response = jsonify({"error": error_from_exception(error)})
        return response, error.http_status

    @app.errorhandler(Exception)
    def handle_generic_error(error):
        if isinstance(error, HTTPException):
            return error

        request_id = getattr(g, 'request_id', None)

        # Log the full exception
        logger.exception(
            f"Unhandled error: {error}",
            extra={
                "event": "unhandled_error",
                "request_id": request_id,
                "error_type": type(error).__name__,
            }
        )

        response = jsonify({
            "error": wrap_error("INTERNAL_ERROR", "An unexpected error occurred"),
        })
        return response, ERROR_STATUS["INTERNAL_ERROR"]
