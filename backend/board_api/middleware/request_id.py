"""
Request correlation for the contract layer.

Every request gets an id on ``g.request_id``; the envelope composer stamps
it into ``meta.requestId`` and ``ApiError.requestId``, and it is echoed
back in the X-Request-ID response header. A caller-supplied id is reused
when it looks like an id (short, printable, no whitespace), otherwise a
fresh uuid4 is minted.
"""

import re
import uuid
from flask import Flask, request, g


REQUEST_ID_HEADER = 'X-Request-ID'

_CALLER_ID = re.compile(r'^[\x21-\x7e]{1,128}$')


def _accept_caller_id(value):
    return value if value and _CALLER_ID.match(value) else None


def setup_request_id_middleware(app: Flask) -> None:
    """Install the before/after hooks that assign and echo request ids."""

    @app.before_request
    def assign_request_id():
        g.request_id = _accept_caller_id(request.headers.get(REQUEST_ID_HEADER)) or str(uuid.uuid4())

    @app.after_request
    def echo_request_id(response):
        request_id = getattr(g, 'request_id', None)
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id
        return response
