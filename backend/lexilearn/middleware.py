"""
Request middleware: correlation ids and access logging
"""
import logging
import time
from uuid import uuid4

from .config_log import request_id_ctx

logger = logging.getLogger(__name__)


class RequestIDMiddleware:
    """
    Tag each request with an id and log one access line for it.

    The id comes from the client's X-Request-ID header when present and is
    generated otherwise. It is bound to the logging context for the duration
    of the request and echoed back on the response.
    """
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        rid = request.headers.get('X-Request-ID') or uuid4().hex[:12]
        token = request_id_ctx.set(rid)
        started = time.monotonic()
        try:
            response = self.get_response(request)
            elapsed_ms = (time.monotonic() - started) * 1000
            logger.info(f'{request.method} {request.get_full_path()} {response.status_code} {elapsed_ms:.1f}ms')
        finally:
            request_id_ctx.reset(token)

        response['X-Request-ID'] = rid
        return response
