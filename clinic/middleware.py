import logging
import uuid
from contextvars import ContextVar

request_id_var: ContextVar[str] = ContextVar('request_id', default='-')


class RequestContextMiddleware:
    """Tag each request with an id, echoed in ``X-Request-ID``."""
    HEADER = 'X-Request-ID'

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request_id = (request.headers.get(self.HEADER) or '').strip()[:64] or uuid.uuid4().hex
        request.request_id = request_id
        token = request_id_var.set(request_id)
        try:
            response = self.get_response(request)
        finally:
            request_id_var.reset(token)
        response[self.HEADER] = request_id
        return response


class RequestIdFilter(logging.Filter):
    """Expose the current request id as ``record.request_id``."""

    def filter(self, record):
        record.request_id = request_id_var.get()
        return True
