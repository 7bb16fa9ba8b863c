"""
Custom middleware for API request logging
"""
import logging
import time

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware:
    """
    Logs method, path, status and duration of every /api/ request.
    Server errors are logged at ERROR so they show up without DEBUG.
    """
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        started = time.monotonic()
        response = self.get_response(request)

        if request.path.startswith('/api/'):
            elapsed_ms = (time.monotonic() - started) * 1000
            message = f"{request.method} {request.path} -> {response.status_code} ({elapsed_ms:.0f}ms)"
            if response.status_code >= 500:
                logger.error(message)
            else:
                logger.info(message)

        return response
