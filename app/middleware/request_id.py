"""
Request ID middleware for request tracing and logging
"""
import logging
import uuid

logger = logging.getLogger(__name__)


class RequestIdMiddleware:
    """
    WSGI middleware that tags every request with an X-Request-ID

    An incoming X-Request-ID (from a load balancer or the cron caller) is
    reused; otherwise a new one is generated. The id is echoed back in the
    response headers and logged with the final status line.
    """

    def __init__(self, app):
        self.app = app

    def __call__(self, environ, start_response):
        request_id = environ.get('HTTP_X_REQUEST_ID') or str(uuid.uuid4())
        environ['request_id'] = request_id

        def custom_start_response(status, headers, exc_info=None):
            headers.append(('X-Request-ID', request_id))
            logger.debug("[%s] %s %s -> %s", request_id,
                         environ.get('REQUEST_METHOD'), environ.get('PATH_INFO'), status)
            return start_response(status, headers, exc_info)

        return self.app(environ, custom_start_response)
