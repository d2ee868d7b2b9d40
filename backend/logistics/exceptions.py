import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler

from errors import DispatchError, InternalError

logger = logging.getLogger(__name__)


def dispatch_exception_handler(exc, context):
    """
    Map the domain error taxonomy onto HTTP responses:
    NotFound -> 404, ValidationError -> 400, ConflictError -> 409,
    InternalError -> 500. Everything else goes to DRF's default handler.
    """
    if isinstance(exc, DispatchError):
        if isinstance(exc, InternalError):
            logger.error(f"Internal error handling {context.get('view').__class__.__name__}: {exc}")
            return Response({"error": "Internal Server Error"}, status=exc.status_code)
        return Response({"error": exc.message or exc.__class__.__name__}, status=exc.status_code)

    return exception_handler(exc, context)
