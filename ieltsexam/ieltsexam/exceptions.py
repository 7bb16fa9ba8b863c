"""
API error taxonomy
Every error leaving the API is one of these, rendered as
{"error": ..., "code": ...} with optional "fields" detail.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)

STATUS_CODES = {
    status.HTTP_400_BAD_REQUEST: 'validation_error',
    status.HTTP_401_UNAUTHORIZED: 'authentication_error',
    status.HTTP_403_FORBIDDEN: 'authorization_error',
    status.HTTP_404_NOT_FOUND: 'not_found',
    status.HTTP_409_CONFLICT: 'conflict',
}


class ValidationError(APIException):
    """Malformed or missing request fields"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid request data'
    default_code = 'validation_error'

    def __init__(self, detail=None, fields=None):
        super().__init__(detail)
        self.fields = fields or {}


class AuthenticationError(APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Authentication required'
    default_code = 'authentication_error'


class AuthorizationError(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You do not have permission to perform this action'
    default_code = 'authorization_error'


class NotFoundError(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found'
    default_code = 'not_found'


class ConflictError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflict with current state'
    default_code = 'conflict'


class UpstreamError(APIException):
    """
    AI or email provider failure.
    provider_detail is only shown to admins.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'An external service failed to process the request'
    default_code = 'upstream_error'

    def __init__(self, detail=None, provider_detail=None):
        super().__init__(detail)
        self.provider_detail = provider_detail


def _is_admin(request):
    user = getattr(request, 'user', None)
    return bool(user and user.is_authenticated and getattr(user, 'is_admin', False))


def api_exception_handler(exc, context):
    """Convert DRF and domain exceptions into the uniform error body"""
    response = exception_handler(exc, context)
    if response is None:
        return None

    code = STATUS_CODES.get(response.status_code) or getattr(exc, 'default_code', 'error')
    body = {'code': code}

    if isinstance(exc, ValidationError):
        body['error'] = str(exc.detail)
        if exc.fields:
            body['fields'] = exc.fields
    elif isinstance(exc, DRFValidationError):
        body['code'] = 'validation_error'
        if isinstance(response.data, dict):
            body['error'] = 'Invalid request data'
            body['fields'] = response.data
        else:
            body['error'] = ' '.join(str(item) for item in response.data)
    elif isinstance(exc, UpstreamError):
        request = context.get('request')
        body['error'] = str(exc.detail)
        if exc.provider_detail and _is_admin(request):
            body['providerDetail'] = exc.provider_detail
        logger.error(f"Upstream failure: {exc.provider_detail or exc.detail}")
    elif isinstance(response.data, dict) and 'detail' in response.data:
        body['error'] = str(response.data['detail'])
    else:
        body['error'] = str(response.data)

    response.data = body
    return response
