"""
Domain exceptions and the unified DRF exception handler.

Every error leaves the API as
``{"success": false, "error": {"code", "message", "details"?}, "timestamp"}``.
"""
from __future__ import annotations

import logging

from django.conf import settings
from rest_framework import exceptions
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler as drf_exception_handler

from .responses import error_response

logger = logging.getLogger(__name__)

STATUS_CODES = {
    400: 'bad_request',
    401: 'unauthorized',
    403: 'forbidden',
    404: 'not_found',
    405: 'method_not_allowed',
    415: 'unsupported_media_type',
    429: 'throttled',
}


class ClinicError(APIException):
    """Base for domain errors; ``details`` is passed through to the client."""
    status_code = 400
    default_code = 'bad_request'
    default_detail = 'Bad request'

    def __init__(self, detail=None, *, details=None):
        super().__init__(detail or self.default_detail, self.default_code)
        self.details = details


class ConflictError(ClinicError):
    default_code = 'conflict'
    default_detail = 'Time slot conflicts with existing appointment'


class InvalidTransition(ClinicError):
    default_code = 'invalid_transition'
    default_detail = 'Status transition not allowed'


class BusinessRuleError(ClinicError):
    default_code = 'business_rule'


class IdSequenceExhausted(ClinicError):
    status_code = 409
    default_code = 'id_sequence_exhausted'
    default_detail = 'No more identifiers available for this period'


class ServiceUnavailable(ClinicError):
    status_code = 503
    default_code = 'service_unavailable'
    default_detail = 'Service temporarily unavailable'


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view')
        logger.exception('Unhandled error in %s', getattr(view, '__class__', type(view)).__name__, exc_info=exc)
        message = str(exc) if settings.DEBUG else 'Internal server error'
        return error_response('server_error', message, status=500)

    details = None
    if isinstance(exc, ClinicError):
        code = exc.default_code
        message = str(exc.detail)
        details = exc.details
    elif isinstance(exc, exceptions.ValidationError):
        code = 'validation_error'
        message = 'Validation failed'
        details = resp.data
    else:
        code = STATUS_CODES.get(resp.status_code, 'api_error')
        if isinstance(resp.data, dict):
            message = str(resp.data.get('detail') or resp.data)
        else:
            message = str(resp.data)

    out = error_response(code, message, details=details, status=resp.status_code)
    for header in ('WWW-Authenticate', 'Retry-After'):
        if header in resp:
            out[header] = resp[header]
    return out
