"""
Gateway views.

``/api/gateway/<service>/<path>`` forwards to the service that owns the
URL prefix; the downstream service authenticates the forwarded
``Authorization`` header itself.
"""
from __future__ import annotations

from django.http import HttpResponse
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import AllowAny, IsAuthenticated

from ..permissions import IsAdminRole
from ..responses import success_response
from ..services import gateway

PROXY_METHODS = ['GET', 'POST', 'PUT', 'PATCH', 'DELETE']


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def gateway_services(request):
    return success_response({
        'services': gateway.snapshot(),
        'routes': dict(gateway.PREFIX_ROUTES),
    })


@api_view(PROXY_METHODS)
@authentication_classes([])
@permission_classes([AllowAny])
def proxy(request, service: str, path: str = ''):
    name = gateway.resolve(service)
    if name is None:
        raise NotFound(f'Unknown service: {service}')
    headers = {
        'Authorization': request.META.get('HTTP_AUTHORIZATION', ''),
        'Content-Type': request.META.get('CONTENT_TYPE', ''),
        'Accept': request.META.get('HTTP_ACCEPT', ''),
        'X-Request-ID': request.META.get('HTTP_X_REQUEST_ID', ''),
    }
    resp = gateway.forward(
        name, service, path,
        method=request.method,
        query=request.META.get('QUERY_STRING', ''),
        body=request._request.body,
        headers=headers,
    )
    return HttpResponse(
        resp.content,
        status=resp.status_code,
        content_type=resp.headers.get('Content-Type', 'application/json'),
    )
