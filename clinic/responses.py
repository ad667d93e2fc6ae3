"""Response envelope and pagination helpers shared by every view."""
from __future__ import annotations

from django.utils import timezone
from rest_framework import serializers
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def _timestamp() -> str:
    return timezone.now().isoformat()


def success_response(data=None, *, message: str | None = None, pagination: dict | None = None,
                     status: int = 200) -> Response:
    body: dict[str, object] = {'success': True, 'data': data}
    if pagination is not None:
        body['pagination'] = pagination
    if message:
        body['message'] = message
    body['timestamp'] = _timestamp()
    return Response(body, status=status)


def created_response(data=None, *, message: str | None = None) -> Response:
    return success_response(data, message=message, status=201)


def error_response(code: str, message: str, *, details=None, status: int = 400) -> Response:
    err: dict[str, object] = {'code': code, 'message': message}
    if details is not None:
        err['details'] = details
    return Response({'success': False, 'error': err, 'timestamp': _timestamp()}, status=status)


def int_param(params, name: str, default: int, *, minimum: int = 1, maximum: int | None = None) -> int:
    raw = params.get(name)
    if raw in (None, ''):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise serializers.ValidationError({name: 'Must be an integer.'})
    if value < minimum:
        raise serializers.ValidationError({name: f'Must be at least {minimum}.'})
    if maximum is not None:
        value = min(value, maximum)
    return value


def paginate(request, qs, *, default_limit: int = DEFAULT_LIMIT):
    """Slice ``qs`` by ``page``/``limit`` query params.

    Returns the page of objects and the pagination block
    ``{page, limit, total, totalPages, hasNext, hasPrev}``.
    """
    page = int_param(request.query_params, 'page', 1)
    limit = int_param(request.query_params, 'limit', default_limit, maximum=MAX_LIMIT)
    total = qs.count() if hasattr(qs, 'count') and not isinstance(qs, list) else len(qs)
    total_pages = (total + limit - 1) // limit if total else 0
    start = (page - 1) * limit
    items = qs[start:start + limit]
    return items, {
        'page': page,
        'limit': limit,
        'total': total,
        'totalPages': total_pages,
        'hasNext': page < total_pages,
        'hasPrev': page > 1,
    }


def paginated_response(request, qs, formatter, *, default_limit: int = DEFAULT_LIMIT) -> Response:
    items, pagination = paginate(request, qs, default_limit=default_limit)
    return success_response([formatter(obj) for obj in items], pagination=pagination)


def get_or_404(qs, label: str, **lookup):
    obj = qs.filter(**lookup).first()
    if obj is None:
        raise NotFound(f'{label} not found')
    return obj
