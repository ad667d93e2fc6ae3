from django.conf import settings
from django.db import DatabaseError, connections
from django.http import JsonResponse
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny

from clinic.responses import success_response
from clinic.services import gateway


def _db_ok() -> bool:
    try:
        with connections['default'].cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
        return bool(row and row[0] == 1)
    except DatabaseError:
        return False


def healthz(request):
    ok = _db_ok()
    return JsonResponse({'ok': ok, 'db': ok}, status=200 if ok else 500)


@api_view(['GET'])
@permission_classes([AllowAny])
def health(request):
    ok = _db_ok()
    data = {
        'service': settings.HOSPITAL_API_NAME,
        'version': settings.HOSPITAL_API_VERSION,
        'status': 'healthy' if ok else 'unhealthy',
        'database': 'connected' if ok else 'unavailable',
        'time': timezone.now().isoformat(),
    }
    return success_response(data, status=200 if ok else 503)


@api_view(['GET'])
@permission_classes([AllowAny])
def services_health(request):
    results = [s.as_dict() for s in gateway.check_all()]
    overall = 'healthy' if all(r['status'] == 'healthy' for r in results) else 'degraded'
    return success_response({'status': overall, 'services': results})
