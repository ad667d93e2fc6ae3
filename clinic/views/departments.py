"""
Department management views.

Departments form a tree through ``parent``. Anyone signed in may read
them; only administrators may create, change or deactivate one.
Deleting is a soft deactivate and is refused while active doctors
still belong to the department.
"""
from __future__ import annotations

from django.db.models import Q
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from ..models import Department
from ..permissions import IsAdminOrReadOnly
from ..responses import created_response, get_or_404, paginate, paginated_response, success_response
from ..serializers.departments import DepartmentSerializer
from ..services import departments as svc
from ..services.audit import log_action
from ..services.doctors import format_doctor


def _active_filter(params, default: bool | None = True) -> bool | None:
    raw = params.get('is_active')
    if raw in ('true', '1'):
        return True
    if raw in ('false', '0'):
        return False
    if raw == 'all':
        return None
    return default


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminOrReadOnly])
def departments(request):
    """List departments or create one.

    ``GET`` accepts ``search`` (name or code) and ``is_active``
    (``true``/``false``/``all``, active only by default). The unfiltered
    active list is served from the cache.
    """
    if request.method == 'POST':
        s = DepartmentSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        dept = svc.create_department(**s.validated_data)
        log_action(user=request.user, action='department_create', object_type='department',
                   object_id=dept.department_id)
        return created_response(svc.format_department(dept), message='Department created')

    search = (request.query_params.get('search') or '').strip()
    active = _active_filter(request.query_params)
    if active is True and not search:
        items, pagination = paginate(request, svc.active_departments_payload())
        return success_response(list(items), pagination=pagination)
    qs = Department.objects.all()
    if active is not None:
        qs = qs.filter(is_active=active)
    if search:
        qs = qs.filter(Q(name__icontains=search) | Q(code__icontains=search))
    return paginated_response(request, qs, svc.format_department)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminOrReadOnly])
def department_detail(request, department_id: str):
    dept = get_or_404(Department.objects.all(), 'Department', pk=department_id)
    if request.method == 'GET':
        return success_response(svc.format_department(dept))
    if request.method == 'DELETE':
        svc.deactivate_department(dept)
        log_action(user=request.user, action='department_deactivate', object_type='department',
                   object_id=dept.department_id)
        return success_response(svc.format_department(dept), message='Department deactivated')

    s = DepartmentSerializer(dept, data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    fields = dict(s.validated_data)
    fields.pop('department_id', None)
    svc.update_department(dept, **fields)
    log_action(user=request.user, action='department_update', object_type='department',
               object_id=dept.department_id, detail={'fields': sorted(fields)})
    return success_response(svc.format_department(dept), message='Department updated')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def department_doctors(request, department_id: str):
    dept = get_or_404(Department.objects.all(), 'Department', pk=department_id)
    qs = dept.doctors.filter(is_active=True).select_related('user', 'department').order_by('user__full_name')
    return paginated_response(request, qs, format_doctor)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def department_rooms(request, department_id: str):
    dept = get_or_404(Department.objects.all(), 'Department', pk=department_id)
    qs = dept.rooms.filter(is_active=True)
    return paginated_response(request, qs, svc.format_room)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def department_specialties(request, department_id: str):
    dept = get_or_404(Department.objects.all(), 'Department', pk=department_id)
    return success_response([svc.format_specialty(s) for s in dept.specialties.filter(is_active=True)])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def department_children(request, department_id: str):
    dept = get_or_404(Department.objects.all(), 'Department', pk=department_id)
    qs = dept.children.all()
    active = _active_filter(request.query_params)
    if active is not None:
        qs = qs.filter(is_active=active)
    return success_response([svc.format_department(d) for d in qs])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def department_path(request, department_id: str):
    """Ancestor chain from the root down to and including this department."""
    dept = get_or_404(Department.objects.all(), 'Department', pk=department_id)
    chain = svc.ancestors(dept) + [dept]
    return success_response([svc.format_department(d) for d in chain])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def department_tree(request):
    include_inactive = request.query_params.get('include_inactive') in ('true', '1')
    return success_response(svc.department_tree(include_inactive=include_inactive))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def department_stats(request):
    return success_response(svc.department_stats())
