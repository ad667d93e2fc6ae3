"""Specialty and room views; reads for everyone signed in, writes for admins."""
from __future__ import annotations

from django.db.models import Q
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated

from ..models import Department, Room, Specialty
from ..permissions import IsAdminOrReadOnly
from ..responses import created_response, get_or_404, paginated_response, success_response
from ..serializers.departments import RoomSerializer, SpecialtySerializer
from ..services import departments as svc
from ..services import ids
from ..services.audit import log_action


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminOrReadOnly])
def specialties(request):
    if request.method == 'POST':
        s = SpecialtySerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        spec = svc.create_specialty(
            name=vd['name'],
            code=vd.get('code', ''),
            department=vd.get('department'),
            description=vd.get('description', ''),
        )
        return created_response(svc.format_specialty(spec), message='Specialty created')

    qs = Specialty.objects.filter(is_active=True)
    department_id = request.query_params.get('department_id')
    if department_id:
        qs = qs.filter(department_id=department_id)
    search = request.query_params.get('search')
    if search:
        qs = qs.filter(Q(name__icontains=search) | Q(code__icontains=search))
    return paginated_response(request, qs, svc.format_specialty)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminOrReadOnly])
def specialty_detail(request, specialty_id: str):
    spec = get_or_404(Specialty.objects.all(), 'Specialty', pk=specialty_id)
    if request.method == 'GET':
        return success_response(svc.format_specialty(spec))
    if request.method == 'DELETE':
        spec.is_active = False
        spec.save(update_fields=['is_active', 'updated_at'])
        return success_response(svc.format_specialty(spec), message='Specialty deactivated')

    s = SpecialtySerializer(spec, data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    for key, value in s.validated_data.items():
        if key == 'code':
            # an emptied code is derived again from the name
            value = (value or ids.specialty_code(s.validated_data.get('name', spec.name))).upper()
        setattr(spec, key, value)
    spec.save()
    return success_response(svc.format_specialty(spec), message='Specialty updated')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminOrReadOnly])
def rooms(request):
    if request.method == 'POST':
        s = RoomSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        room = svc.create_room(**s.validated_data)
        log_action(user=request.user, action='room_create', object_type='room', object_id=room.room_id)
        return created_response(svc.format_room(room), message='Room created')

    qs = Room.objects.filter(is_active=True)
    params = request.query_params
    if params.get('department_id'):
        qs = qs.filter(department_id=params['department_id'])
    if params.get('room_type'):
        qs = qs.filter(room_type=params['room_type'])
    if params.get('status'):
        qs = qs.filter(status=params['status'])
    return paginated_response(request, qs, svc.format_room)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminOrReadOnly])
def room_detail(request, room_id: str):
    room = get_or_404(Room.objects.all(), 'Room', pk=room_id)
    if request.method == 'GET':
        return success_response(svc.format_room(room))
    if request.method == 'DELETE':
        room.is_active = False
        room.save(update_fields=['is_active', 'updated_at'])
        log_action(user=request.user, action='room_deactivate', object_type='room', object_id=room.room_id)
        return success_response(svc.format_room(room), message='Room deactivated')

    s = RoomSerializer(room, data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    fields = dict(s.validated_data)
    department = fields.get('department', room.department)
    number = fields.get('room_number', room.room_number)
    clash = Room.objects.filter(department=department, room_number=number).exclude(pk=room.pk)
    if clash.exists():
        raise ValidationError({'room_number': 'Room number already exists in this department'})
    for key, value in fields.items():
        setattr(room, key, value)
    room.save()
    return success_response(svc.format_room(room), message='Room updated')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def room_availability(request):
    qs = Room.objects.filter(is_active=True, status='available')
    params = request.query_params
    if params.get('department_id'):
        qs = qs.filter(department_id=params['department_id'])
    if params.get('room_type'):
        qs = qs.filter(room_type=params['room_type'])
    return success_response([svc.format_room(r) for r in qs])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def room_stats(request):
    department = None
    if request.query_params.get('department_id'):
        department = get_or_404(Department.objects.all(), 'Department', pk=request.query_params['department_id'])
    return success_response(svc.room_stats(department))
