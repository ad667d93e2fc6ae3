from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from ..models import Notification, User
from ..permissions import IsAdminRole
from ..responses import get_or_404, paginated_response, success_response
from ..serializers.reception import BroadcastSerializer
from ..services import notifications as svc
from ..services.audit import log_action

TRUTHY = ('1', 'true', 'yes')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notifications(request):
    qs = Notification.objects.filter(recipient=request.user)
    if request.query_params.get('unread', '').lower() in TRUTHY:
        qs = qs.filter(is_read=False)
    kind = request.query_params.get('type')
    if kind:
        qs = qs.filter(notification_type=kind)
    return paginated_response(request, qs, svc.format_notification)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def unread_count(request):
    return success_response({'unread': svc.unread_count(request.user)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def mark_read(request, notification_id: int):
    n = get_or_404(Notification.objects.filter(recipient=request.user), 'Notification', pk=notification_id)
    return success_response(svc.format_notification(svc.mark_read(n)))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def mark_all_read(request):
    return success_response({'updated': svc.mark_all_read(request.user)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def broadcast(request):
    """Send a system notification to every active user, or to one role."""
    s = BroadcastSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    users = User.objects.filter(is_active=True)
    if vd.get('role'):
        users = users.filter(role=vd['role'])
    sent = svc.broadcast(users, title=vd['title'], message=vd['message'], data=vd.get('data'))
    log_action(user=request.user, action='notification_broadcast', object_type='notification',
               detail={'role': vd.get('role'), 'recipients': sent})
    return success_response({'recipients': sent}, message='Broadcast sent')
