from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated

from ..models import DoctorReview
from ..permissions import user_role
from ..responses import get_or_404, success_response
from ..serializers.doctors import ReviewUpdateSerializer
from ..services import reviews


def _ensure_author(user, review: DoctorReview) -> None:
    if user_role(user) == 'admin':
        return
    if review.patient.user_id != user.id:
        raise PermissionDenied('You can only change your own reviews')


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def review_detail(request, review_id: int):
    review = get_or_404(DoctorReview.objects.select_related('patient__user', 'doctor'), 'Review', pk=review_id)
    _ensure_author(request.user, review)
    if request.method == 'DELETE':
        reviews.delete_review(review)
        return success_response(None, message='Review deleted')
    s = ReviewUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    reviews.update_review(review, **s.validated_data)
    return success_response(reviews.format_review(review), message='Review updated')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def review_helpful(request, review_id: int):
    review = get_or_404(DoctorReview.objects.select_related('patient__user'), 'Review', pk=review_id)
    reviews.mark_helpful(review)
    return success_response(reviews.format_review(review))
