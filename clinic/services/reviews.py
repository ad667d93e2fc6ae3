"""Doctor reviews and the rating aggregate cached on :class:`Doctor`."""
from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from django.core.cache import cache
from django.db import transaction
from django.db.models import Avg, Count, F

from clinic.exceptions import BusinessRuleError
from clinic.models import Appointment, Doctor, DoctorReview, Patient

logger = logging.getLogger(__name__)

STAR_KEYS = {5: 'five_star', 4: 'four_star', 3: 'three_star', 2: 'two_star', 1: 'one_star'}


def stats_cache_key(doctor_id: str) -> str:
    return f'reviews:stats:{doctor_id}'


def format_review(r: DoctorReview) -> dict:
    return {
        'id': r.id,
        'doctor_id': r.doctor_id,
        'patient_id': r.patient_id,
        'patient_name': r.patient.user.display_name,
        'appointment_id': r.appointment_id,
        'rating': r.rating,
        'comment': r.comment,
        'is_verified': r.is_verified,
        'helpful_count': r.helpful_count,
        'created_at': r.created_at.isoformat(),
    }


def _two_places(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


def recompute_rating(doctor: Doctor) -> Doctor:
    agg = doctor.reviews.aggregate(avg=Avg('rating'), n=Count('id'))
    doctor.rating = _two_places(agg['avg'])
    doctor.total_reviews = agg['n'] or 0
    doctor.save(update_fields=['rating', 'total_reviews', 'updated_at'])
    cache.delete(stats_cache_key(doctor.doctor_id))
    return doctor


def create_review(*, doctor: Doctor, patient: Patient, rating: int, comment: str = '',
                  appointment: Optional[Appointment] = None) -> DoctorReview:
    if appointment is not None:
        if appointment.patient_id != patient.pk or appointment.doctor_id != doctor.pk:
            raise BusinessRuleError('Appointment does not belong to this patient and doctor')
        if appointment.status != 'completed':
            raise BusinessRuleError('Only completed appointments can be reviewed')
        if DoctorReview.objects.filter(appointment=appointment).exists():
            raise BusinessRuleError('This appointment has already been reviewed')
    with transaction.atomic():
        review = DoctorReview.objects.create(
            doctor=doctor,
            patient=patient,
            appointment=appointment,
            rating=rating,
            comment=comment,
            is_verified=appointment is not None,
        )
        recompute_rating(doctor)
    logger.info("review %s for %s (rating=%s)", review.id, doctor.doctor_id, rating)
    return review


def update_review(review: DoctorReview, **fields) -> DoctorReview:
    with transaction.atomic():
        for key, value in fields.items():
            setattr(review, key, value)
        review.save()
        recompute_rating(review.doctor)
    return review


def delete_review(review: DoctorReview) -> None:
    doctor = review.doctor
    with transaction.atomic():
        review.delete()
        recompute_rating(doctor)


def mark_helpful(review: DoctorReview) -> DoctorReview:
    DoctorReview.objects.filter(pk=review.pk).update(helpful_count=F('helpful_count') + 1)
    review.refresh_from_db(fields=['helpful_count'])
    return review


def review_stats(doctor: Doctor) -> dict:
    key = stats_cache_key(doctor.doctor_id)
    cached = cache.get(key)
    if cached is not None:
        return cached
    distribution = {name: 0 for name in STAR_KEYS.values()}
    for row in doctor.reviews.values('rating').annotate(n=Count('id')):
        name = STAR_KEYS.get(row['rating'])
        if name:
            distribution[name] = row['n']
    agg = doctor.reviews.aggregate(avg=Avg('rating'), n=Count('id'))
    recent = doctor.reviews.select_related('patient__user').order_by('-created_at', '-id')[:5]
    payload = {
        'doctor_id': doctor.doctor_id,
        'total_reviews': agg['n'] or 0,
        'average_rating': float(_two_places(agg['avg'])),
        'rating_distribution': distribution,
        'recent_reviews': [format_review(r) for r in recent],
    }
    cache.set(key, payload, 300)
    return payload


def top_rated(limit: int = 10):
    return (
        Doctor.objects.filter(is_active=True, total_reviews__gt=0)
        .select_related('user', 'department')
        .order_by('-rating', '-total_reviews', 'doctor_id')[:limit]
    )
