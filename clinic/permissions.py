"""
Role based permission classes and object scope helpers.
"""
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import BasePermission, SAFE_METHODS

STAFF_ROLES = {"admin", "doctor", "receptionist"}
FRONT_DESK_ROLES = {"admin", "receptionist"}
CLINICAL_ROLES = {"admin", "doctor"}


def user_role(user) -> str | None:
    """Return the effective role; Django superusers act as admins."""
    if not (user and getattr(user, "is_authenticated", False)):
        return None
    if getattr(user, "is_superuser", False):
        return "admin"
    return getattr(user, "role", None)


class HasRole(BasePermission):
    roles: set[str] = set()

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return user_role(getattr(request, "user", None)) in self.roles


class IsAdminRole(HasRole):
    """Allow access only to administrators."""
    roles = {"admin"}


class IsDoctorRole(HasRole):
    roles = {"doctor"}


class IsPatientRole(HasRole):
    """Allow access only to users with the patient role."""
    roles = {"patient"}


class IsStaffRole(HasRole):
    """Admins, doctors and receptionists."""
    roles = STAFF_ROLES


class IsFrontDesk(HasRole):
    roles = FRONT_DESK_ROLES


class IsClinician(HasRole):
    roles = CLINICAL_ROLES


class ReadOnly(BasePermission):
    """Allow read-only access (GET, HEAD, OPTIONS)."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return request.method in SAFE_METHODS


class IsAdminOrReadOnly(BasePermission):
    """Any authenticated user may read; only admins may write."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        if request.method in SAFE_METHODS:
            return bool(user and user.is_authenticated)
        return user_role(user) == "admin"


def ensure_patient_scope(user, patient) -> None:
    """Patients may only touch their own data."""
    if user_role(user) == "patient" and patient.user_id != user.id:
        raise PermissionDenied("You can only access your own records")


def ensure_doctor_scope(user, doctor) -> None:
    """Doctors may only manage their own profile; admins manage all."""
    role = user_role(user)
    if role == "admin":
        return
    if role == "doctor" and doctor.user_id == user.id:
        return
    raise PermissionDenied("You can only manage your own doctor profile")


def current_patient(user):
    """The caller's patient profile; 403 when the caller is not a patient."""
    profile = getattr(user, "patient_profile", None) if user_role(user) == "patient" else None
    if profile is None:
        raise PermissionDenied("Patient profile required")
    return profile


def current_doctor(user):
    profile = getattr(user, "doctor_profile", None) if user_role(user) == "doctor" else None
    if profile is None:
        raise PermissionDenied("Doctor profile required")
    return profile
