"""
Role based access control for the census API.

Each role maps to a fixed set of capabilities. Views combine
``IsAuthenticated`` with one of the capability permission classes below;
safe methods only need an authenticated user with any known role.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS

from census.constants import ROLE_ADMIN, ROLE_DOCTOR, ROLE_NURSE, ROLE_VIEWER

EDIT_CENSUS = 'edit_census'
EDIT_NURSING_HANDOFF = 'edit_nursing_handoff'
EDIT_MEDICAL_HANDOFF = 'edit_medical_handoff'
SIGN_MEDICAL_HANDOFF = 'sign_medical_handoff'
SEND_CENSUS_EMAIL = 'send_census_email'
EXPORT_REPORTS = 'export_reports'
VIEW_AUDIT = 'view_audit'
MANAGE_FLAGS = 'manage_flags'

ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    ROLE_ADMIN: frozenset({
        EDIT_CENSUS, EDIT_NURSING_HANDOFF, EDIT_MEDICAL_HANDOFF, SIGN_MEDICAL_HANDOFF,
        SEND_CENSUS_EMAIL, EXPORT_REPORTS, VIEW_AUDIT, MANAGE_FLAGS,
    }),
    ROLE_NURSE: frozenset({
        EDIT_CENSUS, EDIT_NURSING_HANDOFF, EDIT_MEDICAL_HANDOFF, SEND_CENSUS_EMAIL, EXPORT_REPORTS,
    }),
    ROLE_DOCTOR: frozenset({SIGN_MEDICAL_HANDOFF}),
    ROLE_VIEWER: frozenset({EXPORT_REPORTS}),
}


def role_can(role: str | None, capability: str) -> bool:
    return capability in ROLE_PERMISSIONS.get(role or '', frozenset())


def user_can(user, capability: str) -> bool:
    if not (user and getattr(user, 'is_authenticated', False)):
        return False
    if getattr(user, 'is_superuser', False):
        return True
    return role_can(getattr(user, 'role', None), capability)


class CapabilityPermission(BasePermission):
    """Require ``capability`` for unsafe methods (and for reads if ``guard_reads``)."""
    capability: str = ''
    guard_reads = False

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, 'user', None)
        if not (user and user.is_authenticated):
            return False
        if request.method in SAFE_METHODS and not self.guard_reads:
            return getattr(user, 'role', None) in ROLE_PERMISSIONS or user.is_superuser
        return user_can(user, self.capability)


class CanEditCensus(CapabilityPermission):
    capability = EDIT_CENSUS


class CanEditNursingHandoff(CapabilityPermission):
    capability = EDIT_NURSING_HANDOFF


class CanEditMedicalHandoff(CapabilityPermission):
    capability = EDIT_MEDICAL_HANDOFF


class CanSignMedicalHandoff(CapabilityPermission):
    capability = SIGN_MEDICAL_HANDOFF


class CanSendCensusEmail(CapabilityPermission):
    capability = SEND_CENSUS_EMAIL
    guard_reads = True


class CanExportReports(CapabilityPermission):
    capability = EXPORT_REPORTS
    guard_reads = True


class CanViewAudit(CapabilityPermission):
    capability = VIEW_AUDIT
    guard_reads = True


class CanManageFlags(CapabilityPermission):
    capability = MANAGE_FLAGS


class CanManageConfig(CapabilityPermission):
    capability = MANAGE_FLAGS
    guard_reads = True
