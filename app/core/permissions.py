"""
Staff role capabilities for the dashboard
"""
from app.models.user import StaffRole


ALL_ROLES = tuple(StaffRole)

# Roles allowed to perform each dashboard action
CHECK_IN_ROLES = (
    StaffRole.OWNER,
    StaffRole.ADMIN,
    StaffRole.TREASURER,
    StaffRole.SECRETARY,
    StaffRole.VOLUNTEER,
)
MEMBER_EDIT_ROLES = (StaffRole.OWNER, StaffRole.ADMIN, StaffRole.SECRETARY)
MEMBER_DELETE_ROLES = (StaffRole.OWNER, StaffRole.ADMIN)
PAYMENT_VIEW_ROLES = (StaffRole.OWNER, StaffRole.ADMIN, StaffRole.TREASURER)
PAYMENT_CREATE_ROLES = (StaffRole.OWNER, StaffRole.ADMIN, StaffRole.TREASURER)
ANNOUNCEMENT_EDIT_ROLES = (StaffRole.OWNER, StaffRole.ADMIN, StaffRole.SECRETARY)
ORG_SETTINGS_ROLES = (StaffRole.OWNER, StaffRole.ADMIN)


def can_author_announcements(role: StaffRole) -> bool:
    return role in ANNOUNCEMENT_EDIT_ROLES
