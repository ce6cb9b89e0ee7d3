from src.models.base import AuditMixin, Base, OrganizationScoped
from src.models.enums import SubscriptionStatus, UserRole, UserStatus
from src.models.organization import Organization
from src.models.user import User

__all__ = [
    "AuditMixin",
    "Base",
    "OrganizationScoped",
    "Organization",
    "User",
    "SubscriptionStatus",
    "UserRole",
    "UserStatus",
]
