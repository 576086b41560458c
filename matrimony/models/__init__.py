"""
Matrimony Matching — ORM model registry.

Importing every model here ensures that Alembic (and any other tool that
inspects ``Base.metadata``) discovers all tables automatically.
"""

from matrimony.models.user import User
from matrimony.models.preference import PartnerPreference
from matrimony.models.attributes import (
    UserEducation,
    UserFamily,
    UserHealth,
    UserPersonal,
    UserProfession,
)
from matrimony.models.profile import Profile
from matrimony.models.connection import ConnectionRequest, ConnectionState, Notification
from matrimony.models.profile_view import ProfileView

__all__ = [
    "User",
    "PartnerPreference",
    "UserPersonal",
    "UserEducation",
    "UserProfession",
    "UserHealth",
    "UserFamily",
    "Profile",
    "ConnectionRequest",
    "ConnectionState",
    "Notification",
    "ProfileView",
]
