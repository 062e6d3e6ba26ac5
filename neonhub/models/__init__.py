from neonhub.models.base import Base
from neonhub.models.profile import Profile
from neonhub.models.repository import Repository, Visibility

__all__ = [
    "Base",
    "Profile",
    "Repository",
    "Visibility",
]
