from enum import Enum


class Role(str, Enum):
    """Roles a user record can hold"""

    ADMIN = "admin"
    USER = "user"
