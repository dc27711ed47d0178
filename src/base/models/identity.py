"""
Identity module.

Defines the authenticated caller of a request, decoded from a bearer
token and handed explicitly to authorization checks and route handlers.
"""

import uuid

from pydantic import BaseModel, ConfigDict, Field

from src.base.models.role import Role


class Identity(BaseModel):
    """
    The claims carried by a bearer token.

    Attributes:
        id: Identifier of the user record the token was issued for
        email: The user's email at issuance time
        role: The user's role at issuance time
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "12345678-1234-1234-1234-123456789012",
                "email": "user@example.com",
                "role": "user",
            }
        },
    )

    id: uuid.UUID = Field(..., description="Identifier of the authenticated user")
    email: str = Field(..., description="Email of the authenticated user")
    role: Role = Field(..., description="Role of the authenticated user")

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
