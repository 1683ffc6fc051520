"""
Identity schemas shared by the connection gate and its credential delegate.
"""

from pydantic import BaseModel, ConfigDict, Field


class Identity(BaseModel):
    """Who is behind a verified credential."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(description="User ID")
    user_name: str = Field(description="Display name")
    role: str = Field(description="Account role (admin, editor or viewer)")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
