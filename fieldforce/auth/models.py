import uuid
from dataclasses import dataclass
from pydantic import BaseModel, Field


class SignIn(BaseModel):
    email: str = Field(..., examples=["salesman@example.com"])
    password: str = Field(..., min_length=1)


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated actor attached to request.state by the auth middleware."""
    id: int
    public_id: uuid.UUID
    email: str
    role: str
    full_name: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
