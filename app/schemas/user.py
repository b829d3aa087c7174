from pydantic import BaseModel, ConfigDict, EmailStr
from typing import Optional
from app.models.user import UserRole, VerificationStatus


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: EmailStr
    full_name: str
    role: UserRole
    verification_status: VerificationStatus
    is_active: bool
    onboarding_completed: bool = False
    company_name: Optional[str] = None
    phone: Optional[str] = None
