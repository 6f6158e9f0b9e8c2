from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    """Request body for registering for an event. All fields optional."""

    contact_number: str | None = Field(default=None, max_length=50)
    contact_email: EmailStr | None = None
    notes: str | None = None
