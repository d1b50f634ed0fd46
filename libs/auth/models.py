from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class AuthUser(BaseModel):
    """
    The authenticated caller, decoded from the bearer token.

    Only used to attribute audit and renewal entries; deciding who may edit
    is handled upstream.
    """

    user_id: str = Field(..., alias="sub")
    email: Optional[EmailStr] = None
    role: str = "authenticated"

    model_config = ConfigDict(populate_by_name=True)
