
from pydantic import BaseModel, EmailStr, Field

class AccountIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=32)

class MessageOut(BaseModel):
    message: str
    success: bool = True

class SessionOut(BaseModel):
    session: str
    success: bool = True
