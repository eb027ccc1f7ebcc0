import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from school_cms.models.user import Role


# 🔹 관리자 사용자 생성 요청
class UserCreateRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: Role = Role.EDITOR
    is_active: bool = True


# 🔹 관리자 사용자 수정 요청 (None 이면 기존 값 유지)
class UserUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=6, max_length=128)
    role: Optional[Role] = None
    is_active: Optional[bool] = None


# 🔹 유저 응답용 (비밀번호 해시 제외)
class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    role: Role
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
