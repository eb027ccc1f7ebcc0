from pydantic import BaseModel, EmailStr, Field


# 🔹 스태프 로그인 요청
class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


# 🔹 로그인 성공 응답 (expires_in: Access Token 유효 시간(초))
class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
