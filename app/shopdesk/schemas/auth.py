from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {"username_or_email": "owner@store.example", "password": "Secret123"},
            ]
        }
    }

    username_or_email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: str
    tenant_id: str | None
    trace_id: str


class MeResponse(BaseModel):
    id: str
    username: str
    email: str
    role: str
    tenant_id: str | None
    tenant_name: str | None = None
    features: list[str] = []
    trace_id: str
