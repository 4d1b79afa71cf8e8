# storefront_core/schemas/common.py
from pydantic import BaseModel, Field


class OkResponse(BaseModel):
    ok: bool = Field(description="Always true")

    model_config = {"json_schema_extra": {"examples": [{"ok": True}]}}


class MemberResponse(BaseModel):
    id: str
    email: str
    name: str
