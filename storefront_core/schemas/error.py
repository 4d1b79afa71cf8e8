# storefront_core/schemas/error.py
from pydantic import BaseModel, ConfigDict, Field


class ErrorResponseBody(BaseModel):
    """Wire body of every error response. Field order is part of the format."""

    error: str = Field(description="Stable machine-readable error name")
    message: str = Field(description="Human-readable description")
    status_code: int = Field(alias="statusCode", description="Same as the HTTP status")

    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
        json_schema_extra={
            "examples": [{"error": "NotFoundError", "message": "Member not found", "statusCode": 404}]
        },
    )

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)
