from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Uniform error envelope returned by every endpoint."""
    error: str = Field(..., description="Human-readable error message")

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Missing required fields: amount, email, firstName, lastName, plan"
            }
        }
