"""Purchase API schemas."""

from pydantic import BaseModel, Field


class PurchaseResponse(BaseModel):
    """Unsigned purchase transaction for a client wallet to sign and send."""

    to: str = Field(..., description="TokenStore contract address")
    data: str = Field(..., description="ABI-encoded buy() call data")
    value: str = Field(default="0", description="Native value to send (wei)")
