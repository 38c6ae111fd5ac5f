"""Response envelopes and request bodies for the admin API"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class SuccessResponse(BaseModel):
    success: bool = True
    data: Any = None
    message: Optional[str] = None


class TokenActionRequest(BaseModel):
    """Quick actions on a token"""
    action: Literal["activate", "deactivate", "extend"]
    days: Optional[int] = Field(default=None, ge=1, description="Days to add when extending")
