"""
Pydantic model for the verified caller token.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class TokenModel(BaseModel):
    """Identity carried by a verified token. Never persisted."""

    model_config = ConfigDict(frozen=True)

    user: str
    user_name: str | None = None
    valid_until: datetime
