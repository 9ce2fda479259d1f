from pydantic import BaseModel
from typing import Optional

class TokenData(BaseModel):
    """Claims the engine reads from a bearer token."""
    user_id: Optional[str] = None
    organization_id: Optional[str] = None
