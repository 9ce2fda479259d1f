from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from commission_engine.core.config import SECRET_KEY, ALGORITHM
from commission_engine.core.exceptions import OrganizationNotFound
from commission_engine.schemas.token import TokenData

bearer_scheme = HTTPBearer(auto_error=False)

@dataclass(frozen=True)
class Principal:
    user_id: str
    organization_id: str

async def get_token_data(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TokenData:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(credentials.credentials, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError: # Expired, bad signature, malformed
        raise credentials_exception
    user_id: Optional[str] = payload.get("sub")
    if user_id is None:
        raise credentials_exception
    return TokenData(user_id=user_id, organization_id=payload.get("org"))

async def get_current_principal(token_data: TokenData = Depends(get_token_data)) -> Principal:
    """Every engine operation is scoped to the organization named in the token."""
    if not token_data.organization_id:
        raise OrganizationNotFound("No organization found", {"user_id": token_data.user_id})
    return Principal(user_id=token_data.user_id, organization_id=token_data.organization_id)
