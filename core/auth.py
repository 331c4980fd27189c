"""
Authentication utilities
"""
from typing import Iterable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

# auto_error=False so the check can be switched off when no tokens are configured
security = HTTPBearer(auto_error=False)


def make_token_verifier(valid_tokens: Iterable[str]):
    """Build a dependency that checks the Bearer token against ``valid_tokens``"""
    tokens = set(valid_tokens)

    def verify_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)):
        if not tokens:
            return None
        if credentials is None or credentials.credentials not in tokens:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid authentication token",
                headers={"WWW-Authenticate": "Bearer"},
            )
        return credentials.credentials

    return verify_token
