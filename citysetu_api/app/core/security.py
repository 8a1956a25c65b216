"""
Admin authentication.

Admin routes are protected by a single static bearer token configured
through ``ADMIN_TOKEN``.  There are no user accounts: a request either
presents the exact token or it is refused.
"""

import hmac

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

security = HTTPBearer(auto_error=False)


def require_admin(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> str:
    """Dependency that admits only requests carrying the admin token.

    A missing ``Authorization`` header, or one using a scheme other
    than ``Bearer``, yields HTTP 401; a token that does not match yields HTTP
    403.  When no admin token is configured every request is refused.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    expected = request.app.state.settings.admin_token
    if not expected or not hmac.compare_digest(credentials.credentials.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")
    return "admin"
