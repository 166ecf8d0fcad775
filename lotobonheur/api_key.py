"""
Admin API key verification

Protects the /api/v1/admin router. The key is read from the
LOTO_ADMIN_API_KEY environment variable on every request.
"""

from fastapi import Header, HTTPException

from lotobonheur.config import get_admin_api_key


async def verify_admin_api_key(authorization: str | None = Header(default=None)) -> str:
    """Bearer API key check for admin endpoints.

    - Requires env LOTO_ADMIN_API_KEY
    - Expects header: Authorization: Bearer <API_KEY>
    """
    expected = get_admin_api_key()
    if not expected:
        # Misconfiguration: no key means no admin access
        raise HTTPException(status_code=401, detail="Admin API key not configured")

    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization header")

    token = authorization[7:].strip()
    if token != expected:
        raise HTTPException(status_code=403, detail="Invalid API key")

    return "admin"
