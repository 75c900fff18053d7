"""API routes for the authentication service."""

from fastapi import APIRouter, Depends, HTTPException, Request, Security, status

from ..auth.keys import APIKeyStore
from ..auth.models import KeyInfo
from .auth import api_key_header, get_api_key_info, get_auth_status
from .schemas import AuthStatusResponse, KeyInfoResponse

router = APIRouter(dependencies=[Security(api_key_header)])


def get_store(request: Request) -> APIKeyStore:
    """Get the key store the application was created with."""
    store = getattr(request.app.state, "key_store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Key store not initialized",
        )
    return store


@router.get("/auth/status", response_model=AuthStatusResponse)
async def auth_status(
    request: Request,
    store: APIKeyStore = Depends(get_store),
    key_info: KeyInfo | None = Depends(get_api_key_info),
) -> AuthStatusResponse:
    """Report the authentication status and the key used for this request."""
    skip_auth = getattr(request.app.state, "skip_auth", False)
    summary = get_auth_status(store, skip_auth)

    key = None
    if key_info is not None:
        key = KeyInfoResponse(
            id=key_info.id,
            name=key_info.name,
            enabled=key_info.enabled,
            created_at=key_info.created_at,
        )

    return AuthStatusResponse(**summary.to_dict(), key=key)
