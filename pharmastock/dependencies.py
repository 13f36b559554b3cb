from typing import Optional

from fastapi import Header

from pharmastock.core.security import authenticate_request, resolve_actor_id
from pharmastock.database.session import get_db


def require_auth(
    api_key: Optional[str] = Header(None, alias="X-API-Key"),
    api_key_alt: Optional[str] = Header(None, alias="api-key"),
    authorization: Optional[str] = Header(None),
):
    api_key_value = api_key or api_key_alt
    return authenticate_request(
        api_key=api_key_value,
        authorization=authorization,
        require_auth=True,
    )


def require_actor(
    api_key: Optional[str] = Header(None, alias="X-API-Key"),
    api_key_alt: Optional[str] = Header(None, alias="api-key"),
    authorization: Optional[str] = Header(None),
    actor_id: Optional[str] = Header(None, alias="X-Actor-Id"),
) -> str:
    auth = require_auth(
        api_key=api_key,
        api_key_alt=api_key_alt,
        authorization=authorization,
    )
    return resolve_actor_id(auth, actor_id)


__all__ = ["get_db", "require_actor", "require_auth"]
