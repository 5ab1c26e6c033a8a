import secrets

from fastapi import Header

from storefront import config
from storefront.errors import AuthorizationError


def verify_admin(authorization: str = Header(None)):
    try:
        scheme, token = authorization.split()
        if scheme.lower() != "bearer":
            raise ValueError()
    except (AttributeError, ValueError):
        raise AuthorizationError("Authentication required")

    expected = config.ADMIN_SECRET_KEY
    if not expected or not secrets.compare_digest(token.encode(), expected.encode()):
        raise AuthorizationError("Authentication required")
    return True
