"""Request dependencies shared by the HTTP routes.

Tokens are verified by the API gateway, which forwards the authenticated
caller in ``X-User-*`` headers.
"""

from fastapi import Header, HTTPException
from protean.exceptions import ValidationError

from food_ordering.authorization import Principal


def current_principal(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
    x_restaurant_id: str | None = Header(default=None),
) -> Principal:
    if not x_user_id or not x_user_role:
        raise HTTPException(status_code=401, detail="Authentication required")
    try:
        return Principal.build(
            id=x_user_id,
            role=x_user_role,
            email=x_user_email,
            restaurant_id=x_restaurant_id,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=401, detail="Unrecognised user role") from exc


def pagination(page: int = 1, limit: int = 10) -> dict:
    if page < 1 or limit < 1 or limit > 100:
        raise ValidationError({"pagination": ["page must be >= 1 and limit between 1 and 100"]})
    return {"page": page, "limit": limit}
