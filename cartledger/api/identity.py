# cartledger/api/identity.py
import secrets

from fastapi import Request, Response

from cartledger.utils.settings import SID_COOKIE_NAME, OWNER_KEY_HEADER


def resolve_owner_key(request: Request, response: Response) -> str:
    """
    Whose cart is this: an explicit header wins, then the session cookie.
    A first-time visitor gets a fresh random sid cookie.
    """
    header_key = request.headers.get(OWNER_KEY_HEADER)
    if header_key:
        return header_key

    sid = request.cookies.get(SID_COOKIE_NAME)
    if sid:
        return sid

    sid = secrets.token_hex(16)
    response.set_cookie(SID_COOKIE_NAME, sid, httponly=True)
    return sid
