from jose import JWTError, jwt

from timetracking.core.config import settings

# Tokens are issued by the account service; this API only reads them.


def verify_token(token: str):
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return payload
    except JWTError:
        return None
