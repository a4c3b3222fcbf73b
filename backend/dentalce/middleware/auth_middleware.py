from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from jose import JWTError, jwt
from dentalce.database import get_db
from dentalce.models.user import User
from dentalce.config import settings
from dentalce.utils.permissions import Capability, RequestContext, capabilities_for_role

security = HTTPBearer()

ALGORITHM = "HS256"


def decode_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
        return payload
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    payload = decode_token(credentials.credentials)
    user_id = payload.get("sub")
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid token payload")

    user = db.query(User).filter(User.user_id == int(user_id), User.is_active == True).first()
    if not user:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return user


def get_request_context(current_user: User = Depends(get_current_user)) -> RequestContext:
    return RequestContext(user=current_user, capabilities=capabilities_for_role(current_user.role))


def require_capability(*capabilities: Capability):
    def checker(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
        missing = [c for c in capabilities if not ctx.can(c)]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires capability: {', '.join(c.value for c in missing)}",
            )
        return ctx
    return checker
