import re

from fastapi import HTTPException, Request

_ID_RE = re.compile(r"^[0-9a-f]{32}$")


def get_session(request: Request):
    """Yield a session from the store attached to the app; roll back on error."""
    session = request.app.state.store.session()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def is_valid_id(value: str) -> bool:
    return bool(value) and bool(_ID_RE.match(value))


def check_id(value: str, message: str):
    if not is_valid_id(value):
        raise HTTPException(status_code=400, detail=message)
