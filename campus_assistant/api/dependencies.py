import asyncio
from functools import partial
from typing import Any, Callable

from fastapi import HTTPException, Request, status

from campus_assistant.core.assistant import CampusAssistant
from campus_assistant.utils.auth_utils import decode_access_token


def get_assistant(request: Request) -> CampusAssistant:
    return request.app.state.assistant


async def run_in_engine(request: Request, func: Callable, *args, **kwargs) -> Any:
    """Run blocking engine work on the app's worker pool."""
    loop = asyncio.get_running_loop()
    executor = getattr(request.app.state, "executor", None)
    return await loop.run_in_executor(executor, partial(func, *args, **kwargs))


async def require_admin(request: Request) -> dict:
    auth_header = str(request.headers.get("Authorization") or "").strip()
    if not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = auth_header.split(" ", 1)[1].strip()
    payload = decode_access_token(token)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    role = str(payload.get("role") or "").strip().lower()
    if role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )
    return payload
