from typing import Annotated

from fastapi import Depends, Request, HTTPException

from app.user.api.handlers import UserHandler


def get_user_handler(request: Request) -> UserHandler:
    """User handler, created once per app on first use."""
    handler = getattr(request.app.state, "user_handler", None)
    if handler is not None:
        return handler

    user_service = getattr(request.app.state, "user_service", None)
    if user_service is None:
        raise HTTPException(status_code=503, detail="User service not initialized. Check application logs.")

    handler = UserHandler(user_service, request.app.state.logger)
    request.app.state.user_handler = handler
    return handler


# Type aliases for cleaner dependency injection
UserHandlerDep = Annotated[UserHandler, Depends(get_user_handler)]
