import logging
from collections.abc import Callable
from contextlib import asynccontextmanager
from typing import Annotated, Any

from fastapi import Depends, FastAPI, Request, params

from expressway.application import Application

logger = logging.getLogger(__name__)


@asynccontextmanager
async def add_application_to_app(app: FastAPI, application: Application):
    """
    Bootstraps the Expressway application and attaches it to the given FastAPI app.
    Pending async provider hooks are settled before the app starts serving.

    Args:
        app (FastAPI): The FastAPI app to attach the application to.
        application (Application): The Expressway application to bootstrap.
    """
    await application.bootstrap_async()
    await application.settle()
    logger.debug("adding expressway application to the fast api app")
    app.state.expressway = application
    application.events.emit("application.server", application)
    yield
    logger.debug("releasing expressway application from the fast api app")


def get_application_from_app(app: FastAPI) -> Application:
    return app.state.expressway


def get_application(request: Request) -> Application:
    return get_application_from_app(request.app)


def Service(name: str) -> Annotated[Any, params.Depends]:  # noqa: N802
    """
    Resolve a named service from the Expressway application, acts as a FastAPI dependency.

    Args:
        name: The registered service name.

    Returns:
        Annotated[Any, params.Depends]: A dependency resolving the service.
    """

    def resolver(application: Annotated[Application, Depends(get_application)]):
        return application.get(name)

    return Depends(resolver)


def Call(fn: Callable, *overrides: Any) -> Annotated[Any, params.Depends]:  # noqa: N802
    """
    Call ``fn`` with its parameters injected from the Expressway application and use
    the return value as a FastAPI dependency.
    """

    def caller(application: Annotated[Application, Depends(get_application)]):
        return application.call(fn, None, overrides)

    return Depends(caller)
