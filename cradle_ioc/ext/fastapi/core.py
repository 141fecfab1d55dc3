import logging
from collections.abc import Hashable
from contextlib import asynccontextmanager
from typing import Annotated, Any, AsyncGenerator

from fastapi import Depends, FastAPI, Request, params

from cradle_ioc.core import Container
from cradle_ioc.resolvers import as_value

logger = logging.getLogger(__name__)


@asynccontextmanager
async def add_container_to_app(app: FastAPI, container: Container):
    """
    Adds a container to the given FastAPI app for the duration of the context,
    disposing it on the way out. Meant to be used from the app's lifespan.

    Args:
        app (FastAPI): The FastAPI app to add the container to.
        container (Container): The root container.
    """
    async with container:
        logger.debug("adding container to the fast api app")
        app.state.cradle_ioc_container = container
        yield
        logger.debug("releasing container from the fast api app")


def get_container_from_app(app: FastAPI) -> Container:
    return app.state.cradle_ioc_container


async def get_scope(
    request: Request,
) -> AsyncGenerator[Container, None]:
    """
    One scope per request, with the request registered as ``request``. The scope
    is disposed once the response has been sent.
    """
    if "cradle_ioc_scope" in request.state._state:
        yield request.state.cradle_ioc_scope
    else:
        async with get_container_from_app(request.app).create_scope() as scope:
            scope.register("request", as_value(request))
            request.state.cradle_ioc_scope = scope
            yield scope


def Resolve(  # noqa: N802
    name: Hashable,
) -> Annotated[Any, params.Depends]:
    """
    Resolve a registration from the request scope, acts as a FastAPI dependency.
    This can be used as a drop in replacement for Depends in FastAPI routes.

    Args:
        name: The registration name.

    Returns:
        Annotated[Any, params.Depends]: A dependency resolving ``name``.
    """

    async def resolver(scope: Annotated[Container, Depends(get_scope)]):
        return scope.resolve(name)

    return Depends(resolver)
