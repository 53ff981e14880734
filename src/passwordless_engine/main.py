import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from passwordless_engine.api.v1.router import api_router
from passwordless_engine.core.bootstrap import build_recipe
from passwordless_engine.core.config import settings
from passwordless_engine.core.exceptions import (
    BadInputError,
    PasswordlessEngineException,
    bad_input_error_handler,
    internal_error_handler,
)
from passwordless_engine.core.redis import redis_client
from passwordless_engine.recipe.recipe import PasswordlessRecipe, install_recipe

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)

logger = logging.getLogger(__name__)

# Silence noisy libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


def create_app(recipe: PasswordlessRecipe | None = None) -> FastAPI:
    """
    Build the FastAPI app. Tests pass a recipe wired to a fake core; the
    module level ``app`` builds one from settings.
    """
    recipe = recipe or build_recipe(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Starting up PasswordlessEngine...")
        await redis_client.connect()

        yield

        logger.info("Shutting down PasswordlessEngine...")
        await recipe.querier.aclose()
        await redis_client.disconnect()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description=settings.APP_DESCRIPTION,
        openapi_url=f"{settings.API_BASE_PATH}/openapi.json",
        lifespan=lifespan,
    )

    origins = (
        settings.CORS_ORIGINS
        if isinstance(settings.CORS_ORIGINS, list)
        else [settings.CORS_ORIGINS]
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )

    app.add_exception_handler(BadInputError, bad_input_error_handler)
    app.add_exception_handler(PasswordlessEngineException, internal_error_handler)
    app.add_exception_handler(Exception, internal_error_handler)

    install_recipe(app, recipe)
    app.include_router(api_router, prefix=recipe.config.app_info.api_base_path)
    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "passwordless_engine.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
