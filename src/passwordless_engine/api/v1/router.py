from fastapi import APIRouter, Depends

from passwordless_engine.api.v1 import passwordless
from passwordless_engine.core.health import check_core, check_redis
from passwordless_engine.recipe.recipe import PasswordlessRecipe, get_recipe

api_router = APIRouter()

api_router.include_router(passwordless.router, tags=["passwordless"])


@api_router.get("/health")
async def health_check(recipe: PasswordlessRecipe = Depends(get_recipe)) -> dict[str, str]:
    try:
        await check_core(recipe.querier)
        await check_redis()
        return {"status": "healthy"}
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}
