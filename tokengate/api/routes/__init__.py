from fastapi import APIRouter

from tokengate.api.routes import dashboard, portal, tokens

api_router = APIRouter()

api_router.include_router(tokens.router)
api_router.include_router(dashboard.router)


@api_router.get("/version")
async def get_version():
    from tokengate import __version__
    return {"version": __version__}


__all__ = ["api_router", "portal"]
