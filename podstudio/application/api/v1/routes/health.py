"""Health check endpoint."""

from dishka import FromDishka
from dishka.integrations.fastapi import DishkaRoute
from fastapi import APIRouter

from podstudio.config import Config

router = APIRouter(tags=["health"], route_class=DishkaRoute)


@router.get("/health")
async def health(config: FromDishka[Config]) -> dict:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": config.server.version,
    }
