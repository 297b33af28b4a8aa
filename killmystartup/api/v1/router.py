"""API v1 router aggregating all endpoints."""

from fastapi import APIRouter

from killmystartup.api.v1 import competitors, news

api_router = APIRouter()

api_router.include_router(news.router, tags=["news"])
api_router.include_router(competitors.router, prefix="/competitors", tags=["competitors"])
