"""API v1 router aggregator."""

from fastapi import APIRouter

from newsroom.api.v1.articles import routes as articles

api_router = APIRouter()

api_router.include_router(articles.router, prefix="/articles", tags=["Articles"])
