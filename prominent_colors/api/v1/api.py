"""
API router for version 1 of the API.
"""
from fastapi import APIRouter

from prominent_colors.api.v1.endpoints import prominent_colors

api_router = APIRouter()

api_router.include_router(prominent_colors.router, tags=["prominent-colors"])
