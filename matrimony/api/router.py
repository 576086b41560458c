"""
Matrimony Matching — Main API Router

Aggregates all sub-routers under a single prefix so that ``matrimony.main``
can mount the entire API surface with one ``include_router`` call.
"""

from fastapi import APIRouter

from matrimony.api import matching

router = APIRouter()

router.include_router(matching.router, prefix="/match", tags=["Matching"])
