"""
HTTP routes for the community API, one module per resource.
"""

from fastapi import APIRouter

from backend.routes import champions, matches, notices, parties, scrims, stats, users

router = APIRouter()
for _module in (users, parties, scrims, matches, notices, stats, champions):
    router.include_router(_module.router)
