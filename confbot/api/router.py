from fastapi import APIRouter

from confbot.api.routes import events, viewer

api_router = APIRouter()

api_router.include_router(events.router, prefix="/events", tags=["events"])
api_router.include_router(viewer.router, prefix="/viewer", tags=["viewer"])
