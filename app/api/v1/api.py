from fastapi import APIRouter
from app.api.v1.endpoints import users
from app.api.v1.endpoints import onboarding
from app.api.v1.endpoints import events

api_router = APIRouter()
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(onboarding.router, prefix="/onboarding", tags=["onboarding"])
api_router.include_router(events.router, prefix="/events", tags=["events"])
