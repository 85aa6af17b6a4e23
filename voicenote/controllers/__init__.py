from fastapi import APIRouter
from .core_controller import router as core_router
from .users_controller import router as users_router
from .notes_controller import router as notes_router
from .settings_controller import router as settings_router
from .audio_controller import router as audio_router

# Create a main router that includes all controller routers
api_router = APIRouter()

# Include all controller routers
api_router.include_router(core_router)
api_router.include_router(users_router)
api_router.include_router(notes_router)
api_router.include_router(settings_router)
api_router.include_router(audio_router)

# Export the routers
__all__ = [
    "api_router",
    "core_router",
    "users_router",
    "notes_router",
    "settings_router",
    "audio_router",
]
