from fastapi import APIRouter, Request, status

from voicenote.controllers.views.common import HealthResponse
from voicenote.util.logger import get_logger

# Get logger
logger = get_logger(__name__)

# Create API router with tags for better organization in Swagger
router = APIRouter(tags=["Core"])

API_VERSION = "0.1.0"


@router.get(
    "/api/health",
    summary="API Information",
    description="Returns the API status and which storage backings are active.",
    response_description="API information object",
    status_code=status.HTTP_200_OK,
    response_model=HealthResponse,
)
async def api_health(request: Request) -> HealthResponse:
    """
    Returns information about the API status.

    Returns:
        HealthResponse: status, version and storage backings.
    """
    return HealthResponse(
        status="running",
        version=API_VERSION,
        storage=type(request.app.state.repository).__name__,
        audio_store=type(request.app.state.audio_store).__name__,
    )
