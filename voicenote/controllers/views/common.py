from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: str


class DeleteResponse(BaseModel):
    success: bool


class HealthResponse(BaseModel):
    status: str
    version: str
    storage: str
    audio_store: str
