"""
Usage / subscription Pydantic schemas
"""
from pydantic import BaseModel


class UsageResponse(BaseModel):
    resumeCount: int = 0
    aiGenerationCount: int = 0
    plan: str = "free"


class IncrementResponse(BaseModel):
    success: bool = True
