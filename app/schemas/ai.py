"""
Pydantic schemas for AI generation endpoints.
"""
from pydantic import BaseModel, Field


class AIGenerateRequest(BaseModel):
    prompt: str = Field(..., min_length=1, max_length=4000)
    generation_type: str = Field(..., pattern="^(title|hook|script|description|hashtags)$")
    platform: str = Field("social media", max_length=32)
    temperature: float = Field(0.7, ge=0, le=2)
    max_tokens: int = Field(1000, ge=1, le=4000)


class AIGenerateResponse(BaseModel):
    generation_id: int
    content: str
    tokens_used: int
    model: str
    generation_type: str
    usage_recorded: bool
