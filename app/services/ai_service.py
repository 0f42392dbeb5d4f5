"""
AI content generation through OpenAI.

Usage is recorded by the caller only after a generation succeeds.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from openai import APIError, OpenAI

from app.core.config import Settings
from app.core.exceptions import ConfigurationError, ProviderError

logger = logging.getLogger(__name__)

GENERATION_TYPES = ("title", "hook", "script", "description", "hashtags")

SYSTEM_PROMPT = (
    "You are a professional social media content creator and strategist. "
    "Create engaging, platform-optimized content that drives engagement and conversions."
)

PROMPT_TEMPLATES = {
    "title": (
        "Generate 5 compelling titles for {platform} content about: {topic}\n\n"
        "Make them:\n"
        "- Attention-grabbing and clickable\n"
        "- Optimized for {platform}\n"
        "- Relevant to the target audience: {audience}\n"
        "- In a {tone} tone\n\n"
        "Format as a numbered list."
    ),
    "hook": (
        "Create 5 powerful opening hooks for {platform} content about: {topic}\n\n"
        "The hooks should:\n"
        "- Grab attention in the first 3 seconds\n"
        "- Be suitable for {platform}\n"
        "- Match a {tone} tone\n"
        "- Appeal to: {audience}\n\n"
        "Format as a numbered list."
    ),
    "script": (
        "Write a complete {platform} script for: {topic}\n\n"
        "Requirements:\n"
        "- Duration: 30-60 seconds\n"
        "- Tone: {tone}\n"
        "- Target audience: {audience}\n"
        "- Include clear call-to-action\n"
        "- Structure with timestamps\n\n"
        "Format with clear sections and timing cues."
    ),
    "description": (
        "Write an optimized description for {platform} content about: {topic}\n\n"
        "Include:\n"
        "- Compelling opening line\n"
        "- Key points and value proposition\n"
        "- Relevant keywords for discoverability\n"
        "- Clear call-to-action\n"
        "- Tone: {tone}\n\n"
        "Target audience: {audience}"
    ),
    "hashtags": (
        "Generate 20 relevant hashtags for {platform} content about: {topic}\n\n"
        "Mix of:\n"
        "- 5 highly popular hashtags (1M+ posts)\n"
        "- 10 moderately popular hashtags (100K-1M posts)\n"
        "- 5 niche hashtags (10K-100K posts)\n\n"
        "Target audience: {audience}\n\n"
        "Format as a space-separated list."
    ),
}


@dataclass(frozen=True)
class GeneratedContent:
    content: str
    tokens_used: int
    model: str
    generation_type: str


def build_openai_client(settings: Settings) -> Optional[OpenAI]:
    """Create the OpenAI client, or None when no API key is configured."""
    if not settings.openai_api_key:
        logger.info("OPENAI_API_KEY not configured - AI generation disabled")
        return None
    return OpenAI(api_key=settings.openai_api_key)


def build_prompt(
    generation_type: str,
    topic: str,
    platform: str = "social media",
    audience: str = "general audience",
    tone: str = "engaging",
) -> str:
    template = PROMPT_TEMPLATES.get(generation_type)
    if template is None:
        return topic
    return template.format(topic=topic, platform=platform, audience=audience, tone=tone)


def generate_content(
    client: Optional[OpenAI],
    model: str,
    prompt: str,
    generation_type: str,
    platform: str = "social media",
    temperature: float = 0.7,
    max_tokens: int = 1000,
) -> GeneratedContent:
    """
    Generate content for a prompt with the template of a generation type.

    Raises:
        ConfigurationError: No OpenAI client configured
        ProviderError: The OpenAI call failed
    """
    if client is None:
        raise ConfigurationError("AI generation is not configured (OPENAI_API_KEY missing)")

    try:
        response = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(generation_type, prompt, platform=platform)},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
    except APIError as e:
        logger.error(f"OpenAI API error: {e}", exc_info=True)
        raise ProviderError(f"AI provider request failed: {e}") from e

    content = response.choices[0].message.content or ""
    tokens_used = response.usage.total_tokens if response.usage else 0
    return GeneratedContent(
        content=content,
        tokens_used=tokens_used,
        model=model,
        generation_type=generation_type,
    )
