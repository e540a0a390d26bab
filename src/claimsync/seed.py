"""Sample capability updates for populating an empty store."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Final

from claimsync.domain.model import NormalizedItem

# (source_id, title, url, external_id, hours before now, body)
_SAMPLE_UPDATES: Final[tuple[tuple[str, str, str, str, int, str], ...]] = (
    (
        "openai",
        "GPT-4 Turbo with 128K context window now available",
        "https://platform.openai.com/docs/changelog",
        "openai-gpt4-turbo-128k",
        2,
        "We're releasing GPT-4 Turbo with a 128K context window, equivalent to more than "
        "300 pages of text in a single prompt. It introduces a JSON mode that ensures the "
        "model responds with valid JSON.",
    ),
    (
        "anthropic",
        "Claude 3.5 Sonnet: Our most intelligent model",
        "https://docs.anthropic.com/en/release-notes",
        "anthropic-claude-35-sonnet",
        24,
        "Claude 3.5 Sonnet sets new industry benchmarks for graduate-level reasoning, "
        "undergraduate-level knowledge and coding proficiency.",
    ),
    (
        "google",
        "Gemini 2.0 Flash with native tool use",
        "https://ai.google.dev/gemini-api/docs/changelog",
        "google-gemini-2-flash",
        48,
        "Gemini 2.0 Flash introduces native multimodal output including image generation "
        "and text-to-speech. The model can natively use tools like Google Search, code "
        "execution and third-party functions defined via function calling.",
    ),
    (
        "xai",
        "Grok-2 API now available with vision capabilities",
        "https://x.ai/blog",
        "xai-grok2-vision",
        72,
        "The Grok-2 API is now publicly available with vision understanding. Developers "
        "can build applications that analyze images and extract information from "
        "screenshots.",
    ),
    (
        "openai",
        "Realtime API for speech-to-speech applications",
        "https://platform.openai.com/docs/guides/realtime",
        "openai-realtime-api",
        96,
        "The Realtime API enables low-latency, multi-modal conversational experiences with "
        "real-time voice: natural speech-to-speech conversations with expressive voices.",
    ),
    (
        "anthropic",
        "Computer Use capability in Claude",
        "https://docs.anthropic.com/en/docs/computer-use",
        "anthropic-computer-use",
        120,
        "Claude can now interact with computer interfaces by viewing screens, moving "
        "cursors, clicking buttons and typing text. Try computer use in the API today.",
    ),
    (
        "perplexity",
        "Sonar API with real-time web search",
        "https://docs.perplexity.ai/guides/getting-started",
        "perplexity-sonar-api",
        144,
        "The Sonar API provides search-augmented models that run a web search in real "
        "time. Responses include inline citations.",
    ),
    (
        "cohere",
        "Command R+ with RAG optimization",
        "https://docs.cohere.com/docs/command-r-plus",
        "cohere-command-r-plus",
        168,
        "Command R+ is optimized for retrieval-augmented generation workflows and "
        "generates accurate, well-cited responses from retrieved documents.",
    ),
)


def sample_updates(now: datetime) -> list[NormalizedItem]:
    return [
        NormalizedItem(
            source_id=source_id,
            title=title,
            url=url,
            body_text=body,
            published_at=now - timedelta(hours=hours_ago),
            external_id=external_id,
        )
        for source_id, title, url, external_id, hours_ago, body in _SAMPLE_UPDATES
    ]
