"""
Study-video recommendations: prompt, parse-then-validate, fallback queries
"""
import json
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Union
from urllib.parse import quote_plus

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from pdfnotebook.core.llm_client import Generator
from pdfnotebook.core.quiz import ParseFailure, strip_code_fence
from pdfnotebook.logger import logger
from pdfnotebook.metrics import VIDEO_COUNT

VIDEO_COUNT_PER_REQUEST = 5
CONTENT_PROMPT_CHARS = 3000
SEARCH_URL = "https://www.youtube.com/results?search_query="

_OBJECT_SPAN = re.compile(r"\{[\s\S]*\}")


class VideoSuggestion(BaseModel):
    title: str = Field(..., min_length=1)
    search_query: str = Field(..., min_length=1)

    @field_validator("title", "search_query")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @property
    def url(self) -> str:
        return SEARCH_URL + quote_plus(self.search_query)


@dataclass
class ParsedVideos:
    videos: List[VideoSuggestion]
    dropped: int = 0


@dataclass
class VideoOutcome:
    videos: List[VideoSuggestion]
    message: str
    used_fallback: bool


def build_video_prompt(topic: Optional[str] = None, document_content: Optional[str] = None) -> str:
    answer_format = f"""Return a single JSON object with one key: "videos".
The value should be an array of {VIDEO_COUNT_PER_REQUEST} video objects.

For each video object, provide:
- "title": A concise, engaging, and descriptive title for the video.
- "search_query": The ideal search query a user should type into YouTube to find this type of video.

Return ONLY the JSON object, no other text."""

    if document_content:
        excerpt = document_content[:CONTENT_PROMPT_CHARS]
        if len(document_content) > CONTENT_PROMPT_CHARS:
            excerpt += " ..."
        return f"""You are an expert at finding educational content on YouTube.
Based on the document content below, identify the key topics and concepts, then suggest {VIDEO_COUNT_PER_REQUEST} relevant and helpful YouTube videos for a student studying this material.

Document Content:
{excerpt}

Focus on the main concepts, theories, or subjects covered in the document.

{answer_format}"""

    return f"""You are an expert at finding educational content on YouTube.
For the topic "{topic}", suggest {VIDEO_COUNT_PER_REQUEST} relevant and helpful videos for a student.

{answer_format}"""


def _decode(text: str) -> Any:
    cleaned = strip_code_fence(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        match = _OBJECT_SPAN.search(cleaned)
        if not match:
            raise
        return json.loads(match.group(0))


def parse_videos(text: str) -> Union[ParsedVideos, ParseFailure]:
    """Decode model output into video suggestions; never raises"""
    try:
        payload = _decode(text)
    except (json.JSONDecodeError, ValueError) as e:
        return ParseFailure(reason=f"response is not valid JSON: {e}", raw=text)

    if isinstance(payload, dict):
        payload = payload.get("videos")
    if not isinstance(payload, list):
        return ParseFailure(reason="response does not contain a videos array", raw=text)

    videos: List[VideoSuggestion] = []
    dropped = 0
    for item in payload:
        try:
            videos.append(VideoSuggestion.model_validate(item))
        except PydanticValidationError:
            dropped += 1

    if not videos:
        return ParseFailure(reason=f"no valid videos among {len(payload)} items", raw=text)
    return ParsedVideos(videos=videos, dropped=dropped)


def _subject(topic: Optional[str], document_content: Optional[str]) -> str:
    if topic:
        return topic
    first_line = next((line.strip() for line in (document_content or "").splitlines() if line.strip()), "")
    words = first_line.split()[:8]
    return " ".join(words) or "study skills"


def fallback_videos(topic: Optional[str] = None, document_content: Optional[str] = None) -> List[VideoSuggestion]:
    """Generic search suggestions built from the topic or the document's opening words"""
    subject = _subject(topic, document_content)
    angles = [
        ("{} explained", "{} explained"),
        ("Introduction to {}", "introduction to {}"),
        ("{}: key concepts", "{} key concepts"),
        ("{} tutorial for students", "{} tutorial for students"),
        ("{} practice problems", "{} practice problems"),
    ]
    return [
        VideoSuggestion(title=title.format(subject), search_query=query.format(subject))
        for title, query in angles[:VIDEO_COUNT_PER_REQUEST]
    ]


class VideoRecommender:
    def __init__(self, generator: Generator):
        self.generator = generator

    async def recommend(
        self,
        topic: Optional[str] = None,
        document_content: Optional[str] = None,
    ) -> VideoOutcome:
        """
        Ask the model for study videos on a topic or a document excerpt

        Unusable output falls back to generic search suggestions; a failed
        model call raises UpstreamGenerationError.
        """
        prompt = build_video_prompt(topic, document_content)
        raw = await self.generator.complete(prompt)

        result = parse_videos(raw)
        if isinstance(result, ParseFailure):
            VIDEO_COUNT.labels(outcome="fallback").inc()
            logger.warning(f"Video output unusable ({result.reason}); substituting search suggestions")
            return VideoOutcome(
                videos=fallback_videos(topic, document_content),
                message="Generated fallback video suggestions due to parsing issues",
                used_fallback=True,
            )

        VIDEO_COUNT.labels(outcome="parsed").inc()
        if result.dropped:
            logger.info(f"Dropped {result.dropped} invalid video suggestions")
        videos = result.videos[:VIDEO_COUNT_PER_REQUEST]
        return VideoOutcome(
            videos=videos,
            message=f"Generated {len(videos)} video recommendations successfully",
            used_fallback=False,
        )
