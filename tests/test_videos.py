"""
Tests for study-video recommendations
"""
import json

import pytest

from pdfnotebook.core.errors import UpstreamGenerationError
from pdfnotebook.core.quiz import ParseFailure
from pdfnotebook.core.videos import (
    CONTENT_PROMPT_CHARS,
    ParsedVideos,
    VideoRecommender,
    build_video_prompt,
    fallback_videos,
    parse_videos,
)

from tests.conftest import FakeGenerator, make_text

VIDEOS = {
    "videos": [
        {"title": "Photosynthesis in 10 minutes", "search_query": "photosynthesis explained"},
        {"title": "Light reactions", "search_query": "light dependent reactions"},
    ]
}


def test_parses_fenced_videos_object():
    result = parse_videos("```json\n" + json.dumps(VIDEOS) + "\n```")

    assert isinstance(result, ParsedVideos)
    assert [v.search_query for v in result.videos] == ["photosynthesis explained", "light dependent reactions"]
    assert result.videos[0].url.endswith("search_query=photosynthesis+explained")


def test_invalid_items_are_dropped():
    payload = {"videos": VIDEOS["videos"] + [{"title": "No query"}, {"title": " ", "search_query": "x"}]}
    result = parse_videos(json.dumps(payload))

    assert isinstance(result, ParsedVideos)
    assert len(result.videos) == 2
    assert result.dropped == 2


@pytest.mark.parametrize("text", ["not json", json.dumps({"items": []}), json.dumps({"videos": [{}]})])
def test_unusable_output_is_a_parse_failure(text):
    assert isinstance(parse_videos(text), ParseFailure)


def test_document_prompt_is_truncated():
    content = make_text(CONTENT_PROMPT_CHARS + 500)
    prompt = build_video_prompt(document_content=content)

    assert content[:CONTENT_PROMPT_CHARS] + " ..." in prompt
    assert content not in prompt


def test_topic_prompt_names_the_topic():
    assert 'For the topic "Genetics"' in build_video_prompt(topic="Genetics")


def test_fallback_uses_document_opening_words():
    videos = fallback_videos(document_content="\n\nCell biology basics for first year students and more\nbody")
    assert len(videos) == 5
    assert videos[0].search_query == "Cell biology basics for first year students and explained"


@pytest.mark.asyncio
async def test_recommend_parsed_branch():
    generator = FakeGenerator(reply=json.dumps(VIDEOS))
    outcome = await VideoRecommender(generator).recommend(topic="Photosynthesis")

    assert outcome.used_fallback is False
    assert outcome.message == "Generated 2 video recommendations successfully"
    assert "Photosynthesis" in generator.prompts[0]


@pytest.mark.asyncio
async def test_recommend_fallback_branch():
    outcome = await VideoRecommender(FakeGenerator(reply="Sorry, I cannot help.")).recommend(topic="Genetics")

    assert outcome.used_fallback is True
    assert [v.search_query for v in outcome.videos][:2] == ["Genetics explained", "introduction to Genetics"]


@pytest.mark.asyncio
async def test_recommend_does_not_mask_upstream_failure(failing_generator):
    with pytest.raises(UpstreamGenerationError):
        await VideoRecommender(failing_generator).recommend(topic="Genetics")
