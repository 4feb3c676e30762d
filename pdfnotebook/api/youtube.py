"""
Study-video recommendation endpoint
"""
from fastapi import APIRouter, Depends

from pdfnotebook.dependencies import ServiceContainer, get_current_user, get_services
from pdfnotebook.logger import logger
from pdfnotebook.schemas.requests import VideoRequest
from pdfnotebook.schemas.responses import VideoOut, VideoResponse

router = APIRouter()


@router.post("", response_model=VideoResponse)
async def recommend_videos(
    req: VideoRequest,
    user_id: str = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
):
    """
    Suggest YouTube searches for a topic or a document excerpt

    Document content takes precedence over the topic when both are sent.
    """
    outcome = await services.video_recommender.recommend(
        topic=req.topic,
        document_content=req.document_content,
    )
    logger.info(f"Video recommendations for {user_id}: {len(outcome.videos)} (fallback={outcome.used_fallback})")
    return VideoResponse(
        videos=[
            VideoOut(title=video.title, search_query=video.search_query, url=video.url)
            for video in outcome.videos
        ],
        message=outcome.message,
    )
