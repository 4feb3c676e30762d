"""
Sample data seeding for new users
"""
from fastapi import APIRouter, Depends

from pdfnotebook.core.sample_data import seed_new_user
from pdfnotebook.dependencies import ServiceContainer, get_current_user, get_services
from pdfnotebook.schemas.responses import SeedResponse

router = APIRouter()


@router.post("", response_model=SeedResponse)
async def seed(
    user_id: str = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
):
    """Create the sample notebooks when the caller has none yet"""
    result = await seed_new_user(services.pipeline, user_id)
    return SeedResponse(
        seeded=result["seeded"],
        notebook_ids=result["notebookIds"],
        documents_created=result["documentsCreated"],
    )
