"""
Sample notebooks created for new users so the app is not empty on first login
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List

from pdfnotebook.core.chunker import SAMPLE_CHUNKING
from pdfnotebook.core.ingestion import IngestionFailed, IngestionPipeline
from pdfnotebook.db import crud
from pdfnotebook.logger import logger


@dataclass(frozen=True)
class SampleDocument:
    filename: str
    pages: List[str]


@dataclass(frozen=True)
class SampleNotebook:
    title: str
    description: str
    documents: List[SampleDocument] = field(default_factory=list)


_FUNDAMENTALS = [
    (
        "Chapter 1: Units and Measurement. Physical quantities are described by a number "
        "and a unit. The SI system defines seven base units: the metre, kilogram, second, "
        "ampere, kelvin, mole and candela. Derived units such as the newton or the joule are "
        "combinations of base units. Every measurement carries an uncertainty, and the number "
        "of significant figures reported should reflect the precision of the instrument used."
    ),
    (
        "Chapter 2: Motion in a Straight Line. Displacement is the change in position of an "
        "object, while distance is the total path length travelled. Average velocity is "
        "displacement divided by elapsed time; instantaneous velocity is its limit as the time "
        "interval shrinks to zero. Uniformly accelerated motion obeys v = u + at and "
        "s = ut + at^2/2, which together describe free fall near the Earth's surface."
    ),
]

_STUDY_NOTES = [
    (
        "Study notes: Newton's laws. The first law states that a body remains at rest or in "
        "uniform motion unless acted on by a net external force. The second law relates net "
        "force to the rate of change of momentum, F = ma for constant mass. The third law says "
        "that forces always occur in equal and opposite pairs acting on different bodies."
    ),
]

_PRACTICE = [
    (
        "Practice problems. 1) A car accelerates uniformly from rest to 20 m/s in 5 s; find its "
        "acceleration and the distance covered. 2) A 2 kg block is pulled with a 10 N force on "
        "a frictionless surface; find its acceleration. 3) Express 72 km/h in metres per second "
        "and state the number of significant figures in 0.00450 m."
    ),
]

SAMPLE_NOTEBOOKS: List[SampleNotebook] = [
    SampleNotebook(
        title="KEPH 101 - Fundamentals",
        description="Essential foundational material covering the fundamental concepts of the course.",
        documents=[SampleDocument("KEPH101_Complete_Guide.pdf", _FUNDAMENTALS)],
    ),
    SampleNotebook(
        title="Study Materials Collection",
        description="Supplementary study resources to complement the main coursework.",
        documents=[
            SampleDocument("KEPH101_Study_Notes.pdf", _STUDY_NOTES),
            SampleDocument("Practice_Problems.pdf", _PRACTICE),
        ],
    ),
]


async def seed_new_user(pipeline: IngestionPipeline, user_id: str) -> Dict[str, Any]:
    """
    Create the sample notebooks for a user who has none

    Returns:
        Dict with created notebook ids and the number of documents ingested
    """
    async with pipeline.session_factory() as session:
        existing = await crud.list_notebooks(session, user_id)
    if existing:
        logger.info(f"User {user_id} already has {len(existing)} notebooks; skipping seeding")
        return {"seeded": False, "notebookIds": [], "documentsCreated": 0}

    notebook_ids = []
    documents_created = 0
    for sample in SAMPLE_NOTEBOOKS:
        async with pipeline.session_factory() as session:
            notebook = await crud.create_notebook(session, user_id, sample.title, sample.description)
        notebook_ids.append(notebook.id)

        for doc in sample.documents:
            try:
                await pipeline.ingest_text(
                    user_id=user_id,
                    notebook_id=notebook.id,
                    filename=doc.filename,
                    pages=doc.pages,
                    params=SAMPLE_CHUNKING,
                )
            except IngestionFailed as e:
                # The document stays visible in error status
                logger.error(f"Sample document {doc.filename} failed for user {user_id}: {e}")
                continue
            documents_created += 1

    logger.info(f"Seeded {len(notebook_ids)} notebooks with {documents_created} documents for user {user_id}")
    return {"seeded": True, "notebookIds": notebook_ids, "documentsCreated": documents_created}
