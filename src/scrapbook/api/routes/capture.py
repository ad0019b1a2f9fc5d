"""Capture and item endpoints."""

from dataclasses import asdict

from fastapi import APIRouter

from scrapbook.api.deps import ContentServiceDep, OwnerDep
from scrapbook.api.schemas import CaptureRequest, CaptureResponse, ItemResponse
from scrapbook.services import models

router = APIRouter()


@router.post("/capture", response_model=CaptureResponse, status_code=201)
async def capture(
    body: CaptureRequest, owner: OwnerDep, content_service: ContentServiceDep
) -> CaptureResponse:
    """Store content; enrichment continues in the background."""
    response = await content_service.capture(
        owner,
        models.CaptureRequest(content=body.content, tags=body.tags, summarize=body.summarize),
    )
    return CaptureResponse(**asdict(response))


@router.get("/items/{item_id}", response_model=ItemResponse)
async def get_item(
    item_id: str, owner: OwnerDep, content_service: ContentServiceDep
) -> ItemResponse:
    """Get one of the caller's items."""
    item = await content_service.get_item(owner, item_id)
    data = asdict(item)
    data["enrichment_status"] = item.enrichment_status.value
    return ItemResponse(**data)
