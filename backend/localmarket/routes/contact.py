"""Public contact form, relayed to the support inbox by email."""

from fastapi import APIRouter, Depends

from localmarket.dependencies import get_contact_service
from localmarket.schemas.common import ErrorResponse, MessageResponse
from localmarket.schemas.contact import ContactMessage
from localmarket.services.contact_service import ContactService

router = APIRouter(tags=["Contact"])


@router.post(
    "/contact",
    response_model=MessageResponse,
    responses={500: {"description": "Mail relay failure", "model": ErrorResponse}},
    summary="Send a message to support",
)
async def send_contact_message(
    body: ContactMessage,
    service: ContactService = Depends(get_contact_service),
) -> MessageResponse:
    await service.send(body)
    return MessageResponse(message="Message sent")
