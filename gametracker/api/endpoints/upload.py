"""Image upload endpoints."""

from fastapi import APIRouter, File, UploadFile, status
from pydantic import BaseModel

from gametracker.core.uploads import get_image_url, save_game_image
from gametracker.dependencies import CurrentAccount

router = APIRouter()


class ImageUploadResponse(BaseModel):
    """Stored image location."""

    success: bool
    image_url: str
    original_name: str | None = None
    size: int


@router.post(
    "/game-image",
    response_model=ImageUploadResponse,
    status_code=status.HTTP_200_OK,
    summary="Upload a game cover image",
)
async def upload_game_image(
    current_account: CurrentAccount,
    image: UploadFile = File(..., description="JPEG, PNG or WebP image"),
) -> ImageUploadResponse:
    """
    Store a cover image and return its public URL.

    Raises:
        BadRequestException: If the file type is not allowed or the file is too large
    """
    filename, size = await save_game_image(image, current_account["id"])
    return ImageUploadResponse(
        success=True,
        image_url=get_image_url(filename),
        original_name=image.filename,
        size=size,
    )
