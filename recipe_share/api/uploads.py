# api/uploads.py
# Image upload endpoints. Files are normalized before they are stored.

import logging
from typing import Optional
from fastapi import APIRouter, File, HTTPException, Request, UploadFile

from recipe_share import images
from recipe_share import schemas
from recipe_share.core.config import settings
from recipe_share.core.rate_limit import limiter

router = APIRouter()

logger = logging.getLogger(__name__)


def _store(file: Optional[UploadFile], target: str) -> dict:
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")
    # Read one byte past the cap so oversized uploads are detected without
    # pulling the whole body into memory.
    data = file.file.read(settings.MAX_UPLOAD_BYTES + 1)
    logger.debug(f"Received {target} upload {file.filename!r} ({len(data)} bytes)")
    return {"image_url": images.ingest_image(data, target)}


@router.post("/recipe", response_model=schemas.ImageUpload)
@limiter.limit(settings.UPLOAD_RATE_LIMIT)
def upload_recipe_image(request: Request, file: Optional[UploadFile] = File(None)):
    """
    Store the main image of a recipe. Returns its reference path.
    """
    return _store(file, images.RECIPE_IMAGES)


@router.post("/recipestep", response_model=schemas.ImageUpload)
@limiter.limit(settings.UPLOAD_RATE_LIMIT)
def upload_step_image(request: Request, file: Optional[UploadFile] = File(None)):
    """
    Store the image of a single recipe step. Returns its reference path.
    """
    return _store(file, images.STEP_IMAGES)
