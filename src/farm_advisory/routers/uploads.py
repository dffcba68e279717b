"""Crop image uploads referenced by ``imageUrl`` in a later pipeline request."""

from fastapi import APIRouter, Depends, Path, Request

from farm_advisory import config
from farm_advisory.errors import invalid_parameter, upstream_error
from farm_advisory.uploads import BlobStore, InvalidUploadError, LocalBlobStore, UploadError

router = APIRouter()

FILES_PATH = "/uploads/files"


def get_blob_store() -> BlobStore:
    return LocalBlobStore(config.upload_dir(), max_bytes=config.upload_max_bytes())


@router.put("/{filename}", status_code=201)
async def upload_image(
    request: Request,
    filename: str = Path(..., min_length=1, max_length=255),
    blob_store: BlobStore = Depends(get_blob_store),
) -> dict[str, str]:
    """Store the raw request body and return the URL to pass as ``imageUrl``."""
    data = await request.body()
    try:
        name = blob_store.save(filename, data)
    except InvalidUploadError as exc:
        raise invalid_parameter(str(exc)) from exc
    except UploadError as exc:
        raise upstream_error(str(exc)) from exc

    base = str(request.base_url).rstrip("/")
    return {"objectName": name, "imageUrl": f"{base}{FILES_PATH}/{name}"}
