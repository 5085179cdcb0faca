"""
Flock Backend — Stored Image Route
===================================

What:  GET /api/files/{path} serves images written by LocalImageHost.
Who:   <img> tags in the frontend: post images, avatars and cover images all
       carry URLs of this form.

Security:
    - LocalImageHost.resolve() refuses paths that escape the storage root
    - Only regular files are served
    - No session required: image URLs are unguessable UUIDs
"""

import mimetypes

from fastapi import APIRouter
from fastapi.responses import FileResponse

from flock.exceptions import NotFoundError
from flock.services.image_host import LocalImageHost, image_host

router = APIRouter(prefix="/api", tags=["Files"])


@router.get(
    "/files/{file_path:path}",
    summary="Serve a stored image",
    responses={
        200: {"description": "Image file"},
        404: {"description": "File not found"},
    },
)
async def serve_file(file_path: str) -> FileResponse:
    full_path = image_host.resolve(file_path) if isinstance(image_host, LocalImageHost) else None
    if full_path is None:
        raise NotFoundError(resource="file", resource_id=file_path)

    media_type, _ = mimetypes.guess_type(full_path.name)
    return FileResponse(
        path=str(full_path),
        media_type=media_type or "application/octet-stream",
        headers={"Cache-Control": "public, max-age=86400"},
    )
