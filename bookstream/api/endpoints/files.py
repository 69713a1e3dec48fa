# bookstream/api/endpoints/files.py
# GET /files/{name} -- serve uploaded books from UPLOAD_DIR (local backend only)

import os

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from bookstream.core.dependencies import get_storage_config
from bookstream.core.errors import NotFoundError
from bookstream.core.storage_config import StorageConfig

router = APIRouter()


@router.get("/{name}", summary="Download an uploaded file", include_in_schema=False)
def get_file(name: str, storage_config: StorageConfig = Depends(get_storage_config)):
    if storage_config.is_remote:
        raise NotFoundError("Not found")

    root = os.path.realpath(storage_config.local_path)
    path = os.path.realpath(os.path.join(root, name))
    if os.path.dirname(path) != root or not os.path.isfile(path):
        raise NotFoundError("Not found")
    return FileResponse(path)
