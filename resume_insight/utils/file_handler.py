import logging
import uuid
from pathlib import Path, PurePosixPath

import aiofiles
import aiofiles.os
from fastapi import UploadFile

from ..exceptions import StorageError

logger = logging.getLogger("object_storage")

CHUNK_SIZE = 1024 * 1024  # 1MB
PRIVATE_PREFIX = "private/"


class ObjectStorage:
    """
    Bucket/key object storage backed by a local directory.
    Each bucket is a sub-directory of ``root``; keys may contain slashes.
    """

    def __init__(self, root: str):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, bucket: str, key: str) -> Path:
        parts = PurePosixPath(key).parts
        if not bucket or not parts or ".." in parts or PurePosixPath(key).is_absolute():
            raise StorageError(f"Invalid object location: {bucket}/{key}")
        return self.root / bucket / Path(*parts)

    async def get_size(self, bucket: str, key: str) -> int:
        path = self.path_for(bucket, key)
        try:
            stat = await aiofiles.os.stat(path)
        except FileNotFoundError as e:
            raise StorageError(f"Object not found: {bucket}/{key}") from e
        return stat.st_size

    async def read_bytes(self, bucket: str, key: str) -> bytes:
        path = self.path_for(bucket, key)
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except FileNotFoundError as e:
            raise StorageError(f"Object not found: {bucket}/{key}") from e

    async def save(self, bucket: str, key: str, data: bytes) -> str:
        path = self.path_for(bucket, key)
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "wb") as out_file:
            await out_file.write(data)
        logger.info(f"Saved object {bucket}/{key} ({len(data)} bytes)")
        return key

    async def delete(self, bucket: str, key: str) -> None:
        path = self.path_for(bucket, key)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            logger.warning(f"Object {bucket}/{key} was already gone")


def build_upload_key(user_id: str, filename: str) -> str:
    """Upload keys follow ``private/{userId}/{uuid}-{filename}``."""
    safe_name = PurePosixPath(filename or "resume").name.replace(" ", "_")
    return f"{PRIVATE_PREFIX}{user_id}/{uuid.uuid4()}-{safe_name}"


async def save_upload_file(storage: ObjectStorage, bucket: str, file: UploadFile, user_id: str) -> tuple:
    """
    Streams an uploaded file into object storage under the user's private prefix.
    Returns (key, size).
    """
    key = build_upload_key(user_id, file.filename)
    path = storage.path_for(bucket, key)
    path.parent.mkdir(parents=True, exist_ok=True)

    size = 0
    async with aiofiles.open(path, "wb") as out_file:
        while content := await file.read(CHUNK_SIZE):  # Read in 1MB chunks
            size += len(content)
            await out_file.write(content)

    logger.info(f"Stored upload {bucket}/{key} ({size} bytes)")
    return key, size
