"""Author image storage.

An UploadStore is built from UploadConfig by create_app() and reached
through the get_upload_store dependency. It writes files below its own
directory and hands back only the public relative path that gets stored
on the Author row.
"""

import logging
import os
import re
import secrets
import shutil

from fastapi import Request
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from patterns.domain_config import UploadConfig

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def is_present(upload) -> bool:
    """True when a form value is a real file upload with a filename."""
    return isinstance(upload, UploadFile) and bool(upload.filename)


def safe_filename(filename: str | None) -> str:
    """Reduce a client filename to characters that are safe in a URL path."""
    name = _UNSAFE_CHARS.sub("_", os.path.basename(filename or "")).lstrip(".")
    return name or "upload"


class UploadStore:
    """Save uploaded files under a configured directory."""

    def __init__(self, config: UploadConfig):
        self.directory = os.path.abspath(config.directory)
        self.url_prefix = "/" + config.url_prefix.strip("/")
        os.makedirs(self.directory, exist_ok=True)

    async def save(self, upload: UploadFile) -> str:
        """Persist ``upload`` and return its relative public path."""
        stored_name = f"{secrets.token_hex(4)}_{safe_filename(upload.filename)}"
        target = os.path.join(self.directory, stored_name)

        def _copy() -> None:
            upload.file.seek(0)
            with open(target, "wb") as fh:
                shutil.copyfileobj(upload.file, fh)

        await run_in_threadpool(_copy)
        logger.info("upload_saved name=%s", stored_name)
        return f"{self.url_prefix}/{stored_name}"

    def path_for(self, public_path: str | None) -> str | None:
        """Map a stored public path back to a file in this store, if it is one."""
        if not public_path or not public_path.startswith(self.url_prefix + "/"):
            return None
        name = public_path[len(self.url_prefix) + 1:]
        if not name or name != os.path.basename(name):
            return None
        return os.path.join(self.directory, name)

    async def remove(self, public_path: str | None) -> None:
        """Delete a previously saved file; paths outside the store are ignored."""
        target = self.path_for(public_path)
        if target is None:
            return
        try:
            await run_in_threadpool(os.remove, target)
        except FileNotFoundError:
            return
        logger.info("upload_removed name=%s", os.path.basename(target))


def get_upload_store(request: Request) -> UploadStore:
    """FastAPI dependency for the app's UploadStore."""
    return request.app.state.uploads
