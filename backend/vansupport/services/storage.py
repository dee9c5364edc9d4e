from __future__ import annotations
"""Attachment storage on the local filesystem.

Type and size rules are checked before anything is written. The stored
file's public URL is PUBLIC_UPLOAD_BASE_URL/<ticket id>/<unique name>.
"""
import os
import uuid
from dataclasses import dataclass
from flask import abort, current_app
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from vansupport.constants.ticketing import MAX_IMAGE_BYTES, MAX_VIDEO_BYTES

SIZE_LIMITS = {'image': MAX_IMAGE_BYTES, 'video': MAX_VIDEO_BYTES}


@dataclass(frozen=True)
class StoredFile:
    file_name: str
    mime_type: str
    size_bytes: int
    public_url: str
    path: str


def _file_size(upload: FileStorage) -> int:
    stream = upload.stream
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def check_upload(upload: FileStorage) -> int:
    """Return the size in bytes or abort: 400 for unsupported types, 413 when too large."""
    mime = (upload.mimetype or '').lower()
    family = mime.split('/', 1)[0]
    limit = SIZE_LIMITS.get(family)
    if limit is None:
        abort(400, description='Only image and video files can be uploaded')
    size = _file_size(upload)
    if size == 0:
        abort(400, description='Uploaded file is empty')
    if size > limit:
        abort(413, description=f'{family.capitalize()} files must be {limit // (1024 * 1024)}MB or smaller')
    return size


def store_upload(upload: FileStorage, ticket_id: str) -> StoredFile:
    size = check_upload(upload)
    original = secure_filename(upload.filename or '') or 'upload'
    stored_name = f'{uuid.uuid4().hex}_{original}'
    folder = os.path.join(current_app.config['UPLOAD_FOLDER'], ticket_id)
    os.makedirs(folder, exist_ok=True)
    path = os.path.join(folder, stored_name)
    upload.save(path)
    base = current_app.config['PUBLIC_UPLOAD_BASE_URL'].rstrip('/')
    return StoredFile(
        file_name=original,
        mime_type=upload.mimetype,
        size_bytes=size,
        public_url=f'{base}/{ticket_id}/{stored_name}',
        path=path,
    )


def discard_upload(stored: StoredFile) -> None:
    """Remove a stored file whose attachment row was never committed."""
    if os.path.exists(stored.path):
        os.remove(stored.path)
