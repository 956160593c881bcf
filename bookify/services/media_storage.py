"""Relay uploaded files to the media host and hand back public URLs.

Two backends share the same ``upload`` / ``delete`` interface:

* ``CloudinaryStorage`` hands the file to the Cloudinary SDK uploader.
* ``LocalStorage`` writes under ``UPLOAD_FOLDER`` and serves the files from
  ``/uploads/<path>``; used in development and tests.

Files are streamed straight from the request's ``FileStorage``; nothing is
written to a temporary location first.
"""
import logging
import os
import time
import uuid
from typing import Dict

import cloudinary.exceptions
import cloudinary.uploader
from flask import current_app, url_for
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

LOG = logging.getLogger(__name__)


class MediaStorageError(RuntimeError):
    """Raised when the media host rejects or never acknowledges a file."""


def file_size(file_storage: FileStorage) -> int:
    stream = file_storage.stream
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


class CloudinaryStorage:
    # Cloudinary answers 420 and 5xx with these; anything else is a bad request
    RETRYABLE = (cloudinary.exceptions.GeneralError, cloudinary.exceptions.RateLimited)

    def __init__(self, cloud_name: str, api_key: str, api_secret: str,
                 timeout: int = 120, retries: int = 3, backoff: float = 1.0):
        if not (cloud_name and api_key and api_secret):
            raise MediaStorageError("Cloudinary credentials are not configured")
        self.credentials = {
            'cloud_name': cloud_name,
            'api_key': api_key,
            'api_secret': api_secret,
            'secure': True,
        }
        self.timeout = timeout
        self.retries = max(1, retries)
        self.backoff = backoff

    def _call(self, action, *args, **options) -> Dict:
        options.update(self.credentials, timeout=self.timeout)
        last_error = None
        for attempt in range(1, self.retries + 1):
            try:
                return action(*args, **options)
            except self.RETRYABLE as e:
                last_error = e
            except cloudinary.exceptions.Error as e:
                raise MediaStorageError(f"Media host rejected the request: {e}") from e
            LOG.warning("Media host call failed (attempt %s/%s): %s", attempt, self.retries, last_error)
            if attempt < self.retries:
                time.sleep(self.backoff * (2 ** (attempt - 1)))
        raise MediaStorageError(f"Media host unavailable after {self.retries} attempts: {last_error}")

    def upload(self, file_storage: FileStorage, folder: str, resource_type: str = 'image') -> Dict:
        def send(**options):
            # A retry must resend the whole file
            file_storage.stream.seek(0)
            return cloudinary.uploader.upload(file_storage.stream, **options)

        options = {'folder': folder, 'resource_type': resource_type}
        if resource_type == 'raw':
            options['access_mode'] = 'public'
        data = self._call(send, **options)
        if not data.get('secure_url'):
            raise MediaStorageError("Media host response carried no URL")
        return {
            'url': data['secure_url'],
            'public_id': data.get('public_id'),
            'resource_type': resource_type,
        }

    def delete(self, public_id: str, resource_type: str = 'image') -> None:
        result = self._call(cloudinary.uploader.destroy, public_id, resource_type=resource_type, invalidate=True)
        if result.get('result') not in ('ok', 'not found'):
            raise MediaStorageError(f"Media host could not delete {public_id}: {result}")


class LocalStorage:
    def __init__(self, root: str):
        self.root = root

    def upload(self, file_storage: FileStorage, folder: str, resource_type: str = 'image') -> Dict:
        filename = secure_filename(file_storage.filename or '') or 'upload'
        public_id = f"{folder}/{uuid.uuid4().hex}_{filename}"
        path = os.path.join(self.root, *public_id.split('/'))
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            file_storage.stream.seek(0)
            file_storage.save(path)
        except OSError as e:
            raise MediaStorageError(f"Could not store {filename}: {e}") from e
        return {
            'url': url_for('uploaded_file', filename=public_id, _external=True),
            'public_id': public_id,
            'resource_type': resource_type,
        }

    def delete(self, public_id: str, resource_type: str = 'image') -> None:
        path = os.path.join(self.root, *public_id.split('/'))
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise MediaStorageError(f"Could not delete {public_id}: {e}") from e


def create_media_storage(config):
    backend = config.get('MEDIA_BACKEND', 'cloudinary')
    if backend == 'local':
        return LocalStorage(config['UPLOAD_FOLDER'])
    if backend == 'cloudinary':
        return CloudinaryStorage(
            config.get('CLOUDINARY_CLOUD_NAME'),
            config.get('CLOUDINARY_API_KEY'),
            config.get('CLOUDINARY_API_SECRET'),
            timeout=config.get('MEDIA_TIMEOUT', 120),
            retries=config.get('MEDIA_RETRIES', 3),
            backoff=config.get('RETRY_BACKOFF', 1.0),
        )
    raise ValueError(f"Unknown MEDIA_BACKEND: {backend}")


def get_media_storage():
    storage = current_app.extensions.get('media_storage')
    if storage is None:
        storage = create_media_storage(current_app.config)
        current_app.extensions['media_storage'] = storage
    return storage


def discard(storage, uploaded: Dict) -> None:
    """Best-effort removal of an uploaded asset; failures are only logged."""
    try:
        storage.delete(uploaded['public_id'], uploaded['resource_type'])
    except (MediaStorageError, KeyError) as e:
        LOG.error("Could not remove orphaned upload %s: %s", uploaded.get('public_id'), e)


def upload_book_files(cover: FileStorage, content: FileStorage, book_type: str):
    """Upload the cover then the book content.

    If the content upload fails the cover is removed again so no asset is
    left without a book pointing at it.
    """
    storage = get_media_storage()
    cover_upload = storage.upload(cover, folder='book-covers', resource_type='image')
    if book_type == 'audio':
        folder, resource_type = 'audio-books', 'video'
    else:
        folder, resource_type = 'book-pdfs', 'raw'
    try:
        content_upload = storage.upload(content, folder=folder, resource_type=resource_type)
    except MediaStorageError:
        discard(storage, cover_upload)
        raise
    return cover_upload, content_upload
