import logging
import pathlib
import uuid
from werkzeug.utils import secure_filename

from .errors import StorageError, UploadError

log = logging.getLogger(__name__)

IMAGE_EXTS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
VIDEO_EXTS = {".mp4", ".mov", ".webm", ".m4v"}
ALLOWED_EXTS = IMAGE_EXTS | VIDEO_EXTS


def media_type(filename: str, mimetype: str | None = None) -> str:
    """'video' for video uploads, 'image' for everything else we accept."""
    if mimetype and mimetype.startswith("video/"):
        return "video"
    if pathlib.Path(filename or "").suffix.lower() in VIDEO_EXTS:
        return "video"
    return "image"


class MediaStorage:
    """
    Object store for uploaded media, kept on the local filesystem under
    UPLOAD_ROOT and served from MEDIA_URL.

    Objects are addressed by a relative path '<prefix>/<random>.<ext>'.
    """

    def __init__(self, app=None):
        self.root: pathlib.Path | None = None
        self.base_url = "/media"
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.root = pathlib.Path(app.config["UPLOAD_ROOT"])
        self.base_url = app.config.get("MEDIA_URL", "/media")
        self.root.mkdir(parents=True, exist_ok=True)
        app.extensions["media_storage"] = self

    def save(self, file_storage, prefix: str, allowed: set[str] = ALLOWED_EXTS) -> str:
        if not file_storage or not file_storage.filename:
            raise UploadError("No file selected.")

        original = secure_filename(file_storage.filename)
        ext = pathlib.Path(original).suffix.lower()
        if ext not in allowed:
            raise UploadError(f"File type {ext or '(none)'} is not allowed.")

        rel = f"{prefix}/{uuid.uuid4().hex}{ext}"
        dest = self.root / rel
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            file_storage.save(dest)
        except OSError as exc:
            raise StorageError(f"Could not store {rel}") from exc

        log.info("Stored %s as %s", original, rel)
        return rel

    def public_url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path}"

    def remove(self, path: str) -> None:
        try:
            (self.root / path).unlink()
        except FileNotFoundError:
            log.warning("Media object %s was already missing", path)
        except OSError as exc:
            raise StorageError(f"Could not remove {path}") from exc
        else:
            log.info("Removed media object %s", path)
