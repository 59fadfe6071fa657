import os
import uuid
from typing import Optional

from flask import url_for
from werkzeug.utils import secure_filename

from ..errors import InputInvalid

ALLOWED_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp"}
PHOTO_DIR = "voting-photos"


class PhotoStorage:
    """
    File-object store for subject photos.

    Files land under ``<root>/voting-photos/`` with a collision-resistant
    name and are served back through the ``media`` endpoint.
    """

    def __init__(self, root: str):
        self.root = root

    @classmethod
    def from_app(cls, app) -> "PhotoStorage":
        storage = cls(app.config["UPLOAD_FOLDER"])
        app.extensions["photo_storage"] = storage
        return storage

    @staticmethod
    def extension_of(filename: str) -> str:
        name = secure_filename(filename or "")
        if "." not in name:
            return ""
        return name.rsplit(".", 1)[1].lower()

    def upload(self, file, owner_id) -> str:
        ext = self.extension_of(getattr(file, "filename", ""))
        if ext not in ALLOWED_EXTENSIONS:
            raise InputInvalid(details={"photo": [f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}."]})

        relative_path = f"{PHOTO_DIR}/{owner_id}-{uuid.uuid4().hex}.{ext}"
        target = os.path.join(self.root, *relative_path.split("/"))
        os.makedirs(os.path.dirname(target), exist_ok=True)
        file.save(target)
        return self.public_url(relative_path)

    @staticmethod
    def public_url(relative_path: str) -> str:
        return url_for("media", filename=relative_path, _external=True)

    def discard(self, url: Optional[str]) -> bool:
        """Delete a file previously returned by ``upload``; unknown URLs are ignored."""
        marker = f"/{PHOTO_DIR}/"
        if not url or marker not in url:
            return False
        name = url.rsplit(marker, 1)[1]
        if not name or name != secure_filename(name):
            return False
        target = os.path.join(self.root, PHOTO_DIR, name)
        try:
            os.remove(target)
        except FileNotFoundError:
            return False
        return True
