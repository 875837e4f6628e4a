"""Photo fingerprint - lets autosave skip re-uploading an unchanged photo."""
import hashlib
import json
from typing import Any


def photo_fingerprint(photo: Any) -> str | None:
    """
    Fingerprint of a photo value from its serializable metadata.
    A str (already-stored URL) fingerprints as itself, None as None, and a file-like
    object by {lastModified, name, size, type}. Key order is alphabetical.
    """
    if photo is None:
        return None
    if isinstance(photo, str):
        return photo
    if isinstance(photo, dict):
        meta = photo
    else:
        meta = {
            "name": getattr(photo, "name", None) or getattr(photo, "filename", None),
            "size": getattr(photo, "size", None),
            "type": getattr(photo, "content_type", None) or getattr(photo, "type", None),
            "lastModified": getattr(photo, "last_modified", None),
        }
    payload = json.dumps(
        {
            "lastModified": meta.get("lastModified"),
            "name": meta.get("name"),
            "size": meta.get("size"),
            "type": meta.get("type"),
        },
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:32]
