from __future__ import annotations
"""Conversion of provider responses into adapter records."""
from datetime import datetime
import posixpath
from typing import Any, Mapping, Optional

from botocore.utils import parse_timestamp

from .models import DirectoryEntry, FileAttributes


def to_epoch(value: Any) -> Optional[int]:
    """Return ``value`` (a datetime or provider date string) as epoch seconds."""
    if value is None or value == "":
        return None
    if not isinstance(value, datetime):
        value = parse_timestamp(value)
    return int(value.timestamp())


def split_path(key: str) -> dict[str, str]:
    """Decompose ``key`` into dirname, basename, extension and filename."""
    trimmed = key.rstrip("/")
    dirname = posixpath.dirname(trimmed)
    basename = posixpath.basename(trimmed)
    if "." in basename:
        filename, _, extension = basename.rpartition(".")
    else:
        filename, extension = basename, ""
    return {
        "dirname": dirname,
        "basename": basename,
        "extension": extension,
        "filename": filename,
    }


def directory_entry(content: Mapping[str, Any]) -> DirectoryEntry:
    """Build an entry from a ``Contents`` item of a listing."""
    key = content["Key"]
    return DirectoryEntry(
        type="dir" if key.endswith("/") else "file",
        path=key,
        timestamp=to_epoch(content.get("LastModified")),
        size=int(content.get("Size") or 0),
        **split_path(key),
    )


def prefix_entry(prefix: str) -> DirectoryEntry:
    """Build a directory entry from a ``CommonPrefixes`` item."""
    return DirectoryEntry(type="dir", path=prefix, **split_path(prefix))


def file_attributes(path: str, head: Mapping[str, Any]) -> FileAttributes:
    size = head.get("ContentLength")
    return FileAttributes(
        path=path,
        size=int(size) if size is not None else None,
        last_modified=to_epoch(head.get("LastModified")),
        mime_type=head.get("ContentType"),
    )
