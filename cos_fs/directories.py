from __future__ import annotations
"""Directory emulation on top of the flat COS key space.

A directory exists only as a zero-length marker object whose key ends
in ``/``. Listings page through ``list_objects`` until the provider
reports a page that is not truncated.
"""
import logging
from typing import Iterator

from .gateway import ObjectGateway, ProviderError
from .models import DirectoryEntry, ListingPage, Result
from .normalize import directory_entry, prefix_entry

LOGGER = logging.getLogger(__name__)

PAGE_SIZE = 1000


def marker_key(path: str) -> str:
    return f"{path}/"


def listing_prefix(path: str) -> str:
    return "" if path == "" else marker_key(path)


class DirectoryEmulator:
    """Creates, deletes and lists emulated directories."""

    def __init__(self, gateway: ObjectGateway):
        self._gateway = gateway

    def create_directory(self, path: str) -> None:
        self._gateway.put(marker_key(path), b"")

    def delete_directory(self, path: str) -> None:
        """Delete every key under ``path`` and then the marker itself."""
        prefix = marker_key(path)
        keys = [
            entry.path
            for page in self.iter_pages(prefix, "")
            for entry in page.entries
            if entry.path != prefix
        ]
        if keys:
            LOGGER.debug("Removing %d key(s) under '%s'", len(keys), prefix)
            self._gateway.delete_many(keys)
        self._gateway.delete(prefix)

    def directory_exists(self, path: str) -> bool:
        """Return True when the marker exists; raises ProviderError otherwise."""
        self._gateway.head(marker_key(path))
        return True

    def iter_pages(self, prefix: str, delimiter: str) -> Iterator[ListingPage]:
        marker = ""
        while True:
            LOGGER.debug("Listing prefix '%s' from marker '%s'", prefix, marker)
            response = self._gateway.list(
                prefix=prefix,
                delimiter=delimiter,
                marker=marker,
                max_keys=PAGE_SIZE,
            )
            page = self._build_page(prefix, response)
            yield page
            if not page.truncated:
                return
            if not page.next_marker:
                raise ProviderError("list_objects", f"truncated page for '{prefix}' has no cursor")
            marker = page.next_marker

    def list_contents(self, path: str, deep: bool = False) -> Result[list[DirectoryEntry]]:
        prefix = listing_prefix(path)
        entries: list[DirectoryEntry] = []
        try:
            for page in self.iter_pages(prefix, "" if deep else "/"):
                entries.extend(page.entries)
        except ProviderError as exc:
            LOGGER.warning(
                "Listing '%s' stopped after %d entries: %s", prefix, len(entries), exc
            )
            if exc.not_found:
                return Result.missing(exc, entries)
            return Result.failure(exc, entries)
        return Result.success(entries)

    def _build_page(self, prefix: str, response: dict) -> ListingPage:
        contents = response.get("Contents") or []
        entries = [
            directory_entry(content)
            for content in contents
            if not (prefix and content["Key"] == prefix)
        ]
        common_prefixes = response.get("CommonPrefixes") or []
        entries.extend(prefix_entry(common["Prefix"]) for common in common_prefixes)
        next_marker = response.get("NextMarker") or ""
        if not next_marker:
            candidates = [contents[-1]["Key"]] if contents else []
            if common_prefixes:
                candidates.append(common_prefixes[-1]["Prefix"])
            next_marker = max(candidates, default="")
        return ListingPage(
            entries=entries,
            truncated=bool(response.get("IsTruncated", False)),
            next_marker=next_marker,
        )
