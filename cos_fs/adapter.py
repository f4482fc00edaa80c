from __future__ import annotations
"""Filesystem adapter backed by Tencent Cloud Object Storage.

Read-path operations never raise provider errors; they return a
:class:`~cos_fs.models.Result` that tells absence apart from transient
failure. Mutating operations let :class:`~cos_fs.gateway.ProviderError`
propagate to the caller.
"""
from datetime import datetime, timedelta
import logging
from typing import IO, Any, Callable, Mapping, TypeVar

import httpx

from .addressing import AddressResolver
from .config import CosConfig
from .directories import DirectoryEmulator
from .gateway import Contents, ObjectGateway, ProviderError
from .models import DirectoryEntry, FileAttributes, Result
from .normalize import file_attributes
from .urls import UrlSigner
from .visibility import VisibilityTranslator, normalize_visibility

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

READ_STREAM_EXPIRES = timedelta(minutes=5)


class ObjectStream:
    """Streamed object body; closing it releases the HTTP connection."""

    def __init__(self, client: httpx.Client, response: httpx.Response):
        self._client = client
        self._response = response

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    def iter_bytes(self, chunk_size: int | None = None):
        return self._response.iter_bytes(chunk_size)

    def read(self) -> bytes:
        return self._response.read()

    def close(self) -> None:
        self._response.close()
        self._client.close()

    def __enter__(self) -> ObjectStream:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class CosAdapter:
    """Exposes filesystem operations over a single COS bucket."""

    def __init__(
        self,
        config: CosConfig,
        *,
        client=None,
        client_factory: Callable[..., object] | None = None,
        http_client_factory: Callable[..., httpx.Client] | None = None,
    ):
        self._config = config
        self._gateway = ObjectGateway(config, client=client, client_factory=client_factory)
        self._directories = DirectoryEmulator(self._gateway)
        self._visibility = VisibilityTranslator(self._gateway)
        self._signer = UrlSigner(config, self._gateway)
        self._http_client_factory = http_client_factory or httpx.Client

    @property
    def config(self) -> CosConfig:
        return self._config

    @property
    def client(self):
        """The underlying provider client."""
        return self._gateway.client

    @property
    def resolver(self) -> AddressResolver:
        return self._gateway.resolver

    def http_client(self) -> httpx.Client:
        return self._http_client_factory(
            timeout=httpx.Timeout(self._config.timeout, connect=self._config.connect_timeout)
        )

    # Addresses and URLs

    def get_source_path(self, path: str) -> str:
        return self.resolver.source_address(path)

    def get_picture_path(self, path: str) -> str:
        return self.resolver.picture_address(path)

    def get_url(self, path: str) -> str:
        return self._signer.url(path)

    def get_temporary_url(
        self,
        path: str,
        expiration: datetime | timedelta,
        options: Mapping[str, Any] | None = None,
    ) -> str:
        return self._signer.temporary_url(path, expiration, options)

    def authorization(self, method: str, url: str) -> str:
        return self._signer.authorization(method, url)

    def sign_headers(self, method: str, url: str) -> dict[str, str]:
        return self._signer.sign_headers(method, url)

    # Mutating operations

    def write(
        self,
        path: str,
        contents: Contents,
        *,
        visibility: str | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> None:
        options = self._gateway.upload_options(
            visibility=normalize_visibility(visibility) if visibility else None,
            params=params,
        )
        self._gateway.upload(path, contents, options)

    def write_stream(
        self,
        path: str,
        stream: IO[bytes],
        *,
        visibility: str | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> None:
        """Write ``stream`` to ``path``; the stream is buffered in memory first."""
        self.write(path, stream, visibility=visibility, params=params)

    update = write
    update_stream = write_stream

    def copy(self, source: str, destination: str) -> None:
        self._gateway.copy(source, destination)

    def move(self, source: str, destination: str) -> None:
        self.copy(source, destination)
        self.delete(source)

    def delete(self, path: str) -> None:
        self._gateway.delete(path)

    def create_directory(self, path: str) -> None:
        self._directories.create_directory(path)

    def delete_directory(self, path: str) -> None:
        self._directories.delete_directory(path)

    def set_visibility(self, path: str, visibility: str) -> None:
        self._visibility.set_visibility(path, visibility)

    # Read-path operations

    def _attempt(self, operation: str, path: str, func: Callable[[], T], failed_value: Any = None) -> Result[T]:
        try:
            return Result.success(func())
        except ProviderError as exc:
            LOGGER.warning("%s for '%s' failed (%s): %s", operation, path, exc.code or "no code", exc)
            if exc.not_found:
                return Result.missing(exc, failed_value)
            return Result.failure(exc, failed_value)

    def read(self, path: str) -> Result[bytes]:
        def _read() -> bytes:
            body = self._gateway.get(path)["Body"]
            return body.read() if hasattr(body, "read") else bytes(body)

        return self._attempt("read", path, _read)

    def read_stream(self, path: str) -> Result[ObjectStream]:
        """Open a streamed download of ``path`` through a short-lived signed URL."""
        try:
            url = self.get_temporary_url(path, READ_STREAM_EXPIRES)
        except ProviderError as exc:
            LOGGER.warning("read_stream for '%s' failed to sign: %s", path, exc)
            return Result.failure(exc)

        client = self.http_client()
        try:
            response = client.send(client.build_request("GET", url), stream=True)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            exc.response.close()
            client.close()
            LOGGER.warning("read_stream for '%s' returned HTTP %d", path, exc.response.status_code)
            if exc.response.status_code == 404:
                return Result.missing(exc)
            return Result.failure(exc)
        except httpx.HTTPError as exc:
            client.close()
            LOGGER.warning("read_stream for '%s' failed: %s", path, exc)
            return Result.failure(exc)
        return Result.success(ObjectStream(client, response))

    def get_metadata(self, path: str) -> Result[FileAttributes]:
        return self._attempt(
            "get_metadata", path, lambda: file_attributes(path, self._gateway.head(path))
        )

    def file_size(self, path: str) -> Result[FileAttributes]:
        return self._project(self.get_metadata(path), lambda meta: FileAttributes(path, size=meta.size))

    def mime_type(self, path: str) -> Result[FileAttributes]:
        return self._project(
            self.get_metadata(path), lambda meta: FileAttributes(path, mime_type=meta.mime_type)
        )

    def last_modified(self, path: str) -> Result[FileAttributes]:
        return self._project(
            self.get_metadata(path), lambda meta: FileAttributes(path, last_modified=meta.last_modified)
        )

    def visibility(self, path: str) -> Result[FileAttributes]:
        return self._attempt(
            "visibility",
            path,
            lambda: FileAttributes(path, visibility=self._visibility.visibility(path)),
        )

    def file_exists(self, path: str) -> Result[bool]:
        def _head() -> bool:
            self._gateway.head(path)
            return True

        return self._attempt("file_exists", path, _head, False)

    has = file_exists

    def directory_exists(self, path: str) -> Result[bool]:
        return self._attempt(
            "directory_exists", path, lambda: self._directories.directory_exists(path), False
        )

    def list_contents(self, path: str = "", deep: bool = False) -> Result[list[DirectoryEntry]]:
        return self._directories.list_contents(path, deep)

    @staticmethod
    def _project(result: Result[FileAttributes], func: Callable[[FileAttributes], FileAttributes]):
        if not result:
            return result
        return Result.success(func(result.value))
