from __future__ import annotations
"""Thin synchronous wrapper around the COS S3-compatible API."""
import logging
from typing import IO, Any, Callable, Iterable, Mapping, Union

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from .addressing import AddressResolver
from .config import CosConfig

LOGGER = logging.getLogger(__name__)

NOT_FOUND_CODES = frozenset({"NoSuchKey", "NotFound", "404"})
MAX_BATCH_DELETE = 1000

Contents = Union[bytes, str, IO[bytes]]


class ProviderError(RuntimeError):
    """Raised when a call to the object store fails for any reason."""

    def __init__(
        self,
        operation: str,
        message: str,
        *,
        code: str | None = None,
        status: int | None = None,
    ):
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.code = code
        self.status = status

    @property
    def not_found(self) -> bool:
        return self.status == 404 or (self.code or "") in NOT_FOUND_CODES

    @classmethod
    def from_client_error(cls, operation: str, exc: ClientError) -> ProviderError:
        error = exc.response.get("Error", {})
        metadata = exc.response.get("ResponseMetadata", {})
        return cls(
            operation,
            error.get("Message") or str(exc),
            code=error.get("Code"),
            status=metadata.get("HTTPStatusCode"),
        )


class ObjectGateway:
    """Forwards object operations to the provider for a single bucket."""

    def __init__(
        self,
        config: CosConfig,
        *,
        client=None,
        client_factory: Callable[..., object] | None = None,
    ):
        self._config = config
        self._resolver = AddressResolver(config)
        if client is None:
            client = self._create_client(client_factory or boto3.client)
        self._client = client

    @property
    def client(self):
        return self._client

    @property
    def resolver(self) -> AddressResolver:
        return self._resolver

    @property
    def bucket(self) -> str:
        return self._resolver.bucket_with_app_id()

    def _create_client(self, client_factory: Callable[..., object]):
        config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "virtual"},
            connect_timeout=self._config.connect_timeout or 60,
            read_timeout=self._config.timeout or 60,
            retries={"total_max_attempts": 1},
        )
        return client_factory(
            "s3",
            endpoint_url=self._resolver.endpoint_url(),
            region_name=self._resolver.region(),
            aws_access_key_id=self._config.secret_id,
            aws_secret_access_key=self._config.secret_key,
            config=config,
        )

    def _call(self, operation: str, **params: Any):
        method = getattr(self._client, operation)
        try:
            return method(**params)
        except ClientError as exc:
            raise ProviderError.from_client_error(operation, exc) from exc
        except BotoCoreError as exc:
            raise ProviderError(operation, str(exc)) from exc

    def get(self, key: str) -> dict:
        return self._call("get_object", Bucket=self.bucket, Key=key)

    def head(self, key: str) -> dict:
        return self._call("head_object", Bucket=self.bucket, Key=key)

    def put(self, key: str, body: bytes = b"", **options: Any) -> dict:
        LOGGER.debug("Putting '%s' (%d bytes)", key, len(body))
        return self._call("put_object", Bucket=self.bucket, Key=key, Body=body, **options)

    def upload(self, key: str, contents: Contents, options: Mapping[str, Any] | None = None) -> dict:
        """Upload ``contents`` to ``key``.

        Streams are read fully into memory before the request is sent.
        Seekable streams are rewound first; others are read from their
        current position.
        """
        if isinstance(contents, str):
            body = contents.encode("utf-8")
        elif isinstance(contents, (bytes, bytearray)):
            body = bytes(contents)
        else:
            seekable = getattr(contents, "seekable", None)
            if seekable is not None and seekable():
                contents.seek(0)
            body = contents.read()
        return self.put(key, body, **dict(options or {}))

    def upload_options(
        self,
        *,
        visibility: str | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Encryption first, then caller params, then the ACL; later keys win."""
        options: dict[str, Any] = {}
        if self._config.encrypt:
            options["ServerSideEncryption"] = "AES256"
        if params:
            options.update(params)
        if visibility:
            options["ACL"] = visibility
        return options

    def delete(self, key: str) -> dict:
        LOGGER.debug("Deleting '%s'", key)
        return self._call("delete_object", Bucket=self.bucket, Key=key)

    def delete_many(self, keys: Iterable[str]) -> int:
        """Delete ``keys`` in batches; returns the number of keys sent."""
        pending = list(keys)
        for start in range(0, len(pending), MAX_BATCH_DELETE):
            chunk = pending[start:start + MAX_BATCH_DELETE]
            LOGGER.debug("Batch deleting %d key(s)", len(chunk))
            response = self._call(
                "delete_objects",
                Bucket=self.bucket,
                Delete={"Objects": [{"Key": key} for key in chunk], "Quiet": True},
            )
            errors = response.get("Errors") or []
            if errors:
                first = errors[0]
                raise ProviderError(
                    "delete_objects",
                    f"{len(errors)} key(s) not deleted, first '{first.get('Key')}': {first.get('Message')}",
                    code=first.get("Code"),
                )
        return len(pending)

    def copy(self, source: str, destination: str) -> dict:
        LOGGER.debug("Copying '%s' to '%s'", source, destination)
        return self._call(
            "copy_object",
            Bucket=self.bucket,
            Key=destination,
            CopySource=self._resolver.source_address(source),
        )

    def list(self, *, prefix: str, delimiter: str, marker: str = "", max_keys: int = 1000) -> dict:
        return self._call(
            "list_objects",
            Bucket=self.bucket,
            Prefix=prefix,
            Delimiter=delimiter,
            Marker=marker,
            MaxKeys=max_keys,
        )

    def get_acl(self, key: str) -> dict:
        return self._call("get_object_acl", Bucket=self.bucket, Key=key)

    def put_acl(self, key: str, acl: str) -> dict:
        LOGGER.debug("Setting ACL '%s' on '%s'", acl, key)
        return self._call("put_object_acl", Bucket=self.bucket, Key=key, ACL=acl)

    def presign(self, key: str, expires_in: int, params: Mapping[str, Any] | None = None) -> str:
        request_params = dict(params or {})
        request_params.update({"Bucket": self.bucket, "Key": key})
        return self._call(
            "generate_presigned_url",
            ClientMethod="get_object",
            Params=request_params,
            ExpiresIn=expires_in,
        )
