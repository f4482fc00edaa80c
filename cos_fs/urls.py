from __future__ import annotations
"""Presigned URL generation and request signing.

When a CDN host is configured, the presigned URL keeps its path and
query (signature included) and only its scheme and host are swapped.
The signature is computed against the origin host, so the CDN must
forward requests to the origin unchanged for such URLs to validate.
"""
from datetime import datetime, timedelta, timezone
import math
from typing import Any, Mapping
from urllib.parse import urlsplit, urlunsplit

from botocore.auth import S3SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials

from .config import CosConfig
from .gateway import ObjectGateway

URL_EXPIRES_IN = 30 * 60


def rewrite_host(url: str, cdn: str, default_scheme: str = "http") -> str:
    """Swap the scheme and host of ``url`` for those of ``cdn``."""
    if "://" not in cdn:
        cdn = f"{default_scheme}://{cdn}"
    target = urlsplit(cdn)
    parts = urlsplit(url)
    return urlunsplit((target.scheme, target.netloc, parts.path, parts.query, parts.fragment))


def seconds_until(expiration: datetime | timedelta, now: datetime | None = None) -> int:
    """Whole seconds until ``expiration``; raises ValueError when it has passed."""
    if isinstance(expiration, timedelta):
        seconds = expiration.total_seconds()
    else:
        if expiration.tzinfo is None:
            expiration = expiration.replace(tzinfo=timezone.utc)
        now = now or datetime.now(timezone.utc)
        seconds = (expiration - now).total_seconds()
    if seconds <= 0:
        raise ValueError("expiration must be in the future")
    return math.ceil(seconds)


class UrlSigner:
    """Builds presigned object URLs and signs ad-hoc requests."""

    def __init__(self, config: CosConfig, gateway: ObjectGateway):
        self._config = config
        self._gateway = gateway

    def url(self, path: str) -> str:
        return self._finalize(self._gateway.presign(path, URL_EXPIRES_IN))

    def temporary_url(
        self,
        path: str,
        expiration: datetime | timedelta,
        options: Mapping[str, Any] | None = None,
    ) -> str:
        """Presign ``path`` until ``expiration``.

        ``options`` are merged into the presign parameters (for example
        ``ResponseContentDisposition``); Bucket and Key cannot be overridden.
        """
        return self._finalize(
            self._gateway.presign(path, seconds_until(expiration), options)
        )

    def _finalize(self, url: str) -> str:
        if self._config.cdn:
            return rewrite_host(url, self._config.cdn, self._config.scheme)
        return url

    def sign_headers(self, method: str, url: str) -> dict[str, str]:
        """Sign a caller-built request and return the headers to send with it."""
        request = AWSRequest(method=method.upper(), url=url)
        credentials = Credentials(self._config.secret_id, self._config.secret_key)
        S3SigV4Auth(credentials, "s3", self._gateway.resolver.region()).add_auth(request)
        return dict(request.headers.items())

    def authorization(self, method: str, url: str) -> str:
        return self.sign_headers(method, url)["Authorization"]
