from __future__ import annotations
"""Bucket, region and address resolution for COS."""
import re
from types import MappingProxyType

from .config import CosConfig

REGION_ALIASES = MappingProxyType(
    {
        "cn-east": "ap-shanghai",
        "cn-sorth": "ap-guangzhou",
        "cn-north": "ap-beijing-1",
        "cn-south-2": "ap-guangzhou-2",
        "cn-southwest": "ap-chengdu",
        "sg": "ap-singapore",
        "tj": "ap-beijing-1",
        "bj": "ap-beijing",
        "sh": "ap-shanghai",
        "gz": "ap-guangzhou",
        "cd": "ap-chengdu",
        "sgp": "ap-singapore",
    }
)


class AddressResolver:
    """Computes bucket identifiers and fully-qualified object addresses."""

    def __init__(self, config: CosConfig):
        self._config = config

    @property
    def app_id(self) -> str:
        return self._config.app_id

    def bucket(self) -> str:
        """Configured bucket name without a trailing ``-appId`` suffix."""
        return re.sub(f"(?:-{re.escape(self.app_id)})+$", "", self._config.bucket)

    def bucket_with_app_id(self) -> str:
        return f"{self.bucket()}-{self.app_id}"

    def region(self) -> str:
        return REGION_ALIASES.get(self._config.region, self._config.region)

    def endpoint_url(self) -> str:
        return f"{self._config.scheme}://cos.{self.region()}.myqcloud.com"

    def source_address(self, path: str) -> str:
        return f"{self.bucket_with_app_id()}.cos.{self.region()}.myqcloud.com/{path}"

    def picture_address(self, path: str) -> str:
        return f"{self.bucket_with_app_id()}.pic.{self.region()}.myqcloud.com/{path}"
