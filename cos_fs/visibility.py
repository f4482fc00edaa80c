from __future__ import annotations
"""Mapping between abstract visibility and COS object ACLs."""
from .gateway import ObjectGateway
from .models import Visibility

PUBLIC_READ_ACL = "public-read"
ALL_USERS_URI = "global/AllUsers"
READ_PERMISSIONS = frozenset({"READ", "FULL_CONTROL"})


def normalize_visibility(visibility: str) -> str:
    """Translate ``public`` to the provider ACL; pass anything else through."""
    if visibility == Visibility.PUBLIC:
        return PUBLIC_READ_ACL
    return visibility


def visibility_from_grants(grants) -> str:
    for grant in grants or []:
        uri = (grant.get("Grantee") or {}).get("URI") or ""
        if grant.get("Permission") in READ_PERMISSIONS and ALL_USERS_URI in uri:
            return Visibility.PUBLIC
    return Visibility.PRIVATE


class VisibilityTranslator:
    def __init__(self, gateway: ObjectGateway):
        self._gateway = gateway

    def set_visibility(self, path: str, visibility: str) -> None:
        self._gateway.put_acl(path, normalize_visibility(visibility))

    def visibility(self, path: str) -> str:
        response = self._gateway.get_acl(path)
        return visibility_from_grants(response.get("Grants"))
