"""Microsoft Graph group-membership checks."""

from typing import Any, Protocol
from uuid import UUID

import httpx
from azure.core.credentials_async import AsyncTokenCredential

GRAPH_SCOPE = "https://graph.microsoft.com/.default"


class IdentityDirectory(Protocol):
    """Membership lookups against the identity directory."""

    async def check_member_groups(
        self, user_id: UUID, group_ids: list[UUID]
    ) -> list[str] | None:
        """Return the subset of ``group_ids`` the user belongs to.

        ``None`` means the directory returned no list at all.
        """
        ...


class GraphDirectory:
    """Calls ``POST /users/{id}/checkMemberGroups`` with an app token."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        credential: AsyncTokenCredential,
        base_url: str,
    ) -> None:
        self._http = http
        self._credential = credential
        self._base_url = base_url.rstrip("/")

    async def _headers(self) -> dict[str, str]:
        token = await self._credential.get_token(GRAPH_SCOPE)
        return {"Authorization": f"Bearer {token.token}"}

    async def check_member_groups(
        self, user_id: UUID, group_ids: list[UUID]
    ) -> list[str] | None:
        url = f"{self._base_url}/users/{user_id}/checkMemberGroups"
        body = {"groupIds": [str(g) for g in group_ids]}
        response = await self._http.post(url, json=body, headers=await self._headers())
        response.raise_for_status()
        payload: Any = response.json()
        if not isinstance(payload, dict):
            raise ValueError("checkMemberGroups returned a non-object body")
        value = payload.get("value")
        if value is None:
            return None
        if not isinstance(value, list):
            raise ValueError("checkMemberGroups returned a non-list value")
        return [str(v) for v in value]
