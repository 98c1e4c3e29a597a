"""Tests for group-gated token issuance."""

from types import SimpleNamespace
from typing import Any

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from kvoidc.core.errors import ErrorKind
from kvoidc.core.result import Err, Ok
from kvoidc.oidc import token_service
from kvoidc.oidc.token_service import (
    is_member_of_group,
    issue_token,
    parse_group_object_id,
    parse_requestor_object_id,
)
from kvoidc.oidc.types import IssuanceContext, TokenRequest

from conftest import GROUP_OID, HOSTNAME, KEY_NAME, REQUESTOR_OID, FakeGraph, FakeKeyVault


@pytest.fixture
def ctx(vault: FakeKeyVault, graph: FakeGraph) -> IssuanceContext:
    return IssuanceContext(
        key_directory=vault,
        identity_directory=graph,
        key_name=KEY_NAME,
        issuer=f"https://{HOSTNAME}",
    )


def _request(group: str | None = str(GROUP_OID), **claims: Any) -> TokenRequest:
    return TokenRequest(group_object_id=group, claims=claims or {"oid": str(REQUESTOR_OID)})


class TestParsing:
    """Input validation before any remote call."""

    def test_missing_group(self) -> None:
        result = parse_group_object_id(None)
        assert isinstance(result, Err)
        assert result.error.kind is ErrorKind.VALIDATION
        assert result.error.message == "group_object_id query parameter is required"

    @pytest.mark.parametrize("raw", ["not-a-guid", "1234", "0b7c1f3e-6a2d-4e8b-9c3f"])
    def test_malformed_group(self, raw: str) -> None:
        result = parse_group_object_id(raw)
        assert isinstance(result, Err)
        assert result.error.message == "group_object_id is not a valid GUID"

    def test_group_case_insensitive(self) -> None:
        result = parse_group_object_id(str(GROUP_OID).upper())
        assert result == Ok(GROUP_OID)

    @pytest.mark.parametrize("claims", [{}, {"oid": ""}, {"oid": 42}, {"oid": "nope"}])
    def test_bad_requestor_claim(self, claims: dict[str, Any]) -> None:
        result = parse_requestor_object_id(claims)
        assert isinstance(result, Err)
        assert result.error.kind is ErrorKind.VALIDATION


class TestMembership:
    """Tests for the directory membership decision."""

    async def test_member(self, ctx: IssuanceContext, graph: FakeGraph) -> None:
        graph.result = [str(GROUP_OID).upper()]
        assert await is_member_of_group(ctx, REQUESTOR_OID, GROUP_OID) == Ok(True)
        assert graph.calls == [(REQUESTOR_OID, [GROUP_OID])]

    @pytest.mark.parametrize("found", [None, [], ["garbage"], [str(REQUESTOR_OID)]])
    async def test_not_member(
        self, ctx: IssuanceContext, graph: FakeGraph, found: list[str] | None
    ) -> None:
        graph.result = found
        assert await is_member_of_group(ctx, REQUESTOR_OID, GROUP_OID) == Ok(False)

    async def test_missing_list_warns_once(
        self, ctx: IssuanceContext, graph: FakeGraph, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        events: list[tuple[str, str]] = []
        recorder = SimpleNamespace(
            warning=lambda event, **kw: events.append(("warning", event)),
            info=lambda event, **kw: events.append(("info", event)),
        )
        monkeypatch.setattr(token_service, "logger", recorder)
        graph.result = None
        assert await is_member_of_group(ctx, REQUESTOR_OID, GROUP_OID) == Ok(False)
        assert events == [("warning", "member_groups_empty")]

    async def test_directory_failure(self, ctx: IssuanceContext, graph: FakeGraph) -> None:
        graph.error = ConnectionError("graph down")
        result = await is_member_of_group(ctx, REQUESTOR_OID, GROUP_OID)
        assert isinstance(result, Err)
        assert result.error.kind is ErrorKind.DEPENDENCY


class TestIssueToken:
    """End-to-end issuance through the service function."""

    async def test_missing_group_skips_directory(
        self, ctx: IssuanceContext, graph: FakeGraph
    ) -> None:
        result = await issue_token(ctx, _request(group=None))
        assert isinstance(result, Err)
        assert result.error.kind is ErrorKind.VALIDATION
        assert graph.calls == []

    async def test_not_member_never_signs(
        self, ctx: IssuanceContext, graph: FakeGraph, vault: FakeKeyVault
    ) -> None:
        graph.result = []
        result = await issue_token(ctx, _request())
        assert isinstance(result, Err)
        assert result.error.kind is ErrorKind.AUTHORIZATION
        assert vault.get_calls == []
        assert vault.sign_calls == []

    async def test_member_gets_signed_token(
        self,
        ctx: IssuanceContext,
        graph: FakeGraph,
        vault: FakeKeyVault,
        rsa_private_key: rsa.RSAPrivateKey,
    ) -> None:
        graph.result = [str(GROUP_OID)]
        result = await issue_token(ctx, _request())
        assert isinstance(result, Ok)
        body = result.value
        assert body.requestor_object_id == REQUESTOR_OID
        assert body.requested_group_object_id == GROUP_OID

        claims = jwt.decode(
            body.access_token,
            rsa_private_key.public_key(),
            algorithms=["RS256"],
            audience="api://AzureADTokenExchange",
            issuer=f"https://{HOSTNAME}",
        )
        assert claims["sub"] == str(GROUP_OID)
        assert claims["requestor_oid"] == str(REQUESTOR_OID)
        assert claims["exp"] - claims["nbf"] == 600
        assert vault.get_calls == [None]
        assert len(vault.sign_calls) == 1

    async def test_disabled_current_key(
        self, ctx: IssuanceContext, graph: FakeGraph, vault: FakeKeyVault
    ) -> None:
        graph.result = [str(GROUP_OID)]
        vault.keys["v1"] = (vault.keys["v1"][0], False, "RSA-HSM")
        result = await issue_token(ctx, _request())
        assert isinstance(result, Err)
        assert result.error.kind is ErrorKind.DEPENDENCY
        assert vault.sign_calls == []

    async def test_sign_failure_is_dependency_error(
        self, ctx: IssuanceContext, graph: FakeGraph, vault: FakeKeyVault
    ) -> None:
        graph.result = [str(GROUP_OID)]
        vault.fail_sign = True
        result = await issue_token(ctx, _request())
        assert isinstance(result, Err)
        assert result.error.kind is ErrorKind.DEPENDENCY
        assert result.error.message == "failed to create token"
        assert len(vault.sign_calls) == 1
