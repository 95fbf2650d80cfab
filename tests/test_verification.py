"""Tests for the live verification client."""

import json

import httpx
import pytest

from creator_credentials.credential.models import VerificationOutcome
from creator_credentials.credential.verification import (
    HttpVerificationClient,
    VerificationCapability,
    parse_outcome,
    verify_with,
)
from creator_credentials.exceptions import VerificationTransportError

from tests.conftest import HOLDER, PROGRAM_ID, FakeVerifier

VERIFY_URL = "https://verify.test/v1/verify"


def make_client(handler) -> HttpVerificationClient:
    return HttpVerificationClient(VERIFY_URL, timeout=1.0, transport=httpx.MockTransport(handler))


class TestParseOutcome:

    @pytest.mark.parametrize("outcome", list(VerificationOutcome))
    def test_known_values(self, outcome):
        assert parse_outcome(outcome.value) is outcome

    def test_enum_passes_through(self):
        assert parse_outcome(VerificationOutcome.REVOKED) is VerificationOutcome.REVOKED

    @pytest.mark.parametrize("value", ["compliant", "Approved", None, 3])
    def test_unknown_values_raise(self, value):
        with pytest.raises(VerificationTransportError):
            parse_outcome(value)


class TestHttpVerificationClient:

    @pytest.mark.asyncio
    async def test_sends_program_holder_and_bearer(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"status": "Compliant"})

        outcome = await make_client(handler).verify(HOLDER, "tok.en.sig", PROGRAM_ID)

        assert outcome is VerificationOutcome.COMPLIANT
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == VERIFY_URL
        assert request.headers["Authorization"] == "Bearer tok.en.sig"
        assert json.loads(request.content) == {"programId": PROGRAM_ID, "holderId": HOLDER}

    @pytest.mark.asyncio
    async def test_non_success_status_is_error(self):
        client = make_client(lambda request: httpx.Response(503, json={"status": "Compliant"}))
        assert await client.verify(HOLDER, "t", PROGRAM_ID) is VerificationOutcome.ERROR

    @pytest.mark.asyncio
    async def test_malformed_body_is_error(self):
        client = make_client(lambda request: httpx.Response(200, text="<html>oops</html>"))
        assert await client.verify(HOLDER, "t", PROGRAM_ID) is VerificationOutcome.ERROR

    @pytest.mark.asyncio
    async def test_missing_status_is_error(self):
        client = make_client(lambda request: httpx.Response(200, json={"result": "ok"}))
        assert await client.verify(HOLDER, "t", PROGRAM_ID) is VerificationOutcome.ERROR

    @pytest.mark.asyncio
    async def test_unknown_status_is_error(self):
        client = make_client(lambda request: httpx.Response(200, json={"status": "Approved"}))
        assert await client.verify(HOLDER, "t", PROGRAM_ID) is VerificationOutcome.ERROR

    @pytest.mark.asyncio
    async def test_connection_error_is_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        assert await make_client(handler).verify(HOLDER, "t", PROGRAM_ID) is VerificationOutcome.ERROR

    @pytest.mark.asyncio
    async def test_negative_attestation_is_not_error(self):
        client = make_client(lambda request: httpx.Response(200, json={"status": "NotFound"}))
        assert await client.verify(HOLDER, "t", PROGRAM_ID) is VerificationOutcome.NOT_FOUND

    def test_satisfies_capability_protocol(self):
        assert isinstance(HttpVerificationClient(VERIFY_URL), VerificationCapability)


class TestVerifyWith:

    @pytest.mark.asyncio
    async def test_missing_capability(self):
        assert await verify_with(None, HOLDER, "t", PROGRAM_ID) is VerificationOutcome.ERROR

    @pytest.mark.asyncio
    async def test_missing_program_id(self):
        verifier = FakeVerifier()
        assert await verify_with(verifier, HOLDER, "t", None) is VerificationOutcome.ERROR
        assert verifier.calls == []

    @pytest.mark.asyncio
    async def test_capability_exception(self):
        verifier = FakeVerifier(error=RuntimeError("sdk crashed"))
        assert await verify_with(verifier, HOLDER, "t", PROGRAM_ID) is VerificationOutcome.ERROR

    @pytest.mark.asyncio
    async def test_timeout(self):
        verifier = FakeVerifier(VerificationOutcome.COMPLIANT, delay=1.0)
        outcome = await verify_with(verifier, HOLDER, "t", PROGRAM_ID, timeout=0.05)
        assert outcome is VerificationOutcome.ERROR

    @pytest.mark.asyncio
    async def test_passes_outcome_through(self):
        verifier = FakeVerifier(VerificationOutcome.REVOKING)
        assert await verify_with(verifier, HOLDER, "t", PROGRAM_ID) is VerificationOutcome.REVOKING
