"""Pytest fixtures for creator credential tests."""
import asyncio
import os
import tempfile
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

# Configure the environment BEFORE importing the package so config.py and
# the module-level engine pick it up.
_DATA_DIR = tempfile.mkdtemp(prefix="creds-test-")

_RSA_KEY = rsa.generate_private_key(public_exponent=65537, key_size=2048)
TEST_PRIVATE_KEY_PEM = _RSA_KEY.private_bytes(
    encoding=serialization.Encoding.PEM,
    format=serialization.PrivateFormat.PKCS8,
    encryption_algorithm=serialization.NoEncryption(),
).decode("ascii")

os.environ["CREDS_DATA_DIR"] = _DATA_DIR
os.environ["CREDS_DATABASE_URL"] = "sqlite://"
os.environ["CREDS_SESSION_SECURE"] = "false"
os.environ["CREDS_PARTNER_ID"] = "partner-test"
os.environ["CREDS_KID"] = "kid-test"
os.environ["CREDS_PRIVATE_KEY"] = TEST_PRIVATE_KEY_PEM
os.environ["CREDS_VERIFIER_DID"] = "did:air:verifier-test"
os.environ["CREDS_ISSUER_DID"] = "did:air:issuer-test"
os.environ["CREDS_CREATOR_SCHEMA_ID"] = "schema-creator-test"
os.environ["CREDS_VERIFICATION_PROGRAM_ID"] = "program-test"
os.environ.pop("CREDS_VERIFICATION_URL", None)
os.environ.pop("CREDS_PINNING_JWT", None)

import httpx  # noqa: E402
import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from creator_credentials.assets.pinning import (  # noqa: E402
    PinningClient,
    get_pinning_client,
    reset_pinning_client,
)
from creator_credentials.audit.logger import reset_audit_logger  # noqa: E402
from creator_credentials.auth.session import reset_session_store  # noqa: E402
from creator_credentials.credential.gate import require_valid  # noqa: E402
from creator_credentials.credential.issuance import (  # noqa: E402
    CredentialIssuanceService,
    get_issuance_service,
    reset_issuance_service,
)
from creator_credentials.credential.models import (  # noqa: E402
    LocalVerificationTag,
    StoredCredentialRecord,
    VerificationOutcome,
)
from creator_credentials.credential.profile import (  # noqa: E402
    CreatorProfileService,
    get_profile_service,
    reset_profile_service,
)
from creator_credentials.credential.reconcile import (  # noqa: E402
    StatusReconciler,
    get_status_reconciler,
    reset_status_reconciler,
)
from creator_credentials.credential.verification import reset_verification_client  # noqa: E402
from creator_credentials.db.session import build_engine, init_database  # noqa: E402
from creator_credentials.db.store import (  # noqa: E402
    MetadataStore,
    get_metadata_store,
    reset_metadata_store,
)
from creator_credentials.tokens.issuer import (  # noqa: E402
    TokenIssuer,
    get_token_issuer,
    reset_token_issuer,
)

FIXED_NOW = 1_700_000_000.0
HOLDER = "0x1234567890abcdef1234567890abcdef12345678"
OTHER_HOLDER = "0xfedcba0987654321fedcba0987654321fedcba09"
PROGRAM_ID = "program-test"
SCHEMA_ID = "schema-creator-test"


def valid_subject(**overrides) -> dict:
    """A credential subject that passes the issuance gate."""
    subject = {
        "username": "alice",
        "name": "Alice Example",
        "age": 30,
        "location": "Lisbon",
        "creator": True,
    }
    subject.update(overrides)
    return subject


# =============================================================================
# Fakes
# =============================================================================


class FakeVerifier:
    """Verification capability returning a fixed outcome.

    Args:
        outcome: Value returned from ``verify`` (may be a raw string).
        delay: Seconds to sleep before answering.
        error: Exception raised instead of answering.
    """

    def __init__(self, outcome=VerificationOutcome.COMPLIANT, delay: float = 0.0,
                 error: Optional[Exception] = None):
        self.outcome = outcome
        self.delay = delay
        self.error = error
        self.calls: list[tuple[str, str, str]] = []
        self.cancelled = False

    async def verify(self, holder_id: str, token: str, program_id: str):
        self.calls.append((holder_id, token, program_id))
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error
        return self.outcome


class FakeStore:
    """Record lookup returning a fixed record."""

    def __init__(self, record: Optional[StoredCredentialRecord] = None, delay: float = 0.0,
                 error: Optional[Exception] = None):
        self.record = record
        self.delay = delay
        self.error = error
        self.cancelled = False

    async def get(self, holder_id: str) -> Optional[StoredCredentialRecord]:
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error
        return self.record


def make_record(holder_id: str = HOLDER, **overrides) -> StoredCredentialRecord:
    now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    fields = dict(
        holder_id=holder_id,
        credential_id=f"creator-1714564800000-{holder_id[-6:]}",
        created_at=now,
        updated_at=now,
        verification_tag=LocalVerificationTag.PENDING,
        username="alice",
        display_name="@alice",
    )
    fields.update(overrides)
    return StoredCredentialRecord(**fields)


# =============================================================================
# Component fixtures
# =============================================================================


@pytest.fixture
def token_issuer() -> TokenIssuer:
    """RSA token issuer with a frozen clock."""
    return TokenIssuer(
        partner_id="partner-test",
        private_key=TEST_PRIVATE_KEY_PEM,
        kid="kid-test",
        algorithm="RS256",
        verifier_did="did:air:verifier-test",
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def rsa_public_key():
    return _RSA_KEY.public_key()


@pytest.fixture
def store() -> MetadataStore:
    """Metadata store over a fresh in-memory SQLite database."""
    engine = build_engine("sqlite://")
    init_database(engine)
    factory = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    yield MetadataStore(factory)
    engine.dispose()


@pytest.fixture
async def issued_record(store: MetadataStore) -> StoredCredentialRecord:
    """A record created through the gate, for HOLDER."""
    clearance = require_valid(HOLDER, valid_subject())
    return await store.upsert(
        HOLDER,
        {"username": "alice", "display_name": "@alice"},
        credential_id="creator-1700000000000-345678",
        clearance=clearance,
    )


@pytest.fixture
def fake_verifier() -> FakeVerifier:
    return FakeVerifier()


@pytest.fixture
def pinning_requests() -> list[httpx.Request]:
    return []


@pytest.fixture
def pinning_client(pinning_requests: list[httpx.Request]) -> PinningClient:
    """Pinning client answering from an httpx.MockTransport."""

    def handler(request: httpx.Request) -> httpx.Response:
        pinning_requests.append(request)
        if request.url.path == "/pinning/pinFileToIPFS":
            return httpx.Response(200, json={"IpfsHash": "bafytestcid", "PinSize": 4})
        if request.url.path.startswith("/pinning/unpin/"):
            return httpx.Response(200, text="OK")
        if request.url.path == "/data/pinList":
            return httpx.Response(200, json={"rows": [{"ipfs_pin_hash": "bafytestcid"}]})
        return httpx.Response(404)

    return PinningClient(
        api_url="https://pinning.test",
        jwt="pinning-jwt",
        gateway_url="https://gateway.test",
        max_bytes=1024,
        transport=httpx.MockTransport(handler),
    )


def _reset_singletons() -> None:
    reset_metadata_store()
    reset_token_issuer()
    reset_verification_client()
    reset_status_reconciler()
    reset_issuance_service()
    reset_profile_service()
    reset_pinning_client()
    reset_session_store()
    reset_audit_logger()


@pytest.fixture
async def client(
    store: MetadataStore,
    token_issuer: TokenIssuer,
    fake_verifier: FakeVerifier,
    pinning_client: PinningClient,
) -> AsyncGenerator[AsyncClient, None]:
    """API client with collaborators replaced by in-memory fakes."""
    _reset_singletons()

    from creator_credentials.main import app

    reconciler = StatusReconciler(
        store=store,
        verifier=fake_verifier,
        token_issuer=token_issuer,
        program_id=PROGRAM_ID,
        verification_timeout=2.0,
    )
    issuance = CredentialIssuanceService(
        token_issuer=token_issuer,
        issuer_did="did:air:issuer-test",
        schema_id=SCHEMA_ID,
        contexts=["https://www.w3.org/2018/credentials/v1"],
        clock=lambda: FIXED_NOW,
    )
    app.dependency_overrides[get_metadata_store] = lambda: store
    app.dependency_overrides[get_token_issuer] = lambda: token_issuer
    app.dependency_overrides[get_status_reconciler] = lambda: reconciler
    app.dependency_overrides[get_issuance_service] = lambda: issuance
    app.dependency_overrides[get_profile_service] = lambda: CreatorProfileService(store)
    app.dependency_overrides[get_pinning_client] = lambda: pinning_client

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as async_client:
        yield async_client

    app.dependency_overrides.clear()
    _reset_singletons()
