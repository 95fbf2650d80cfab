"""Tests for signed token minting."""

import base64
import json

import jwt
import pytest
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, padding
from cryptography.hazmat.primitives.asymmetric.utils import encode_dss_signature

from creator_credentials.exceptions import TokenConfigurationError
from creator_credentials.tokens.issuer import (
    PEM_FOOTER,
    PEM_HEADER,
    TokenIssuer,
    TokenOperation,
    normalize_private_key,
)

from tests.conftest import FIXED_NOW, HOLDER, TEST_PRIVATE_KEY_PEM


def _b64decode(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


def _split(token: str) -> tuple[dict, dict, bytes, bytes]:
    header_b64, payload_b64, sig_b64 = token.split(".")
    return (
        json.loads(_b64decode(header_b64)),
        json.loads(_b64decode(payload_b64)),
        _b64decode(sig_b64),
        f"{header_b64}.{payload_b64}".encode("ascii"),
    )


def _pkcs8(key) -> str:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


def _bare_base64(pem: str) -> str:
    return "".join(line for line in pem.strip().splitlines() if not line.startswith("-----"))


class TestMint:

    def test_verification_claims(self, token_issuer):
        signed = token_issuer.mint(HOLDER, TokenOperation.VERIFICATION)
        header, claims, _, _ = _split(signed.token)

        assert header == {"alg": "RS256", "typ": "JWT", "kid": "kid-test"}
        assert claims["partnerId"] == "partner-test"
        assert claims["iss"] == "did:air:verifier-test"
        assert claims["aud"] == "air.moca.network"
        assert claims["iat"] == int(FIXED_NOW)
        assert claims["exp"] == int(FIXED_NOW) + 3600
        assert claims["sub"] == HOLDER

    def test_issuance_issuer_is_partner(self, token_issuer):
        signed = token_issuer.mint(HOLDER, "issuance")
        _, claims, _, _ = _split(signed.token)
        assert claims["iss"] == "partner-test"

    def test_no_subject_omits_sub(self, token_issuer):
        _, claims, _, _ = _split(token_issuer.mint(None, TokenOperation.ISSUANCE).token)
        assert "sub" not in claims

    def test_custom_expiry(self, token_issuer):
        signed = token_issuer.mint(HOLDER, TokenOperation.ISSUANCE, expiry_seconds=60)
        assert signed.expires_at == int(FIXED_NOW) + 60

    def test_signature_verifies(self, token_issuer, rsa_public_key):
        _, _, signature, signing_input = _split(token_issuer.mint(HOLDER, "verification").token)
        rsa_public_key.verify(signature, signing_input, padding.PKCS1v15(), hashes.SHA256())

    def test_token_decodes_with_public_key(self, token_issuer, rsa_public_key):
        token = token_issuer.mint(HOLDER, "verification").token

        assert jwt.get_unverified_header(token)["kid"] == "kid-test"
        claims = jwt.decode(
            token,
            rsa_public_key,
            algorithms=["RS256"],
            audience="air.moca.network",
            options={"verify_exp": False},
        )
        assert claims["sub"] == HOLDER
        assert claims["iss"] == "did:air:verifier-test"

    def test_tampered_payload_fails_verification(self, token_issuer, rsa_public_key):
        _, _, signature, signing_input = _split(token_issuer.mint(HOLDER, "verification").token)
        with pytest.raises(InvalidSignature):
            rsa_public_key.verify(signature, signing_input + b"x", padding.PKCS1v15(), hashes.SHA256())

    @pytest.mark.parametrize("expiry", [0, -10])
    def test_non_positive_expiry_rejected(self, token_issuer, expiry):
        with pytest.raises(ValueError):
            token_issuer.mint(HOLDER, TokenOperation.ISSUANCE, expiry_seconds=expiry)

    def test_unknown_operation_rejected(self, token_issuer):
        with pytest.raises(ValueError):
            token_issuer.mint(HOLDER, "revocation")

    def test_es256_signature_is_raw_r_s(self):
        key = ec.generate_private_key(ec.SECP256R1())
        issuer = TokenIssuer("partner", _pkcs8(key), "kid-ec", algorithm="ES256", verifier_did="did:v")

        _, _, signature, signing_input = _split(issuer.mint(HOLDER, "verification").token)

        assert len(signature) == 64
        der = encode_dss_signature(
            int.from_bytes(signature[:32], "big"), int.from_bytes(signature[32:], "big")
        )
        key.public_key().verify(der, signing_input, ec.ECDSA(hashes.SHA256()))

    def test_eddsa(self):
        key = ed25519.Ed25519PrivateKey.generate()
        issuer = TokenIssuer("partner", _pkcs8(key), "kid-ed", algorithm="EdDSA")

        header, _, signature, signing_input = _split(issuer.mint(HOLDER, "issuance").token)

        assert header["alg"] == "EdDSA"
        key.public_key().verify(signature, signing_input)


class TestConfigurationErrors:
    """Key material is validated lazily, at mint time."""

    def test_construction_never_raises(self):
        TokenIssuer(partner_id=None, private_key="garbage", kid=None)

    def test_missing_private_key(self):
        issuer = TokenIssuer("partner", None, "kid")
        with pytest.raises(TokenConfigurationError, match="private key"):
            issuer.mint(HOLDER, "issuance")

    def test_missing_partner_and_kid_are_named(self):
        issuer = TokenIssuer(None, TEST_PRIVATE_KEY_PEM, None)
        with pytest.raises(TokenConfigurationError, match="partner id, key id"):
            issuer.mint(HOLDER, "issuance")

    def test_verification_requires_verifier_did(self):
        issuer = TokenIssuer("partner", TEST_PRIVATE_KEY_PEM, "kid")
        issuer.mint(HOLDER, "issuance")
        with pytest.raises(TokenConfigurationError, match="verifier DID"):
            issuer.mint(HOLDER, "verification")

    def test_malformed_key(self):
        issuer = TokenIssuer("partner", "bm90IGEga2V5", "kid")
        with pytest.raises(TokenConfigurationError, match="Malformed private key"):
            issuer.mint(HOLDER, "issuance")

    def test_unsupported_algorithm(self):
        issuer = TokenIssuer("partner", TEST_PRIVATE_KEY_PEM, "kid", algorithm="HS256")
        with pytest.raises(TokenConfigurationError, match="Unsupported JWT algorithm"):
            issuer.mint(HOLDER, "issuance")

    def test_key_type_mismatch(self):
        issuer = TokenIssuer("partner", TEST_PRIVATE_KEY_PEM, "kid", algorithm="ES256")
        with pytest.raises(TokenConfigurationError, match="cannot sign ES256"):
            issuer.mint(HOLDER, "issuance")


class TestNormalizePrivateKey:

    def test_pem_passes_through(self):
        assert normalize_private_key(TEST_PRIVATE_KEY_PEM) == TEST_PRIVATE_KEY_PEM.strip()

    def test_bare_base64_is_rearmored(self):
        pem = normalize_private_key(_bare_base64(TEST_PRIVATE_KEY_PEM))
        lines = pem.splitlines()

        assert lines[0] == PEM_HEADER
        assert lines[-1] == PEM_FOOTER
        assert all(len(line) <= 64 for line in lines[1:-1])
        assert all(len(line) == 64 for line in lines[1:-2])

    def test_quotes_and_whitespace_stripped(self):
        raw = '"' + _bare_base64(TEST_PRIVATE_KEY_PEM)[:40] + "\n  " + \
            _bare_base64(TEST_PRIVATE_KEY_PEM)[40:] + '"'
        assert normalize_private_key(raw) == normalize_private_key(_bare_base64(TEST_PRIVATE_KEY_PEM))

    def test_escaped_newlines_expanded(self):
        escaped = TEST_PRIVATE_KEY_PEM.strip().replace("\n", "\\n")
        assert normalize_private_key(escaped) == TEST_PRIVATE_KEY_PEM.strip()

    def test_bare_base64_key_can_sign(self):
        issuer = TokenIssuer("partner", _bare_base64(TEST_PRIVATE_KEY_PEM), "kid")
        assert issuer.mint(HOLDER, "issuance").token.count(".") == 2

    def test_empty_key(self):
        with pytest.raises(TokenConfigurationError):
            normalize_private_key("  ''  ")
