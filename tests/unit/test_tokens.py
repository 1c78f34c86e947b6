"""
Unit tests for the token issuer.
"""

import pytest

from waitroom.errors import HashAlgorithmUnavailableError
from waitroom.tokens import TokenIssuer

# sha256("user-queue-default-42")
DEFAULT_42_TOKEN = "cbd7a411a4a151308aa4690d13440df06b97d8a156fa822880c4a11f54ccb34f"


class TestTokenIssuer:
    """Tests for TokenIssuer."""

    def test_generate_matches_known_digest(self, token_issuer: TokenIssuer):
        """Test the token is the SHA-256 hex digest of the namespaced string."""
        assert token_issuer.generate("default", 42) == DEFAULT_42_TOKEN

    def test_generate_is_deterministic(self):
        """Test two independent issuers produce the same token."""
        assert TokenIssuer().generate("default", 42) == TokenIssuer().generate("default", 42)

    def test_generate_is_lowercase_hex(self, token_issuer: TokenIssuer):
        token = token_issuer.generate("concert", 7)

        assert len(token) == 64
        assert token == token.lower()
        int(token, 16)

    def test_string_and_int_user_ids_agree(self, token_issuer: TokenIssuer):
        assert token_issuer.generate("default", "42") == token_issuer.generate("default", 42)

    def test_token_depends_on_queue_and_user(self, token_issuer: TokenIssuer):
        base = token_issuer.generate("default", 42)

        assert token_issuer.generate("other", 42) != base
        assert token_issuer.generate("default", 43) != base

    def test_namespace_changes_token(self):
        """Test a different namespace yields a different digest."""
        assert TokenIssuer(namespace="queue").generate("default", 42) != DEFAULT_42_TOKEN

    def test_verify_accepts_issued_token(self, token_issuer: TokenIssuer):
        assert token_issuer.verify("default", 42, DEFAULT_42_TOKEN) is True

    def test_verify_is_case_insensitive(self, token_issuer: TokenIssuer):
        assert token_issuer.verify("default", 42, DEFAULT_42_TOKEN.upper()) is True

    @pytest.mark.parametrize(
        "candidate",
        [
            "",
            None,
            "deadbeef",
            DEFAULT_42_TOKEN[:-1] + "0",
            f" {DEFAULT_42_TOKEN}",
            f"{DEFAULT_42_TOKEN}\n",
        ],
    )
    def test_verify_rejects_other_tokens(self, token_issuer: TokenIssuer, candidate):
        assert token_issuer.verify("default", 42, candidate) is False

    def test_verify_rejects_token_for_other_user(self, token_issuer: TokenIssuer):
        assert token_issuer.verify("default", 43, DEFAULT_42_TOKEN) is False

    def test_unknown_algorithm_fails_at_construction(self):
        """Test a missing digest algorithm is reported when the issuer is built."""
        with pytest.raises(HashAlgorithmUnavailableError) as exc_info:
            TokenIssuer(algorithm="no-such-digest")

        assert exc_info.value.algorithm == "no-such-digest"
