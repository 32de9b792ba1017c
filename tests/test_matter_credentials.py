"""
Tests for the secure credential generator.
"""

import pytest
import sys
from pathlib import Path

# Add tools to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'tools'))

from matter_credentials import (
    CredentialGenerator, Credentials,
    generate_credentials, generate_credentials_batch, validate_credentials,
    is_valid_passcode, is_valid_discriminator,
    INVALID_PASSCODES, MAX_BATCH_SIZE,
    PASSCODE_MIN, PASSCODE_MAX, DISCRIMINATOR_MAX,
)
from commissioning_errors import (
    CommissioningError, InvalidCountError, TooManyRequestedError,
    SecureRandomError, CredentialGenerationError,
)
from manual_code import MANUAL_CODE_PATTERN


DENYLIST = {11111111 * d for d in range(1, 10)} | {12345678, 87654321}


class TestCredentials:
    """Tests for the Credentials value type."""

    def test_valid(self):
        assert Credentials(discriminator=3840, passcode=20202021).validate()

    def test_bounds_valid(self):
        assert Credentials(0, PASSCODE_MIN).validate()
        assert Credentials(DISCRIMINATOR_MAX, PASSCODE_MAX).validate()

    def test_discriminator_out_of_range(self):
        assert not Credentials(4096, 20202021).validate()
        assert not Credentials(-1, 20202021).validate()

    def test_passcode_out_of_range(self):
        assert not Credentials(3840, 0).validate()
        assert not Credentials(3840, 99999999).validate()
        assert not Credentials(3840, 100000000).validate()

    @pytest.mark.parametrize("passcode", sorted(DENYLIST))
    def test_denylisted_passcodes_rejected(self, passcode):
        assert not validate_credentials(Credentials(100, passcode))

    def test_denylist_contents(self):
        assert DENYLIST <= INVALID_PASSCODES
        assert 0 in INVALID_PASSCODES

    def test_immutable(self):
        creds = Credentials(1, 2)
        with pytest.raises(AttributeError):
            creds.passcode = 3

    def test_to_dict(self):
        assert Credentials(5, 6).to_dict() == {'discriminator': 5, 'passcode': 6}

    def test_codes(self):
        creds = Credentials(3840, 20202021)
        assert creds.to_manual_code() == "00158-864680"
        qr = creds.to_qr_code()
        assert qr.startswith("MT:")
        assert len(qr) == 23

    def test_qr_code_depends_on_vendor(self):
        creds = Credentials(3840, 20202021)
        assert creds.to_qr_code(0xFFF1, 0x8001) != creds.to_qr_code(0xFFF2, 0x8001)


class TestCredentialGenerator:
    """Tests for single credential generation."""

    def test_generate_in_range(self):
        for _ in range(200):
            creds = generate_credentials()
            assert 0 <= creds.discriminator <= 4095
            assert 1 <= creds.passcode <= 99999998
            assert creds.passcode not in DENYLIST

    def test_generated_codes_are_well_formed(self):
        for _ in range(50):
            creds = generate_credentials()
            assert MANUAL_CODE_PATTERN.match(creds.to_manual_code())

    def test_ranges_requested_from_source(self, scripted_random):
        rng = scripted_random([7, 20202020])
        creds = CredentialGenerator(randbelow=rng).generate()

        assert creds == Credentials(discriminator=7, passcode=20202021)
        assert rng.calls == [4096, 99999998]

    def test_extremes_of_source(self, scripted_random):
        rng = scripted_random([4095, 99999997])
        creds = CredentialGenerator(randbelow=rng).generate()
        assert creds == Credentials(4095, 99999998)

        rng = scripted_random([0, 0])
        creds = CredentialGenerator(randbelow=rng).generate()
        assert creds == Credentials(0, 1)

    def test_denylisted_passcode_redrawn(self, scripted_random):
        rng = scripted_random([42, 11111110, 12345677, 87654320, 999])
        creds = CredentialGenerator(randbelow=rng).generate()

        assert creds == Credentials(discriminator=42, passcode=1000)
        assert rng.calls == [4096] + [99999998] * 4

    def test_os_failure_becomes_secure_random_error(self):
        def broken(n):
            raise OSError("entropy source unavailable")

        with pytest.raises(SecureRandomError, match="entropy source unavailable") as exc:
            CredentialGenerator(randbelow=broken).generate()
        assert isinstance(exc.value.cause, OSError)
        assert isinstance(exc.value, CommissioningError)


class TestGenerateBatch:
    """Tests for batch credential generation."""

    @pytest.mark.parametrize("count", [0, -1, -4096])
    def test_invalid_count(self, count):
        with pytest.raises(InvalidCountError) as exc:
            generate_credentials_batch(count)
        assert exc.value.count == count

    def test_too_many_requested(self, scripted_random):
        rng = scripted_random([])
        with pytest.raises(TooManyRequestedError) as exc:
            CredentialGenerator(randbelow=rng).generate_batch(4097)
        assert exc.value.limit == MAX_BATCH_SIZE == 4096
        # Rejected before any randomness is consumed
        assert rng.calls == []

    def test_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            generate_credentials_batch(0)

    @pytest.mark.parametrize("count", [1, 2, 10, 100])
    def test_batch_unique(self, count):
        batch = generate_credentials_batch(count)

        assert len(batch) == count
        assert len({c.discriminator for c in batch}) == count
        assert len({c.passcode for c in batch}) == count
        assert all(c.validate() for c in batch)

    @pytest.mark.slow
    def test_full_discriminator_space(self):
        batch = generate_credentials_batch(4096)

        assert sorted(c.discriminator for c in batch) == list(range(4096))
        assert len({c.passcode for c in batch}) == 4096

    def test_collisions_discarded(self, scripted_random):
        rng = scripted_random([
            10, 500,     # (10, 501) accepted
            10, 600,     # discriminator reused -> discarded
            11, 500,     # passcode reused -> discarded
            11, 700,     # (11, 701) accepted
        ])
        batch = CredentialGenerator(randbelow=rng).generate_batch(2)

        assert batch == [Credentials(10, 501), Credentials(11, 701)]

    def test_draw_cap(self, monkeypatch):
        import matter_credentials
        monkeypatch.setattr(matter_credentials, 'MAX_DRAWS_PER_CREDENTIAL', 3)

        gen = CredentialGenerator(randbelow=lambda n: 0)
        with pytest.raises(CredentialGenerationError) as exc:
            gen.generate_batch(2)
        assert exc.value.draws == 6


class TestHelpers:
    """Tests for domain predicates."""

    @pytest.mark.parametrize("value,expected", [
        (0, True), (4095, True), (4096, False), (-1, False),
    ])
    def test_is_valid_discriminator(self, value, expected):
        assert is_valid_discriminator(value) is expected

    @pytest.mark.parametrize("value,expected", [
        (1, True), (20202021, True), (99999998, True),
        (0, False), (99999999, False), (12345678, False), (87654321, False),
    ])
    def test_is_valid_passcode(self, value, expected):
        assert is_valid_passcode(value) is expected
