#!/usr/bin/env python3
"""
matter_credentials.py - Secure Matter commissioning credential generator

Generates discriminator/passcode pairs for device provisioning.

Rules:
    discriminator  uniform in [0, 4095]
    passcode       uniform in [1, 99999998], never one of the trivially
                   guessable values (all repeated digits, 12345678, 87654321)
    batch          pairwise distinct discriminators and passcodes,
                   at most 4096 sets (one per discriminator)

Randomness comes from secrets.randbelow, which draws from the OS CSPRNG and
is unbiased over any range. Denylisted passcodes and batch collisions are
rejected and redrawn.

Usage:
    from matter_credentials import generate_credentials, generate_credentials_batch

    creds = generate_credentials()
    print(creds.discriminator, creds.passcode)

    batch = generate_credentials_batch(10)

    python tools/matter_credentials.py --count 5
"""

import argparse
import logging
import secrets
import sys
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Set

from commissioning_errors import (
    CommissioningError, CredentialGenerationError, InvalidCountError,
    SecureRandomError, TooManyRequestedError,
)
from manual_code import encode_manual_code
from setup_payload import SetupPayload


logger = logging.getLogger(__name__)

DISCRIMINATOR_MIN = 0
DISCRIMINATOR_MAX = 4095

PASSCODE_MIN = 1
PASSCODE_MAX = 99999998

INVALID_PASSCODES = frozenset({
    0,
    11111111, 22222222, 33333333, 44444444, 55555555,
    66666666, 77777777, 88888888, 99999999,
    12345678, 87654321,
})

MAX_BATCH_SIZE = DISCRIMINATOR_MAX - DISCRIMINATOR_MIN + 1

# Sanity cap on batch draws per requested set
MAX_DRAWS_PER_CREDENTIAL = 10000

# Test vendor / product used when no identifiers are given
DEFAULT_VENDOR_ID = 0xFFF1
DEFAULT_PRODUCT_ID = 0x8001


def is_valid_discriminator(value: int) -> bool:
    return DISCRIMINATOR_MIN <= value <= DISCRIMINATOR_MAX


def is_valid_passcode(value: int) -> bool:
    return PASSCODE_MIN <= value <= PASSCODE_MAX and value not in INVALID_PASSCODES


@dataclass(frozen=True)
class Credentials:
    """Matter commissioning credentials."""
    discriminator: int
    passcode: int

    def validate(self) -> bool:
        """Check range and denylist constraints."""
        return is_valid_discriminator(self.discriminator) and is_valid_passcode(self.passcode)

    def to_qr_code(self, vendor_id: int = DEFAULT_VENDOR_ID,
                   product_id: int = DEFAULT_PRODUCT_ID) -> str:
        """QR code payload for these credentials."""
        return SetupPayload.from_credentials(self, vendor_id, product_id).to_qr_code()

    def to_manual_code(self) -> str:
        """11-digit manual pairing code (DDDDD-DDDDDD)."""
        return encode_manual_code(self.discriminator, self.passcode)

    def to_dict(self) -> Dict[str, int]:
        return {'discriminator': self.discriminator, 'passcode': self.passcode}


class CredentialGenerator:
    """
    Draws credentials from a secure random source.

    `randbelow(n)` must return a uniform integer in [0, n). The default is
    secrets.randbelow; tests may pass a scripted source.
    """

    def __init__(self, randbelow: Optional[Callable[[int], int]] = None):
        self._randbelow = randbelow or secrets.randbelow

    def _draw(self, low: int, high: int) -> int:
        try:
            return low + self._randbelow(high - low + 1)
        except (OSError, NotImplementedError) as e:
            raise SecureRandomError(e) from e

    def generate_discriminator(self) -> int:
        return self._draw(DISCRIMINATOR_MIN, DISCRIMINATOR_MAX)

    def generate_passcode(self) -> int:
        """Draw a passcode, redrawing denylisted values."""
        rejected = 0
        while True:
            passcode = self._draw(PASSCODE_MIN, PASSCODE_MAX)
            if passcode not in INVALID_PASSCODES:
                break
            rejected += 1
        if rejected:
            logger.debug("Rejected %d denylisted passcode draw(s)", rejected)
        return passcode

    def generate(self) -> Credentials:
        """Generate one set of credentials."""
        return Credentials(
            discriminator=self.generate_discriminator(),
            passcode=self.generate_passcode(),
        )

    def generate_batch(self, count: int) -> List[Credentials]:
        """
        Generate `count` credential sets with unique discriminators and passcodes.

        Raises:
            InvalidCountError: count < 1
            TooManyRequestedError: count exceeds the 4096 discriminators
        """
        if count < 1:
            raise InvalidCountError(count)
        if count > MAX_BATCH_SIZE:
            raise TooManyRequestedError(count, MAX_BATCH_SIZE)

        credentials: List[Credentials] = []
        used_discriminators: Set[int] = set()
        used_passcodes: Set[int] = set()
        max_draws = count * MAX_DRAWS_PER_CREDENTIAL
        draws = 0

        while len(credentials) < count:
            if draws >= max_draws:
                raise CredentialGenerationError(count, draws)
            draws += 1

            candidate = self.generate()
            if (candidate.discriminator in used_discriminators
                    or candidate.passcode in used_passcodes):
                continue

            used_discriminators.add(candidate.discriminator)
            used_passcodes.add(candidate.passcode)
            credentials.append(candidate)

        logger.debug("Generated %d credential set(s) in %d draws", count, draws)
        return credentials


def generate_credentials() -> Credentials:
    """Convenience function for a single credential set."""
    return CredentialGenerator().generate()


def generate_credentials_batch(count: int) -> List[Credentials]:
    """Convenience function for a batch of unique credential sets."""
    return CredentialGenerator().generate_batch(count)


def validate_credentials(credentials: Credentials) -> bool:
    return credentials.validate()


def main():
    parser = argparse.ArgumentParser(
        description='Generate secure Matter commissioning credentials'
    )
    parser.add_argument('-c', '--count', type=int, default=1,
                       help='Number of credential sets (default: 1)')
    args = parser.parse_args()

    try:
        batch = generate_credentials_batch(args.count)
    except CommissioningError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    for creds in batch:
        print(f"{creds.discriminator}\t{creds.passcode}\t{creds.to_manual_code()}")


if __name__ == '__main__':
    main()
