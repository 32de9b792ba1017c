#!/usr/bin/env python3
"""
manual_code.py - Matter manual pairing code generator

Derives the 11-digit manual pairing code from a discriminator and passcode.
The last digit is a Verhoeff check digit over the first ten.

Code Layout:
    short_discriminator = discriminator bits 11..8 (4 bits)
    combined = (short_discriminator << 20) | (passcode mod 2^27) >> 7
    digits   = combined mod 10^10, zero-padded to 10 digits
    code     = digits + verhoeff(digits), printed as DDDDD-DDDDDD

Usage:
    from manual_code import encode_manual_code

    code = encode_manual_code(discriminator=3840, passcode=20202021)
    # '00158-864680'

    python tools/manual_code.py 3840 20202021
"""

import argparse
import re
import sys
from typing import Tuple

from commissioning_errors import CombinedValueOutOfRangeError


# Dihedral group D5 multiplication (Cayley) table
VERHOEFF_MULTIPLICATION: Tuple[Tuple[int, ...], ...] = (
    (0, 1, 2, 3, 4, 5, 6, 7, 8, 9),
    (1, 2, 3, 4, 0, 6, 7, 8, 9, 5),
    (2, 3, 4, 0, 1, 7, 8, 9, 5, 6),
    (3, 4, 0, 1, 2, 8, 9, 5, 6, 7),
    (4, 0, 1, 2, 3, 9, 5, 6, 7, 8),
    (5, 9, 8, 7, 6, 0, 4, 3, 2, 1),
    (6, 5, 9, 8, 7, 1, 0, 4, 3, 2),
    (7, 6, 5, 9, 8, 2, 1, 0, 4, 3),
    (8, 7, 6, 5, 9, 3, 2, 1, 0, 4),
    (9, 8, 7, 6, 5, 4, 3, 2, 1, 0),
)

# Position-dependent permutations, row i = p^i
VERHOEFF_PERMUTATION: Tuple[Tuple[int, ...], ...] = (
    (0, 1, 2, 3, 4, 5, 6, 7, 8, 9),
    (1, 5, 7, 6, 2, 8, 3, 0, 9, 4),
    (5, 8, 0, 3, 7, 9, 6, 1, 4, 2),
    (8, 9, 1, 6, 0, 4, 3, 5, 2, 7),
    (9, 4, 5, 3, 1, 2, 6, 8, 7, 0),
    (4, 2, 8, 6, 5, 7, 3, 9, 0, 1),
    (2, 7, 9, 3, 8, 0, 6, 4, 1, 5),
    (7, 0, 4, 6, 9, 1, 3, 2, 5, 8),
)

VERHOEFF_INVERSE: Tuple[int, ...] = (0, 4, 3, 2, 1, 5, 6, 7, 8, 9)

MANUAL_CODE_DIGITS = 11
MANUAL_CODE_PATTERN = re.compile(r'^\d{5}-\d{6}$')

SHORT_DISCRIMINATOR_SHIFT = 8
PASSCODE_BITS = 27
PASSCODE_LOW_BITS_DROPPED = 7
COMBINED_SHORT_SHIFT = 20
COMBINED_BITS = 24


def _digit_values(digits: str) -> Tuple[int, ...]:
    if not digits or not digits.isdigit():
        raise ValueError(f"Expected a non-empty decimal digit string, got '{digits}'")
    return tuple(int(c) for c in digits)


def verhoeff_check_digit(digits: str) -> int:
    """
    Compute the Verhoeff check digit for a digit string.

    Digits are folded from the rightmost one; the digit at position i
    (1-based from the right) goes through permutation row i % 8.
    """
    checksum = 0
    for i, digit in enumerate(reversed(_digit_values(digits)), start=1):
        permuted = VERHOEFF_PERMUTATION[i % 8][digit]
        checksum = VERHOEFF_MULTIPLICATION[checksum][permuted]
    return VERHOEFF_INVERSE[checksum]


def verhoeff_validate(number: str) -> bool:
    """Check a digit string whose last digit is its Verhoeff check digit."""
    checksum = 0
    for i, digit in enumerate(reversed(_digit_values(number))):
        checksum = VERHOEFF_MULTIPLICATION[checksum][VERHOEFF_PERMUTATION[i % 8][digit]]
    return checksum == 0


def combine_discriminator_passcode(discriminator: int, passcode: int) -> int:
    """
    Build the 24-bit value carried by the first ten digits.

    The short discriminator is not masked: a discriminator above 12 bits
    pushes the result past 24 bits and is reported instead of truncated.
    """
    short_discriminator = discriminator >> SHORT_DISCRIMINATOR_SHIFT
    passcode_high = (passcode % (1 << PASSCODE_BITS)) >> PASSCODE_LOW_BITS_DROPPED
    combined = (short_discriminator << COMBINED_SHORT_SHIFT) | passcode_high

    if not 0 <= combined < (1 << COMBINED_BITS):
        raise CombinedValueOutOfRangeError(combined, discriminator, passcode)
    return combined


def encode_manual_code(discriminator: int, passcode: int) -> str:
    """
    Generate the manual pairing code.

    Args:
        discriminator: 12-bit discriminator (0-4095)
        passcode: setup passcode (1-99999998)

    Returns:
        Code formatted as 'DDDDD-DDDDDD'

    Raises:
        CombinedValueOutOfRangeError: inputs outside their domains
    """
    combined = combine_discriminator_passcode(discriminator, passcode)
    digits = f"{combined % 10**10:010d}"
    code = digits + str(verhoeff_check_digit(digits))
    return f"{code[:5]}-{code[5:]}"


def is_valid_manual_code(code: str) -> bool:
    """Shape and check digit test for a formatted manual pairing code."""
    if not MANUAL_CODE_PATTERN.match(code):
        return False
    return verhoeff_validate(code.replace('-', ''))


def main():
    parser = argparse.ArgumentParser(
        description='Generate a Matter manual pairing code'
    )
    parser.add_argument('discriminator', type=int, help='12-bit discriminator (0-4095)')
    parser.add_argument('passcode', type=int, help='Setup passcode (1-99999998)')
    args = parser.parse_args()

    try:
        print(encode_manual_code(args.discriminator, args.passcode))
    except CombinedValueOutOfRangeError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
