#!/usr/bin/env python3
"""
setup_payload.py - Matter QR code setup payload encoder

Packs the device identity fields into the fixed-width bit layout of the
Matter onboarding payload and renders it as Base38 text behind the "MT:"
prefix.

Bit Layout (LSB-first within each field, fields in this order):
    version                 3 bits
    vendor_id              16 bits
    product_id             16 bits
    commissioning_flow      2 bits
    discovery_capabilities  8 bits
    discriminator          12 bits
    passcode               27 bits
    -------------------------------
                           84 bits -> zero padded to 11 bytes

Base38:
    Alphabet "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ-." (38 symbols)
    Each group of 3 bytes (b0 << 16 | b1 << 8 | b2) becomes 5 characters,
    most significant digit first. A trailing group shorter than 3 bytes is
    zero filled and also produces 5 characters.

Usage:
    from setup_payload import SetupPayload

    payload = SetupPayload(vendor_id=0xFFF1, product_id=0x8000,
                           discriminator=3840, passcode=20202021)
    payload.to_qr_code()       # 'MT:...'
    payload.to_manual_code()   # '00158-864680'

    python tools/setup_payload.py --vendor-id 0xFFF1 --product-id 0x8000 \\
        --discriminator 3840 --passcode 20202021
"""

import argparse
import json
import sys
from dataclasses import dataclass, asdict
from enum import IntEnum, IntFlag
from typing import Any, Dict, List, Tuple

from commissioning_errors import CommissioningError, InvalidParameterError
from manual_code import encode_manual_code


QR_CODE_PREFIX = "MT:"

BASE38_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ-."
BASE38_GROUP_BYTES = 3
BASE38_GROUP_CHARS = 5


class CommissioningFlow(IntEnum):
    """Commissioning flow codes (2 bits)."""
    STANDARD = 0
    USER_INTENT = 1
    CUSTOM = 2


class DiscoveryCapability(IntFlag):
    """Rendezvous capability bits (8-bit mask)."""
    SOFT_AP = 0x01
    BLE = 0x02
    ON_NETWORK = 0x04


# (attribute, width) in packing order
PAYLOAD_FIELDS: Tuple[Tuple[str, int], ...] = (
    ('version', 3),
    ('vendor_id', 16),
    ('product_id', 16),
    ('commissioning_flow', 2),
    ('discovery_capabilities', 8),
    ('discriminator', 12),
    ('passcode', 27),
)

PAYLOAD_BITS = sum(width for _, width in PAYLOAD_FIELDS)
PAYLOAD_BYTES = (PAYLOAD_BITS + 7) // 8


class BitPacker:
    """Accumulates fixed-width values LSB-first into a byte buffer."""

    def __init__(self):
        self._data = bytearray()
        self._current = 0
        self._bits_in_current = 0

    @property
    def bit_length(self) -> int:
        return len(self._data) * 8 + self._bits_in_current

    def pack_bits(self, value: int, width: int) -> None:
        """Append the low `width` bits of value, least significant first."""
        if width <= 0:
            raise ValueError(f"Bit width must be positive, got {width}")
        if not 0 <= value < (1 << width):
            raise ValueError(f"Value {value} does not fit in {width} bits")

        for i in range(width):
            self._current |= ((value >> i) & 1) << self._bits_in_current
            self._bits_in_current += 1
            if self._bits_in_current == 8:
                self._data.append(self._current)
                self._current = 0
                self._bits_in_current = 0

    def pad_to_byte_boundary(self) -> None:
        """Flush a partial byte; its unused high bits stay zero."""
        if self._bits_in_current:
            self._data.append(self._current)
            self._current = 0
            self._bits_in_current = 0

    def to_bytes(self) -> bytes:
        return bytes(self._data)


def base38_encode(data: bytes) -> str:
    """Encode bytes as Base38, 5 characters per (possibly partial) 3-byte group."""
    chars: List[str] = []
    for start in range(0, len(data), BASE38_GROUP_BYTES):
        group = data[start:start + BASE38_GROUP_BYTES]
        value = 0
        for j, byte in enumerate(group):
            value |= byte << (8 * (BASE38_GROUP_BYTES - 1 - j))

        digits = []
        for _ in range(BASE38_GROUP_CHARS):
            value, index = divmod(value, len(BASE38_ALPHABET))
            digits.append(BASE38_ALPHABET[index])
        chars.extend(reversed(digits))
    return ''.join(chars)


def qr_code_length(byte_count: int = PAYLOAD_BYTES) -> int:
    """Length of an encoded payload including the prefix."""
    groups = -(-byte_count // BASE38_GROUP_BYTES)
    return len(QR_CODE_PREFIX) + BASE38_GROUP_CHARS * groups


@dataclass(frozen=True)
class SetupPayload:
    """Identity fields carried by a Matter QR code."""
    vendor_id: int
    product_id: int
    discriminator: int
    passcode: int
    version: int = 0
    commissioning_flow: int = CommissioningFlow.STANDARD
    discovery_capabilities: int = DiscoveryCapability.ON_NETWORK

    def __post_init__(self):
        for name, width in PAYLOAD_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidParameterError(name, value, "Must be an integer")
            if not 0 <= value < (1 << width):
                raise InvalidParameterError(
                    name, value, f"Must fit in {width} bits (0-{(1 << width) - 1})"
                )

    @classmethod
    def from_credentials(cls, credentials, vendor_id: int, product_id: int,
                         **kwargs) -> 'SetupPayload':
        """Build a payload from anything with discriminator/passcode attributes."""
        return cls(
            vendor_id=vendor_id,
            product_id=product_id,
            discriminator=credentials.discriminator,
            passcode=credentials.passcode,
            **kwargs
        )

    def pack(self) -> bytes:
        """Pack all fields into the 11-byte payload buffer."""
        packer = BitPacker()
        for name, width in PAYLOAD_FIELDS:
            packer.pack_bits(int(getattr(self, name)), width)
        packer.pad_to_byte_boundary()
        return packer.to_bytes()

    def to_qr_code(self) -> str:
        return encode_setup_payload(self)

    def to_manual_code(self) -> str:
        return encode_manual_code(self.discriminator, self.passcode)

    def to_dict(self) -> Dict[str, Any]:
        return {k: int(v) for k, v in asdict(self).items()}


def encode_setup_payload(payload: SetupPayload) -> str:
    """Render a payload as its 'MT:' QR code string."""
    return QR_CODE_PREFIX + base38_encode(payload.pack())


def _int_auto(text: str) -> int:
    """argparse type accepting decimal or 0x-prefixed hex."""
    return int(text, 0)


def main():
    parser = argparse.ArgumentParser(
        description='Encode a Matter setup payload as QR code text'
    )
    parser.add_argument('--vendor-id', type=_int_auto, required=True)
    parser.add_argument('--product-id', type=_int_auto, required=True)
    parser.add_argument('--discriminator', type=_int_auto, required=True)
    parser.add_argument('--passcode', type=_int_auto, required=True)
    parser.add_argument('--flow', type=_int_auto, default=CommissioningFlow.STANDARD,
                       help='Commissioning flow (0=standard, 1=user intent, 2=custom)')
    parser.add_argument('--capabilities', type=_int_auto,
                       default=DiscoveryCapability.ON_NETWORK,
                       help='Discovery capability mask (default: 0x04, on network)')
    parser.add_argument('--json', action='store_true', help='Output as JSON')
    args = parser.parse_args()

    try:
        payload = SetupPayload(
            vendor_id=args.vendor_id,
            product_id=args.product_id,
            discriminator=args.discriminator,
            passcode=args.passcode,
            commissioning_flow=args.flow,
            discovery_capabilities=args.capabilities,
        )
        qr_code = payload.to_qr_code()
        manual = payload.to_manual_code()
    except CommissioningError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(json.dumps({'qr_code': qr_code, 'manual_code': manual,
                          'payload': payload.to_dict()}, indent=2))
    else:
        print(f"QR Code:     {qr_code}")
        print(f"Manual Code: {manual}")


if __name__ == '__main__':
    main()
