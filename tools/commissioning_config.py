#!/usr/bin/env python3
"""
commissioning_config.py - Matter commissioning configuration

Loads the `matter:` section of a device YAML file, validates the
commissioning parameters and formats generated credentials for pasting
back into such files.

Device file format:
    matter:
      vendor_id: 0xFFF1
      product_id: 0x8000
      commissioning:
        discriminator: 3840
        passcode: 20202021

Usage:
    from commissioning_config import load_config, format_credentials

    config = load_config('device.yaml')
    payload = config.to_setup_payload()
    print(payload.to_qr_code())

    python tools/commissioning_config.py device.yaml
"""

import argparse
import json
import logging
import sys
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

import yaml

from commissioning_errors import CommissioningError, InvalidParameterError
from matter_credentials import (
    Credentials, INVALID_PASSCODES,
    DISCRIMINATOR_MIN, DISCRIMINATOR_MAX, PASSCODE_MIN, PASSCODE_MAX,
    DEFAULT_VENDOR_ID, DEFAULT_PRODUCT_ID,
)
from setup_payload import (
    SetupPayload, CommissioningFlow, DiscoveryCapability, PAYLOAD_FIELDS,
)


logger = logging.getLogger(__name__)

# Vendor IDs reserved by the CSA for development and testing
TEST_VENDOR_IDS = frozenset({0xFFF1, 0xFFF2, 0xFFF3, 0xFFF4})

OUTPUT_FORMATS = ('yaml', 'json', 'text')

SECURITY_WARNING = (
    "SECURITY WARNING: Store these credentials securely.\n"
    "Each device must have unique credentials."
)

_FIELD_WIDTHS = dict(PAYLOAD_FIELDS)


@dataclass
class CommissioningConfig:
    """Commissioning parameters for one device."""
    vendor_id: int = DEFAULT_VENDOR_ID
    product_id: int = 0x8000
    discriminator: int = 3840
    passcode: int = 20202021
    version: int = 0
    commissioning_flow: int = CommissioningFlow.STANDARD
    discovery_capabilities: int = DiscoveryCapability.ON_NETWORK

    @property
    def is_test_vendor(self) -> bool:
        return self.vendor_id in TEST_VENDOR_IDS

    def to_credentials(self) -> Credentials:
        return Credentials(discriminator=self.discriminator, passcode=self.passcode)

    def to_setup_payload(self) -> SetupPayload:
        return SetupPayload(
            vendor_id=self.vendor_id,
            product_id=self.product_id,
            discriminator=self.discriminator,
            passcode=self.passcode,
            version=self.version,
            commissioning_flow=self.commissioning_flow,
            discovery_capabilities=self.discovery_capabilities,
        )

    def to_dict(self) -> Dict[str, int]:
        return {k: int(v) for k, v in asdict(self).items()}


def parse_int(parameter: str, value: Any) -> int:
    """Accept ints and decimal/hex strings such as '0xFFF1'."""
    if isinstance(value, bool):
        raise InvalidParameterError(parameter, value, "Must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip(), 0)
        except ValueError:
            pass
    raise InvalidParameterError(parameter, value, "Must be an integer or hex string")


def validate_config(config: CommissioningConfig) -> List[str]:
    """
    Validate commissioning parameters.

    Returns:
        List of warnings (non-fatal findings)

    Raises:
        InvalidParameterError: on the first invalid parameter
    """
    warnings = []

    if not DISCRIMINATOR_MIN <= config.discriminator <= DISCRIMINATOR_MAX:
        raise InvalidParameterError(
            'discriminator', config.discriminator,
            f"Discriminator must be between {DISCRIMINATOR_MIN} and {DISCRIMINATOR_MAX}"
        )

    if not PASSCODE_MIN <= config.passcode <= PASSCODE_MAX:
        raise InvalidParameterError(
            'passcode', config.passcode,
            f"Passcode must be between {PASSCODE_MIN} and {PASSCODE_MAX}"
        )

    if config.passcode in INVALID_PASSCODES:
        raise InvalidParameterError(
            'passcode', config.passcode,
            "Passcode cannot be a common pattern (sequential digits, all same digits, etc.)"
        )

    for name in ('vendor_id', 'product_id', 'version',
                 'commissioning_flow', 'discovery_capabilities'):
        value = getattr(config, name)
        width = _FIELD_WIDTHS[name]
        if not 0 <= value < (1 << width):
            raise InvalidParameterError(name, value, f"Must fit in {width} bits")

    if config.product_id == 0x0000:
        raise InvalidParameterError('product_id', config.product_id,
                                    "Product ID cannot be 0x0000")

    if config.is_test_vendor:
        warnings.append(
            f"Vendor ID 0x{config.vendor_id:04X} is reserved for testing; "
            "production devices need an assigned vendor ID"
        )

    return warnings


def parse_config(document: Dict[str, Any]) -> CommissioningConfig:
    """
    Build a validated config from a parsed YAML document.

    Use validate_config() on the result to collect warnings.
    """
    if not isinstance(document, dict):
        raise InvalidParameterError('matter', document, "Configuration must be a mapping")

    # An empty key (YAML null) means defaults; anything else must be a mapping
    section = document.get('matter', document)
    if section is None:
        section = {}
    if not isinstance(section, dict):
        raise InvalidParameterError('matter', section, "Section must be a mapping")

    commissioning = section.get('commissioning')
    if commissioning is None:
        commissioning = {}
    if not isinstance(commissioning, dict):
        raise InvalidParameterError('commissioning', commissioning,
                                    "Section must be a mapping")

    defaults = CommissioningConfig()
    values = {}
    for name, source in (
        ('vendor_id', section),
        ('product_id', section),
        ('version', section),
        ('commissioning_flow', section),
        ('discovery_capabilities', section),
        ('discriminator', commissioning),
        ('passcode', commissioning),
    ):
        if name in source:
            values[name] = parse_int(name, source[name])
        else:
            values[name] = getattr(defaults, name)

    config = CommissioningConfig(**values)
    validate_config(config)
    return config


def load_config(path: Union[str, Path]) -> CommissioningConfig:
    """Load and validate the commissioning section of a device YAML file."""
    try:
        with open(path, encoding='utf-8') as f:
            document = yaml.safe_load(f)
    except UnicodeDecodeError as e:
        raise InvalidParameterError('config', str(path), "File is not valid UTF-8 text") from e
    except OSError as e:
        raise InvalidParameterError('config', str(path),
                                    f"Cannot read file: {e.strerror or e}") from e
    logger.debug("Loaded commissioning config from %s", path)
    return parse_config(document or {})


def _commissioning_block(creds: Credentials) -> Dict[str, Any]:
    return {'matter': {'commissioning': creds.to_dict()}}


def format_credentials(credentials: Sequence[Credentials], fmt: str = 'text',
                       vendor_id: int = DEFAULT_VENDOR_ID,
                       product_id: int = DEFAULT_PRODUCT_ID) -> str:
    """
    Render credential sets as yaml, json or text.

    YAML output is one `matter: commissioning:` block per set, ready to be
    pasted into a device file.
    """
    if fmt not in OUTPUT_FORMATS:
        raise ValueError(f"Unknown output format '{fmt}' (choose from {', '.join(OUTPUT_FORMATS)})")
    if not credentials:
        raise ValueError("No credentials to format")

    single = len(credentials) == 1

    if fmt == 'yaml':
        blocks = []
        for i, creds in enumerate(credentials, 1):
            header = "# Matter commissioning credentials" if single else f"# Device {i} credentials"
            body = yaml.safe_dump(_commissioning_block(creds), default_flow_style=False,
                                  sort_keys=False)
            blocks.append(f"{header}\n{body}")
        return "\n".join(blocks).rstrip("\n")

    if fmt == 'json':
        if single:
            return json.dumps(credentials[0].to_dict(), indent=2)
        return json.dumps([c.to_dict() for c in credentials], indent=2)

    if single:
        creds = credentials[0]
        lines = [
            "Matter Device Credentials",
            "========================",
            f"Discriminator: {creds.discriminator}",
            f"Passcode: {creds.passcode}",
            f"Manual Pairing Code: {creds.to_manual_code()}",
            f"QR Code: {creds.to_qr_code(vendor_id, product_id)}",
            "",
            SECURITY_WARNING,
        ]
        return "\n".join(lines)

    title = f"Matter Device Credentials (Generated {len(credentials)} sets)"
    lines = [title, "=" * len(title), "", SECURITY_WARNING, ""]
    for i, creds in enumerate(credentials, 1):
        lines.append(f"Device {i}:")
        lines.append(f"  Discriminator: {creds.discriminator}")
        lines.append(f"  Passcode: {creds.passcode}")
        lines.append(f"  Manual Pairing Code: {creds.to_manual_code()}")
        lines.append(f"  QR Code: {creds.to_qr_code(vendor_id, product_id)}")
    return "\n".join(lines)


def main():
    parser = argparse.ArgumentParser(
        description='Validate the Matter commissioning section of a device file'
    )
    parser.add_argument('config', type=Path, help='Device YAML file')
    parser.add_argument('--json', action='store_true', help='Output as JSON')
    args = parser.parse_args()

    if not args.config.exists():
        print(f"Error: {args.config} not found", file=sys.stderr)
        sys.exit(1)

    try:
        config = load_config(args.config)
        warnings = validate_config(config)
    except (CommissioningError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(json.dumps({'valid': True, 'config': config.to_dict(),
                          'warnings': warnings}, indent=2))
    else:
        print(f"Config: VALID ({args.config})")
        for warning in warnings:
            print(f"  - WARNING: {warning}")


if __name__ == '__main__':
    main()
