#!/usr/bin/env python3
"""
matter_codes.py - Matter commissioning code tool

Generates commissioning credentials and renders the QR code payload and
manual pairing code for a device.

Usage:
    # Generate credentials
    python tools/matter_codes.py generate-credentials
    python tools/matter_codes.py generate-credentials -c 10 -f yaml -o creds.yaml

    # Encode QR code + manual code
    python tools/matter_codes.py encode --vendor-id 0xFFF1 --product-id 0x8000 \\
        --discriminator 3840 --passcode 20202021
    python tools/matter_codes.py encode --config device.yaml --json

    # Manual pairing code only
    python tools/matter_codes.py manual-code --discriminator 3840 --passcode 20202021
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml

from commissioning_config import (
    CommissioningConfig, OUTPUT_FORMATS, format_credentials, load_config,
    parse_int, validate_config,
)
from commissioning_errors import CommissioningError
from manual_code import encode_manual_code
from matter_credentials import CredentialGenerator, DEFAULT_VENDOR_ID, DEFAULT_PRODUCT_ID


logger = logging.getLogger('matter_codes')

# Supported log levels, mapping argument strings to logging constants
LOG_LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warning': logging.WARNING,
    'error': logging.ERROR,
}


def _int_arg(text: str) -> int:
    try:
        return int(text, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer value: '{text}'")


def cmd_generate_credentials(args) -> int:
    logger.info("Generating %d Matter credential set(s)...", args.count)
    credentials = CredentialGenerator().generate_batch(args.count)
    output = format_credentials(credentials, args.format,
                                vendor_id=args.vendor_id, product_id=args.product_id)

    if args.output:
        args.output.write_text(output + "\n")
        logger.info("Credentials written to %s", args.output)
    else:
        print(output)

    logger.info("Generated %d credential set(s)", len(credentials))
    logger.warning("Store these credentials securely - each device must have unique values")
    return 0


def _config_from_args(args) -> CommissioningConfig:
    if args.config:
        config = load_config(args.config)
    else:
        config = CommissioningConfig()

    # Flags override file values
    for name in ('vendor_id', 'product_id', 'discriminator', 'passcode',
                 'commissioning_flow', 'discovery_capabilities'):
        value = getattr(args, name)
        if value is not None:
            setattr(config, name, parse_int(name, value))

    for warning in validate_config(config):
        logger.warning(warning)
    return config


def cmd_encode(args) -> int:
    config = _config_from_args(args)
    payload = config.to_setup_payload()
    qr_code = payload.to_qr_code()
    manual = payload.to_manual_code()
    logger.debug("Packed payload: %s", payload.pack().hex())

    if args.json:
        print(json.dumps({
            'qr_code': qr_code,
            'manual_code': manual,
            'payload': payload.to_dict(),
        }, indent=2))
    else:
        print(f"QR Code:     {qr_code}")
        print(f"Manual Code: {manual}")
    return 0


def cmd_manual_code(args) -> int:
    print(encode_manual_code(args.discriminator, args.passcode))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Generate Matter commissioning credentials, QR payloads and manual pairing codes'
    )
    parser.add_argument('--log-level', default='warning', choices=LOG_LEVELS.keys(),
                       help='Logging level (default: warning)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # generate-credentials
    gen = subparsers.add_parser('generate-credentials',
                                help='Generate cryptographically secure credentials')
    gen.add_argument('-c', '--count', type=int, default=1,
                    help='Number of credential sets to generate (default: 1)')
    gen.add_argument('-f', '--format', choices=OUTPUT_FORMATS, default='text',
                    help='Output format (default: text)')
    gen.add_argument('-o', '--output', type=Path, help='Output file (default: stdout)')
    gen.add_argument('--vendor-id', type=_int_arg, default=DEFAULT_VENDOR_ID,
                    help='Vendor ID for text QR codes (default: 0xFFF1)')
    gen.add_argument('--product-id', type=_int_arg, default=DEFAULT_PRODUCT_ID,
                    help='Product ID for text QR codes (default: 0x8001)')
    gen.set_defaults(func=cmd_generate_credentials)

    # encode
    enc = subparsers.add_parser('encode', help='Encode QR code payload and manual code')
    enc.add_argument('--config', type=Path, help='Device YAML file with a matter: section')
    enc.add_argument('--vendor-id', type=_int_arg)
    enc.add_argument('--product-id', type=_int_arg)
    enc.add_argument('--discriminator', type=_int_arg)
    enc.add_argument('--passcode', type=_int_arg)
    enc.add_argument('--flow', dest='commissioning_flow', type=_int_arg,
                    help='Commissioning flow (0=standard, 1=user intent, 2=custom)')
    enc.add_argument('--capabilities', dest='discovery_capabilities', type=_int_arg,
                    help='Discovery capability mask (0x01 SoftAP, 0x02 BLE, 0x04 on network)')
    enc.add_argument('--json', action='store_true', help='Output as JSON')
    enc.set_defaults(func=cmd_encode)

    # manual-code
    man = subparsers.add_parser('manual-code', help='Generate the manual pairing code only')
    man.add_argument('--discriminator', type=_int_arg, required=True)
    man.add_argument('--passcode', type=_int_arg, required=True)
    man.set_defaults(func=cmd_manual_code)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(format='[%(levelname)7s] %(name)s - %(message)s',
                        level=LOG_LEVELS[args.log_level], force=True)

    if getattr(args, 'config', None) and not args.config.exists():
        print(f"Error: {args.config} not found", file=sys.stderr)
        return 1

    try:
        return args.func(args)
    except (CommissioningError, yaml.YAMLError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
