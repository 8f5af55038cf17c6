# src/claim_gate/scripts/sign_claim.py
"""Sign a claim the way the off-chain authorizer does.

Prints the message hash and a ready-to-submit JSON envelope. Intended for
operators testing a deployment and for reproducing signer output; production
signing keys belong in the authorizer, not here.

Example:
    claim-gate-sign --flow reward --private-key $KEY --actor 0xabc... \\
        --magnitude 100 --unique-id 0x07... --nonce 0 --ttl 300
"""
from __future__ import annotations

import argparse
import json
import sys
import time

from claim_gate.core.claims import FLOWS, SigningDomain, build_fields, claim_message_hash, sign_claim
from claim_gate.core.signatures import address_of, decode_hex, normalize_address
from claim_gate.services.verifier import signing_domain


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sign a purchase or reward claim.")
    parser.add_argument("--flow", choices=FLOWS, required=True)
    parser.add_argument("--private-key", required=True, help="32-byte signer key, hex")
    parser.add_argument("--actor", required=True)
    parser.add_argument("--magnitude", type=int, required=True)
    parser.add_argument("--unique-id", required=True, help="32-byte purchase or run id, hex")
    parser.add_argument("--nonce", type=int, required=True)
    expiry = parser.add_mutually_exclusive_group(required=True)
    expiry.add_argument("--expiry", type=int, help="Absolute expiry, unix seconds")
    expiry.add_argument("--ttl", type=int, help="Expiry relative to now, seconds")
    parser.add_argument("--chain-id", type=int, help="Override the configured chain id")
    parser.add_argument("--verifier", help="Override the configured verifying address")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        private_key = decode_hex(args.private_key, 32)
        expiry = args.expiry if args.expiry is not None else int(time.time()) + args.ttl
        fields = build_fields(args.actor, args.magnitude, args.unique_id, args.nonce, expiry)
        domain = signing_domain(args.flow)
        if args.chain_id is not None or args.verifier is not None:
            domain = SigningDomain(
                chain_id=args.chain_id if args.chain_id is not None else domain.chain_id,
                verifying_address=(
                    normalize_address(args.verifier) if args.verifier else domain.verifying_address
                ),
            )
        claim = sign_claim(private_key, fields, domain)
        message_hash = claim_message_hash(fields, domain)
    except ValueError as err:
        print(f"error: {err}", file=sys.stderr)
        return 2

    envelope = {
        "actor": fields.actor,
        "magnitude": fields.magnitude,
        "unique_id": fields.unique_id,
        "nonce": fields.nonce,
        "expiry": fields.expiry,
        "signature": "0x" + claim.signature.hex(),
    }
    print(f"signer:       {address_of(private_key)}")
    print(f"message hash: 0x{message_hash.hex()}")
    print(json.dumps(envelope, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
