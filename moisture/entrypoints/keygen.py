"""Generate the oracle's Ed25519 keypair.

Refuses to overwrite an existing keypair and shows its public key instead.
The printed public key bytes are what ``create_pool`` must be given.

Usage:
    moisture-keygen [--path .keypair.json]
"""

import argparse
import json
import os
import sys

import bittensor as bt


def main(argv: list[str] | None = None) -> int:
    from moisture.errors import KeypairError
    from moisture.oracle.keypair import OracleKeypair

    parser = argparse.ArgumentParser(description="Generate the Moisture oracle keypair")
    parser.add_argument(
        "--path",
        type=str,
        default=os.environ.get("MOISTURE_ORACLE__KEYPAIR_PATH", ".keypair.json"),
        help="Where to write the keypair JSON.",
    )
    args = parser.parse_args(argv)

    if os.path.exists(args.path):
        bt.logging.warning({"keygen": {"status": "exists", "path": args.path}})
        try:
            existing = OracleKeypair.load(args.path)
        except KeypairError as e:
            bt.logging.error({"keygen": {"status": "unreadable", "error": e.message}})
            return 1
        print(f"Keypair already exists at: {args.path}")
        print("Delete it first if you want to generate a new one.")
        print(f"\nExisting Public Key (Base64): {existing.public_key_base64}")
        print(f"Existing Public Key (Hex): {existing.public_key_hex}")
        return 1

    keypair = OracleKeypair.generate()
    keypair.save(args.path)
    bt.logging.info({"keygen": {"status": "generated", "path": args.path}})

    info = keypair.public_key_info()
    print(f"Keypair saved to: {args.path}")
    print("\n--- PUBLIC KEY (register this with create_pool) ---")
    print(f"Base64: {info['publicKey']}")
    print(f"Hex: {info['publicKeyHex']}")
    print(f"Bytes: {json.dumps(info['publicKeyBytes'])}")
    print("\nKeep the keypair file secret and backed up; never commit it.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
