#!/usr/bin/env python3
"""
Simple example of using the Scrypto SDK.
"""
import os
import threading

from scrypto_sdk import ScryptoClient, signer_from_hex
from scrypto_sdk.client import CRYPTO_SCRYPTO_PACKAGE_ADDRESS
from scrypto_sdk.config import default_network
from scrypto_sdk.exceptions import AwaitTimeoutError, ScryptoSdkError


def main():
    """
    Demonstrate basic usage of the ScryptoClient.

    This example shows how to:
    1. Initialize the client for a network profile
    2. Hash data with the CryptoScrypto blueprint on the ledger
    3. Tell committed failures apart from client-side errors
    """
    # Read configuration from environment
    NETWORK = default_network()
    NOTARY_KEY = os.environ.get("SCRYPTO_NOTARY_KEY")

    if not NOTARY_KEY:
        print("ERROR: SCRYPTO_NOTARY_KEY environment variable is required")
        return

    signer = signer_from_hex(NOTARY_KEY)
    cancel = threading.Event()

    with ScryptoClient.from_network(NETWORK, signer) as client:
        print(f"Current epoch: {client.current_epoch()}")

        try:
            outcome = client.keccak256_hash(
                CRYPTO_SCRYPTO_PACKAGE_ADDRESS,
                b"hello",
                timeout=120,
                cancel_event=cancel,
            )
        except AwaitTimeoutError as e:
            print(f"Gave up waiting for {e.intent_hash}; it may still commit")
            return
        except ScryptoSdkError as e:
            print(f"Error: {e}")
            return

        print(f"Intent hash: {outcome.intent_hash}")
        if outcome.ok:
            print(f"keccak256: {outcome.decode().hex()}")
        else:
            print(f"Transaction {outcome.status.value}: {outcome.error.message}")


if __name__ == "__main__":
    main()
