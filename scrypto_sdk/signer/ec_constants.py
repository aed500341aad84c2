"""
Constants for elliptic curve cryptography.
"""

# Order of the SECP256K1 elliptic curve (N value)
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

# Valid private keys are 1..N-1
SECP256K1_MIN = 1
SECP256K1_MAX = SECP256K1_N - 1

SECP256K1_SIGNATURE_LENGTH = 65
ED25519_PRIVATE_KEY_LENGTH = 32
ED25519_SIGNATURE_LENGTH = 64
