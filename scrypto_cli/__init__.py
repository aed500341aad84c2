"""
Command-line interface for the Scrypto SDK.
"""
