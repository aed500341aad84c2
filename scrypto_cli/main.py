"""
scrypto - run CryptoScrypto operations against a ledger Gateway.

Examples:
  scrypto gateway-status
  scrypto --notary-key $KEY keccak-hash --text "hello"
  scrypto --notary-key $KEY publish-package --code pkg.wasm --definition pkg.rpd
  scrypto decode-address package_tdx_21_1pkt7zd...
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import typer
from eth_utils import keccak

from scrypto_sdk import __version__
from scrypto_sdk.bech32 import EntityKind
from scrypto_sdk.client import CRYPTO_SCRYPTO_PACKAGE_ADDRESS, ScryptoClient
from scrypto_sdk.config import DEFAULT_NETWORK, NetworkConfig
from scrypto_sdk.exceptions import AwaitError, InputError, ScryptoSdkError
from scrypto_sdk.gateway.transport import get_transport
from scrypto_sdk.receipt import OperationOutcome
from scrypto_sdk.signer import signer_from_hex
from scrypto_sdk.transaction.header import Curve

logger = logging.getLogger("scrypto_cli")

# Input problems exit before any gateway call is made
EXIT_INPUT_ERROR = 2
EXIT_FAILURE = 1

app = typer.Typer(
    name="scrypto",
    add_completion=False,
    no_args_is_help=True,
    help="Build, notarize and submit CryptoScrypto transactions through a Gateway.",
)


@dataclass
class CliSettings:
    network: str
    gateway_url: Optional[str]
    notary_key: Optional[str]
    curve: Curve
    timeout: Optional[float]


def _fail(message: str, code: int = EXIT_FAILURE) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code=code)


def _settings(ctx: typer.Context) -> CliSettings:
    return ctx.obj


def build_client(settings: CliSettings) -> ScryptoClient:
    """
    Create the client for transaction commands.

    Raises:
        InputError: If no notary key was configured or it is malformed
        ValueError: If the network is unknown
    """
    if not settings.notary_key:
        raise InputError("A notary key is required (--notary-key or SCRYPTO_NOTARY_KEY)")
    signer = signer_from_hex(settings.notary_key, settings.curve)
    return ScryptoClient.from_network(settings.network, signer, gateway_url=settings.gateway_url)


def _open_client(settings: CliSettings) -> ScryptoClient:
    try:
        return build_client(settings)
    except ValueError as e:
        # InputError is a ValueError too
        _fail(str(e), EXIT_INPUT_ERROR)


def _run(settings: CliSettings, client: ScryptoClient, operation, *args) -> OperationOutcome:
    logger.debug(f"Running {operation.__name__} on {settings.network}")
    try:
        with client:
            outcome = operation(*args, timeout=settings.timeout)
    except InputError as e:
        _fail(str(e), EXIT_INPUT_ERROR)
    except AwaitError as e:
        typer.echo(f"intent hash = {e.intent_hash}")
        _fail(f"{type(e).__name__}: {e}")
    except ScryptoSdkError as e:
        _fail(f"{type(e).__name__}: {e}")

    typer.echo(f"intent hash = {outcome.intent_hash}")
    if outcome.error is not None:
        _fail(f"transaction {outcome.status.value}: {outcome.error.message}")
    return outcome


def _decoded_output(outcome: OperationOutcome) -> Any:
    try:
        return outcome.decode()
    except ScryptoSdkError as e:
        _fail(f"Cannot decode operation output: {e}")


def _parse_hex(value: str, name: str) -> bytes:
    text = value[2:] if value.lower().startswith("0x") else value
    try:
        return bytes.fromhex(text)
    except ValueError:
        _fail(f"{name} must be hex encoded", EXIT_INPUT_ERROR)


def _read_file(path: Path, name: str) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        _fail(f"Cannot read {name} file {path}: {e.strerror}", EXIT_INPUT_ERROR)


@app.callback()
def main(
    ctx: typer.Context,
    network: str = typer.Option(DEFAULT_NETWORK, "--network", "-n", envvar="SCRYPTO_NETWORK", help="Network profile"),
    gateway_url: Optional[str] = typer.Option(None, "--gateway-url", help="Gateway URL override (stub:// for the in-memory gateway)"),
    notary_key: Optional[str] = typer.Option(None, "--notary-key", envvar="SCRYPTO_NOTARY_KEY", help="Notary private key (hex)"),
    curve: Curve = typer.Option(Curve.SECP256K1, "--curve", help="Notary key curve"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Seconds to wait for a terminal status"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Global options shared by every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if timeout is not None and timeout < 0:
        _fail("--timeout must not be negative", EXIT_INPUT_ERROR)
    ctx.obj = CliSettings(
        network=network,
        gateway_url=gateway_url,
        notary_key=notary_key,
        curve=curve,
        timeout=timeout,
    )


@app.command("version")
def version_cmd():
    """Print the SDK version."""
    typer.echo(__version__)


@app.command("gateway-status")
def gateway_status_cmd(ctx: typer.Context):
    """Show the gateway's ledger state."""
    settings = _settings(ctx)
    try:
        url = NetworkConfig.get_gateway_url(settings.network, override=settings.gateway_url)
        transport = get_transport(url)
    except ValueError as e:
        _fail(str(e), EXIT_INPUT_ERROR)

    try:
        with transport:
            status = transport.gateway_status()
    except ScryptoSdkError as e:
        _fail(f"{type(e).__name__}: {e}")

    state = status.ledger_state
    typer.echo(f"network = {state.network}")
    typer.echo(f"epoch = {state.epoch}")
    typer.echo(f"state_version = {state.state_version}")


@app.command("keccak-hash")
def keccak_hash_cmd(
    ctx: typer.Context,
    package_address: str = typer.Option(CRYPTO_SCRYPTO_PACKAGE_ADDRESS, "--package-address", "-p"),
    file_path: Optional[Path] = typer.Option(None, "--file-path", "-f", help="Hash the contents of this file"),
    text: Optional[str] = typer.Option(None, "--text", "-t", help="Hash this UTF-8 text"),
):
    """Compute keccak-256 on the ledger and compare it with a local hash."""
    if (file_path is None) == (text is None):
        _fail("Exactly one of --file-path or --text is required", EXIT_INPUT_ERROR)
    data = _read_file(file_path, "input") if file_path is not None else text.encode("utf-8")

    settings = _settings(ctx)
    client = _open_client(settings)
    outcome = _run(settings, client, client.keccak256_hash, package_address, data)

    ledger_hash = _decoded_output(outcome)
    if not isinstance(ledger_hash, bytes):
        _fail(f"Unexpected keccak256_hash output: {ledger_hash!r}")
    local_hash = keccak(data)
    typer.echo(f"keccak256 = {ledger_hash.hex()}")
    typer.echo(f"matches local keccak256 = {ledger_hash == local_hash}")


@app.command("bls-verify")
def bls_verify_cmd(
    ctx: typer.Context,
    message: str = typer.Option(..., "--message", "-m", help="Signed message (hex)"),
    public_key: str = typer.Option(..., "--public-key", help="BLS12-381 public key (hex)"),
    signature: str = typer.Option(..., "--signature", "-s", help="BLS12-381 signature (hex)"),
    package_address: str = typer.Option(CRYPTO_SCRYPTO_PACKAGE_ADDRESS, "--package-address", "-p"),
):
    """Verify a BLS12-381 signature on the ledger."""
    message_bytes = _parse_hex(message, "--message")
    key_bytes = _parse_hex(public_key, "--public-key")
    signature_bytes = _parse_hex(signature, "--signature")

    settings = _settings(ctx)
    client = _open_client(settings)
    outcome = _run(settings, client, client.bls12381_verify, package_address, message_bytes, key_bytes, signature_bytes)
    typer.echo(f"valid = {_decoded_output(outcome)}")


@app.command("publish-package")
def publish_package_cmd(
    ctx: typer.Context,
    code: Path = typer.Option(..., "--code", help="Compiled package code"),
    definition: Path = typer.Option(..., "--definition", help="Encoded package definition"),
):
    """Publish a package and print its address."""
    code_bytes = _read_file(code, "code")
    definition_bytes = _read_file(definition, "definition")

    settings = _settings(ctx)
    client = _open_client(settings)
    outcome = _run(settings, client, client.publish_package, code_bytes, definition_bytes)

    address = _decoded_output(outcome)
    if isinstance(address, bytes) and len(address) == EntityKind.PACKAGE.length:
        typer.echo(f"package address = {client.address_codec.encode(address, EntityKind.PACKAGE)}")
    else:
        typer.echo(f"output = {address!r}")


@app.command("decode-address")
def decode_address_cmd(ctx: typer.Context, address: str = typer.Argument(..., help="Bech32m address")):
    """Decode a Bech32m address for the selected network."""
    try:
        codec = NetworkConfig.get_context(_settings(ctx).network).address_codec()
        kind, raw = codec.decode_with_kind(address)
    except ValueError as e:
        _fail(str(e), EXIT_INPUT_ERROR)
    typer.echo(f"kind = {kind.name.lower()}")
    typer.echo(f"bytes = {raw.hex()}")


@app.command("encode-address")
def encode_address_cmd(
    ctx: typer.Context,
    raw: str = typer.Argument(..., help="Raw address bytes (hex)"),
    kind: str = typer.Option("package", "--kind", "-k", help="Entity kind: package, component, account, resource"),
):
    """Encode raw address bytes as Bech32m for the selected network."""
    try:
        entity = EntityKind[kind.upper()]
    except KeyError:
        _fail(f"Unknown entity kind '{kind}'", EXIT_INPUT_ERROR)
    data = _parse_hex(raw, "address")
    try:
        codec = NetworkConfig.get_context(_settings(ctx).network).address_codec()
        typer.echo(codec.encode(data, entity))
    except ValueError as e:
        _fail(str(e), EXIT_INPUT_ERROR)


if __name__ == "__main__":
    app()
