"""
sealbid CLI - command line interface for the sealed-bid core

Main entry point for all CLI commands.
"""

import base64
import hashlib
import json
import secrets
from pathlib import Path

import click
from cryptography.fernet import Fernet, InvalidToken

from sealbid.utils.logger import SealBidLogger, setup_logging

PBKDF2_ITERATIONS = 100000


def _fernet(password: str, salt: bytes) -> Fernet:
    """Derive a Fernet key from a password using PBKDF2."""
    key = base64.urlsafe_b64encode(
        hashlib.pbkdf2_hmac("sha256", password.encode(), salt, PBKDF2_ITERATIONS)
    )
    return Fernet(key)


def encrypt_key_file(keypair, password: str) -> dict:
    """Key file contents: public parts in the clear, private key encrypted."""
    salt = secrets.token_bytes(16)
    encrypted = _fernet(password, salt).encrypt(keypair.private_key_bytes).decode("utf-8")
    data = keypair.public().to_dict()
    data["salt"] = salt.hex()
    data["encrypted_private_key"] = encrypted
    return data


def decrypt_key_file(key_data: dict, password: str):
    """
    Rebuild a KeyPair from a key file.

    Returns:
        KeyPair, or None if the password is wrong
    """
    from sealbid.crypto import KeyPair, hex_to_bytes

    try:
        salt = bytes.fromhex(key_data["salt"])
        private_key = _fernet(password, salt).decrypt(key_data["encrypted_private_key"].encode())
    except InvalidToken:
        return None

    return KeyPair(
        public_key=hex_to_bytes(key_data["public_key"]),
        private_key=bytearray(private_key),
        modulus=hex_to_bytes(key_data["modulus"]),
        generator=hex_to_bytes(key_data["generator"]),
    )


def _read_json(path: str) -> dict:
    try:
        return json.loads(Path(path).read_text())
    except (OSError, ValueError) as e:
        raise click.ClickException(f"Cannot read {path}: {e}")


def _load_keypair(key_file: str, password: str):
    from sealbid.core.errors import SealedBidError

    try:
        keypair = decrypt_key_file(_read_json(key_file), password)
    except (KeyError, ValueError, SealedBidError) as e:
        raise click.ClickException(f"Malformed key file {key_file}: {e}")
    if keypair is None:
        raise click.ClickException("Wrong password for key file")
    return keypair


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--env-file", default=None, help="Optional .env file with SEALBID_* settings")
@click.option("--log-file", default=None, help="Also write logs to this file")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, env_file, log_file):
    """sealbid - sealed-bid commitments for land auctions"""
    import logging
    from sealbid.core.config import load_config
    from sealbid.core.errors import SealedBidError

    level = logging.DEBUG if debug else logging.WARNING
    SealBidLogger.reset()
    setup_logging(level=level, log_file=log_file)

    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config(env_file)
    except SealedBidError as e:
        raise click.ClickException(str(e))


# =============================================================================
# Key Commands
# =============================================================================


@cli.command("keygen")
@click.option("--name", default="bidder", help="Key name")
@click.option("--out-dir", default=".", help="Directory for the key files")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True, help="Encryption password")
@click.pass_context
def keygen(ctx, name, out_dir, password):
    """Create a key pair: NAME.pub.json (shareable) and NAME.key.json (encrypted)"""
    from sealbid.crypto import generate_keypair
    from sealbid.core.errors import SealedBidError

    try:
        keypair = generate_keypair(config=ctx.obj["config"])
    except SealedBidError as e:
        raise click.ClickException(str(e))

    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    pub_path = out / f"{name}.pub.json"
    key_path = out / f"{name}.key.json"

    with keypair:
        pub_path.write_text(json.dumps(keypair.public().to_dict(), indent=2))
        key_path.write_text(json.dumps(encrypt_key_file(keypair, password), indent=2))
        address = keypair.address

    click.echo(f"✓ Key created: {name}")
    click.echo(f"  Address: {address}")
    click.echo(f"  Public key: {pub_path}")
    click.echo(f"  Private key (encrypted): {key_path}")


# =============================================================================
# Bid Commands
# =============================================================================


@cli.command("seal")
@click.option("--key", "key_file", required=True, help="Encrypted key file")
@click.option("--password", prompt=True, hide_input=True, help="Key file password")
@click.option("--amount", required=True, help="Bid amount, e.g. 3 or 0.25")
@click.option("--bidder", required=True, help="Bidder identity, e.g. 0xABC")
@click.option("--out", default=None, help="Write payload JSON here instead of stdout")
@click.pass_context
def seal(ctx, key_file, password, amount, bidder, out):
    """Create and encrypt a bid, printing the publish-ready payload"""
    from sealbid.core.bid import BidLifecycle
    from sealbid.core.errors import SealedBidError

    lifecycle = BidLifecycle(config=ctx.obj["config"])
    with _load_keypair(key_file, password) as keypair:
        try:
            record = lifecycle.create_bid(amount, bidder)
            payload = lifecycle.encrypt_bid(record, keypair)
        except SealedBidError as e:
            raise click.ClickException(str(e))

    text = json.dumps(payload.to_wire(), indent=2)
    if out:
        Path(out).write_text(text)
        click.echo(f"✓ Payload written to {out}")
    else:
        click.echo(text)


@cli.command("reveal")
@click.option("--key", "key_file", required=True, help="Encrypted key file")
@click.option("--password", prompt=True, hide_input=True, help="Key file password")
@click.option("--payload", "payload_file", required=True, help="Payload JSON file")
@click.option("--close", "close_timestamp", required=True, type=int, help="Auction close time (ms)")
@click.pass_context
def reveal(ctx, key_file, password, payload_file, close_timestamp):
    """Decrypt a payload after close and print the bid with its proof"""
    from sealbid.core.bid import BidLifecycle, EncryptedPayload
    from sealbid.core.errors import SealedBidError

    lifecycle = BidLifecycle(config=ctx.obj["config"])
    try:
        payload = EncryptedPayload.from_wire(_read_json(payload_file))
        with _load_keypair(key_file, password) as keypair:
            record, proof = lifecycle.reveal_bid(payload, keypair, close_timestamp)
    except SealedBidError as e:
        raise click.ClickException(str(e))

    click.echo(json.dumps({
        "bid": {
            "amount": record.amount,
            "bidder": record.bidder,
            "timestamp": record.timestamp,
            "nonce": record.nonce,
        },
        "proof": proof.to_wire(),
    }, indent=2))


@cli.command("verify")
@click.option("--payload", "payload_file", required=True, help="Payload JSON file")
@click.option("--proof", "proof_file", required=True, help="Proof JSON file (or reveal output)")
@click.option("--public-key", "public_key_file", required=True, help="Public key JSON file")
def verify(payload_file, proof_file, public_key_file):
    """Audit a reveal using public information only"""
    from sealbid.core.bid import EncryptedPayload, RevealProof, verify_reveal
    from sealbid.core.errors import SealedBidError
    from sealbid.crypto import PublicKey

    proof_data = _read_json(proof_file)
    if "proof" in proof_data:
        proof_data = proof_data["proof"]

    try:
        payload = EncryptedPayload.from_wire(_read_json(payload_file))
        proof = RevealProof.from_wire(proof_data)
        public_key = PublicKey.from_dict(_read_json(public_key_file))
    except SealedBidError as e:
        raise click.ClickException(str(e))

    if verify_reveal(payload, proof, public_key):
        click.echo("✓ Reveal is valid")
    else:
        click.echo("✗ Reveal is INVALID")
        raise SystemExit(1)


# =============================================================================
# Demo Command
# =============================================================================


@cli.command("demo")
@click.option("--close-after", default=1000, type=int, help="Auction length in ms")
@click.pass_context
def demo(ctx, close_after):
    """Run a walkthrough of a sealed-bid auction"""
    from sealbid.core.auction import AuctionWindow
    from sealbid.core.bid import BidLifecycle
    from sealbid.core.errors import AuctionStillOpen, DuplicateBid
    from sealbid.crypto import key_session
    from sealbid.utils.clock import ManualClock, SystemClock

    config = ctx.obj["config"]
    clock = ManualClock(SystemClock().now_ms())
    lifecycle = BidLifecycle(config=config, clock=clock)

    click.echo("=" * 60)
    click.echo("  SEALED-BID AUCTION - DEMO")
    click.echo("=" * 60)
    click.echo()

    now = clock.now_ms()
    window = AuctionWindow(
        land_identifier="parcel-42",
        base_price=1,
        open_timestamp=now,
        close_timestamp=now + close_after,
    )
    click.echo(f"🏛️  Auction {window.land_identifier} open until {window.close_timestamp}")
    click.echo()

    with key_session(config=config) as keypair:
        click.echo("🔑 Bidder key generated")
        click.echo(f"  ✓ Fingerprint: {keypair.public_key.hex()[:16]}...")
        click.echo()

        click.echo("🔒 Sealing bid: amount=3 bidder=0xABC")
        record = lifecycle.create_bid("3", "0xABC")
        payload = lifecycle.encrypt_bid(record, keypair)
        lifecycle.publish(payload, window)
        click.echo(f"  ✓ Commitment: {payload.commitment_hash.hex()[:16]}...")
        try:
            lifecycle.publish(payload, window)
        except DuplicateBid:
            click.echo("  ✓ Republishing the same nonce was rejected")
        click.echo()

        click.echo("⏳ Revealing before close...")
        try:
            lifecycle.reveal_bid(payload, keypair, window.close_timestamp)
        except AuctionStillOpen:
            click.echo("  ✓ Refused: auction still open")
        click.echo()

        clock.advance(close_after + 1)
        click.echo("🔓 Revealing after close...")
        revealed, proof = lifecycle.reveal_from_window(window, payload.commitment_hash, keypair)
        click.echo(f"  ✓ Amount: {revealed.amount}, bidder: {revealed.bidder}")
        public_key = keypair.public()

    click.echo()
    click.echo("🔍 Auditing with the public key only...")
    click.echo(f"  ✓ Proof valid: {lifecycle.verify_reveal(payload, proof, public_key)}")
    click.echo()


if __name__ == "__main__":
    cli()
