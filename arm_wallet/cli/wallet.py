#!/usr/bin/env python3
"""
ARM Wallet CLI

Command-line interface for the ARM wallet core. Keys live in a password
protected keystore; transfers go through an append-only JSON-lines bulletin.

Usage:
    arm-wallet init [--force]
    arm-wallet user-key
    arm-wallet verify <user_key>
    arm-wallet send <user_key> <kind> <quantity> [--value TEXT] [--hint HEX]
    arm-wallet scan [--workers N] [--json]

The keystore password is read from ARM_WALLET_PASSWORD when set, otherwise
prompted for. With [keys] source = "derived_signature" the keystore holds a
signer identity and the account keys are derived from its signatures.
"""

import asyncio
import getpass
import json
import os
from typing import Optional

import click

from ..config import WalletConfig, load_config
from ..exceptions import ARMWalletError, InvalidUserKey, MalformedEncoding
from ..hierarchy import StaticKeySet, generate_master_seed
from ..logger import LogManager
from ..network import JsonlBulletin
from ..resource import Resource
from ..wallet import (
    DerivedSignatureSource,
    KeySource,
    KeystoreVault,
    StoredSeedSource,
    VaultKeySigner,
    WalletSession,
)

PASSWORD_ENV = "ARM_WALLET_PASSWORD"
MIN_PASSWORD_LENGTH = 8


def get_password(confirm: bool = False, prompt: str = "Password: ") -> str:
    """Get password from the environment or the user."""
    password = os.environ.get(PASSWORD_ENV)
    if password is None:
        password = getpass.getpass(prompt)
        if confirm:
            confirm_pass = getpass.getpass("Confirm password: ")
            if password != confirm_pass:
                raise click.ClickException("Passwords do not match")

    if len(password) < MIN_PASSWORD_LENGTH:
        raise click.ClickException(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return password


def make_vault(config: WalletConfig, confirm: bool = False) -> KeystoreVault:
    entered = []

    async def password_provider(prompt: str) -> Optional[str]:
        # One prompt per command, even when the vault is opened twice
        if not entered:
            entered.append(get_password(confirm=confirm, prompt=prompt))
        return entered[0]

    return KeystoreVault(
        config.vault.keystore_path,
        password_provider,
        iterations=config.vault.kdf_iterations,
    )


def make_source(config: WalletConfig, vault: KeystoreVault) -> KeySource:
    """Key source named by [keys] source, backed by the keystore."""
    if config.keys.source == "derived_signature":
        return DerivedSignatureSource(VaultKeySigner(vault))
    return StoredSeedSource(vault)


def make_session(
    config: WalletConfig,
    confirm: bool = False,
    vault: Optional[KeystoreVault] = None,
) -> WalletSession:
    if vault is None:
        vault = make_vault(config, confirm=confirm)
    return WalletSession(
        make_source(config, vault),
        auth_timeout=config.session.auth_timeout,
        scan_workers=config.scan.max_workers,
    )


def unlock(config: WalletConfig) -> WalletSession:
    session = make_session(config)
    try:
        asyncio.run(session.authenticate())
    except ARMWalletError as e:
        raise click.ClickException(f"Failed to unlock keystore: {e}")
    return session


@click.group()
@click.version_option(version="1.0.0", prog_name="arm-wallet")
@click.option("--config", "-c", "config_path", type=click.Path(), help="Path to arm-wallet.toml")
@click.option("--keystore", "-k", type=click.Path(), help="Keystore file (overrides config)")
@click.option("--bulletin", "-b", type=click.Path(), help="Bulletin file (overrides config)")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Log level (overrides config)",
)
@click.pass_context
def cli(ctx, config_path: Optional[str], keystore: Optional[str], bulletin: Optional[str], log_level: Optional[str]):
    """ARM Wallet Command Line Interface

    Key hierarchy, User Keys and confidential resource transfers.
    """
    try:
        config = load_config(config_path)
    except ARMWalletError as e:
        raise click.ClickException(str(e))

    if keystore:
        config.vault.keystore_path = keystore
    if bulletin:
        config.scan.bulletin_path = bulletin
    if log_level:
        config.logging.level = log_level.upper()

    log_manager = LogManager()
    log_manager.set_level(config.logging.level)
    if config.logging.file_output:
        log_manager.enable_file_output(config.logging.log_file)
    ctx.obj = config


@cli.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing keystore")
@click.pass_obj
def init_cmd(config: WalletConfig, force: bool):
    """Create a new account and keystore.

    Prints the User Key to share with senders.
    """
    vault = make_vault(config, confirm=True)
    if vault.has_credentials() and not force:
        raise click.ClickException(
            f"Keystore already exists at {config.vault.keystore_path} (use --force to overwrite)"
        )
    session = make_session(config, vault=vault)

    async def create() -> StaticKeySet:
        if isinstance(session.source, StoredSeedSource):
            return await session.create_account()
        # Signer identity lives in the keystore; account keys come from its signatures
        await vault.store_seed(generate_master_seed())
        return await session.authenticate(force=True)

    try:
        keys = asyncio.run(create())
    except ARMWalletError as e:
        raise click.ClickException(f"Failed to create account: {e}")

    click.echo(f"Account:  {keys.fingerprint()}")
    click.echo(f"Keystore: {config.vault.keystore_path}")
    click.echo(f"User Key: {session.share_user_key()}")


@cli.command("user-key")
@click.pass_obj
def user_key_cmd(config: WalletConfig):
    """Print this account's User Key."""
    session = unlock(config)
    click.echo(session.share_user_key())


@cli.command("verify")
@click.argument("user_key")
def verify_cmd(user_key: str):
    """Verify someone else's User Key."""
    try:
        key = WalletSession.import_user_key(user_key)
    except MalformedEncoding as e:
        raise click.ClickException(f"Malformed User Key: {e}")
    except InvalidUserKey as e:
        raise click.ClickException(str(e))

    click.echo(f"Valid User Key {key.fingerprint()}")
    click.echo(f"  idpk: 0x{key.idpk.hex()}")
    click.echo(f"  cnk:  0x{key.cnk.hex()}")
    click.echo(f"  sepk: 0x{key.sepk.hex()}")
    click.echo(f"  sdpk: 0x{key.sdpk.hex()}")


@cli.command("send")
@click.argument("user_key")
@click.argument("kind")
@click.argument("quantity", type=click.IntRange(min=0))
@click.option("--value", default="", help="Resource value (UTF-8 text)")
@click.option("--hint", "hint_hex", help="Discovery hint tag as hex (default: random)")
@click.option("--ephemeral", is_flag=True, help="Mark the resource as ephemeral")
@click.pass_obj
def send_cmd(config: WalletConfig, user_key: str, kind: str, quantity: int, value: str,
             hint_hex: Optional[str], ephemeral: bool):
    """Send a resource to the owner of USER_KEY.

    The sealed payload is appended to the bulletin; no keystore is needed.
    """
    try:
        hint = bytes.fromhex(hint_hex) if hint_hex else None
    except ValueError:
        raise click.ClickException("--hint must be hex")

    resource = Resource.create(kind, quantity, value=value.encode('utf-8'), is_ephemeral=ephemeral)
    bulletin = JsonlBulletin(config.scan.bulletin_path)

    try:
        session = make_session(config)
        _, bound = session.send_resource(user_key, resource, bulletin)
    except ARMWalletError as e:
        raise click.ClickException(f"Send failed: {e}")

    click.echo(f"Sent {bound.kind} x{bound.quantity} to 0x{bound.cnk.hex()[:16]}")
    click.echo(f"Bulletin: {bulletin.path}")


@cli.command("scan")
@click.option("--workers", "-w", type=click.IntRange(min=1), help="Trial-decryption threads")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def scan_cmd(config: WalletConfig, workers: Optional[int], as_json: bool):
    """Scan the bulletin for resources addressed to this account."""
    session = unlock(config)
    bulletin = JsonlBulletin(config.scan.bulletin_path)

    try:
        received = session.scan(bulletin, max_workers=workers)
    except ARMWalletError as e:
        raise click.ClickException(f"Scan failed: {e}")

    if as_json:
        click.echo(json.dumps([r.resource.to_dict() for r in received], indent=2))
        return

    if not received:
        click.echo("No resources found.")
        return

    click.echo(f"Found {len(received)} resource(s):")
    for r in received:
        value = r.resource.value.decode('utf-8', errors='replace')
        suffix = f" value={value!r}" if value else ""
        click.echo(f"  {r.resource.kind} x{r.resource.quantity}{suffix}")


def main():
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
