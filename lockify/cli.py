"""Lockify command line interface."""
import sys
import logging
import functools
from pathlib import Path
from typing import Optional

import click

from .container import Container
from .exceptions import LockifyError
from .formats import FileFormat
from .vault.config import LockifyConfig
from .version import __version__

logger = logging.getLogger("lockify.cli")

_FORMATS = click.Choice([f.value for f in FileFormat])


def handle_errors(func):
    """Report LockifyError as a click error (exit code 1)."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except LockifyError as err:
            logger.debug("Command failed", exc_info=True)
            raise click.ClickException(str(err)) from err
    return wrapper


def status(message: str) -> None:
    click.echo(message, err=True)


def env_option(required: bool = True):
    return click.option(
        "-e", "--env", "env", required=required, help="Environment name",
    )


@click.group()
@click.option("--verbose", is_flag=True, help="Enable debug logging on stderr")
@click.option("--vault-dir", default=None, help="Directory holding vault files")
@click.option(
    "--passphrase-env", default=None,
    help="Name of the environment variable that holds the passphrase",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, vault_dir: Optional[str], passphrase_env: Optional[str]):
    """Lockify securely manages your .env files and secrets."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    if ctx.obj is None:
        try:
            config = LockifyConfig.from_env(
                vault_dir=vault_dir, passphrase_env=passphrase_env,
            )
        except LockifyError as err:
            raise click.ClickException(str(err)) from err
        ctx.obj = Container(config)


@cli.command("init")
@env_option()
@click.pass_obj
@handle_errors
def init_vault(container: Container, env: str):
    """Initialize a new vault for an environment."""
    status(f"⏳ initializing vault for {env}...")
    vault = container.initialize_vault().execute(env)
    status(f"✓ vault for {env} created at {vault.path or env}")


@cli.command("set")
@env_option()
@click.option("-k", "--key", default=None, help="Entry key")
@click.option("-v", "--value", default=None, help="Entry value")
@click.option(
    "-s", "--secret", is_flag=True,
    help="Hide the value while typing it at the prompt",
)
@click.pass_obj
@handle_errors
def set_entry(container: Container, env: str, key: Optional[str], value: Optional[str], secret: bool):
    """Add or update an entry."""
    if key is None and value is None:
        key, value = container.prompt.key_value(secret)
    elif key is None:
        key = container.prompt.key()
    elif value is None:
        value = container.prompt.value(secret)
    status(f"⏳ setting {key} in {env}...")
    container.add_entry().execute(env, key, value)
    status(f"✓ {key} is stored in {env}")


@cli.command("get")
@env_option()
@click.option("-k", "--key", required=True, help="Entry key")
@click.pass_obj
@handle_errors
def get_entry(container: Container, env: str, key: str):
    """Print the decrypted value of an entry."""
    click.echo(container.get_entry().execute(env, key))


@cli.command("del")
@env_option()
@click.option("-k", "--key", required=True, help="Entry key")
@click.pass_obj
@handle_errors
def delete_entry(container: Container, env: str, key: str):
    """Delete an entry."""
    status(f"⏳ removing {key} from {env}...")
    container.delete_entry().execute(env, key)
    status(f"✓ {key} is removed from {env}")


@cli.command("list")
@env_option()
@click.pass_obj
@handle_errors
def list_entries(container: Container, env: str):
    """List the keys stored in a vault."""
    keys = container.list_entries().execute(env)
    if not keys:
        status(f"No entries found in {env}")
        return
    for key in keys:
        click.echo(f"  - {key}")


@cli.command("export")
@env_option()
@click.option(
    "--format", "fmt", type=_FORMATS, default=FileFormat.DOTENV.value,
    show_default=True, help="Output format",
)
@click.pass_obj
@handle_errors
def export_env(container: Container, env: str, fmt: str):
    """Decrypt all entries and print them as dotenv or JSON."""
    click.echo(container.export_env().execute(env, FileFormat(fmt)))


@cli.command("import")
@click.argument("source", type=click.File("r"))
@env_option()
@click.option(
    "--format", "fmt", type=_FORMATS, default=None,
    help="Input format (default: json for *.json files, dotenv otherwise)",
)
@click.option("--overwrite", is_flag=True, help="Replace existing keys")
@click.pass_obj
@handle_errors
def import_env(container: Container, source, env: str, fmt: Optional[str], overwrite: bool):
    """Import entries from a JSON or dotenv file ('-' for stdin)."""
    if fmt is None:
        name = getattr(source, "name", "") or ""
        fmt = "json" if Path(name).suffix.lower() == ".json" else "dotenv"
    status(f"⏳ importing {fmt} entries into {env}...")
    imported, skipped = container.import_env().execute(
        env, FileFormat(fmt), source, overwrite=overwrite,
    )
    status(f"✓ imported {imported} entries into {env} ({skipped} skipped)")


@cli.group("cache")
def cache():
    """Manage cached passphrases."""


@cache.command("clear")
@env_option(required=False)
@click.pass_obj
@handle_errors
def clear_cache(container: Container, env: Optional[str]):
    """Clear cached passphrases (one environment with --env)."""
    if env:
        if container.clear_cached_passphrase().execute(env):
            status(f"✓ cleared cached passphrase for {env}")
        else:
            status(f"no cached passphrase for {env}")
        return
    container.clear_all_cached_passphrases().execute()
    status("✓ cleared cached passphrases")


@cli.command("rotate-key")
@env_option()
@click.pass_obj
@handle_errors
def rotate_key(container: Container, env: str):
    """Re-encrypt a vault under a new passphrase."""
    status(f"⏳ rotating passphrase for {env}...")
    vault = container.rotate_passphrase().execute(env)
    status(f"✓ rotated passphrase for {env} ({len(vault.entries)} entries re-encrypted)")


@cli.command("version")
def version():
    """Print the Lockify version."""
    click.echo(f"Lockify CLI v{__version__}")


def main():
    cli(prog_name="lockify")
