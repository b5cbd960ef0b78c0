"""MoneySync CLI entry point."""

from __future__ import annotations

from pathlib import Path

import click

from moneysync.__version__ import __version__
from moneysync.cli.account import account
from moneysync.cli.currency import currency
from moneysync.cli.sync import sync
from moneysync.cli.transaction import transaction


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="moneysync")
@click.option(
    "--db",
    "db_path",
    type=click.Path(path_type=Path),
    help="Path to the local MoneySync database.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    help="Path to a JSON config file.",
)
@click.option("--user-id", default=None, help="External identity id; omit for guest mode.")
@click.option("--name", "full_name", default=None, help="Display name for the identity.")
@click.option("--email", default=None, help="Email for the identity.")
@click.option("--avatar", "avatar_url", default=None, help="Avatar URL for the identity.")
@click.pass_context
def main(
    ctx: click.Context,
    db_path: Path | None,
    config_path: Path | None,
    user_id: str | None,
    full_name: str | None,
    email: str | None,
    avatar_url: str | None,
) -> None:
    """MoneySync CLI entry point."""
    ctx.obj = {
        "db_path": db_path,
        "config_path": config_path,
        "user_id": user_id,
        "full_name": full_name,
        "email": email,
        "avatar_url": avatar_url,
    }


main.add_command(transaction)
main.add_command(account)
main.add_command(sync)
main.add_command(currency)


if __name__ == "__main__":
    main()
