# filename : scripts.py
# created  : 10/18/2026


import asyncio
import logging

import click

from dccledger.core.base.errors import LedgerError
from dccledger.core.dcc.constants import MAIN_NET_CODE
from dccledger.core.transport.logging import PROTOCOL, TRACE

lg = logging.getLogger(__name__)


def _run(ctx: click.Context, op):
    """Run *op(ledger)* on a fresh DCCLedger and close it afterwards."""
    from dccledger.core.dcc.ledger import DCCLedger

    settings = ctx.obj
    factory = settings["factory"]
    if factory is None:
        from dccledger.core.transport.hid import HidTransportFactory

        factory = HidTransportFactory(debug=settings["verbose"])

    async def main():
        ledger = DCCLedger(
            factory,
            debug=settings["verbose"],
            open_timeout=settings["open_timeout"],
            exchange_timeout=settings["exchange_timeout"],
            network_code=settings["network_code"],
        )
        try:
            return await op(ledger)
        finally:
            await ledger.close()

    try:
        return asyncio.run(main())
    except LedgerError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="TRACE level (show raw APDUs).")
@click.option(
    "--network-code",
    type=click.IntRange(0, 255),
    default=MAIN_NET_CODE,
    show_default=True,
    help="Chain id byte sent to the device.",
)
@click.option("--open-timeout", type=int, default=None, help="Device open timeout (ms).")
@click.option("--exchange-timeout", type=int, default=None, help="Per-APDU timeout (ms).")
@click.pass_context
def dccledger(ctx, verbose, network_code, open_timeout, exchange_timeout):
    """DecentralChain Ledger client."""

    logging.basicConfig(
        level=TRACE if verbose else PROTOCOL,
        format="%(levelname)-8s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj.setdefault("factory", None)
    ctx.obj.update(
        verbose=verbose,
        network_code=network_code,
        open_timeout=open_timeout,
        exchange_timeout=exchange_timeout,
    )


@dccledger.command()
@click.pass_context
def probe(ctx):
    """Check that the device is connected and the app is open."""

    async def op(ledger):
        ok = await ledger.probe()
        return ok, ledger.last_error()

    ok, error = _run(ctx, op)
    if not ok:
        raise click.ClickException(f"device not available: {error}")
    click.echo("device ready")


@dccledger.command()
@click.pass_context
def version(ctx):
    """Show the app version."""
    result = _run(ctx, lambda ledger: ledger.query_version())
    click.echo(str(result))


@dccledger.command()
@click.argument("index", type=click.IntRange(min=0))
@click.option("--verify", is_flag=True, help="Confirm the address on the device screen.")
@click.pass_context
def address(ctx, index, verify):
    """Show the address and public key of an account."""
    user = _run(ctx, lambda ledger: ledger.derive_account(index, verify=verify))
    click.echo(f"path:       {user.path}")
    click.echo(f"address:    {user.address}")
    click.echo(f"public key: {user.public_key}")


@dccledger.command()
@click.argument("start", type=click.IntRange(min=0))
@click.argument("count", type=click.IntRange(min=0))
@click.pass_context
def accounts(ctx, start, count):
    """List COUNT accounts starting at START."""
    users = _run(ctx, lambda ledger: ledger.paginate_accounts(start, count))
    for user in users:
        click.echo(f"{user.index:4d}  {user.address}  {user.public_key}")


@dccledger.command("sign-message")
@click.argument("index", type=click.IntRange(min=0))
@click.argument("text")
@click.pass_context
def sign_message(ctx, index, text):
    """Sign a text message with an account key."""
    click.echo(_run(ctx, lambda ledger: ledger.sign_message(index, text)))


@dccledger.command("sign-data")
@click.argument("index", type=click.IntRange(min=0))
@click.argument("data")
@click.pass_context
def sign_data(ctx, index, data):
    """Sign raw bytes (hex) with an account key."""
    from dccledger.core.dcc.messages import SignData

    try:
        payload = bytes.fromhex(data)
    except ValueError:
        raise click.BadParameter(f"not hex: '{data}'", param_hint="'DATA'")
    click.echo(_run(ctx, lambda ledger: ledger.sign_some_data(index, SignData(payload))))
