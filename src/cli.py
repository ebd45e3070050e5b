import base64
import json
import click
import requests
from solders.transaction import VersionedTransaction
from core.utils import describe_transaction


@click.group()
@click.option('--server-url', default="http://localhost:8000", help='Base URL of the running action server')
@click.pass_context
def cli(ctx, server_url):
    ctx.obj = {"server_url": server_url}


@cli.command()
@click.pass_obj
def show_action(obj):
    """Fetch and print the prediction action metadata."""
    response = requests.get(f"{obj['server_url']}/api/predict")
    response.raise_for_status()
    click.echo(json.dumps(response.json(), indent=2, ensure_ascii=False))


@cli.command()
@click.option('--answer', type=str, prompt="Answer", help='Prediction answer, e.g. yes or no')
@click.option('--amount', type=str, default=None, help='Amount in SOL, server default when omitted')
@click.option('--account', type=str, prompt="Account", help='Base58 public key of the sender')
@click.pass_obj
def predict(obj, answer: str, amount: str | None, account: str):
    """Request an unsigned prediction transaction from the server."""
    path = f"/api/predict/{answer}" if amount is None else f"/api/predict/{answer}/{amount}"
    response = requests.post(f"{obj['server_url']}{path}", json={"account": account})
    click.echo(json.dumps(response.json(), indent=2))


@cli.command()
@click.argument('transaction')
def decode_transaction(transaction: str):
    """Decode a base64 transaction and print its transfers."""
    try:
        decoded = VersionedTransaction.from_bytes(base64.b64decode(transaction))
    except ValueError as exc:
        raise click.BadParameter(f"Not a serialized transaction: {exc}", param_hint="TRANSACTION")
    click.echo(json.dumps(describe_transaction(decoded), indent=2))


if __name__ == "__main__":
    cli()
