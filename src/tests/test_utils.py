import asyncio
import json
import pytest
from click.testing import CliRunner
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from cli import cli
from core.utils import (
    ActionRequestError,
    MAX_LAMPORTS,
    encode_transaction,
    parse_account,
    prepare_transfer_transaction,
    sol_to_lamports,
)


@pytest.mark.parametrize("amount,lamports", [
    ("1", 1_000_000_000),
    ("0.2", 200_000_000),
    ("0", 0),
    ("1e-9", 1),
    ("0.0000000019", 1),
    ("18446744073.709551615", MAX_LAMPORTS),
])
def test_sol_to_lamports(amount, lamports):
    assert sol_to_lamports(amount) == lamports


@pytest.mark.parametrize("amount", ["abc", "", "nan", "-inf", "-0.5"])
def test_sol_to_lamports_rejects(amount):
    with pytest.raises(ActionRequestError) as exc_info:
        sol_to_lamports(amount)
    assert exc_info.value.message == f"Invalid amount provided: {amount}"


@pytest.mark.parametrize("amount", ["18446744073.709551616", "1e999999999", "9e999990", "1E+30"])
def test_sol_to_lamports_rejects_oversized(amount):
    with pytest.raises(ActionRequestError) as exc_info:
        sol_to_lamports(amount)
    assert exc_info.value.message == f"Amount too large: {amount}"


def test_parse_account():
    key = Keypair().pubkey()
    assert parse_account(str(key)) == key

    with pytest.raises(ActionRequestError) as exc_info:
        parse_account("definitely not base58")
    assert exc_info.value.message == "Invalid account provided"


def test_decode_transaction_command(fixed_blockhash):
    sender = Keypair().pubkey()
    recipient = Pubkey.from_string("3h4AtoLTh3bWwaLhdtgQtcC3a3Tokb8NJbtqR9rhp7p6")
    transaction = asyncio.run(prepare_transfer_transaction(sender, recipient, 42))

    result = CliRunner().invoke(cli, ["decode-transaction", encode_transaction(transaction)])

    assert result.exit_code == 0, result.output
    summary = json.loads(result.output)
    assert summary["fee_payer"] == str(sender)
    assert summary["recent_blockhash"] == str(fixed_blockhash)
    assert summary["signatures"] == 1
    assert summary["transfers"] == [{
        "source": str(sender),
        "destination": str(recipient),
        "lamports": 42,
    }]


class FakeResponse:
    def __init__(self, payload):
        self.payload = payload

    def json(self):
        return self.payload

    def raise_for_status(self):
        pass


def test_show_action_command(monkeypatch):
    calls = []

    def fake_get(url):
        calls.append(url)
        return FakeResponse({"label": "0.2 SOL", "links": {"actions": []}})

    monkeypatch.setattr("cli.requests.get", fake_get)
    result = CliRunner().invoke(cli, ["--server-url", "http://actions.test", "show-action"])

    assert result.exit_code == 0, result.output
    assert calls == ["http://actions.test/api/predict"]
    assert json.loads(result.output)["label"] == "0.2 SOL"


@pytest.mark.parametrize("extra_args,expected_url", [
    (["--amount", "1.5"], "http://localhost:8000/api/predict/yes/1.5"),
    ([], "http://localhost:8000/api/predict/yes"),
])
def test_predict_command(monkeypatch, extra_args, expected_url):
    calls = []

    def fake_post(url, json):
        calls.append((url, json))
        return FakeResponse({"transaction": "AQID"})

    monkeypatch.setattr("cli.requests.post", fake_post)
    account = str(Keypair().pubkey())
    result = CliRunner().invoke(cli, ["predict", "--answer", "yes", "--account", account, *extra_args])

    assert result.exit_code == 0, result.output
    assert calls == [(expected_url, {"account": account})]
    assert json.loads(result.output) == {"transaction": "AQID"}
