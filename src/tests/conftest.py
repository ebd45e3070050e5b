import pytest
from solders.hash import Hash
from solders.keypair import Keypair

FIXED_BLOCKHASH = Hash.new_unique()


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fixed_blockhash(monkeypatch):
    """Serve a constant blockhash instead of asking the RPC node."""
    async def fake_get_latest_blockhash():
        return FIXED_BLOCKHASH

    monkeypatch.setattr("core.utils.get_latest_blockhash", fake_get_latest_blockhash)
    return FIXED_BLOCKHASH


@pytest.fixture
def account():
    return str(Keypair().pubkey())
