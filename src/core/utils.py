import base64
from decimal import Decimal, InvalidOperation

from loguru import logger
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Finalized
from solders.hash import Hash
from solders.instruction import Instruction
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import ID as SYSTEM_PROGRAM_ID, TransferParams, transfer
from solders.transaction import VersionedTransaction
from core.config import setting

LAMPORTS_PER_SOL = pow(10, 9)
MAX_LAMPORTS = pow(2, 64) - 1
# Smallest SOL amount whose lamport value no longer fits in a u64
SOL_CEILING = Decimal(MAX_LAMPORTS + 1) / LAMPORTS_PER_SOL


class ActionRequestError(Exception):
    """Raised when a request carries input that cannot become a transaction."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


async def get_client():
    """Get the Solana RPC client"""
    if setting.rpc_client is None:
        setting.rpc_client = AsyncClient(setting.solana_rpc_url)
    return setting.rpc_client


async def close_client():
    if setting.rpc_client is not None:
        await setting.rpc_client.close()
        setting.rpc_client = None


def parse_account(value: str) -> Pubkey:
    """
    Parse a base58 encoded public key.

    :param value: The account supplied by the caller

    :return: The parsed public key
    """
    try:
        return Pubkey.from_string(value)
    except ValueError as exc:
        logger.warning(f"Invalid account {value!r}: {exc}")
        raise ActionRequestError("Invalid account provided") from exc


def sol_to_lamports(amount: str) -> int:
    """
    Convert a SOL amount string to lamports.

    Fractions of a lamport are truncated. Non-numeric, non-finite and
    negative amounts are rejected, as are amounts that overflow a u64.

    :param amount: The amount in SOL, as received in the request path

    :return: The amount in lamports
    """
    try:
        parsed = Decimal(amount)
    except (InvalidOperation, TypeError) as exc:
        raise ActionRequestError(f"Invalid amount provided: {amount}") from exc

    if not parsed.is_finite() or parsed < 0:
        raise ActionRequestError(f"Invalid amount provided: {amount}")

    # Bound before multiplying: huge exponents overflow the decimal context
    if parsed >= SOL_CEILING:
        raise ActionRequestError(f"Amount too large: {amount}")

    lamports = int(parsed * LAMPORTS_PER_SOL)
    if lamports > MAX_LAMPORTS:
        raise ActionRequestError(f"Amount too large: {amount}")
    return lamports


async def get_latest_blockhash() -> Hash:
    client = await get_client()
    response = await client.get_latest_blockhash(commitment=Finalized)
    return response.value.blockhash


async def prepare_transaction(instructions: list[Instruction], payer: Pubkey) -> VersionedTransaction:
    """
    Build an unsigned v0 transaction for the given instructions.

    Every required signature slot is filled with the default (all zero)
    signature, so the caller signs it before submitting.

    :param instructions: Instructions to include, in order
    :param payer: The fee payer

    :return: The unsigned transaction
    """
    blockhash = await get_latest_blockhash()
    message = MessageV0.try_compile(payer, instructions, [], blockhash)
    signatures = [Signature.default()] * message.header.num_required_signatures
    return VersionedTransaction.populate(message, signatures)


async def prepare_transfer_transaction(sender: Pubkey, recipient: Pubkey, lamports: int) -> VersionedTransaction:
    """Build an unsigned transaction moving `lamports` from sender to recipient, paid by sender."""
    instructions = [
        transfer(
            TransferParams(
                from_pubkey=sender,
                to_pubkey=recipient,
                lamports=lamports,
            )
        ),
    ]
    return await prepare_transaction(instructions, sender)


def encode_transaction(transaction: VersionedTransaction) -> str:
    return base64.b64encode(bytes(transaction)).decode("utf-8")


def describe_transaction(transaction: VersionedTransaction) -> dict:
    """
    Summarise a transaction's fee payer, blockhash and system transfers.

    :param transaction: The transaction to describe

    :return: A JSON serialisable dict
    """
    message = transaction.message
    account_keys = message.account_keys
    transfers = []
    for compiled in message.instructions:
        program_id = account_keys[compiled.program_id_index]
        data = bytes(compiled.data)
        accounts = list(compiled.accounts)
        # System transfer: u32 instruction index 2, then u64 lamports
        if program_id != SYSTEM_PROGRAM_ID or len(data) != 12 or int.from_bytes(data[:4], "little") != 2:
            continue
        transfers.append({
            "source": str(account_keys[accounts[0]]),
            "destination": str(account_keys[accounts[1]]),
            "lamports": int.from_bytes(data[4:12], "little"),
        })

    return {
        "fee_payer": str(account_keys[0]),
        "recent_blockhash": str(message.recent_blockhash),
        "signatures": len(transaction.signatures),
        "transfers": transfers,
    }
