"""NEAR Python SDK.

Everything needed to drive transactions against a NEAR node from Python:
key management, transaction building and signing, submission, and polling
for results, plus account and contract facades on top.

Quick start::

    from near_sdk import InMemoryKeyStore, KeyPair, Near, NearConfig

    key_store = InMemoryKeyStore()
    await key_store.set_key("alice.near", KeyPair.from_secret_key(secret))

    async with Near(NearConfig(), key_store=key_store) as near:
        handle = await near.send_tokens(10, "alice.near", "bob.near")
        await near.wait_for_transaction_result(handle)
"""

from near_sdk.account import Account, CreatedAccount
from near_sdk.client import NearClient
from near_sdk.config import NearConfig, create_default_config
from near_sdk.contract import Contract
from near_sdk.exceptions import (
    AccountNotFoundError,
    AmbiguousTimeoutError,
    ExecutionFailedError,
    InvalidIntentError,
    KeyNotFoundError,
    NearClientError,
    NearError,
    NearRpcError,
    RejectedBySyntaxError,
    RpcUnreachableError,
)
from near_sdk.key_pair import KeyPair, verify_signature
from near_sdk.key_store import InMemoryKeyStore, KeyStore, UnencryptedFileSystemKeyStore
from near_sdk.near import Near
from near_sdk.nonce import NonceTracker
from near_sdk.poller import PollState, ResultPoller
from near_sdk.signer import Signer
from near_sdk.submitter import Submitter
from near_sdk.transaction import (
    TransactionBuilder,
    compute_transaction_hash,
    sign_transaction,
    signable_bytes,
    verify_transaction,
)
from near_sdk.types import (
    AccountId,
    AccountView,
    CreateAccount,
    DeployContract,
    FunctionCall,
    OutcomeStatus,
    PublicKey,
    Signature,
    SignedTransaction,
    Transaction,
    TransactionHandle,
    TransactionOutcome,
    TransactionStatus,
    Transfer,
)

__all__ = [
    # Connection
    "Near",
    "NearConfig",
    "create_default_config",
    "NearClient",
    # Facades
    "Account",
    "CreatedAccount",
    "Contract",
    # Keys
    "KeyPair",
    "KeyStore",
    "InMemoryKeyStore",
    "UnencryptedFileSystemKeyStore",
    "Signer",
    "verify_signature",
    # Pipeline
    "NonceTracker",
    "TransactionBuilder",
    "Submitter",
    "ResultPoller",
    "PollState",
    "compute_transaction_hash",
    "sign_transaction",
    "signable_bytes",
    "verify_transaction",
    # Errors
    "NearError",
    "KeyNotFoundError",
    "InvalidIntentError",
    "NearClientError",
    "RpcUnreachableError",
    "NearRpcError",
    "AccountNotFoundError",
    "RejectedBySyntaxError",
    "ExecutionFailedError",
    "AmbiguousTimeoutError",
    # Types
    "AccountId",
    "AccountView",
    "CreateAccount",
    "DeployContract",
    "FunctionCall",
    "Transfer",
    "OutcomeStatus",
    "PublicKey",
    "Signature",
    "Transaction",
    "SignedTransaction",
    "TransactionHandle",
    "TransactionOutcome",
    "TransactionStatus",
]

__version__ = "0.1.0"
