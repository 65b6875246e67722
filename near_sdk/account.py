"""Account-level operations.

:class:`Account` covers what a client does with accounts: inspect them,
create new ones funded by an existing sponsor, and make change or view
calls on their behalf. It is obtained from :meth:`Near.account`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, NamedTuple

from near_sdk.key_pair import KeyPair
from near_sdk.transaction import make_intent
from near_sdk.types import (
    AccountView,
    CreateAccount,
    FunctionCall,
    PublicKey,
    TransactionHandle,
    TransactionOutcome,
)

if TYPE_CHECKING:
    from near_sdk.near import Near


class CreatedAccount(NamedTuple):
    """Handle of a create-account transaction plus the key generated for it."""

    handle: TransactionHandle
    key_pair: KeyPair

    @property
    def hash(self) -> str:
        return self.handle.hash


class Account:
    """Account facade over a :class:`~near_sdk.near.Near` connection."""

    __slots__ = ("_near",)

    def __init__(self, near: "Near") -> None:
        self._near = near

    # ----- inspection ------------------------------------------------------

    async def view_account(self, account_id: str) -> AccountView:
        """Fetch the on-chain record of *account_id*.

        Raises:
            AccountNotFoundError: If the account does not exist.
        """
        return await self._near.client.view_account(account_id)

    async def get_balance(self, account_id: str) -> int:
        """Return the balance of *account_id* in the smallest unit."""
        return (await self.view_account(account_id)).amount

    # ----- creation --------------------------------------------------------

    async def create_account(
        self,
        new_account_id: str,
        public_key: PublicKey | bytes | str,
        amount: int,
        originator: str,
    ) -> TransactionHandle:
        """Create *new_account_id*, owned by *public_key* and funded by *originator*.

        Args:
            new_account_id: Name of the account to create.
            public_key: Key that will control the new account; raw bytes or
                base58 text.
            amount: Initial balance, taken from *originator*.
            originator: Existing account paying for the creation.

        Returns:
            The handle of the submitted transaction; pass it to
            :meth:`Near.wait_for_transaction_result`.
        """
        intent = make_intent(
            CreateAccount,
            new_account_id=new_account_id,
            public_key=public_key,
            amount=amount,
        )
        return await self._near.send_transaction(originator, intent)

    async def create_account_with_random_key(
        self,
        new_account_id: str,
        amount: int,
        originator: str,
    ) -> CreatedAccount:
        """Like :meth:`create_account` with a freshly generated key pair.

        The key pair is added to the connection's key store once the node
        has accepted the transaction, so the new account can sign right
        after creation completes.
        """
        key_pair = KeyPair.from_random_seed()
        handle = await self.create_account(new_account_id, key_pair.public_key, amount, originator)
        await self._near.key_store.set_key(new_account_id, key_pair)
        return CreatedAccount(handle=handle, key_pair=key_pair)

    # ----- calls -----------------------------------------------------------

    async def function_call(
        self,
        originator: str,
        contract_id: str,
        method_name: str,
        args: dict[str, Any] | None = None,
        *,
        amount: int = 0,
        timeout: float | None = None,
    ) -> TransactionOutcome:
        """Make a change call and wait for it.

        Raises:
            ExecutionFailedError: The call failed on chain.
            AmbiguousTimeoutError: No terminal state within *timeout*.
        """
        intent = make_intent(
            FunctionCall,
            contract_id=contract_id,
            method_name=method_name,
            args=args or {},
            amount=amount,
        )
        handle = await self._near.send_transaction(originator, intent)
        return await self._near.wait_for_transaction_result(handle, timeout=timeout)

    async def view_function(
        self,
        contract_id: str,
        method_name: str,
        args: dict[str, Any] | None = None,
    ) -> Any:
        """Read-only call; see :meth:`Near.call_view_function`."""
        return await self._near.call_view_function(contract_id, method_name, args)
