"""Method-call style access to a deployed contract.

Example::

    contract = await near.load_contract(
        "hello.test",
        sender="alice.near",
        view_methods=["hello"],
        change_methods=["setValue"],
    )
    await contract.setValue({"value": "x"})
    greeting = await contract.hello({"name": "trex"})

Log lines produced by the contract are emitted on this module's logger as
``[<contract_id>]: <line>``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Sequence

from near_sdk.exceptions import ExecutionFailedError

if TYPE_CHECKING:
    from near_sdk.near import Near

logger = logging.getLogger(__name__)


def emit_contract_logs(contract_id: str, logs: Sequence[str]) -> None:
    for line in logs:
        logger.info("[%s]: %s", contract_id, line)


class Contract:
    """A contract whose methods are exposed as coroutine attributes.

    View methods run as read-only queries. Change methods go through the
    full transaction pipeline, signed by *sender*, and return the decoded
    return value once the transaction has completed.
    """

    def __init__(
        self,
        near: "Near",
        contract_id: str,
        *,
        sender: str,
        view_methods: Sequence[str] = (),
        change_methods: Sequence[str] = (),
    ) -> None:
        self._near = near
        self.contract_id = contract_id
        self.sender = sender
        self.view_methods = tuple(view_methods)
        self.change_methods = tuple(change_methods)

        for name in self.view_methods:
            self._bind(name, self._view_method(name))
        for name in self.change_methods:
            self._bind(name, self._change_method(name))

    def _bind(self, name: str, method: Callable[..., Awaitable[Any]]) -> None:
        if hasattr(self, name):
            raise ValueError(f"contract method {name!r} clashes with a Contract attribute")
        setattr(self, name, method)

    def _view_method(self, name: str) -> Callable[..., Awaitable[Any]]:
        async def method(args: dict[str, Any] | None = None) -> Any:
            return await self.view(name, args)

        method.__name__ = name
        return method

    def _change_method(self, name: str) -> Callable[..., Awaitable[Any]]:
        async def method(
            args: dict[str, Any] | None = None,
            *,
            amount: int = 0,
            timeout: float | None = None,
        ) -> Any:
            return await self.change(name, args, amount=amount, timeout=timeout)

        method.__name__ = name
        return method

    async def view(self, method_name: str, args: dict[str, Any] | None = None) -> Any:
        """Call a view method by name."""
        return await self._near.call_view_function(self.contract_id, method_name, args)

    async def change(
        self,
        method_name: str,
        args: dict[str, Any] | None = None,
        *,
        amount: int = 0,
        timeout: float | None = None,
    ) -> Any:
        """Call a change method by name and wait for the result.

        Raises:
            ExecutionFailedError: The call failed; its logs are emitted first.
            AmbiguousTimeoutError: No terminal state within *timeout*.
        """
        handle = await self._near.schedule_function_call(
            amount, self.sender, self.contract_id, method_name, args
        )
        try:
            outcome = await self._near.wait_for_transaction_result(handle, timeout=timeout)
        except ExecutionFailedError as exc:
            emit_contract_logs(self.contract_id, exc.logs)
            raise
        emit_contract_logs(self.contract_id, outcome.logs)
        return outcome.decoded_value()

    def __repr__(self) -> str:
        return f"Contract({self.contract_id!r}, sender={self.sender!r})"
