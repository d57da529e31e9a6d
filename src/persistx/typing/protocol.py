"""Adapter, hook and decision interfaces."""

from __future__ import annotations

from collections.abc import Awaitable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from persistx.hooks import HookInput
    from persistx.typing.models import AdapterSaveRequest, SaveResult


class StorageAdapter(Protocol):
    """Storage backend interface."""

    async def save(self, request: AdapterSaveRequest) -> SaveResult:
        """Persist mapped data.

        Implementations must reject `create` when the resolved document already
        exists, reject `update` when it does not, and merge on `upsert`.

        Args:
            request: Resolved collection, id strategy, mode, data and schema version.

        Returns:
            SaveResult: Where and when the document was written.
        """


class Hook(Protocol):
    """Side-effect handler run at a named pipeline stage."""

    def __call__(self, hook_input: HookInput, /) -> Awaitable[None] | None:
        """Handle one stage of a save.

        Args:
            hook_input: Definition, context and the pipeline values available at this stage.
        """


class DecisionProvider(Protocol):
    """Source of operator yes/no answers for rename suggestions."""

    def ask_yes_no(self, question: str, default: bool) -> bool:  # noqa: FBT001
        """Ask a yes/no question.

        Args:
            question: Prompt shown to the operator.
            default: Answer used when the operator gives no usable answer.

        Returns:
            bool: The operator decision.
        """
