"""Execution-scoped store configuration.

The boundary with whatever schedules work: a scheduler installs the
configuration for an execution, and code running inside it resolves the
configuration with current_configuration(). The files module never reads
this state itself; pass the resolved configuration explicitly.
"""

import uuid
from contextvars import ContextVar, Token
from typing import Any

from cloudfs_core.configuration import StoreConfiguration
from cloudfs_core.exceptions import ConfigError
from cloudfs_core.observability import execution_id_var, store_id_var, store_name_var
from cloudfs_core.protocols import CloudFileStore

configuration_var: ContextVar[StoreConfiguration | None] = ContextVar(
    "store_configuration", default=None
)


class ExecutionContext:
    """Context manager installing a store configuration for one execution.

    Example:
        async with ExecutionContext(config):
            fs = current_file_store()
            await fs.create_directory("/work")
    """

    def __init__(
        self,
        configuration: StoreConfiguration,
        execution_id: str | None = None,
    ) -> None:
        """Initialize execution context.

        Args:
            configuration: Store configuration for the execution
            execution_id: Execution identifier for log records. Generated if None.
        """
        self.configuration = configuration
        self.execution_id = execution_id or str(uuid.uuid4())
        # Store (var, token) tuples so we can reset properly
        self._tokens: list[tuple[ContextVar[Any], Token[Any]]] = []

    def __enter__(self) -> "ExecutionContext":
        store = self.configuration.file_store
        self._tokens.append((configuration_var, configuration_var.set(self.configuration)))
        self._tokens.append((execution_id_var, execution_id_var.set(self.execution_id)))
        self._tokens.append((store_name_var, store_name_var.set(store.name)))
        self._tokens.append((store_id_var, store_id_var.set(store.id)))
        return self

    def __exit__(self, *args: Any) -> None:
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()

    async def __aenter__(self) -> "ExecutionContext":
        return self.__enter__()

    async def __aexit__(self, *args: Any) -> None:
        self.__exit__(*args)


def current_configuration() -> StoreConfiguration:
    """Resolve the store configuration of the current execution.

    Raises:
        ConfigError: If no configuration is installed
    """
    configuration = configuration_var.get()
    if configuration is None:
        raise ConfigError("No store configuration installed for the current execution")
    return configuration


def current_file_store() -> CloudFileStore:
    """Resolve the store of the current execution."""
    return current_configuration().file_store
