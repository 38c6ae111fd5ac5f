"""CLI context management."""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from rich.console import Console

from tokengate.cli.utils.output import OutputFormatter
from tokengate.core.config import Settings
from tokengate.core.content import ContentResolver
from tokengate.core.services import TokenAdminService
from tokengate.infrastructure.database import DatabaseConnection, SqlTokenStore

T = TypeVar("T")


@dataclass
class CLIContext:
    """Context object passed through CLI commands."""

    debug: bool
    settings: Settings
    formatter: OutputFormatter
    console: Console

    def run(self, operation: Callable[[TokenAdminService], Awaitable[T]]) -> T:
        """
        Run an async token operation against the configured database.

        The connection is opened for the single operation and closed afterwards.
        """

        async def _run() -> T:
            db = DatabaseConnection(self.settings.database_url, echo=self.settings.database_echo)
            await db.connect()
            try:
                await db.create_schema()
                store = SqlTokenStore(db, access_log_limit=self.settings.access_log_limit)
                service = TokenAdminService(
                    store, default_expiration_days=self.settings.default_expiration_days
                )
                return await operation(service)
            finally:
                await db.disconnect()

        return asyncio.run(_run())

    def get_resolver(self) -> ContentResolver:
        return ContentResolver(self.settings.content_root, self.settings.external_projects)
