from __future__ import annotations

from types import TracebackType
from typing import Self

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.expression import Executable

from chat_delivery.application.exceptions import CommitError
from chat_delivery.infrastructure.db.repositories.conversation import (
    ConversationReaderRepo,
    ConversationWriterRepo,
)
from chat_delivery.infrastructure.db.repositories.message import (
    MessageReaderRepo,
    MessageWriterRepo,
)
from chat_delivery.infrastructure.db.repositories.outbox import OutboxWriterRepo


class SqlAlchemyUoW:
    """Concrete Unit-of-Work backed by a single AsyncSession.

    Writer repositories only stage statements. ``commit()`` executes the
    staged batch in order inside the session transaction and commits it, so
    readers see either every write of the batch or none of them.
    """

    def __init__(self, session: AsyncSession, *, lock_due_rows: bool = False) -> None:
        self._session = session
        self._batch: list[Executable] = []
        self.conversations = ConversationReaderRepo(session)
        self.conversations_w = ConversationWriterRepo(self._batch)
        self.messages = MessageReaderRepo(session, lock_due_rows=lock_due_rows)
        self.messages_w = MessageWriterRepo(self._batch)
        self.outbox = OutboxWriterRepo(session, self._batch)

    async def commit(self) -> None:
        statements = list(self._batch)
        self._batch.clear()
        try:
            for stmt in statements:
                await self._session.execute(stmt)
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise CommitError(f"batch of {len(statements)} writes rejected: {exc}") from exc

    async def rollback(self) -> None:
        self._batch.clear()
        await self._session.rollback()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            await self.rollback()
