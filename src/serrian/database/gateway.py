"""SQLAlchemy-backed persistence for build subjects."""

from collections.abc import AsyncGenerator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from serrian.database.engine import get_session
from serrian.database.models import BuildSubjectRecord
from serrian.game.character.subject import BuildSubject
from serrian.game.providers import PersistenceGateway

logger = structlog.get_logger(__name__)

SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class SqlAlchemyPersistenceGateway(PersistenceGateway):
    """Stores subjects in the build_subjects table.

    Args:
        session_scope: Context manager factory yielding a committing session;
            defaults to the global :func:`get_session`
    """

    def __init__(self, session_scope: SessionScope | None = None) -> None:
        self._session_scope = session_scope or get_session

    async def load(self, subject_id: str) -> BuildSubject | None:
        async with self._session_scope() as session:
            record = await session.get(BuildSubjectRecord, subject_id)
            if record is None:
                return None
            return record.to_subject()

    async def save(self, subject: BuildSubject) -> None:
        async with self._session_scope() as session:
            await session.merge(BuildSubjectRecord.from_subject(subject))
            await session.flush()

        logger.debug(
            "build_subject_saved",
            subject_id=subject.id,
            locked=subject.locked,
            xp_spent=subject.progression.xp_spent,
        )


def session_scope_for(session: AsyncSession) -> SessionScope:
    """Wrap an existing session so the gateway commits through it."""

    @asynccontextmanager
    async def scope() -> AsyncGenerator[AsyncSession, None]:
        yield session
        await session.commit()

    return scope
