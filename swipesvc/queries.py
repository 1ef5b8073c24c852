"""SQL queries against the swipe tables and the rows they return."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, Uuid, bindparam, text
from sqlalchemy.engine import Connection

_MATCHES = (
    text(
        """
        SELECT
            m.initiator_id,
            m.target_id
        FROM
            user_matches m
        WHERE
            m.initiator_id = :initiator_id OR m.target_id = :initiator_id
        ORDER BY m.initiator_id DESC LIMIT :limit OFFSET :offset
        """
    )
    .bindparams(
        bindparam("initiator_id", type_=Uuid),
        bindparam("limit", type_=Integer),
        bindparam("offset", type_=Integer),
    )
    .columns(initiator_id=Uuid, target_id=Uuid)
)

_SWIPE_EXISTS = text(
    """
    SELECT EXISTS(
        SELECT 1 FROM swipe_db
        WHERE initiator_id = :initiator_id AND target_id = :target_id
    )
    """
).bindparams(
    bindparam("initiator_id", type_=Uuid),
    bindparam("target_id", type_=Uuid),
)

_SWIPES_TARGET_LIKE = (
    text(
        """
        SELECT
            initiator_id,
            target_id,
            initiator_resp,
            target_resp,
            created_at
        FROM swipe_db
        WHERE target_id = :target_id AND initiator_resp = TRUE
        ORDER BY created_at DESC LIMIT :limit OFFSET :offset
        """
    )
    .bindparams(
        bindparam("target_id", type_=Uuid),
        bindparam("limit", type_=Integer),
        bindparam("offset", type_=Integer),
    )
    .columns(
        initiator_id=Uuid,
        target_id=Uuid,
        initiator_resp=Boolean,
        target_resp=Boolean,
        created_at=DateTime,
    )
)

_UPSERT_INIT_SWIPE = text(
    """
    INSERT INTO swipe_db (initiator_id, target_id, initiator_resp)
    VALUES (:initiator_id, :target_id, :initiator_resp)
    ON CONFLICT (initiator_id, target_id)
    DO UPDATE SET
        initiator_resp = EXCLUDED.initiator_resp
    """
).bindparams(
    bindparam("initiator_id", type_=Uuid),
    bindparam("target_id", type_=Uuid),
    bindparam("initiator_resp", type_=Boolean),
)

_UPSERT_TARGET_SWIPE = text(
    """
    INSERT INTO swipe_db (initiator_id, target_id, target_resp)
    VALUES (:initiator_id, :target_id, :target_resp)
    ON CONFLICT (initiator_id, target_id)
    DO UPDATE SET
        target_resp = EXCLUDED.target_resp
    """
).bindparams(
    bindparam("initiator_id", type_=Uuid),
    bindparam("target_id", type_=Uuid),
    bindparam("target_resp", type_=Boolean),
)


@dataclass(frozen=True)
class SwipeRow:
    """A row of the swipe table."""

    initiator_id: uuid.UUID
    target_id: uuid.UUID
    initiator_resp: Optional[bool]
    target_resp: Optional[bool]
    created_at: Optional[datetime]


@dataclass(frozen=True)
class MatchRow:
    """A row of the matches view."""

    initiator_id: uuid.UUID
    target_id: uuid.UUID


class Queries:
    """Runs the service's statements on one database connection."""

    def __init__(self, db: Connection) -> None:
        self._db = db

    def matches(self, initiator_id: uuid.UUID, limit: int, offset: int) -> list[MatchRow]:
        """Matches in which the user takes either side, newest initiator first."""
        result = self._db.execute(
            _MATCHES,
            {"initiator_id": initiator_id, "limit": limit, "offset": offset},
        )
        return [MatchRow(row.initiator_id, row.target_id) for row in result]

    def swipe_exists(self, initiator_id: uuid.UUID, target_id: uuid.UUID) -> bool:
        result = self._db.execute(
            _SWIPE_EXISTS,
            {"initiator_id": initiator_id, "target_id": target_id},
        )
        return bool(result.scalar_one())

    def swipes_target_like(
        self, target_id: uuid.UUID, limit: int, offset: int
    ) -> list[SwipeRow]:
        """Swipes aimed at the user whose initiator liked them, newest first."""
        result = self._db.execute(
            _SWIPES_TARGET_LIKE,
            {"target_id": target_id, "limit": limit, "offset": offset},
        )
        return [
            SwipeRow(
                initiator_id=row.initiator_id,
                target_id=row.target_id,
                initiator_resp=row.initiator_resp,
                target_resp=row.target_resp,
                created_at=row.created_at,
            )
            for row in result
        ]

    def upsert_init_swipe(
        self, initiator_id: uuid.UUID, target_id: uuid.UUID, initiator_resp: bool
    ) -> None:
        self._db.execute(
            _UPSERT_INIT_SWIPE,
            {
                "initiator_id": initiator_id,
                "target_id": target_id,
                "initiator_resp": initiator_resp,
            },
        )

    def upsert_target_swipe(
        self, initiator_id: uuid.UUID, target_id: uuid.UUID, target_resp: bool
    ) -> None:
        self._db.execute(
            _UPSERT_TARGET_SWIPE,
            {
                "initiator_id": initiator_id,
                "target_id": target_id,
                "target_resp": target_resp,
            },
        )