"""Relational storage of swipes and matches."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from swipesvc.domain import Match, Pagination, Swipe, UserID
from swipesvc.logger import ROOT_LOGGER, Secret
from swipesvc.queries import Queries


class RepositoryError(Exception):
    """A storage operation failed; the cause holds the database error."""


def _normalize_url(url: str) -> str:
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


class Repository:
    """Stores swipes and reads swipes and matches through a connection pool."""

    def __init__(self, engine: Engine, log: Optional[logging.Logger] = None) -> None:
        self._engine = engine
        self._log = log or logging.getLogger(ROOT_LOGGER).getChild("postgres_repo")

    @property
    def engine(self) -> Engine:
        return self._engine

    def get_matches(self, user_id: UserID, pagination: Pagination) -> list[Match]:
        with self._engine.connect() as conn:
            rows = Queries(conn).matches(user_id, pagination.limit, pagination.offset)
        return [Match(init=row.initiator_id, target=row.target_id) for row in rows]

    def create_swipe(self, swipe: Swipe) -> None:
        """Store a swipe, answering an opposite swipe if one already exists."""
        if swipe.init_resp is None:
            raise ValueError("swipe has no initiator response")
        with self._engine.begin() as conn:
            query = Queries(conn)
            try:
                exists_opposite = query.swipe_exists(swipe.target, swipe.init)
            except SQLAlchemyError as exc:
                raise RepositoryError(f"failed to check if swipe exists: {exc}") from exc
            try:
                if exists_opposite:
                    self._log.debug(
                        "swipe already exists", extra={"fields": {"swipe": swipe}}
                    )
                    query.upsert_target_swipe(swipe.target, swipe.init, swipe.init_resp)
                else:
                    query.upsert_init_swipe(swipe.init, swipe.target, swipe.init_resp)
            except SQLAlchemyError as exc:
                raise RepositoryError(f"failed to upsert swipe: {exc}") from exc

    def my_swipes(self, user_id: UserID, pagination: Pagination) -> list[Swipe]:
        """Swipes in which someone liked the user."""
        with self._engine.connect() as conn:
            rows = Queries(conn).swipes_target_like(
                user_id, pagination.limit, pagination.offset
            )
        return [
            Swipe(
                init=row.initiator_id,
                target=row.target_id,
                init_resp=row.initiator_resp,
                target_resp=row.target_resp,
            )
            for row in rows
        ]

    def close(self) -> None:
        self._engine.dispose()


def connect_repository(url: str) -> Repository:
    """Create a repository with a connection pool for the database at ``url``."""
    log = logging.getLogger(ROOT_LOGGER).getChild("postgres_repo")
    log.info("connect to db", extra={"fields": {"connection string": Secret(url)}})
    log.info("creating connection pool")
    try:
        engine = create_engine(_normalize_url(url))
    except (ArgumentError, SQLAlchemyError, ImportError) as exc:
        raise RepositoryError(f"failed to create connection pool: {exc}") from exc
    return Repository(engine, log)