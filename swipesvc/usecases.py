"""Application use cases for swipes and matches."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from swipesvc.domain import Match, Pagination, Swipe, UserID
from swipesvc.logger import ROOT_LOGGER


class UseCaseError(Exception):
    """A use case could not complete; the cause holds the underlying error."""


class MatchesRepo(Protocol):
    def get_matches(self, user_id: UserID, pagination: Pagination) -> list[Match]: ...


class SwipesRepo(Protocol):
    def create_swipe(self, swipe: Swipe) -> None: ...

    def my_swipes(self, user_id: UserID, pagination: Pagination) -> list[Swipe]: ...


class SwipesPublisher(Protocol):
    def publish_swipe(self, swipe: Swipe) -> None: ...


def _child(log: Optional[logging.Logger], group: str) -> logging.Logger:
    return (log or logging.getLogger(ROOT_LOGGER)).getChild(group)


class MatchesUseCase:
    """Lists a user's matches."""

    def __init__(self, repo: MatchesRepo, log: Optional[logging.Logger] = None) -> None:
        self._repo = repo
        self._log = _child(log, "matches_usecase")

    def matches(self, user_id: UserID, pagination: Pagination) -> list[Match]:
        self._log.debug(
            "getting matches",
            extra={"fields": {"userID": user_id, "pag": pagination}},
        )
        try:
            return self._repo.get_matches(user_id, pagination)
        except Exception as exc:
            raise UseCaseError(f"failed to get matches for userID ({user_id}): {exc}") from exc


class SwipesUseCase:
    """Records swipes and lists the users who liked someone."""

    def __init__(
        self,
        repo: SwipesRepo,
        publisher: SwipesPublisher,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._repo = repo
        self._publisher = publisher
        self._log = _child(log, "swipes_usecase")

    def create_swipe(self, swipe: Swipe) -> None:
        """Publish the swipe, then store it."""
        self._log.debug("creating swipe", extra={"fields": {"swipe": swipe}})
        try:
            self._publisher.publish_swipe(swipe)
        except Exception as exc:
            raise UseCaseError(f"failed to publish swipe ({swipe!r}): {exc}") from exc
        try:
            self._repo.create_swipe(swipe)
        except Exception as exc:
            raise UseCaseError(f"failed to create swipe ({swipe!r}): {exc}") from exc

    def my_swipes(self, user_id: UserID, pagination: Pagination) -> list[Swipe]:
        self._log.debug(
            "getting swipes",
            extra={"fields": {"userID": user_id, "pag": pagination}},
        )
        try:
            return self._repo.my_swipes(user_id, pagination)
        except Exception as exc:
            raise UseCaseError(f"failed to get mySwipes for userID ({user_id}): {exc}") from exc