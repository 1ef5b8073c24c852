"""Domain values: users, swipes, matches and pagination."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Optional

from swipesvc.logger import nullable

UserID = uuid.UUID


@dataclass(frozen=True)
class Match:
    """Two users who both liked each other."""

    init: UserID
    target: UserID

    def log_value(self) -> dict[str, Any]:
        return {"init": str(self.init), "target": str(self.target)}


@dataclass(frozen=True)
class Swipe:
    """A swipe from one user to another with each side's response, if any."""

    init: UserID
    target: UserID
    init_resp: Optional[bool] = None
    target_resp: Optional[bool] = None

    def log_value(self) -> dict[str, Any]:
        return {
            "init": str(self.init),
            "target": str(self.target),
            "initResp": nullable(self.init_resp),
            "targetResp": nullable(self.target_resp),
        }


@dataclass(frozen=True)
class Pagination:
    """Offset and limit of a page of results."""

    offset: int
    limit: int

    def log_value(self) -> dict[str, Any]:
        return {"offset": self.offset, "limit": self.limit}