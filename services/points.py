# services/points.py
# -*- coding: utf-8 -*-
"""
Process-lifetime points ledger and leaderboard.
Ties on total are ranked by who reached that total first.
"""

import itertools
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from config import LEADERBOARD_SIZE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LeaderboardEntry:
    user_id: int
    name: str
    total: int


@dataclass
class _Account:
    total: int
    reached_at: int
    name: Optional[str] = None


# ================================== PointsLedger: Per-user totals and ranking ==================================
class PointsLedger:

    def __init__(self):
        self._accounts: Dict[int, _Account] = {}
        self._sequence = itertools.count(1)

    def add(self, user_id: int, delta: int, display_name: Optional[str] = None) -> int:
        if delta <= 0:
            raise ValueError(f"Points delta must be positive, got {delta}")
        account = self._accounts.get(user_id)
        if account is None:
            account = _Account(total=0, reached_at=0)
            self._accounts[user_id] = account
        account.total += delta
        account.reached_at = next(self._sequence)
        if display_name:
            account.name = display_name
        logger.info(f"User {user_id} +{delta} points, total {account.total}.")
        return account.total

    def total(self, user_id: int) -> int:
        account = self._accounts.get(user_id)
        return account.total if account else 0

    def top(self, n: int = LEADERBOARD_SIZE) -> List[LeaderboardEntry]:
        ranked = sorted(self._accounts.items(), key=lambda item: (-item[1].total, item[1].reached_at))
        return [LeaderboardEntry(user_id=uid, name=acc.name or str(uid), total=acc.total) for uid, acc in ranked[:max(0, n)]]

    def __len__(self) -> int:
        return len(self._accounts)
# ================================== PointsLedger end ==================================

# services/points.py end
