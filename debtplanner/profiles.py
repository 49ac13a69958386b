from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError

from .amounts import parse_amount, quantize
from .database import Database
from .models import Profile, utcnow


logger = logging.getLogger(__name__)

ANONYMOUS = "anonymous"
ACCOUNT = "account"

DEFAULT_BUDGET = Decimal("16000")
DEFAULT_MIN_PERCENT = Decimal("5")


class ProfileError(ValueError):
    pass


@dataclass(frozen=True)
class ProfileIdentity:
    kind: str
    identifier: str

    @classmethod
    def anonymous(cls, nickname: str) -> "ProfileIdentity":
        """Nicknames are case- and whitespace-insensitive."""

        key = (nickname or "").strip().lower()
        if not key:
            raise ProfileError("Nickname must not be empty")
        return cls(ANONYMOUS, key)

    @classmethod
    def account(cls, uid: str) -> "ProfileIdentity":
        if not uid:
            raise ProfileError("Account id must not be empty")
        return cls(ACCOUNT, uid)

    @classmethod
    def parse(cls, kind: str, identifier: str) -> "ProfileIdentity":
        if kind == ANONYMOUS:
            return cls.anonymous(identifier)
        if kind == ACCOUNT:
            return cls.account(identifier)
        raise ProfileError(f"Unknown profile kind '{kind}'")


class ProfileRepository:
    """Load and merge-save the ``{budget, minPercent, debts, updatedAt}`` document."""

    def __init__(
        self,
        database: Database,
        default_budget=DEFAULT_BUDGET,
        default_min_percent=DEFAULT_MIN_PERCENT,
    ) -> None:
        self.database = database
        self.default_budget = quantize(Decimal(str(default_budget)))
        self.default_min_percent = quantize(Decimal(str(default_min_percent)))

    def _find(self, session, identity: ProfileIdentity) -> Optional[Profile]:
        return (
            session.query(Profile)
            .filter_by(kind=identity.kind, identifier=identity.identifier)
            .first()
        )

    def load(self, identity: ProfileIdentity) -> Optional[dict]:
        with self.database.session_scope() as session:
            profile = self._find(session, identity)
            return profile.to_dict() if profile else None

    def save(
        self,
        identity: ProfileIdentity,
        *,
        budget=None,
        min_percent=None,
        debts=None,
    ) -> dict:
        """Write the given fields, leaving the others as stored. Last write wins."""

        parsed_budget = self._amount("budget", budget)
        parsed_percent = self._amount("minPercent", min_percent)
        if debts is not None and not isinstance(debts, list):
            raise ProfileError("debts must be a list")

        for attempt in (1, 2):
            try:
                result = self._write(identity, parsed_budget, parsed_percent, debts)
                break
            except IntegrityError:
                # Another writer created the row first; update it instead.
                if attempt == 2:
                    raise
                logger.info(
                    "Profile %s/%s created concurrently; retrying as update",
                    identity.kind,
                    identity.identifier,
                )

        logger.info("Saved profile %s/%s", identity.kind, identity.identifier)
        return result

    def _write(self, identity: ProfileIdentity, budget, min_percent, debts) -> dict:
        with self.database.session_scope() as session:
            profile = self._find(session, identity)
            if profile is None:
                profile = Profile(
                    kind=identity.kind,
                    identifier=identity.identifier,
                    budget=self.default_budget,
                    min_percent=self.default_min_percent,
                    debts=[],
                )
            if budget is not None:
                profile.budget = quantize(budget)
            if min_percent is not None:
                profile.min_percent = quantize(min_percent)
            if debts is not None:
                profile.debts = list(debts)
            profile.updated_at = utcnow()
            session.add(profile)
            session.flush()
            return profile.to_dict()

    @staticmethod
    def _amount(field: str, raw) -> Optional[Decimal]:
        if raw is None:
            return None
        value = parse_amount(raw)
        if value is None or value < 0:
            raise ProfileError(f"{field} must be a non-negative number")
        return value
