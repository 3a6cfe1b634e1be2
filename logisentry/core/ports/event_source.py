"""
SecurityEventSource Port - Interface for reading accounts and activity.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from logisentry.core.domain.security import AccessEvent, AccountProfile, LoginAttempt


class SecurityEventSource(ABC):
    """
    Abstract interface for the account activity store.
    """

    @abstractmethod
    async def fetch_accounts(self) -> list[AccountProfile]:
        """List all monitored accounts."""
        ...

    @abstractmethod
    async def fetch_logins(self, start: datetime, end: datetime) -> list[LoginAttempt]:
        """
        Fetch login attempts with start <= timestamp <= end.

        Args:
            start: Window start
            end: Window end
        """
        ...

    @abstractmethod
    async def fetch_accesses(self, start: datetime, end: datetime) -> list[AccessEvent]:
        """
        Fetch access events with start <= timestamp <= end.

        Args:
            start: Window start
            end: Window end
        """
        ...
