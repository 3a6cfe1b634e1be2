"""
ShipmentHistorySource Port - Interface for reading shipment history.
Returns Pandas DataFrames so adapters can hand over raw query results.
"""

from abc import ABC, abstractmethod

import pandas as pd

from logisentry.core.domain.shipment import ActiveShipment


class ShipmentHistorySource(ABC):
    """
    Abstract interface for the shipment store.
    """

    @abstractmethod
    async def fetch_completed(self, limit: int, route_id: str | None = None) -> pd.DataFrame:
        """
        Fetch the most recent completed shipments.

        Args:
            limit: Maximum number of shipments
            route_id: Restrict to one route (default: all routes)

        Returns:
            DataFrame with columns ['shipment_id', 'expected_time', 'actual_time'],
            most recent first
        """
        ...

    @abstractmethod
    async def fetch_active(self, route_id: str | None = None) -> ActiveShipment | None:
        """
        Fetch the most recently created shipment that has not arrived yet.

        Args:
            route_id: Restrict to one route (default: all routes)
        """
        ...
