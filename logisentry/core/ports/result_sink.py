"""
ResultSink Port - Interface for persisting predictions and anomalies.
"""

from abc import ABC, abstractmethod

import pandas as pd


class ResultSink(ABC):
    """
    Abstract interface for wherever results end up (database, dashboard feed).
    """

    @abstractmethod
    async def write_predictions(self, df: pd.DataFrame) -> None:
        """
        Write prediction rows.

        Args:
            df: One row per prediction, see services.frames.prediction_to_frame
        """
        ...

    @abstractmethod
    async def write_anomalies(self, df: pd.DataFrame) -> None:
        """
        Write anomaly rows.

        Args:
            df: One row per anomaly, see services.frames.anomalies_to_frame
        """
        ...
