"""
Base service class.

Services orchestrate the pure metric functions over caller-supplied data;
none of them perform I/O.
"""

import logging
from typing import Optional


class BaseService:
    """
    Base class for all services.

    Provides common functionality:
    - Logging setup
    - Progress reporting
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    @property
    def logger(self) -> logging.Logger:
        """Get the logger instance."""
        return self._logger

    def _report(self, progress, current: int, total: int, label: str) -> None:
        """Call a progress callback, logging instead of failing if it raises."""
        if progress is None:
            return
        try:
            progress(current, total, label)
        except Exception as e:
            self._logger.warning(f"Progress callback failed at {current}/{total}: {e}")
