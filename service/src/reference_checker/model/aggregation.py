import logging
from enum import StrEnum

from ..errors import MalformedProfile

logger = logging.getLogger(__name__)


class AggregationMode(StrEnum):
    """How the target of a reference is represented relative to the referring document."""

    CONTAINED = "contained"
    REFERENCED = "referenced"
    BUNDLED = "bundled"

    @classmethod
    def parse(cls, value: "str | AggregationMode", path: str) -> "AggregationMode":
        """Mode for a profile-declared code; anything outside the enumeration
        makes the profile malformed."""
        try:
            return cls(value)
        except ValueError:
            msg = f"unknown aggregation mode '{value}' at {path}"
            logger.error(msg)
            raise MalformedProfile(msg, path=path)
