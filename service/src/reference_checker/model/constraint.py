from pydantic import BaseModel, ConfigDict

from .aggregation import AggregationMode

# Target type that admits every resource type
ANY_RESOURCE = "Resource"


class ReferenceConstraint(BaseModel):
    """Reference rules of one element path: allowed target types and, per
    type, the allowed aggregation modes. An empty mode set means any mode."""

    model_config = ConfigDict(frozen=True)

    path: str
    target_types: frozenset[str]
    modes: dict[str, frozenset[AggregationMode]] = {}

    def allows_type(self, target_type: str) -> bool:
        return target_type in self.target_types or ANY_RESOURCE in self.target_types

    def modes_for(self, target_type: str) -> frozenset[AggregationMode]:
        if target_type in self.modes:
            return self.modes[target_type]
        if target_type not in self.target_types:
            return self.modes.get(ANY_RESOURCE, frozenset())
        return frozenset()
