"""Lookup of reference constraints by element path.

A ProfileIndex is built once from a flattened profile and is read-only
afterwards, so one instance can be shared by any number of concurrent
validation passes.
"""
import logging
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional

from .data.profile import Profile
from .errors import MalformedProfile
from .model.aggregation import AggregationMode
from .model.constraint import ReferenceConstraint

logger = logging.getLogger(__name__)

CHOICE_SUFFIX = "[x]"
REFERENCE_CHOICE_TYPE = "Reference"


class ProfileIndex:
    def __init__(self, constraints: Iterable[ReferenceConstraint] = ()) -> None:
        by_path: dict[str, ReferenceConstraint] = {}
        for constraint in constraints:
            if not constraint.target_types:
                msg = f"reference element {constraint.path} declares no target types"
                logger.error(msg)
                raise MalformedProfile(msg, path=constraint.path)
            # Later declarations are closer to the leaf profile and win
            by_path[constraint.path] = constraint
        self.__constraints: Mapping[str, ReferenceConstraint] = MappingProxyType(by_path)

    def __len__(self) -> int:
        return len(self.__constraints)

    def __contains__(self, path: object) -> bool:
        return path in self.__constraints

    def __iter__(self) -> Iterator[ReferenceConstraint]:
        return iter(self.__constraints.values())

    def __repr__(self) -> str:
        return f"ProfileIndex(paths={self.paths})"

    @property
    def paths(self) -> list[str]:
        """Constrained element paths in declaration order."""
        return list(self.__constraints)

    def lookup(self, path: str) -> Optional[ReferenceConstraint]:
        """Constraint declared for *path*, or None when the path is unconstrained.

        An instance key such as `valueReference` is also looked up as the
        choice element `value[x]` it was declared as.
        """
        constraint = self.__constraints.get(path)
        if constraint is not None:
            return constraint

        head, _, leaf = path.rpartition(".")
        if head and leaf.endswith(REFERENCE_CHOICE_TYPE) and leaf != REFERENCE_CHOICE_TYPE:
            choice = f"{head}.{leaf[: -len(REFERENCE_CHOICE_TYPE)]}{CHOICE_SUFFIX}"
            return self.__constraints.get(choice)
        return None

    def overlay(self, other: "ProfileIndex") -> "ProfileIndex":
        """New index with the constraints of *other* replacing ours path by path."""
        return ProfileIndex([*self, *other])

    @staticmethod
    def from_mapping(
        mapping: Mapping[str, Mapping[str, Optional[Iterable[str | AggregationMode]]]]
    ) -> "ProfileIndex":
        """Build an index from `{path: {target_type: modes or None}}`.

        Empty or missing modes leave the target type unconstrained. Unknown
        mode values raise MalformedProfile.
        """
        constraints = []
        for path, targets in mapping.items():
            modes: dict[str, frozenset[AggregationMode]] = {}
            for target_type, declared in (targets or {}).items():
                parsed = frozenset(AggregationMode.parse(value, path) for value in declared or ())
                if parsed:
                    modes[target_type] = parsed
            constraints.append(
                ReferenceConstraint(
                    path=path,
                    target_types=frozenset(targets or ()),
                    modes=modes,
                )
            )
        return ProfileIndex(constraints)

    @staticmethod
    def from_profile(
        profile: Profile, profile_types: Optional[Mapping[str, str]] = None
    ) -> "ProfileIndex":
        index = ProfileIndex(profile.reference_constraints(profile_types))
        logger.debug("indexed %d reference elements of %s", len(index), profile.url)
        return index


EMPTY_INDEX = ProfileIndex()
