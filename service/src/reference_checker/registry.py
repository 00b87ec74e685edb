import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

from .data.core import core_indexes
from .data.profile import Profile
from .errors import ProfileNotFound
from .profile_index import EMPTY_INDEX, ProfileIndex

logger = logging.getLogger(__name__)


def canonical_url(url: str) -> str:
    return url.split("|", 1)[0]


def declared_profiles(resource: Dict[str, Any]) -> list[str]:
    meta = resource.get("meta")
    profiles = meta.get("profile") if isinstance(meta, dict) else None
    return [p for p in profiles or [] if isinstance(p, str)]


@dataclass(frozen=True)
class ProfileSelection:
    resource_type: str | None
    index: ProfileIndex
    profiles: list[str] = field(default_factory=list)
    unknown: list[str] = field(default_factory=list)


class ProfileRegistry:
    """Constraint indexes for base resource types and registered profiles.

    Profiles are registered up front; after that the registry is only
    read and can be shared between validation passes.
    """

    def __init__(self, base_indexes: Mapping[str, ProfileIndex] | None = None) -> None:
        self.__base: Dict[str, ProfileIndex] = dict(base_indexes or {})
        self.__profiles: Dict[str, ProfileIndex] = {}
        self.__profile_types: Dict[str, str] = {}

    @staticmethod
    def with_core_definitions() -> "ProfileRegistry":
        return ProfileRegistry(core_indexes())

    @property
    def profile_urls(self) -> list[str]:
        return sorted(self.__profiles)

    def base_index(self, resource_type: str | None) -> ProfileIndex:
        if resource_type is None:
            return EMPTY_INDEX
        return self.__base.get(resource_type, EMPTY_INDEX)

    def is_known(self, url: str) -> bool:
        return canonical_url(url) in self.__profiles

    def register(self, profile: Profile) -> ProfileIndex:
        """Index *profile* layered over the base definition of its type."""
        if profile.resource_type:
            self.__profile_types[profile.url] = profile.resource_type
        own = ProfileIndex.from_profile(profile, self.__profile_types)
        return self.register_index(profile.url, own, profile.resource_type)

    def register_index(
        self, url: str, index: ProfileIndex, resource_type: str | None = None
    ) -> ProfileIndex:
        layered = self.base_index(resource_type).overlay(index)
        self.__profiles[canonical_url(url)] = layered
        if resource_type:
            self.__profile_types[canonical_url(url)] = resource_type
        logger.info(
            "registered profile %s (%s, %d reference elements)", url, resource_type, len(layered)
        )
        return layered

    def profile_index(self, url: str) -> ProfileIndex:
        try:
            return self.__profiles[canonical_url(url)]
        except KeyError:
            raise ProfileNotFound(url)

    def select(self, resource: Dict[str, Any]) -> ProfileSelection:
        """Index an instance is validated against.

        Known declared profiles are layered in declaration order over the
        base definition of the resource type; unknown ones are reported
        back and otherwise ignored.
        """
        resource_type = resource.get("resourceType")
        index = self.base_index(resource_type)
        known: list[str] = []
        unknown: list[str] = []

        for url in declared_profiles(resource):
            if self.is_known(url):
                index = index.overlay(self.profile_index(url))
                known.append(url)
            else:
                logger.debug("%s declares unknown profile %s", resource_type, url)
                unknown.append(url)

        return ProfileSelection(
            resource_type=resource_type, index=index, profiles=known, unknown=unknown
        )
