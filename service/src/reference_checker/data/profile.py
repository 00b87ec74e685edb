import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from fhir.resources.R4B.elementdefinition import ElementDefinition
from fhir.resources.R4B.structuredefinition import StructureDefinition
from pydantic import ValidationError

from ..errors import InitializationError, MalformedProfile
from ..model.aggregation import AggregationMode
from ..model.constraint import ANY_RESOURCE, ReferenceConstraint

logger = logging.getLogger(__name__)

REFERENCE_TYPE_CODE = "Reference"


def target_type_from_canonical(
    canonical: str, profile_types: Optional[Mapping[str, str]] = None
) -> str:
    """Resource type a targetProfile canonical stands for.

    Registered profiles map to their constrained `type`; anything else is
    taken to be a core definition whose last URL segment is the type name.
    """
    url = canonical.split("|", 1)[0]
    if profile_types and url in profile_types:
        return profile_types[url]
    return url.rstrip("/").rsplit("/", 1)[-1]


class Profile:
    def __init__(self, data: dict) -> None:
        self.__data = StructureDefinition.model_validate(data)
        self.__fields: Dict[str, "ProfileField"] = {}
        self.__init_fields()

    @staticmethod
    def _sanitize_structure_definition(sd: Dict[str, Any]) -> Dict[str, Any]:
        """
        Bring STU3-shaped element types into the R4 shape:
        'targetProfile' and 'profile' are single strings there and lists here.
        Each STU3 type entry names one target, so the entries stay separate
        and keep their own 'aggregation' list.
        """
        for part in ("snapshot", "differential"):
            for el in (sd.get(part) or {}).get("element", []):
                for t in el.get("type") or []:
                    for key in ("targetProfile", "profile"):
                        if isinstance(t.get(key), str):
                            t[key] = [t[key]]
        return sd

    def __str__(self) -> str:
        return f"(name={self.name}, url={self.url}, type={self.resource_type}, fields={len(self.fields)})"

    def __repr__(self) -> str:
        return str(self)

    def __init_fields(self) -> None:
        # Snapshot when present; a differential-only profile is layered over
        # the base definition by the registry.
        source = self.__data.snapshot
        if source is None:
            source = self.__data.differential
        elements = source.element if source is not None else []
        for elem in elements:
            field = ProfileField(elem)
            if field.in_slice:
                logger.debug("skipping slice element '%s' in %s", field.element_id, self.url)
                continue
            self.__fields[field.path] = field

    @staticmethod
    def from_dict(data: dict) -> "Profile":
        try:
            return Profile(
                data=Profile._sanitize_structure_definition(copy.deepcopy(data))
            )
        except ValidationError as e:
            msg = f"invalid StructureDefinition '{data.get('url')}'"
            logger.error(msg)
            logger.error(e.errors())
            raise MalformedProfile(msg)

    @staticmethod
    def from_json(path: Path) -> "Profile":
        if not path.exists():
            raise InitializationError(
                f"The file {path} does not exist. Please check the file path and try again."
            )

        logger.info("reading profile '%s'", str(path))
        return Profile.from_dict(json.loads(path.read_text(encoding="utf-8")))

    @property
    def name(self) -> str:
        return self.__data.name

    @property
    def version(self) -> str | None:
        return self.__data.version

    @property
    def url(self) -> str:
        return self.__data.url

    @property
    def key(self) -> str:
        return f"{self.url}|{self.version}"

    @property
    def resource_type(self) -> str | None:
        return getattr(self.__data, "type", None)

    @property
    def has_snapshot(self) -> bool:
        return self.__data.snapshot is not None

    @property
    def fields(self) -> Dict[str, "ProfileField"]:
        return self.__fields

    def reference_constraints(
        self, profile_types: Optional[Mapping[str, str]] = None
    ) -> list[ReferenceConstraint]:
        """One constraint per element that admits a Reference, in element order."""
        constraints = []
        for field in self.__fields.values():
            constraint = field.reference_constraint(profile_types)
            if constraint is not None:
                constraints.append(constraint)
        return constraints


class ProfileField:
    def __init__(self, data: ElementDefinition) -> None:
        self.__data = data

    def __str__(self) -> str:
        return f"(path={self.path}, ref_types={self.ref_types})"

    def __repr__(self) -> str:
        return str(self)

    @property
    def element_id(self) -> str | None:
        return self.__data.id

    @property
    def path(self) -> str:
        return self.__data.path

    @property
    def slice_name(self) -> str | None:
        return getattr(self.__data, "sliceName", None)

    @property
    def in_slice(self) -> bool:
        """The element is a slice or lies below one (`extension:sender.value[x]`)."""
        return self.slice_name is not None or ":" in (self.element_id or "")

    @property
    def types(self) -> list[str]:
        type_codes: list[str] = []
        for t in getattr(self.__data, "type", None) or []:
            code = getattr(t, "code", None)
            if code and code not in type_codes:
                type_codes.append(code)
        return type_codes

    @property
    def ref_types(self) -> list[str]:
        """Allowed targetProfile canonicals of the Reference type entries."""
        refs: list[str] = []
        for t in self._reference_types():
            for p in getattr(t, "targetProfile", None) or []:
                if p and p not in refs:
                    refs.append(p)
        return refs

    def _reference_types(self) -> list:
        return [
            t
            for t in getattr(self.__data, "type", None) or []
            if getattr(t, "code", None) == REFERENCE_TYPE_CODE
        ]

    def reference_constraint(
        self, profile_types: Optional[Mapping[str, str]] = None
    ) -> ReferenceConstraint | None:
        ref_entries = self._reference_types()
        if not ref_entries:
            return None

        target_types: set[str] = set()
        modes: dict[str, set[AggregationMode]] = {}
        unconstrained: set[str] = set()

        for t in ref_entries:
            entry_modes = {
                AggregationMode.parse(code, self.path)
                for code in getattr(t, "aggregation", None) or []
            }
            targets = [
                target_type_from_canonical(p, profile_types)
                for p in getattr(t, "targetProfile", None) or []
            ] or [ANY_RESOURCE]

            for target in targets:
                target_types.add(target)
                # An entry without aggregation leaves the type open, even if
                # another entry for the same type restricts it.
                if not entry_modes:
                    unconstrained.add(target)
                else:
                    modes.setdefault(target, set()).update(entry_modes)

        return ReferenceConstraint(
            path=self.path,
            target_types=frozenset(target_types),
            modes={
                target: frozenset(found)
                for target, found in modes.items()
                if target not in unconstrained
            },
        )
