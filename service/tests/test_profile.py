"""Unit tests for reading reference constraints from StructureDefinitions."""

import json

import pytest

from reference_checker.data.profile import Profile, target_type_from_canonical
from reference_checker.errors import InitializationError, MalformedProfile
from reference_checker.model.aggregation import AggregationMode

CORE = "http://hl7.org/fhir/StructureDefinition"


def structure_definition(elements, part="snapshot", **overrides):
    data = {
        "resourceType": "StructureDefinition",
        "url": "http://example.org/fhir/StructureDefinition/MyCommunication",
        "name": "MyCommunication",
        "version": "1.0.0",
        "status": "draft",
        "kind": "resource",
        "abstract": False,
        "type": "Communication",
        "baseDefinition": f"{CORE}/Communication",
        "derivation": "constraint",
        part: {"element": elements},
    }
    data.update(overrides)
    return data


def test_r4_shaped_type_shares_aggregation_between_targets():
    profile = Profile.from_dict(
        structure_definition(
            [
                {"id": "Communication", "path": "Communication"},
                {
                    "id": "Communication.subject",
                    "path": "Communication.subject",
                    "type": [
                        {
                            "code": "Reference",
                            "targetProfile": [f"{CORE}/Patient", f"{CORE}/Group"],
                            "aggregation": ["referenced"],
                        }
                    ],
                },
            ]
        )
    )

    [constraint] = profile.reference_constraints()

    assert constraint.path == "Communication.subject"
    assert constraint.target_types == frozenset({"Patient", "Group"})
    assert constraint.modes_for("Patient") == frozenset({AggregationMode.REFERENCED})
    assert constraint.modes_for("Group") == frozenset({AggregationMode.REFERENCED})


def test_stu3_shaped_types_keep_their_own_aggregation():
    profile = Profile.from_dict(
        structure_definition(
            [
                {
                    "id": "Communication.subject",
                    "path": "Communication.subject",
                    "type": [
                        {
                            "code": "Reference",
                            "targetProfile": f"{CORE}/Patient",
                            "aggregation": ["contained", "referenced"],
                        },
                        {"code": "Reference", "targetProfile": f"{CORE}/Group"},
                    ],
                },
            ],
            part="differential",
            fhirVersion="3.0.1",
        )
    )

    [constraint] = profile.reference_constraints()

    assert not profile.has_snapshot
    assert constraint.modes_for("Patient") == frozenset(
        {AggregationMode.CONTAINED, AggregationMode.REFERENCED}
    )
    assert constraint.modes_for("Group") == frozenset()


def test_reference_without_target_profile_admits_any_resource():
    profile = Profile.from_dict(
        structure_definition(
            [{"id": "Communication.topic", "path": "Communication.topic", "type": [{"code": "Reference"}]}]
        )
    )

    [constraint] = profile.reference_constraints()

    assert constraint.target_types == frozenset({"Resource"})
    assert constraint.allows_type("Encounter")


def test_elements_without_reference_type_have_no_constraint():
    profile = Profile.from_dict(
        structure_definition(
            [
                {"id": "Communication.status", "path": "Communication.status", "type": [{"code": "code"}]},
                {
                    "id": "Communication.payload.content[x]",
                    "path": "Communication.payload.content[x]",
                    "type": [{"code": "string"}, {"code": "Reference"}],
                },
            ]
        )
    )

    paths = [c.path for c in profile.reference_constraints()]

    assert paths == ["Communication.payload.content[x]"]
    assert profile.fields["Communication.payload.content[x]"].types == ["string", "Reference"]


def test_slices_do_not_replace_the_sliced_element():
    profile = Profile.from_dict(
        structure_definition(
            [
                {
                    "id": "Communication.recipient",
                    "path": "Communication.recipient",
                    "type": [{"code": "Reference", "targetProfile": [f"{CORE}/Patient", f"{CORE}/Practitioner"]}],
                },
                {
                    "id": "Communication.recipient:gp",
                    "path": "Communication.recipient",
                    "sliceName": "gp",
                    "type": [{"code": "Reference", "targetProfile": [f"{CORE}/Practitioner"]}],
                },
            ]
        )
    )

    [constraint] = profile.reference_constraints()

    assert constraint.target_types == frozenset({"Patient", "Practitioner"})


def test_children_of_a_slice_do_not_replace_the_generic_element():
    profile = Profile.from_dict(
        structure_definition(
            [
                {"id": "Communication.extension", "path": "Communication.extension", "type": [{"code": "Extension"}]},
                {
                    "id": "Communication.extension:sender",
                    "path": "Communication.extension",
                    "sliceName": "sender",
                    "type": [{"code": "Extension"}],
                },
                {
                    "id": "Communication.extension:sender.value[x]",
                    "path": "Communication.extension.value[x]",
                    "type": [{"code": "Reference", "targetProfile": [f"{CORE}/Organization"]}],
                },
            ]
        )
    )

    assert profile.reference_constraints() == []
    assert list(profile.fields) == ["Communication.extension"]
    assert profile.fields["Communication.extension"].in_slice is False


def test_unknown_aggregation_code_makes_profile_malformed():
    profile = Profile.from_dict(
        structure_definition(
            [
                {
                    "id": "Communication.subject",
                    "path": "Communication.subject",
                    "type": [{"code": "Reference", "targetProfile": [f"{CORE}/Patient"], "aggregation": ["inline"]}],
                }
            ]
        )
    )

    with pytest.raises(MalformedProfile) as exc:
        profile.reference_constraints()

    assert exc.value.path == "Communication.subject"


def test_invalid_structure_definition_is_malformed():
    data = structure_definition([])
    del data["url"]

    with pytest.raises(MalformedProfile):
        Profile.from_dict(data)


def test_from_dict_leaves_input_untouched():
    data = structure_definition(
        [{"id": "Communication.subject", "path": "Communication.subject",
          "type": [{"code": "Reference", "targetProfile": f"{CORE}/Patient"}]}],
        part="differential",
    )

    Profile.from_dict(data)

    assert data["differential"]["element"][0]["type"][0]["targetProfile"] == f"{CORE}/Patient"


def test_from_json(tmp_path):
    file = tmp_path / "MyCommunication.json"
    file.write_text(json.dumps(structure_definition([{"id": "Communication", "path": "Communication"}])))

    profile = Profile.from_json(file)

    assert profile.url == "http://example.org/fhir/StructureDefinition/MyCommunication"
    assert profile.key == "http://example.org/fhir/StructureDefinition/MyCommunication|1.0.0"
    assert profile.resource_type == "Communication"
    assert profile.name == "MyCommunication"
    assert str(profile).startswith("(name=MyCommunication, url=")


def test_from_json_missing_file(tmp_path):
    with pytest.raises(InitializationError):
        Profile.from_json(tmp_path / "missing.json")


def test_target_type_from_canonical():
    assert target_type_from_canonical(f"{CORE}/Patient") == "Patient"
    assert target_type_from_canonical(f"{CORE}/Patient|3.0.1") == "Patient"
    assert (
        target_type_from_canonical(
            "http://example.org/fhir/StructureDefinition/MyPatient",
            {"http://example.org/fhir/StructureDefinition/MyPatient": "Patient"},
        )
        == "Patient"
    )
