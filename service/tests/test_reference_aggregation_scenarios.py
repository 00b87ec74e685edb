"""
Conformance scenarios for reference target types and aggregation modes.

The profile MyCommunication constrains Communication.subject with a
differential only: Patient with the given aggregation modes, Group without
any. It is layered over the core Communication definition.
"""

import pytest

from reference_checker.data.profile import Profile
from reference_checker.model.finding import FindingCode
from reference_checker.pipeline import ValidationPipeline
from reference_checker.registry import ProfileRegistry

CORE = "http://hl7.org/fhir/StructureDefinition"
MY_COMMUNICATION = "http://example.org/fhir/StructureDefinition/MyCommunication"


def my_communication(*aggregation: str) -> Profile:
    patient_type = {"code": "Reference", "targetProfile": f"{CORE}/Patient"}
    if aggregation:
        patient_type["aggregation"] = list(aggregation)

    return Profile.from_dict(
        {
            "resourceType": "StructureDefinition",
            "url": MY_COMMUNICATION,
            "name": "MyCommunication",
            "status": "draft",
            "fhirVersion": "3.0.1",
            "kind": "resource",
            "abstract": False,
            "type": "Communication",
            "baseDefinition": f"{CORE}/Communication",
            "derivation": "constraint",
            "differential": {
                "element": [
                    {
                        "id": "Communication.subject",
                        "path": "Communication.subject",
                        "type": [
                            patient_type,
                            {"code": "Reference", "targetProfile": f"{CORE}/Group"},
                        ],
                    }
                ]
            },
        }
    )


def pipeline_for(*aggregation: str) -> ValidationPipeline:
    registry = ProfileRegistry.with_core_definitions()
    registry.register(my_communication(*aggregation))
    return ValidationPipeline(registry)


def profiled_communication(subject, contained=()):
    resource = {
        "resourceType": "Communication",
        "meta": {"profile": [MY_COMMUNICATION]},
        "status": "completed",
        "subject": subject,
    }
    if contained:
        resource["contained"] = list(contained)
    return resource


def contained_patient():
    return profiled_communication(
        {"reference": "#p1"}, contained=[{"resourceType": "Patient", "id": "p1", "active": True}]
    )


def referenced_patient():
    return profiled_communication({"reference": "Patient/1"})


def test_referenced_mode_rejects_contained_patient():
    findings = pipeline_for("referenced").run(contained_patient())

    assert len(findings) == 1
    assert findings[0].code == FindingCode.AGGREGATION_MODE_NOT_ALLOWED


def test_referenced_mode_accepts_referenced_patient():
    assert pipeline_for("referenced").run(referenced_patient()) == []


def test_contained_mode_rejects_referenced_patient():
    findings = pipeline_for("contained").run(referenced_patient())

    assert len(findings) == 1
    assert findings[0].code == FindingCode.AGGREGATION_MODE_NOT_ALLOWED


@pytest.mark.parametrize("instance", [contained_patient(), referenced_patient()])
def test_contained_or_referenced_mode_accepts_both(instance):
    assert pipeline_for("contained", "referenced").run(instance) == []


@pytest.mark.parametrize(
    "subject",
    [{"reference": "Group/1"}, {"reference": "#g1"}],
)
def test_group_is_unconstrained(subject):
    instance = profiled_communication(subject, contained=[{"resourceType": "Group", "id": "g1"}])

    assert pipeline_for("referenced").run(instance) == []


def test_bundled_patient_is_a_mode_mismatch():
    bundle = {
        "resourceType": "Bundle",
        "type": "collection",
        "entry": [
            {
                "fullUrl": "urn:uuid:5c1f2b9e-0d1a-4c53-9d7e-3f6a1b2c4d5e",
                "resource": profiled_communication(
                    {"reference": "urn:uuid:7a2e6c4b-9f3d-4b1e-8c5a-6d7e8f9a0b1c"}
                ),
            },
            {
                "fullUrl": "urn:uuid:7a2e6c4b-9f3d-4b1e-8c5a-6d7e8f9a0b1c",
                "resource": {"resourceType": "Patient", "active": True},
            },
        ],
    }

    [finding] = pipeline_for("contained", "referenced").run(bundle)

    assert finding.code == FindingCode.AGGREGATION_MODE_NOT_ALLOWED
    assert finding.location == "Bundle.entry[0].resource.subject"
    assert finding.message == (
        "aggregation mode bundled not permitted for type Patient at Communication.subject"
    )


@pytest.mark.parametrize(
    "definition, contained",
    [
        ({"reference": "Patient/1"}, []),
        ({"reference": "#p1"}, [{"resourceType": "Patient", "id": "p1", "active": True}]),
    ],
)
def test_unprofiled_definition_does_not_allow_patient(definition, contained):
    instance = {"resourceType": "Communication", "status": "completed", "definition": [definition]}
    if contained:
        instance["contained"] = contained

    findings = ValidationPipeline(ProfileRegistry.with_core_definitions()).run(instance)

    assert len(findings) == 1
    assert findings[0].code == FindingCode.REFERENCE_TYPE_NOT_ALLOWED
    assert findings[0].location == "Communication.definition[0]"


def test_unknown_profile_is_reported():
    instance = referenced_patient()
    instance["meta"]["profile"] = ["http://example.org/fhir/StructureDefinition/Unknown"]

    findings = pipeline_for("referenced").run(instance)

    assert [f.code for f in findings] == [FindingCode.PROFILE_UNKNOWN]
    assert findings[0].location == "Communication.meta.profile[0]"


def test_slice_constraint_does_not_apply_to_other_extensions():
    registry = ProfileRegistry.with_core_definitions()
    registry.register(
        Profile.from_dict(
            {
                "resourceType": "StructureDefinition",
                "url": MY_COMMUNICATION,
                "name": "MyCommunication",
                "status": "draft",
                "kind": "resource",
                "abstract": False,
                "type": "Communication",
                "baseDefinition": f"{CORE}/Communication",
                "derivation": "constraint",
                "snapshot": {
                    "element": [
                        {"id": "Communication", "path": "Communication"},
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
                },
            }
        )
    )
    instance = profiled_communication({"reference": "Patient/1"})
    instance["extension"] = [
        {"url": "http://example.org/fhir/StructureDefinition/related", "valueReference": {"reference": "Patient/1"}}
    ]

    assert ValidationPipeline(registry).run(instance) == []
