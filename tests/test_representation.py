import pytest

from emr_api.app.domain import Concept, PersonAttribute, PersonAttributeType
from emr_api.app.errors import ConversionError
from emr_api.app.representation import Representation, represent_person
from person_data import OTHER_NAME_UUID, PERSON_UUID, PREFERRED_ADDRESS_UUID, PREFERRED_NAME_UUID, horatio


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, Representation.DEFAULT),
        ("", Representation.DEFAULT),
        ("full", Representation.FULL),
        ("FULL", Representation.FULL),
        ("ref", Representation.REF),
    ],
)
def test_parse_representation(value, expected):
    assert Representation.parse(value) is expected


def test_parse_unknown_representation():
    with pytest.raises(ConversionError):
        Representation.parse("custom:(uuid)")


def test_ref_representation():
    data = represent_person(horatio(), Representation.REF)
    assert data == {"uuid": PERSON_UUID, "display": "Horatio Hornblower"}


def test_default_representation_has_derived_preferred_entries():
    data = represent_person(horatio())
    assert data["preferredName"] == {"uuid": PREFERRED_NAME_UUID, "display": "Horatio Hornblower"}
    assert data["preferredAddress"]["uuid"] == PREFERRED_ADDRESS_UUID
    assert data["preferredAddress"]["display"] == "1050 Wishard Blvd., Indianapolis, USA"
    assert data["birthdate"] == "1975-04-08"
    assert data["voided"] is False
    assert "names" not in data
    assert "addresses" not in data
    assert "auditInfo" not in data


def test_full_representation_lists_active_entries_with_audit_info():
    person = horatio()
    person.get_name(OTHER_NAME_UUID).audit.void("admin", "typo")

    data = represent_person(person, Representation.FULL)
    assert [n["uuid"] for n in data["names"]] == [PREFERRED_NAME_UUID]
    assert len(data["addresses"]) == 2
    assert data["auditInfo"]["creator"] == "admin"
    assert "voidReason" not in data["auditInfo"]


def test_full_representation_of_voided_person():
    person = horatio()
    person.void("admin", "duplicate")

    data = represent_person(person, Representation.FULL)
    assert data["voided"] is True
    assert data["auditInfo"]["voidReason"] == "duplicate"
    assert data["auditInfo"]["voidedBy"] == "admin"
    assert data["names"] == []

    ref = represent_person(person, Representation.REF)
    assert ref["voided"] is True


def test_attributes_and_cause_of_death():
    person = horatio()
    birthplace = PersonAttributeType(uuid="bp", name="Birthplace")
    person.set_attribute(PersonAttribute(attribute_type=birthplace, value="Nsambya"), "admin")
    person.mark_dead(None, Concept(uuid="c1", name="MALARIA"))

    default = represent_person(person)
    assert default["causeOfDeath"] == {"uuid": "c1", "display": "MALARIA"}
    assert [a["display"] for a in default["attributes"]] == ["Birthplace = Nsambya"]
    assert "value" not in default["attributes"][0]

    full = represent_person(person, Representation.FULL)
    attribute = full["attributes"][0]
    assert attribute["value"] == "Nsambya"
    assert attribute["attributeType"] == {"uuid": "bp", "display": "Birthplace"}
