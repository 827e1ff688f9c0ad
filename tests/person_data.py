from datetime import date

from emr_api.app.domain import AuditInfo, Concept, Person, PersonAddress, PersonAttributeType, PersonName

PERSON_UUID = "da7f524f-27ce-4bb2-86d6-6d1d05312bd5"
OTHER_PERSON_UUID = "86526ed6-3c11-11de-a0ba-001e378eb67e"
VOIDED_PERSON_UUID = "5f3b1c8e-0d2a-4c1e-9b7e-6a1f2d3c4b5a"

PREFERRED_NAME_UUID = "399e3a7b-6482-487d-94ce-c07bb3ca3cc7"
OTHER_NAME_UUID = "499e3a7b-6482-487d-94ce-c07bb3ca3cc8"
OTHER_PERSON_NAME_UUID = "0f5a7c4e-8bd8-4b61-bc6e-d9b61b1a5d01"

PREFERRED_ADDRESS_UUID = "8a806d8c-822d-11e0-872f-18a905e044dc"
OTHER_ADDRESS_UUID = "3350d0b5-821c-4e5e-ad1d-a9bce331e118"

BIRTHPLACE_TYPE_UUID = "54fc8400-1683-4d71-a1ac-98d40836ff7c"
CHILDREN_TYPE_UUID = "b3b6d540-a32e-44c7-91b3-292d97667518"
MALARIA_CONCEPT_UUID = "15f83cd6-64e9-4e06-a5f9-364d3b14a43d"


def _audit() -> AuditInfo:
    return AuditInfo.created_by("admin")


def horatio() -> Person:
    person = Person(uuid=PERSON_UUID, gender="M", birthdate=date(1975, 4, 8), audit=_audit())
    person.add_name(
        PersonName(
            uuid=PREFERRED_NAME_UUID,
            given_name="Horatio",
            family_name="Hornblower",
            preferred=True,
            audit=_audit(),
        )
    )
    person.add_name(
        PersonName(uuid=OTHER_NAME_UUID, given_name="Horry", family_name="Hornblower", audit=_audit())
    )
    person.add_address(
        PersonAddress(
            uuid=PREFERRED_ADDRESS_UUID,
            address1="1050 Wishard Blvd.",
            city_village="Indianapolis",
            country="USA",
            preferred=True,
            audit=_audit(),
        )
    )
    person.add_address(
        PersonAddress(
            uuid=OTHER_ADDRESS_UUID,
            address1="Plot 12",
            city_village="Kampala",
            country="Uganda",
            audit=_audit(),
        )
    )
    return person


def johnny() -> Person:
    person = Person(uuid=OTHER_PERSON_UUID, gender="F", birthdate=date(1980, 1, 1), audit=_audit())
    person.add_name(
        PersonName(
            uuid=OTHER_PERSON_NAME_UUID,
            given_name="Johnny",
            middle_name="Test",
            family_name="Doe",
            preferred=True,
            audit=_audit(),
        )
    )
    return person


def voided_horatio() -> Person:
    person = Person(uuid=VOIDED_PERSON_UUID, gender="M", audit=_audit())
    person.add_name(PersonName(given_name="Horatio", family_name="Nelson", preferred=True, audit=_audit()))
    person.void("admin", "duplicate record")
    return person


def seed_store(store) -> None:
    store.add_concept(Concept(uuid=MALARIA_CONCEPT_UUID, name="MALARIA"))
    store.add_attribute_type(
        PersonAttributeType(uuid=BIRTHPLACE_TYPE_UUID, name="Birthplace", description="Location of persons birth")
    )
    store.add_attribute_type(PersonAttributeType(uuid=CHILDREN_TYPE_UUID, name="Number of children", format="integer"))
    for person in (horatio(), johnny(), voided_horatio()):
        store.save(person)
