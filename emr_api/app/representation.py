from enum import Enum
from typing import Any, Dict, Optional

from .domain import AuditInfo, Concept, Person, PersonAddress, PersonAttribute, PersonAttributeType, PersonName
from .errors import ConversionError


class Representation(str, Enum):
    REF = "ref"
    DEFAULT = "default"
    FULL = "full"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Representation":
        if value is None or not value.strip():
            return cls.DEFAULT
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ConversionError(f"Unknown representation: {value}")


def _date(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def audit_info(audit: AuditInfo) -> Dict[str, Any]:
    info = {
        "creator": audit.creator,
        "dateCreated": _date(audit.date_created),
        "changedBy": audit.changed_by,
        "dateChanged": _date(audit.date_changed),
    }
    if audit.voided:
        info.update(
            voidedBy=audit.voided_by,
            dateVoided=_date(audit.date_voided),
            voidReason=audit.void_reason,
        )
    return info


def _ref(uuid: str, display: str, voided: bool = False) -> Dict[str, Any]:
    data: Dict[str, Any] = {"uuid": uuid, "display": display}
    if voided:
        data["voided"] = True
    return data


def concept_ref(concept: Optional[Concept]) -> Optional[Dict[str, Any]]:
    if concept is None:
        return None
    return _ref(concept.uuid, concept.name)


def attribute_type_ref(attribute_type: PersonAttributeType) -> Dict[str, Any]:
    return _ref(attribute_type.uuid, attribute_type.name)


# -------- Names --------
def name_ref(name: Optional[PersonName]) -> Optional[Dict[str, Any]]:
    if name is None:
        return None
    return _ref(name.uuid, name.full_name, name.voided)


def name_default(name: PersonName) -> Dict[str, Any]:
    return {
        "uuid": name.uuid,
        "display": name.full_name,
        "givenName": name.given_name,
        "middleName": name.middle_name,
        "familyName": name.family_name,
        "familyName2": name.family_name2,
        "preferred": name.preferred,
        "voided": name.voided,
    }


# -------- Addresses --------
def address_ref(address: Optional[PersonAddress]) -> Optional[Dict[str, Any]]:
    if address is None:
        return None
    return _ref(address.uuid, address.display, address.voided)


def address_default(address: PersonAddress) -> Dict[str, Any]:
    return {
        "uuid": address.uuid,
        "display": address.display,
        "preferred": address.preferred,
        "address1": address.address1,
        "address2": address.address2,
        "cityVillage": address.city_village,
        "countyDistrict": address.county_district,
        "stateProvince": address.state_province,
        "country": address.country,
        "postalCode": address.postal_code,
        "latitude": address.latitude,
        "longitude": address.longitude,
        "voided": address.voided,
    }


# -------- Attributes --------
def attribute_ref(attribute: PersonAttribute) -> Dict[str, Any]:
    return _ref(attribute.uuid, attribute.display, attribute.voided)


def attribute_default(attribute: PersonAttribute) -> Dict[str, Any]:
    return {
        "uuid": attribute.uuid,
        "display": attribute.display,
        "value": attribute.value,
        "attributeType": attribute_type_ref(attribute.attribute_type),
        "voided": attribute.voided,
    }


# -------- Persons --------
def person_ref(person: Person) -> Dict[str, Any]:
    return _ref(person.uuid, person.display, person.voided)


def person_default(person: Person) -> Dict[str, Any]:
    return {
        "uuid": person.uuid,
        "display": person.display,
        "gender": person.gender,
        "age": person.age(),
        "birthdate": _date(person.birthdate),
        "birthdateEstimated": person.birthdate_estimated,
        "dead": person.dead,
        "deathDate": _date(person.death_date),
        "causeOfDeath": concept_ref(person.cause_of_death),
        "preferredName": name_ref(person.preferred_name),
        "preferredAddress": address_ref(person.preferred_address),
        "attributes": [attribute_ref(a) for a in person.active_attributes()],
        "voided": person.voided,
    }


def person_full(person: Person) -> Dict[str, Any]:
    data = person_default(person)
    data.update(
        names=[name_default(n) for n in person.active_names()],
        addresses=[address_default(a) for a in person.active_addresses()],
        attributes=[attribute_default(a) for a in person.active_attributes()],
        auditInfo=audit_info(person.audit),
    )
    return data


PERSON_PROJECTIONS = {
    Representation.REF: person_ref,
    Representation.DEFAULT: person_default,
    Representation.FULL: person_full,
}


def represent_person(person: Person, representation: Representation = Representation.DEFAULT) -> Dict[str, Any]:
    return PERSON_PROJECTIONS[representation](person)
