import logging
import math
from datetime import date
from typing import Any, Dict, List, Optional

import pydantic

from ..domain import AuditInfo, Concept, Person, PersonAddress, PersonAttribute, PersonAttributeType, PersonName, utcnow
from ..errors import ConversionError, NotFoundError, NotSupportedError, ValidationError
from ..schemas import UPDATABLE_PROPERTIES, PersonAttributeInput, PersonCreate, PersonUpdate
from ..stores.base import PersonStore

logger = logging.getLogger(__name__)

# update properties where null has no meaning
NON_NULLABLE_UPDATES = ("gender", "birthdate_estimated", "dead", "preferred_name", "preferred_address", "attributes")
TRUE_VALUES = {"true", "1", "yes"}
FALSE_VALUES = {"false", "0", "no"}


def _pydantic_errors(exc: pydantic.ValidationError) -> List[Dict[str, Any]]:
    return [{"loc": list(err.get("loc", ())), "msg": err.get("msg")} for err in exc.errors()]


def _resolve_concept(store: PersonStore, ref: str) -> Concept:
    concept = store.get_concept(ref)
    if concept is None:
        raise ConversionError(f"Unknown concept: {ref}")
    return concept


def _resolve_attribute_type(store: PersonStore, ref: str) -> PersonAttributeType:
    attribute_type = store.get_attribute_type(ref)
    if attribute_type is None:
        raise ConversionError(f"Unknown person attribute type: {ref}")
    return attribute_type


def _format_attribute_value(attribute_type: PersonAttributeType, value: Any) -> str:
    """Normalise ``value`` to the string stored for ``attribute_type``."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"A value is required for attribute {attribute_type.name}")
    fmt = attribute_type.format
    text = str(value).strip()
    try:
        if fmt == "integer":
            if isinstance(value, bool):
                raise ValueError(text)
            return str(int(text))
        if fmt == "float":
            if isinstance(value, bool):
                raise ValueError(text)
            number = float(text)
            if not math.isfinite(number):
                raise ValueError(text)
            return str(number)
        if fmt == "boolean":
            if isinstance(value, bool):
                return "true" if value else "false"
            if text.lower() in TRUE_VALUES:
                return "true"
            if text.lower() in FALSE_VALUES:
                return "false"
            raise ValueError(text)
        if fmt == "date":
            return date.fromisoformat(text).isoformat()
    except ValueError:
        raise ValidationError(f"'{text}' is not a valid {fmt} value for attribute {attribute_type.name}")
    return text


def _build_attributes(
    store: PersonStore, inputs: List[PersonAttributeInput], audit_user: str
) -> List[PersonAttribute]:
    attributes = []
    for item in inputs:
        attribute_type = _resolve_attribute_type(store, item.attribute_type)
        attributes.append(
            PersonAttribute(
                attribute_type=attribute_type,
                value=_format_attribute_value(attribute_type, item.value),
                audit=AuditInfo.created_by(audit_user),
            )
        )
    return attributes


def _single_preferred(items, field_name: str):
    """The entry to mark preferred: the one flagged by the client, else the first."""
    marked = [item for item in items if item.preferred]
    if len(marked) > 1:
        raise ValidationError(
            f"Only one entry in {field_name} can be preferred",
            [{"loc": [field_name], "msg": "more than one entry is preferred"}],
        )
    if marked:
        return marked[0]
    return items[0] if items else None


# -------- Reads --------
def get_person(store: PersonStore, person_uuid: str) -> Person:
    person = store.get(person_uuid)
    if person is None:
        raise NotFoundError("Person not found")
    return person


def search_people(
    store: PersonStore,
    q: Optional[str],
    *,
    include_voided: bool = False,
    limit: int = 50,
    offset: int = 0,
) -> List[Person]:
    tokens = (q or "").split()
    if not tokens:
        raise NotSupportedError("Listing all persons is not supported; provide a search query with 'q'")
    people = store.search(tokens, include_voided=include_voided)

    def sort_key(person: Person):
        name = person.preferred_name
        if name is None:
            return ("", "", person.uuid)
        return ((name.family_name or "").lower(), (name.given_name or "").lower(), person.uuid)

    people.sort(key=sort_key)
    return people[offset:offset + limit]


# -------- Writes --------
def create_person(store: PersonStore, payload: PersonCreate, *, acting_user: str) -> Person:
    now = utcnow()
    person = Person(
        gender=payload.gender,
        birthdate=payload.birthdate,
        birthdate_estimated=payload.birthdate_estimated,
        dead=payload.dead,
        death_date=payload.death_date,
        audit=AuditInfo.created_by(acting_user, now),
    )
    if payload.cause_of_death:
        person.cause_of_death = _resolve_concept(store, payload.cause_of_death)

    preferred_name = _single_preferred(payload.names, "names")
    for item in payload.names:
        name = PersonName(audit=AuditInfo.created_by(acting_user, now), **item.model_dump(exclude={"preferred"}))
        person.add_name(name)
        if item is preferred_name:
            person.set_preferred_name(name)

    preferred_address = _single_preferred(payload.addresses, "addresses")
    for item in payload.addresses:
        address = PersonAddress(audit=AuditInfo.created_by(acting_user, now), **item.model_dump(exclude={"preferred"}))
        person.add_address(address)
        if item is preferred_address:
            person.set_preferred_address(address)

    for attribute in _build_attributes(store, payload.attributes, acting_user):
        person.set_attribute(attribute, acting_user)

    person.validate()
    store.save(person)
    logger.info("Created person %s with %d name(s)", person.uuid, len(person.names))
    return person


def update_person(store: PersonStore, person_uuid: str, fields: Dict[str, Any], *, acting_user: str) -> Person:
    """Apply a partial update.

    Every property is checked and every reference resolved before the person is
    touched, so a rejected request leaves the stored person unchanged.
    """
    if not fields:
        raise ValidationError("No fields to update")
    not_allowed = sorted(key for key in fields if key not in UPDATABLE_PROPERTIES)
    if not_allowed:
        raise ConversionError(f"Some properties are not allowed to be set: {', '.join(not_allowed)}")
    try:
        changes = PersonUpdate.model_validate(fields)
    except pydantic.ValidationError as exc:
        raise ValidationError("Invalid person update", _pydantic_errors(exc))

    provided = changes.model_fields_set
    nulls = [name for name in NON_NULLABLE_UPDATES if name in provided and getattr(changes, name) is None]
    if nulls:
        raise ValidationError(
            "Invalid person update",
            [{"loc": [PersonUpdate.model_fields[name].alias or name], "msg": "may not be null"} for name in nulls],
        )
    person = get_person(store, person_uuid)
    if person.voided:
        raise NotSupportedError("A voided person cannot be updated")

    cause = None
    if "cause_of_death" in provided and changes.cause_of_death:
        cause = _resolve_concept(store, changes.cause_of_death)

    preferred_name = None
    if "preferred_name" in provided:
        preferred_name = person.get_name(changes.preferred_name or "")
        if preferred_name is None or preferred_name.voided:
            raise ConversionError(f"Person has no active name {changes.preferred_name}")

    preferred_address = None
    if "preferred_address" in provided:
        preferred_address = person.get_address(changes.preferred_address or "")
        if preferred_address is None or preferred_address.voided:
            raise ConversionError(f"Person has no active address {changes.preferred_address}")

    attributes = _build_attributes(store, changes.attributes or [], acting_user)

    if "gender" in provided:
        person.gender = changes.gender
    if "birthdate" in provided:
        person.birthdate = changes.birthdate
    if "birthdate_estimated" in provided:
        person.birthdate_estimated = bool(changes.birthdate_estimated)
    if "dead" in provided:
        if changes.dead:
            person.dead = True
        else:
            person.mark_alive()
    if "death_date" in provided:
        person.death_date = changes.death_date
    if "cause_of_death" in provided:
        person.cause_of_death = cause
    if preferred_name is not None:
        person.set_preferred_name(preferred_name)
    if preferred_address is not None:
        person.set_preferred_address(preferred_address)
    for attribute in attributes:
        person.set_attribute(attribute, acting_user)

    person.audit.touch(acting_user)
    person.validate()
    store.save(person)
    logger.info("Updated person %s (%s)", person.uuid, ", ".join(sorted(fields)))
    return person


def void_person(store: PersonStore, person_uuid: str, reason: Optional[str], *, acting_user: str) -> Person:
    person = get_person(store, person_uuid)
    if not reason or not reason.strip():
        raise ValidationError(
            "A reason is required to void a person",
            [{"loc": ["query", "reason"], "msg": "reason is required"}],
        )
    if person.voided:
        return person
    person.void(acting_user, reason.strip())
    store.save(person)
    logger.info("Voided person %s: %s", person.uuid, person.audit.void_reason)
    return person


def purge_person(store: PersonStore, person_uuid: str) -> bool:
    removed = store.purge(person_uuid)
    if removed:
        logger.info("Purged person %s", person_uuid)
    else:
        logger.info("Purge requested for unknown person %s", person_uuid)
    return removed
