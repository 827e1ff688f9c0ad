import copy
from threading import Lock
from typing import Dict, List, Optional, Sequence

from ..domain import Concept, Person, PersonAddress, PersonAttributeType, PersonName
from .base import PersonStore


class InMemoryPersonStore(PersonStore):
    """Process-local store used with ``PERSON_STORE=memory`` and in tests.

    Every read and write goes through ``copy.deepcopy`` so callers never share
    mutable state with the stored aggregates.
    """

    def __init__(self):
        self._lock = Lock()
        self._people: Dict[str, Person] = {}
        self._attribute_types: Dict[str, PersonAttributeType] = {}
        self._concepts: Dict[str, Concept] = {}

    # -------- reference data --------
    def add_attribute_type(self, attribute_type: PersonAttributeType) -> None:
        with self._lock:
            self._attribute_types[attribute_type.uuid] = copy.deepcopy(attribute_type)

    def add_concept(self, concept: Concept) -> None:
        with self._lock:
            self._concepts[concept.uuid] = copy.deepcopy(concept)

    def get_attribute_type(self, ref: str) -> Optional[PersonAttributeType]:
        with self._lock:
            found = _by_uuid_or_name(self._attribute_types, ref)
            return copy.deepcopy(found)

    def get_concept(self, ref: str) -> Optional[Concept]:
        with self._lock:
            found = _by_uuid_or_name(self._concepts, ref)
            return copy.deepcopy(found)

    # -------- persons --------
    def get(self, person_uuid: str) -> Optional[Person]:
        with self._lock:
            return copy.deepcopy(self._people.get(person_uuid))

    def search(self, tokens: Sequence[str], include_voided: bool = False) -> List[Person]:
        with self._lock:
            return [
                copy.deepcopy(person)
                for person in self._people.values()
                if (include_voided or not person.voided) and person.matches(tokens, include_voided)
            ]

    def count(self, include_voided: bool = False) -> int:
        with self._lock:
            return sum(1 for p in self._people.values() if include_voided or not p.voided)

    def save(self, person: Person) -> None:
        with self._lock:
            self._people[person.uuid] = copy.deepcopy(person)

    def purge(self, person_uuid: str) -> bool:
        with self._lock:
            return self._people.pop(person_uuid, None) is not None

    def get_name(self, name_uuid: str) -> Optional[PersonName]:
        with self._lock:
            for person in self._people.values():
                name = person.get_name(name_uuid)
                if name is not None:
                    return copy.deepcopy(name)
        return None

    def get_address(self, address_uuid: str) -> Optional[PersonAddress]:
        with self._lock:
            for person in self._people.values():
                address = person.get_address(address_uuid)
                if address is not None:
                    return copy.deepcopy(address)
        return None


def _by_uuid_or_name(items: Dict, ref: str):
    if ref in items:
        return items[ref]
    return next((item for item in items.values() if item.name == ref), None)
