"""Persistence boundary for person aggregates.

The service layer only talks to a ``PersonStore``. Implementations hand out
detached copies: changes made to a returned ``Person`` are invisible to other
callers until ``save`` writes the whole aggregate back in one unit.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ..domain import Concept, Person, PersonAddress, PersonAttributeType, PersonName


class PersonStore(ABC):
    @abstractmethod
    def get(self, person_uuid: str) -> Optional[Person]:
        """Return the person with ``person_uuid`` (voided or not), or None."""

    @abstractmethod
    def search(self, tokens: Sequence[str], include_voided: bool = False) -> List[Person]:
        """Return persons whose names match every token, unordered.

        Voided persons and voided names only take part when ``include_voided`` is set.
        """

    @abstractmethod
    def count(self, include_voided: bool = False) -> int:
        ...

    @abstractmethod
    def save(self, person: Person) -> None:
        """Insert or replace the aggregate, including its names, addresses and attributes."""

    @abstractmethod
    def purge(self, person_uuid: str) -> bool:
        """Remove the person and every dependent record. Returns False if nothing was stored."""

    @abstractmethod
    def get_attribute_type(self, ref: str) -> Optional[PersonAttributeType]:
        """Look up an attribute type by uuid, then by exact name."""

    @abstractmethod
    def get_concept(self, ref: str) -> Optional[Concept]:
        """Look up a concept by uuid, then by exact name."""

    @abstractmethod
    def get_name(self, name_uuid: str) -> Optional[PersonName]:
        ...

    @abstractmethod
    def get_address(self, address_uuid: str) -> Optional[PersonAddress]:
        ...
