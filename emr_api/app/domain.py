"""Person aggregate.

``Person`` owns its names, addresses and attributes. Collections are only
changed through the mutators below so the preferred-entry and
one-attribute-per-type rules hold after every call.
"""

import uuid as uuid_lib
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional, Sequence, Tuple

from .errors import ValidationError

GENDERS = ("M", "F", "O", "U")
MAX_AGE_YEARS = 140


def new_uuid() -> str:
    return str(uuid_lib.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AuditInfo:
    creator: Optional[str] = None
    date_created: Optional[datetime] = None
    changed_by: Optional[str] = None
    date_changed: Optional[datetime] = None
    voided: bool = False
    voided_by: Optional[str] = None
    date_voided: Optional[datetime] = None
    void_reason: Optional[str] = None

    @classmethod
    def created_by(cls, user: str, when: Optional[datetime] = None) -> "AuditInfo":
        return cls(creator=user, date_created=when or utcnow())

    def touch(self, user: str, when: Optional[datetime] = None) -> None:
        self.changed_by = user
        self.date_changed = when or utcnow()

    def void(self, user: str, reason: str, when: Optional[datetime] = None) -> None:
        if self.voided:
            return
        self.voided = True
        self.voided_by = user
        self.date_voided = when or utcnow()
        self.void_reason = reason


@dataclass
class Concept:
    uuid: str
    name: str


@dataclass
class PersonAttributeType:
    uuid: str
    name: str
    format: str = "string"
    description: Optional[str] = None


@dataclass
class PersonName:
    given_name: str
    family_name: str
    middle_name: Optional[str] = None
    family_name2: Optional[str] = None
    prefix: Optional[str] = None
    family_name_prefix: Optional[str] = None
    family_name_suffix: Optional[str] = None
    degree: Optional[str] = None
    preferred: bool = False
    uuid: str = field(default_factory=new_uuid)
    audit: AuditInfo = field(default_factory=AuditInfo)

    @property
    def voided(self) -> bool:
        return self.audit.voided

    @property
    def full_name(self) -> str:
        parts = (
            self.prefix,
            self.given_name,
            self.middle_name,
            self.family_name_prefix,
            self.family_name,
            self.family_name2,
            self.family_name_suffix,
            self.degree,
        )
        return " ".join(p.strip() for p in parts if p and p.strip())

    def search_parts(self) -> Tuple[str, ...]:
        return tuple(
            p for p in (self.given_name, self.middle_name, self.family_name, self.family_name2) if p
        )


@dataclass
class PersonAddress:
    address1: Optional[str] = None
    address2: Optional[str] = None
    city_village: Optional[str] = None
    county_district: Optional[str] = None
    state_province: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    latitude: Optional[str] = None
    longitude: Optional[str] = None
    preferred: bool = False
    uuid: str = field(default_factory=new_uuid)
    audit: AuditInfo = field(default_factory=AuditInfo)

    @property
    def voided(self) -> bool:
        return self.audit.voided

    @property
    def display(self) -> str:
        parts = (self.address1, self.address2, self.city_village, self.state_province, self.country, self.postal_code)
        return ", ".join(p for p in parts if p)


@dataclass
class PersonAttribute:
    attribute_type: PersonAttributeType
    value: str
    uuid: str = field(default_factory=new_uuid)
    audit: AuditInfo = field(default_factory=AuditInfo)

    @property
    def voided(self) -> bool:
        return self.audit.voided

    @property
    def display(self) -> str:
        return f"{self.attribute_type.name} = {self.value}"


@dataclass
class Person:
    gender: str
    birthdate: Optional[date] = None
    birthdate_estimated: bool = False
    dead: bool = False
    death_date: Optional[date] = None
    cause_of_death: Optional[Concept] = None
    uuid: str = field(default_factory=new_uuid)
    audit: AuditInfo = field(default_factory=AuditInfo)
    _names: List[PersonName] = field(default_factory=list, repr=False)
    _addresses: List[PersonAddress] = field(default_factory=list, repr=False)
    _attributes: List[PersonAttribute] = field(default_factory=list, repr=False)

    @property
    def voided(self) -> bool:
        return self.audit.voided

    # -------- collections (read-only views) --------
    @property
    def names(self) -> Tuple[PersonName, ...]:
        return tuple(self._names)

    @property
    def addresses(self) -> Tuple[PersonAddress, ...]:
        return tuple(self._addresses)

    @property
    def attributes(self) -> Tuple[PersonAttribute, ...]:
        return tuple(self._attributes)

    def active_names(self) -> List[PersonName]:
        return [n for n in self._names if not n.voided]

    def active_addresses(self) -> List[PersonAddress]:
        return [a for a in self._addresses if not a.voided]

    def active_attributes(self) -> List[PersonAttribute]:
        return [a for a in self._attributes if not a.voided]

    # -------- derived --------
    @property
    def preferred_name(self) -> Optional[PersonName]:
        return _pick_preferred(self._names)

    @property
    def preferred_address(self) -> Optional[PersonAddress]:
        return _pick_preferred(self._addresses)

    @property
    def display(self) -> str:
        name = self.preferred_name
        return name.full_name if name else ""

    def age(self, today: Optional[date] = None) -> Optional[int]:
        if self.birthdate is None:
            return None
        end = today or date.today()
        if self.dead and self.death_date is not None:
            end = self.death_date
        return max(_whole_years(self.birthdate, end), 0)

    def attribute(self, type_ref: str) -> Optional[PersonAttribute]:
        """Active attribute whose type matches ``type_ref`` by uuid or name."""
        for attr in self.active_attributes():
            if type_ref in (attr.attribute_type.uuid, attr.attribute_type.name):
                return attr
        return None

    def matches(self, tokens: Sequence[str], include_voided: bool = False) -> bool:
        """True when every token is a case-insensitive substring of some name part.

        Voided names only count when ``include_voided`` is set.
        """
        if not tokens:
            return False
        names = self._names if include_voided else self.active_names()
        parts = [p.lower() for name in names for p in name.search_parts()]
        return all(any(token.lower() in part for part in parts) for token in tokens)

    def get_name(self, name_uuid: str) -> Optional[PersonName]:
        return next((n for n in self._names if n.uuid == name_uuid), None)

    def get_address(self, address_uuid: str) -> Optional[PersonAddress]:
        return next((a for a in self._addresses if a.uuid == address_uuid), None)

    # -------- mutators --------
    def add_name(self, name: PersonName) -> None:
        self._names.append(name)
        if name.preferred and not name.voided:
            self.set_preferred_name(name)

    def add_address(self, address: PersonAddress) -> None:
        self._addresses.append(address)
        if address.preferred and not address.voided:
            self.set_preferred_address(address)

    def set_preferred_name(self, name: PersonName) -> None:
        _mark_preferred(self._names, name, "name")

    def set_preferred_address(self, address: PersonAddress) -> None:
        _mark_preferred(self._addresses, address, "address")

    def set_attribute(self, attribute: PersonAttribute, user: str) -> None:
        """Add ``attribute``, voiding any active attribute of the same type.

        Setting the value an active attribute already holds is a no-op.
        """
        current = self.attribute(attribute.attribute_type.uuid)
        if current is not None:
            if current.value == attribute.value:
                return
            current.audit.void(user, "New value assigned")
        self._attributes.append(attribute)

    def mark_dead(self, death_date: Optional[date], cause: Optional[Concept]) -> None:
        self.dead = True
        self.death_date = death_date
        self.cause_of_death = cause

    def mark_alive(self) -> None:
        self.dead = False
        self.death_date = None
        self.cause_of_death = None

    def void(self, user: str, reason: str) -> None:
        when = utcnow()
        self.audit.void(user, reason, when)
        for item in (*self._names, *self._addresses, *self._attributes):
            item.audit.void(user, reason, when)

    def validate(self, today: Optional[date] = None) -> None:
        errors = []
        today = today or date.today()
        if self.gender not in GENDERS:
            errors.append({"loc": ["gender"], "msg": f"gender must be one of {', '.join(GENDERS)}"})
        if not self.active_names():
            errors.append({"loc": ["names"], "msg": "a person needs at least one name"})
        for index, name in enumerate(self._names):
            if not (name.given_name or "").strip():
                errors.append({"loc": ["names", index, "givenName"], "msg": "givenName is required"})
            if not (name.family_name or "").strip():
                errors.append({"loc": ["names", index, "familyName"], "msg": "familyName is required"})
        if self.birthdate is not None:
            if self.birthdate > today:
                errors.append({"loc": ["birthdate"], "msg": "birthdate cannot be in the future"})
            elif self.birthdate < _years_before(today, MAX_AGE_YEARS):
                errors.append({"loc": ["birthdate"], "msg": f"birthdate cannot be more than {MAX_AGE_YEARS} years ago"})
        if self.death_date is not None:
            if not self.dead:
                errors.append({"loc": ["deathDate"], "msg": "deathDate requires dead to be true"})
            if self.death_date > today:
                errors.append({"loc": ["deathDate"], "msg": "deathDate cannot be in the future"})
            if self.birthdate is not None and self.death_date < self.birthdate:
                errors.append({"loc": ["deathDate"], "msg": "deathDate cannot be before birthdate"})
        if self.cause_of_death is not None and not self.dead:
            errors.append({"loc": ["causeOfDeath"], "msg": "causeOfDeath requires dead to be true"})
        if errors:
            raise ValidationError("Person failed validation", errors)


def _whole_years(start: date, end: date) -> int:
    years = end.year - start.year
    if (end.month, end.day) < (start.month, start.day):
        years -= 1
    return years


def _years_before(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        # 29 February in a non-leap year
        return day.replace(year=day.year - years, day=28)


def _pick_preferred(items: Iterable):
    items = list(items)
    # a voided person keeps showing the names it was voided with
    active = [i for i in items if not i.voided] or items
    for item in active:
        if item.preferred:
            return item
    return active[0] if active else None


def _mark_preferred(items: List, target, label: str) -> None:
    if not any(i is target for i in items):
        raise ValueError(f"{label} {target.uuid} does not belong to this person")
    if target.voided:
        raise ValueError(f"voided {label} {target.uuid} cannot be preferred")
    for item in items:
        item.preferred = item is target
