from datetime import date
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Gender = Literal["M", "F", "O", "U"]
AttributeValue = Union[bool, int, float, str]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


# -------- Names / Addresses / Attributes --------
class PersonNameCreate(_CamelModel):
    given_name: str = Field(..., min_length=1)
    family_name: str = Field(..., min_length=1)
    middle_name: Optional[str] = None
    family_name2: Optional[str] = None
    prefix: Optional[str] = None
    family_name_prefix: Optional[str] = None
    family_name_suffix: Optional[str] = None
    degree: Optional[str] = None
    preferred: bool = False


class PersonAddressCreate(_CamelModel):
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


class PersonAttributeInput(_CamelModel):
    attribute_type: str = Field(..., min_length=1, description="Attribute type uuid or name")
    value: AttributeValue


# -------- Persons --------
class PersonCreate(_CamelModel):
    names: List[PersonNameCreate] = Field(..., min_length=1)
    gender: Gender
    birthdate: Optional[date] = None
    birthdate_estimated: bool = False
    dead: bool = False
    death_date: Optional[date] = None
    cause_of_death: Optional[str] = Field(default=None, description="Concept uuid or name")
    addresses: List[PersonAddressCreate] = []
    attributes: List[PersonAttributeInput] = []


class PersonUpdate(_CamelModel):
    gender: Optional[Gender] = None
    birthdate: Optional[date] = None
    birthdate_estimated: Optional[bool] = None
    dead: Optional[bool] = None
    death_date: Optional[date] = None
    cause_of_death: Optional[str] = None
    preferred_name: Optional[str] = Field(default=None, description="uuid of one of the person's names")
    preferred_address: Optional[str] = Field(default=None, description="uuid of one of the person's addresses")
    attributes: Optional[List[PersonAttributeInput]] = None


UPDATABLE_PROPERTIES = frozenset(
    {field.alias or name for name, field in PersonUpdate.model_fields.items()}
    | set(PersonUpdate.model_fields)
)
