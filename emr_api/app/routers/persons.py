from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, Request, Response, status

from ..db import get_person_store
from ..representation import Representation, represent_person
from ..schemas import PersonCreate
from ..security import get_current_username
from ..services import audit_logs, persons as person_service
from ..stores.base import PersonStore

FALSE_FLAGS = {"false", "0", "no"}


router = APIRouter(
    prefix="/person",
    tags=["person"],
)


def get_representation(
    v: Optional[str] = Query(default=None, description="ref, default or full"),
    representation: Optional[str] = Query(default=None, description="Alias of v"),
) -> Representation:
    return Representation.parse(v if v is not None else representation)


def _flag(value: Optional[str]) -> bool:
    # a bare "?purge" arrives as an empty string
    return value is not None and value.strip().lower() not in FALSE_FLAGS


@router.get("")
def search_persons(
    q: Optional[str] = Query(default=None, description="Search in given/middle/family names"),
    include_all: bool = Query(default=False, alias="includeAll", description="Include voided persons"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    rep: Representation = Depends(get_representation),
    store: PersonStore = Depends(get_person_store),
):
    people = person_service.search_people(store, q, include_voided=include_all, limit=limit, offset=offset)
    return {
        "results": [represent_person(person, rep) for person in people],
        "limit": limit,
        "offset": offset,
    }


@router.get("/{person_uuid}")
def get_person(
    person_uuid: str,
    rep: Representation = Depends(get_representation),
    store: PersonStore = Depends(get_person_store),
):
    return represent_person(person_service.get_person(store, person_uuid), rep)


@router.post("", status_code=201)
def create_person(
    payload: PersonCreate,
    request: Request,
    rep: Representation = Depends(get_representation),
    store: PersonStore = Depends(get_person_store),
    username: str = Depends(get_current_username),
):
    person = person_service.create_person(store, payload, acting_user=username)
    audit_logs.attach_request_metadata(
        request,
        event="person_created",
        person_uuid=person.uuid,
        display=person.display,
    )
    return represent_person(person, rep)


@router.post("/{person_uuid}")
def update_person(
    person_uuid: str,
    request: Request,
    payload: Dict[str, Any] = Body(...),
    rep: Representation = Depends(get_representation),
    store: PersonStore = Depends(get_person_store),
    username: str = Depends(get_current_username),
):
    person = person_service.update_person(store, person_uuid, payload, acting_user=username)
    audit_logs.attach_request_metadata(
        request,
        event="person_updated",
        person_uuid=person.uuid,
        changed_fields=sorted(payload.keys()),
    )
    return represent_person(person, rep)


@router.delete("/{person_uuid}", status_code=status.HTTP_204_NO_CONTENT)
def delete_person(
    person_uuid: str,
    request: Request,
    purge: Optional[str] = Query(default=None, description="Present to delete permanently"),
    reason: Optional[str] = Query(default=None, description="Required when voiding"),
    store: PersonStore = Depends(get_person_store),
    username: str = Depends(get_current_username),
):
    if _flag(purge):
        removed = person_service.purge_person(store, person_uuid)
        audit_logs.attach_request_metadata(request, event="person_purged", person_uuid=person_uuid, removed=removed)
    else:
        person_service.void_person(store, person_uuid, reason, acting_user=username)
        audit_logs.attach_request_metadata(request, event="person_voided", person_uuid=person_uuid, reason=reason)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
