"""Tests for the PostgreSQL person store.

The integration tests need a disposable database: set ``TEST_DATABASE_URL``
to run them. Every table is dropped and recreated for each test.
"""

import os
from datetime import date
from pathlib import Path

import psycopg
import pytest
from psycopg.rows import dict_row

from emr_api.app.domain import PersonAttribute
from emr_api.app.stores.postgres import PostgresPersonStore, _like
from person_data import (
    BIRTHPLACE_TYPE_UUID,
    MALARIA_CONCEPT_UUID,
    OTHER_NAME_UUID,
    PERSON_UUID,
    PREFERRED_ADDRESS_UUID,
    VOIDED_PERSON_UUID,
    horatio,
    johnny,
    voided_horatio,
)

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL")
DB_DIR = Path(__file__).resolve().parent.parent / "db"

requires_postgres = pytest.mark.skipif(
    not TEST_DATABASE_URL, reason="TEST_DATABASE_URL not set"
)


def test_like_escapes_wildcards():
    assert _like("ho") == "%ho%"
    assert _like("50%") == "%50\\%%"
    assert _like("a_b") == "%a\\_b%"
    assert _like("c:\\x") == "%c:\\\\x%"


@pytest.fixture
def pg_store():
    def connect():
        return psycopg.connect(TEST_DATABASE_URL, row_factory=dict_row)

    with connect() as conn, conn.cursor() as cur:
        cur.execute((DB_DIR / "drop_all.sql").read_text(encoding="utf-8"))
        cur.execute((DB_DIR / "init.sql").read_text(encoding="utf-8"))
        cur.execute(
            "INSERT INTO concepts (uuid, name) VALUES (%s, 'MALARIA');",
            (MALARIA_CONCEPT_UUID,),
        )
        cur.execute(
            "INSERT INTO person_attribute_types (uuid, name) VALUES (%s, 'Birthplace');",
            (BIRTHPLACE_TYPE_UUID,),
        )
        conn.commit()

    store = PostgresPersonStore(connect)
    for person in (horatio(), johnny(), voided_horatio()):
        store.save(person)
    return store


@requires_postgres
def test_round_trip_keeps_names_and_preferred_entries(pg_store):
    person = pg_store.get(PERSON_UUID)

    assert person.gender == "M"
    assert person.birthdate == date(1975, 4, 8)
    assert person.display == "Horatio Hornblower"
    assert [n.given_name for n in person.names] == ["Horatio", "Horry"]
    assert person.preferred_address.uuid == PREFERRED_ADDRESS_UUID
    assert person.audit.creator == "admin"
    assert pg_store.get("missing") is None


@requires_postgres
def test_save_replaces_children_and_resolves_references(pg_store):
    person = pg_store.get(PERSON_UUID)
    birthplace = pg_store.get_attribute_type("Birthplace")
    person.set_attribute(PersonAttribute(attribute_type=birthplace, value="Portsmouth"), "admin")
    person.set_preferred_name(person.get_name(OTHER_NAME_UUID))
    person.mark_dead(date(2001, 1, 1), pg_store.get_concept(MALARIA_CONCEPT_UUID))
    pg_store.save(person)

    stored = pg_store.get(PERSON_UUID)
    assert stored.preferred_name.uuid == OTHER_NAME_UUID
    assert stored.attribute(BIRTHPLACE_TYPE_UUID).value == "Portsmouth"
    assert stored.cause_of_death.name == "MALARIA"
    assert pg_store.get_name(OTHER_NAME_UUID).preferred


@requires_postgres
def test_search_and_count(pg_store):
    assert [p.uuid for p in pg_store.search(["hornblower"])] == [PERSON_UUID]
    assert {p.uuid for p in pg_store.search(["Horatio"], include_voided=True)} == {PERSON_UUID, VOIDED_PERSON_UUID}
    assert pg_store.search(["100%"]) == []
    assert pg_store.count() == 2
    assert pg_store.count(include_voided=True) == 3


@requires_postgres
def test_purge_removes_dependents(pg_store):
    assert pg_store.purge(PERSON_UUID) is True
    assert pg_store.purge(PERSON_UUID) is False
    assert pg_store.get(PERSON_UUID) is None
    assert pg_store.get_name(OTHER_NAME_UUID) is None
