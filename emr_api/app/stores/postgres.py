from typing import Any, Callable, Dict, List, Optional, Sequence

import psycopg

from ..domain import AuditInfo, Concept, Person, PersonAddress, PersonAttribute, PersonAttributeType, PersonName
from .base import PersonStore

AUDIT_COLUMNS = "creator, date_created, changed_by, date_changed, voided, voided_by, date_voided, void_reason"

NAME_FIELDS = (
    "given_name",
    "middle_name",
    "family_name",
    "family_name2",
    "prefix",
    "family_name_prefix",
    "family_name_suffix",
    "degree",
)
ADDRESS_FIELDS = (
    "address1",
    "address2",
    "city_village",
    "county_district",
    "state_province",
    "country",
    "postal_code",
    "latitude",
    "longitude",
)
SEARCH_COLUMNS = ("given_name", "middle_name", "family_name", "family_name2")


def _like(token: str) -> str:
    escaped = token.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _audit_from_row(row: Dict[str, Any]) -> AuditInfo:
    return AuditInfo(
        creator=row.get("creator"),
        date_created=row.get("date_created"),
        changed_by=row.get("changed_by"),
        date_changed=row.get("date_changed"),
        voided=bool(row.get("voided")),
        voided_by=row.get("voided_by"),
        date_voided=row.get("date_voided"),
        void_reason=row.get("void_reason"),
    )


def _audit_params(audit: AuditInfo) -> Dict[str, Any]:
    return {
        "creator": audit.creator,
        "date_created": audit.date_created,
        "changed_by": audit.changed_by,
        "date_changed": audit.date_changed,
        "voided": audit.voided,
        "voided_by": audit.voided_by,
        "date_voided": audit.date_voided,
        "void_reason": audit.void_reason,
    }


def _name_from_row(row: Dict[str, Any]) -> PersonName:
    return PersonName(
        uuid=row["uuid"],
        preferred=bool(row["preferred"]),
        audit=_audit_from_row(row),
        **{key: row.get(key) for key in NAME_FIELDS},
    )


def _address_from_row(row: Dict[str, Any]) -> PersonAddress:
    return PersonAddress(
        uuid=row["uuid"],
        preferred=bool(row["preferred"]),
        audit=_audit_from_row(row),
        **{key: row.get(key) for key in ADDRESS_FIELDS},
    )


class PostgresPersonStore(PersonStore):
    """Maps the person aggregate onto the tables created by ``db/init.sql``.

    ``connect`` returns a new psycopg connection using ``dict_row`` rows; each
    public method opens and closes its own connection.
    """

    def __init__(self, connect: Callable[[], psycopg.Connection]):
        self._connect = connect

    # -------- reference data --------
    def get_attribute_type(self, ref: str) -> Optional[PersonAttributeType]:
        with self._connect() as conn, conn.cursor() as cur:
            cur.execute(
                """
                SELECT uuid, name, format, description FROM person_attribute_types
                WHERE uuid=%s OR name=%s
                ORDER BY (uuid=%s) DESC LIMIT 1;
                """,
                (ref, ref, ref),
            )
            row = cur.fetchone()
        return PersonAttributeType(**row) if row else None

    def get_concept(self, ref: str) -> Optional[Concept]:
        with self._connect() as conn, conn.cursor() as cur:
            cur.execute(
                "SELECT uuid, name FROM concepts WHERE uuid=%s OR name=%s ORDER BY (uuid=%s) DESC LIMIT 1;",
                (ref, ref, ref),
            )
            row = cur.fetchone()
        return Concept(**row) if row else None

    # -------- persons --------
    def get(self, person_uuid: str) -> Optional[Person]:
        with self._connect() as conn, conn.cursor() as cur:
            return self._load(cur, person_uuid)

    def search(self, tokens: Sequence[str], include_voided: bool = False) -> List[Person]:
        if not tokens:
            return []
        sql = "SELECT p.uuid FROM persons p WHERE 1=1"
        params: List[Any] = []
        if not include_voided:
            sql += " AND p.voided IS FALSE"
        match_sql = " OR ".join(f"n.{column} ILIKE %s" for column in SEARCH_COLUMNS)
        name_filter = "" if include_voided else " AND n.voided IS FALSE"
        for token in tokens:
            sql += f"""
            AND EXISTS (
                SELECT 1 FROM person_names n
                WHERE n.person_uuid = p.uuid{name_filter} AND ({match_sql})
            )"""
            params.extend([_like(token)] * len(SEARCH_COLUMNS))
        with self._connect() as conn, conn.cursor() as cur:
            cur.execute(sql, params)
            uuids = [row["uuid"] for row in cur.fetchall()]
            people = [self._load(cur, person_uuid) for person_uuid in uuids]
        return [person for person in people if person is not None]

    def count(self, include_voided: bool = False) -> int:
        sql = "SELECT COUNT(*) AS c FROM persons"
        if not include_voided:
            sql += " WHERE voided IS FALSE"
        with self._connect() as conn, conn.cursor() as cur:
            cur.execute(sql)
            row = cur.fetchone()
        return row["c"] if row else 0

    def save(self, person: Person) -> None:
        params = {
            "uuid": person.uuid,
            "gender": person.gender,
            "birthdate": person.birthdate,
            "birthdate_estimated": person.birthdate_estimated,
            "dead": person.dead,
            "death_date": person.death_date,
            "cause_of_death": person.cause_of_death.uuid if person.cause_of_death else None,
            **_audit_params(person.audit),
        }
        with self._connect() as conn, conn.cursor() as cur:
            cur.execute(
                f"""
                INSERT INTO persons (
                    uuid, gender, birthdate, birthdate_estimated, dead, death_date, cause_of_death,
                    {AUDIT_COLUMNS}
                ) VALUES (
                    %(uuid)s, %(gender)s, %(birthdate)s, %(birthdate_estimated)s, %(dead)s, %(death_date)s,
                    %(cause_of_death)s, %(creator)s, %(date_created)s, %(changed_by)s, %(date_changed)s,
                    %(voided)s, %(voided_by)s, %(date_voided)s, %(void_reason)s
                )
                ON CONFLICT (uuid) DO UPDATE SET
                    gender=EXCLUDED.gender,
                    birthdate=EXCLUDED.birthdate,
                    birthdate_estimated=EXCLUDED.birthdate_estimated,
                    dead=EXCLUDED.dead,
                    death_date=EXCLUDED.death_date,
                    cause_of_death=EXCLUDED.cause_of_death,
                    changed_by=EXCLUDED.changed_by,
                    date_changed=EXCLUDED.date_changed,
                    voided=EXCLUDED.voided,
                    voided_by=EXCLUDED.voided_by,
                    date_voided=EXCLUDED.date_voided,
                    void_reason=EXCLUDED.void_reason;
                """,
                params,
            )
            self._replace_children(cur, person)
            conn.commit()

    def purge(self, person_uuid: str) -> bool:
        with self._connect() as conn, conn.cursor() as cur:
            cur.execute("DELETE FROM persons WHERE uuid=%s RETURNING uuid;", (person_uuid,))
            row = cur.fetchone()
            conn.commit()
        return row is not None

    def get_name(self, name_uuid: str) -> Optional[PersonName]:
        with self._connect() as conn, conn.cursor() as cur:
            cur.execute("SELECT * FROM person_names WHERE uuid=%s;", (name_uuid,))
            row = cur.fetchone()
        return _name_from_row(row) if row else None

    def get_address(self, address_uuid: str) -> Optional[PersonAddress]:
        with self._connect() as conn, conn.cursor() as cur:
            cur.execute("SELECT * FROM person_addresses WHERE uuid=%s;", (address_uuid,))
            row = cur.fetchone()
        return _address_from_row(row) if row else None

    # -------- helpers --------
    def _load(self, cur, person_uuid: str) -> Optional[Person]:
        cur.execute(
            """
            SELECT p.*, c.name AS cause_of_death_name
            FROM persons p
            LEFT JOIN concepts c ON c.uuid = p.cause_of_death
            WHERE p.uuid=%s;
            """,
            (person_uuid,),
        )
        row = cur.fetchone()
        if not row:
            return None
        cause = None
        if row.get("cause_of_death"):
            cause = Concept(uuid=row["cause_of_death"], name=row["cause_of_death_name"])

        cur.execute("SELECT * FROM person_names WHERE person_uuid=%s ORDER BY position;", (person_uuid,))
        names = [_name_from_row(name_row) for name_row in cur.fetchall()]

        cur.execute("SELECT * FROM person_addresses WHERE person_uuid=%s ORDER BY position;", (person_uuid,))
        addresses = [_address_from_row(address_row) for address_row in cur.fetchall()]

        cur.execute(
            """
            SELECT a.*, t.name AS type_name, t.format AS type_format, t.description AS type_description
            FROM person_attributes a
            JOIN person_attribute_types t ON t.uuid = a.attribute_type
            WHERE a.person_uuid=%s
            ORDER BY a.position;
            """,
            (person_uuid,),
        )
        attributes = [
            PersonAttribute(
                uuid=attr_row["uuid"],
                attribute_type=PersonAttributeType(
                    uuid=attr_row["attribute_type"],
                    name=attr_row["type_name"],
                    format=attr_row["type_format"],
                    description=attr_row["type_description"],
                ),
                value=attr_row["value"],
                audit=_audit_from_row(attr_row),
            )
            for attr_row in cur.fetchall()
        ]

        return Person(
            uuid=row["uuid"],
            gender=row["gender"],
            birthdate=row.get("birthdate"),
            birthdate_estimated=bool(row.get("birthdate_estimated")),
            dead=bool(row.get("dead")),
            death_date=row.get("death_date"),
            cause_of_death=cause,
            audit=_audit_from_row(row),
            _names=names,
            _addresses=addresses,
            _attributes=attributes,
        )

    def _replace_children(self, cur, person: Person) -> None:
        for table in ("person_names", "person_addresses", "person_attributes"):
            cur.execute(f"DELETE FROM {table} WHERE person_uuid=%s;", (person.uuid,))

        name_columns = ", ".join(NAME_FIELDS)
        name_values = ", ".join(f"%({key})s" for key in NAME_FIELDS)
        if person.names:
            cur.executemany(
                f"""
                INSERT INTO person_names (uuid, person_uuid, position, preferred, {name_columns}, {AUDIT_COLUMNS})
                VALUES (%(uuid)s, %(person_uuid)s, %(position)s, %(preferred)s, {name_values},
                    %(creator)s, %(date_created)s, %(changed_by)s, %(date_changed)s,
                    %(voided)s, %(voided_by)s, %(date_voided)s, %(void_reason)s);
                """,
                [
                    {
                        "uuid": name.uuid,
                        "person_uuid": person.uuid,
                        "position": position,
                        "preferred": name.preferred,
                        **{key: getattr(name, key) for key in NAME_FIELDS},
                        **_audit_params(name.audit),
                    }
                    for position, name in enumerate(person.names)
                ],
            )

        address_columns = ", ".join(ADDRESS_FIELDS)
        address_values = ", ".join(f"%({key})s" for key in ADDRESS_FIELDS)
        if person.addresses:
            cur.executemany(
                f"""
                INSERT INTO person_addresses (uuid, person_uuid, position, preferred, {address_columns}, {AUDIT_COLUMNS})
                VALUES (%(uuid)s, %(person_uuid)s, %(position)s, %(preferred)s, {address_values},
                    %(creator)s, %(date_created)s, %(changed_by)s, %(date_changed)s,
                    %(voided)s, %(voided_by)s, %(date_voided)s, %(void_reason)s);
                """,
                [
                    {
                        "uuid": address.uuid,
                        "person_uuid": person.uuid,
                        "position": position,
                        "preferred": address.preferred,
                        **{key: getattr(address, key) for key in ADDRESS_FIELDS},
                        **_audit_params(address.audit),
                    }
                    for position, address in enumerate(person.addresses)
                ],
            )

        if person.attributes:
            cur.executemany(
                f"""
                INSERT INTO person_attributes (uuid, person_uuid, position, attribute_type, value, {AUDIT_COLUMNS})
                VALUES (%(uuid)s, %(person_uuid)s, %(position)s, %(attribute_type)s, %(value)s,
                    %(creator)s, %(date_created)s, %(changed_by)s, %(date_changed)s,
                    %(voided)s, %(voided_by)s, %(date_voided)s, %(void_reason)s);
                """,
                [
                    {
                        "uuid": attribute.uuid,
                        "person_uuid": person.uuid,
                        "position": position,
                        "attribute_type": attribute.attribute_type.uuid,
                        "value": attribute.value,
                        **_audit_params(attribute.audit),
                    }
                    for position, attribute in enumerate(person.attributes)
                ],
            )
