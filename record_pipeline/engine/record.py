"""Canonical payment record and its wire encoding."""

from __future__ import annotations

import json
from dataclasses import astuple, dataclass, fields
from typing import Any, Sequence

DEFAULT_ENVELOPE = "PaymentRecord"

# Attribute name -> JSON key. Order matches the column order of a normalized row.
WIRE_KEYS: dict[str, str] = {
    "date": "date",
    "name": "name",
    "address": "address",
    "address2": "address2",
    "city": "city",
    "state": "state",
    "zipcode": "zipcode",
    "telephone": "telephone",
    "mobile": "mobile",
    "amount": "amount",
    "processor": "processor",
    "import_date": "importdate",
}

RECORD_WIDTH = len(WIRE_KEYS)


@dataclass(frozen=True, slots=True)
class Record:
    """One normalized data row.

    Equality and hashing cover all twelve fields, which makes the record
    usable directly as its own deduplication key.
    """

    date: str
    name: str
    address: str
    address2: str
    city: str
    state: str
    zipcode: str
    telephone: str
    mobile: str
    amount: str
    processor: str
    import_date: str

    @classmethod
    def from_row(cls, row: Sequence[str]) -> "Record":
        """Map the first twelve fields of ``row`` positionally.

        Raises ``IndexError`` when the row is shorter than twelve fields.
        """
        return cls(
            date=row[0],
            name=row[1],
            address=row[2],
            address2=row[3],
            city=row[4],
            state=row[5],
            zipcode=row[6],
            telephone=row[7],
            mobile=row[8],
            amount=row[9],
            processor=row[10],
            import_date=row[11],
        )

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "Record":
        return cls(**{attr: payload[key] for attr, key in WIRE_KEYS.items()})

    def to_payload(self) -> dict[str, str]:
        return {WIRE_KEYS[item.name]: getattr(self, item.name) for item in fields(self)}

    def to_json(self) -> str:
        """Render the record by hand, without going through the JSON encoder.

        Used to keep a trace of records the encoder rejected.
        """
        parts = [
            f"{json.dumps(key)}:{json.dumps(str(value))}"
            for key, value in zip(WIRE_KEYS.values(), astuple(self))
        ]
        return "{" + ",".join(parts) + "}"


def encode_record(record: Record, envelope: str = DEFAULT_ENVELOPE) -> bytes:
    """Serialize a record into a submission job body."""

    body = {envelope: record.to_payload()}
    return json.dumps(body, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def decode_record(job: bytes, envelope: str = DEFAULT_ENVELOPE) -> Record:
    payload = json.loads(job.decode("utf-8"))
    if not isinstance(payload, dict) or not isinstance(payload.get(envelope), dict):
        raise ValueError(f"Job body must be an object with a `{envelope}` object")
    return Record.from_payload(payload[envelope])


__all__ = [
    "DEFAULT_ENVELOPE",
    "RECORD_WIDTH",
    "Record",
    "WIRE_KEYS",
    "decode_record",
    "encode_record",
]
