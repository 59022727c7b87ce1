from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _EventModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_message(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class DataRequestEvent(_EventModel):
    """A request for the data-sync service to re-send a record."""

    table: str
    id: str


class EmailUpdateEvent(_EventModel):
    user_id: str
    trainee_id: str | None = None
    previous_email: str | None = None
    new_email: str


class ProfileMoveEvent(_EventModel):
    from_trainee_id: str
    to_trainee_id: str


class ContactDetails(BaseModel):
    trainee_id: str
    email: str | None = None
    forenames: str | None = None
    surname: str | None = None


class ContactDetailsEvent(BaseModel):
    contact_details: ContactDetails

    @classmethod
    def from_record(cls, payload: dict[str, Any]) -> "ContactDetailsEvent":
        """
        Unpack a record event: {"record": {"data": {"id": ..., "email": ...}}}.

        Raises ValueError when the record carries no trainee id.
        """
        record = payload.get("record") if isinstance(payload.get("record"), dict) else {}
        data = record.get("data") if isinstance(record.get("data"), dict) else {}

        trainee_id = str(data.get("id") or "").strip()
        if not trainee_id:
            raise ValueError("Contact details event has no trainee id")

        return cls(
            contact_details=ContactDetails(
                trainee_id=trainee_id,
                email=data.get("email"),
                forenames=data.get("forenames"),
                surname=data.get("surname"),
            )
        )
