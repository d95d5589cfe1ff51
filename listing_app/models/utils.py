from datetime import datetime, timezone
from enum import Enum as PyEnum
from typing import Type

from sqlalchemy import Enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def enum_column(enum_cls: Type[PyEnum]) -> Enum:
    # persist the lowercase values, not the member names
    return Enum(
        enum_cls,
        native_enum=False,
        length=20,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )
