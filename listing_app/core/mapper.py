from typing import Generic, Iterable, Type, TypeVar

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


class ORMMapper(Generic[T]):
    """Converts ORM rows into one response schema."""

    def __init__(self, schema: Type[T]):
        self.schema = schema

    def one(self, item) -> T:
        return self.schema.model_validate(item)

    def many(self, items: Iterable) -> list[T]:
        return [self.schema.model_validate(item) for item in items]
