"""Shared DTO base class and field types."""

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

from licence_analytics.utils.numbers import quantize

# Monetary amounts are accumulated as Decimal and only rounded to cents, and
# emitted as JSON numbers, when a response is serialized.
Money = Annotated[
    Decimal,
    PlainSerializer(lambda value: float(quantize(value, 2)), return_type=float, when_used="json"),
]


class CamelModel(BaseModel):
    """Report payload model: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
