"""Request filters used as value-equality cache keys."""
from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator

FilterValue = str | int | tuple[str | int, ...]


class FilterMethod(Enum):
    """Comparison applied by a field filter, rendered as a query parameter suffix."""

    EQUALS = ""
    NOT_EQUALS = "-not"
    LIKE = "-lk"
    NOT_LIKE = "-not-lk"
    IN = "-in"
    NOT_IN = "-not-in"
    MIN = "-min"
    MAX = "-max"
    BITWISE_AND = "-bitwise-and"


class FieldFilter(BaseModel):
    """A single field comparison, e.g. id-in=1,2,3."""

    model_config = ConfigDict(frozen=True)

    field: str
    method: FilterMethod = FilterMethod.EQUALS
    value: FilterValue

    @field_validator("value", mode="before")
    @classmethod
    def freeze_sequence(cls, v: object) -> object:
        """Lists become tuples so the filter stays hashable."""
        if isinstance(v, list | set | frozenset):
            return tuple(v)
        return v

    @property
    def parameter_name(self) -> str:
        """Query parameter name, e.g. 'id-in'."""
        return f"{self.field}{self.method.value}"

    @property
    def parameter_value(self) -> str:
        """Query parameter value, sequences joined with commas."""
        if isinstance(self.value, tuple):
            return ",".join(str(v) for v in self.value)
        return str(self.value)


class RequestFilter(BaseModel):
    """
    Sorting and filtering parameters for a list query.

    Frozen and hashable: two filters with the same content are equal and address
    the same cached results regardless of the order their field filters were given.
    """

    model_config = ConfigDict(frozen=True)

    sort_field: str | None = None
    is_sort_ascending: bool = True
    field_filters: tuple[FieldFilter, ...] = ()

    @field_validator("field_filters", mode="before")
    @classmethod
    def normalize_filters(cls, v: object) -> object:
        """Order field filters canonically so equality ignores insertion order."""
        if v is None:
            return ()
        filters = [FieldFilter.model_validate(f) if isinstance(f, dict) else f for f in v]
        return tuple(sorted(filters, key=lambda f: (f.field, f.method.value, str(f.value))))

    def with_filter(
        self, field: str, value: FilterValue, method: FilterMethod = FilterMethod.EQUALS,
    ) -> "RequestFilter":
        """Return a copy of this filter with an additional field filter."""
        return RequestFilter(
            sort_field=self.sort_field,
            is_sort_ascending=self.is_sort_ascending,
            field_filters=(*self.field_filters, FieldFilter(field=field, method=method, value=value)),
        )

    def to_query_params(self) -> dict[str, str]:
        """Render as mod.io query parameters (_sort plus one entry per field filter)."""
        params: dict[str, str] = {}
        if self.sort_field:
            params["_sort"] = self.sort_field if self.is_sort_ascending else f"-{self.sort_field}"
        for field_filter in self.field_filters:
            params[field_filter.parameter_name] = field_filter.parameter_value
        return params
