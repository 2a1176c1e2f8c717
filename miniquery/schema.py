import re

from pydantic import BaseModel, ValidationError, field_validator

from miniquery.exceptions import ConfigurationError

_SAFE_IDENT = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_]*$')


def _identifier(value):
    value = value.strip()
    if not value:
        raise ValueError("must be assigned")
    if not _SAFE_IDENT.match(value):
        raise ValueError(f"Unsafe SQL identifier: {value}")
    return value


class TableSchema(BaseModel):
    """Table name, primary key and output columns a builder works against."""

    table: str
    primary: str = "id"
    columns: list[str]

    @field_validator("table", "primary")
    @classmethod
    def _safe_name(cls, value):
        return _identifier(value)

    @field_validator("columns")
    @classmethod
    def _has_columns(cls, value):
        if not value:
            raise ValueError("at least one column must be assigned")
        return [_identifier(name) for name in value]

    @classmethod
    def load(cls, table, primary="id", columns=None):
        try:
            return cls(table=table, primary=primary, columns=columns)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid table configuration: {exc}") from exc
