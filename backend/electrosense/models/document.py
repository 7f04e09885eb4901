import enum
from typing import Any, Dict, Iterable


def plain_value(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    return value


class DocumentMixin:
    """
    Exposes an ORM row as a flat document (column name -> value) and merges
    documents back into the row. The optimistic `version` column stays internal.
    """

    __internal_columns__: Iterable[str] = ("version",)

    def to_document(self) -> Dict[str, Any]:
        return {
            col.key: getattr(self, col.key)
            for col in self.__table__.columns
            if col.key not in self.__internal_columns__
        }

    def apply_document(self, values: Dict[str, Any]) -> None:
        columns = {col.key: col for col in self.__table__.columns}
        for key, value in values.items():
            if key == "id" or key in self.__internal_columns__ or key not in columns:
                continue
            col = columns[key]
            # let the column default fill NOT NULL fields the document leaves empty
            if value is None and not col.nullable and col.default is not None:
                continue
            setattr(self, key, plain_value(value))
