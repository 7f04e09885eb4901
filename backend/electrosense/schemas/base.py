from typing import Any, Dict

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DocumentModel(BaseModel):
    """
    Base for records crossing the store boundary. Accepts snake_case or the
    camelCase names the storefront has always used; serializes as camelCase.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    @classmethod
    def from_document(cls, doc: Dict[str, Any]):
        return cls.model_validate(doc)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=False)


def pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Pop every spelling of a field from `data`, returning the first non-None value."""
    found = default
    hit = False
    for key in keys:
        if key in data:
            value = data.pop(key)
            if not hit and value is not None:
                found = value
                hit = True
    return found
