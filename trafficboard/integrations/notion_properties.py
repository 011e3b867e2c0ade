"""Decoding of Notion's typed property encoding into plain values.

Every Notion page property is a tagged union: ``{"type": "title", "title": [...]}``,
``{"type": "rollup", "rollup": {"type": "array", "array": [...]}}`` and so on.
``get_property_value`` decodes one property given the kind the caller expects.
It never raises on missing sub-fields: absent values decode to ``None`` (scalars)
or an empty list (collections).
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from trafficboard.models.task import DatePeriod, FileRef, PersonRef


class PropertyKind(str, Enum):
    """Property kinds understood by the resolver."""
    TITLE = "title"
    RICH_TEXT = "rich_text"
    NUMBER = "number"
    SELECT = "select"
    MULTI_SELECT = "multi_select"
    STATUS = "status"
    DATE = "date"
    CHECKBOX = "checkbox"
    URL = "url"
    EMAIL = "email"
    PHONE_NUMBER = "phone_number"
    FILES = "files"
    PEOPLE = "people"
    RELATION = "relation"
    ROLLUP = "rollup"
    FORMULA = "formula"


def _first_plain_text(fragments: Any) -> Optional[str]:
    if not fragments:
        return None
    return fragments[0].get("plain_text") or None


def _decode_title(prop: dict, sub_kind: Optional[str]) -> Optional[str]:
    return _first_plain_text(prop.get("title"))


def _decode_rich_text(prop: dict, sub_kind: Optional[str]) -> Optional[str]:
    return _first_plain_text(prop.get("rich_text"))


def _decode_select(prop: dict, sub_kind: Optional[str]) -> Optional[str]:
    option = prop.get("select")
    return option.get("name") if option else None


def _decode_status(prop: dict, sub_kind: Optional[str]) -> Optional[str]:
    option = prop.get("status")
    return option.get("name") if option else None


def _decode_multi_select(prop: dict, sub_kind: Optional[str]) -> List[str]:
    return [option.get("name") for option in prop.get("multi_select") or []]


def _decode_date(prop: dict, sub_kind: Optional[str]) -> Optional[DatePeriod]:
    value = prop.get("date")
    if not value:
        return None
    return DatePeriod(start=value.get("start"), end=value.get("end"))


def _decode_files(prop: dict, sub_kind: Optional[str]) -> List[FileRef]:
    files = []
    for item in prop.get("files") or []:
        hosted = item.get("external") if item.get("type") == "external" else item.get("file")
        files.append(FileRef(name=item.get("name"), url=(hosted or {}).get("url")))
    return files


def _decode_people(prop: dict, sub_kind: Optional[str]) -> List[PersonRef]:
    return [
        PersonRef(id=person.get("id"), name=person.get("name"), avatar_url=person.get("avatar_url"))
        for person in prop.get("people") or []
    ]


def _decode_relation(prop: dict, sub_kind: Optional[str]) -> Any:
    relations = prop.get("relation") or []
    if sub_kind == PropertyKind.TITLE.value:
        # Some relations embed the related page title
        return _first_plain_text(relations[0].get("title")) if relations else None
    return [rel.get("id") for rel in relations if rel.get("id")]


def _decode_rollup_item(item: dict) -> Any:
    """Decode one rollup array item according to its own type tag."""
    item_type = item.get("type")
    if item_type == PropertyKind.PEOPLE.value:
        return [person.get("name") for person in item.get("people") or []]
    if item_type in _DECODERS:
        return _DECODERS[PropertyKind(item_type)](item, None)
    return item


def _decode_rollup(prop: dict, sub_kind: Optional[str]) -> Any:
    rollup = prop.get("rollup") or {}
    rollup_type = rollup.get("type")

    if rollup_type == "array":
        values: List[Any] = []
        for item in rollup.get("array") or []:
            decoded = _decode_rollup_item(item)
            if isinstance(decoded, list):
                values.extend(v for v in decoded if v)
            elif decoded:
                values.append(decoded)
        return values
    if rollup_type == "string":
        return rollup.get("string")
    if rollup_type == "relation":
        return [rel.get("id") for rel in rollup.get("relation") or []]
    if rollup_type == "number":
        return rollup.get("number")
    return rollup.get("array") or rollup.get("string") or rollup.get("relation") or None


def _decode_formula(prop: dict, sub_kind: Optional[str]) -> Any:
    formula = prop.get("formula") or {}
    formula_type = formula.get("type")
    if formula_type == "string":
        return formula.get("string")
    if formula_type == "number":
        return formula.get("number")
    if formula_type == "boolean":
        return formula.get("boolean")
    return formula.get("string") or formula.get("number")


def _scalar(key: str) -> Callable[[dict, Optional[str]], Any]:
    def decode(prop: dict, sub_kind: Optional[str]) -> Any:
        return prop.get(key)
    return decode


_DECODERS: Dict[PropertyKind, Callable[[dict, Optional[str]], Any]] = {
    PropertyKind.TITLE: _decode_title,
    PropertyKind.RICH_TEXT: _decode_rich_text,
    PropertyKind.NUMBER: _scalar("number"),
    PropertyKind.SELECT: _decode_select,
    PropertyKind.MULTI_SELECT: _decode_multi_select,
    PropertyKind.STATUS: _decode_status,
    PropertyKind.DATE: _decode_date,
    PropertyKind.CHECKBOX: _scalar("checkbox"),
    PropertyKind.URL: _scalar("url"),
    PropertyKind.EMAIL: _scalar("email"),
    PropertyKind.PHONE_NUMBER: _scalar("phone_number"),
    PropertyKind.FILES: _decode_files,
    PropertyKind.PEOPLE: _decode_people,
    PropertyKind.RELATION: _decode_relation,
    PropertyKind.ROLLUP: _decode_rollup,
    PropertyKind.FORMULA: _decode_formula,
}


def get_property_value(prop: Optional[dict], kind: str, sub_kind: Optional[str] = None) -> Any:
    """Decode a raw Notion property.

    Args:
        prop: Raw property record from a page (may be None when the property is absent)
        kind: Expected property kind (a PropertyKind value)
        sub_kind: Optional refinement (``"title"`` for relations that embed titles)

    Returns:
        Decoded value; None or [] when absent. Unknown kinds return the raw property.
    """
    if not prop:
        return None
    try:
        decoder = _DECODERS[PropertyKind(kind)]
    except ValueError:
        return prop
    return decoder(prop, sub_kind)


def as_list(value: Any) -> List[Any]:
    """Coerce a decoded value into a list (None -> [], scalar -> [scalar])."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]
