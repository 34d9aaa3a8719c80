"""Editing model for a job's application form."""
from __future__ import annotations

from collections.abc import Iterable

from app.schemas import CHOICE_TYPES, ChoiceField, FieldType, FormField, PlainField, new_id

PLACEHOLDER_OPTIONS = ("Option 1", "Option 2")


def make_field(
    field_type: FieldType,
    *,
    label: str = "",
    required: bool = False,
    options: Iterable[str] | None = None,
    field_id: str | None = None,
) -> FormField:
    """Build the field variant that matches ``field_type``."""

    field_id = field_id or new_id()
    field_type = FieldType(field_type)
    if field_type in CHOICE_TYPES:
        return ChoiceField(
            id=field_id,
            label=label,
            type=field_type.value,
            required=required,
            options=list(options or []),
        )
    return PlainField(id=field_id, label=label, type=field_type.value, required=required)


class FormBuilder:
    """Ordered list of form fields plus the edits a recruiter can make to it.

    Edits addressed to an unknown field id are ignored. Options only live on
    choice fields; for text and number fields they are held aside so that
    switching the field to a dropdown or multi-select brings them back.
    """

    def __init__(self, fields: Iterable[FormField] = ()) -> None:
        self.fields: list[FormField] = list(fields)
        self._held_options: dict[str, list[str]] = {}

    def add_field(self) -> FormField:
        field = make_field(FieldType.TEXT)
        self._held_options[field.id] = list(PLACEHOLDER_OPTIONS)
        self.fields.append(field)
        return field

    def set_label(self, field_id: str, label: str) -> None:
        field = self.get(field_id)
        if field is not None:
            field.label = label

    def set_required(self, field_id: str, required: bool) -> None:
        field = self.get(field_id)
        if field is not None:
            field.required = required

    def set_type(self, field_id: str, field_type: FieldType) -> None:
        index = self._index_of(field_id)
        if index is None:
            return

        current = self.fields[index]
        options = self.options_of(field_id)
        if isinstance(current, PlainField):
            self._held_options.pop(field_id, None)
        replacement = make_field(
            field_type,
            label=current.label,
            required=current.required,
            options=options,
            field_id=field_id,
        )
        if isinstance(replacement, PlainField):
            self._held_options[field_id] = options
        self.fields[index] = replacement

    def reorder_field(self, from_index: int, to_index: int) -> None:
        if not 0 <= from_index < len(self.fields) or not 0 <= to_index < len(self.fields):
            raise IndexError(f"Cannot move field {from_index} to {to_index} in a form of {len(self.fields)}")
        field = self.fields.pop(from_index)
        self.fields.insert(to_index, field)

    def remove_field(self, field_id: str) -> None:
        self.fields = [field for field in self.fields if field.id != field_id]
        self._held_options.pop(field_id, None)

    def options_of(self, field_id: str) -> list[str]:
        field = self.get(field_id)
        if isinstance(field, ChoiceField):
            return list(field.options)
        return list(self._held_options.get(field_id, ()))

    def add_option(self, field_id: str, value: str | None = None) -> None:
        options = self._options_ref(field_id)
        if options is not None:
            options.append(value if value is not None else f"Option {len(options) + 1}")

    def update_option(self, field_id: str, index: int, value: str) -> None:
        options = self._options_ref(field_id)
        if options is not None and 0 <= index < len(options):
            options[index] = value

    def remove_option(self, field_id: str, index: int) -> None:
        options = self._options_ref(field_id)
        if options is not None and 0 <= index < len(options):
            del options[index]

    def get(self, field_id: str) -> FormField | None:
        index = self._index_of(field_id)
        return self.fields[index] if index is not None else None

    def validate_for_publish(self) -> list[str]:
        """Return the problems that keep this form from being published."""

        problems: list[str] = []
        seen: set[str] = set()
        for position, field in enumerate(self.fields, start=1):
            if field.id in seen:
                problems.append(f"Field {position} reuses the id {field.id!r}.")
            seen.add(field.id)
            if not field.label.strip():
                problems.append(f"Field {position} needs a label.")
        return problems

    def _options_ref(self, field_id: str) -> list[str] | None:
        field = self.get(field_id)
        if field is None:
            return None
        if isinstance(field, ChoiceField):
            return field.options
        return self._held_options.setdefault(field_id, [])

    def _index_of(self, field_id: str) -> int | None:
        for index, field in enumerate(self.fields):
            if field.id == field_id:
                return index
        return None
