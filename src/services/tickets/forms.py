"""
Ticketeer - Ticket Forms
========================

Builds intake and closure prompts as FormSpec records and reads back
their submissions.
"""

from typing import List, Mapping, Optional, Sequence

from src.core.constants import (
    CLOSE_FORM_PREFIX,
    CLOSE_REASON_INPUT_ID,
    MODAL_MAX_INPUTS,
    MODAL_TITLE_MAX,
    OPEN_FORM_PREFIX,
    TEXT_INPUT_VALUE_MAX,
    VERIFICATION_INPUT_ID,
    VERIFICATION_LABEL,
    VERIFICATION_MAX_LENGTH,
    VERIFICATION_MIN_LENGTH,
    VERIFICATION_PLACEHOLDER,
)
from src.core.database.models import CategoryFieldRecord, CategoryRecord

from .models import FormAnswer, FormField, FormSpec


def field_key(field_id: int) -> str:
    """Input key for a category field."""
    return f"field-{field_id}"


def build_intake_form(
    category: CategoryRecord,
    fields: Sequence[CategoryFieldRecord],
    requester_id: int,
) -> Optional[FormSpec]:
    """
    Build the intake prompt for a category.

    DESIGN: The verification input always comes first, then category
    fields in creation order. A category with neither gets no prompt
    at all (the fast path).

    Args:
        category: Category row.
        fields: The category's field rows, in creation order.
        requester_id: User the prompt is correlated with.

    Returns:
        FormSpec, or None if the category needs no prompt.
    """
    form_fields: List[FormField] = []

    if category.get("require_verification"):
        form_fields.append(FormField(
            key=VERIFICATION_INPUT_ID,
            label=VERIFICATION_LABEL,
            required=True,
            placeholder=VERIFICATION_PLACEHOLDER,
            min_length=VERIFICATION_MIN_LENGTH,
            max_length=VERIFICATION_MAX_LENGTH,
            is_verification=True,
        ))

    for row in fields:
        form_fields.append(FormField(
            key=field_key(row["id"]),
            label=row["label"],
            required=bool(row.get("required")),
            long=not row.get("short_field", 1),
            placeholder=row.get("placeholder") or None,
            min_length=row.get("min_length"),
            max_length=row.get("max_length"),
        ))

    if not form_fields:
        return None

    return FormSpec(
        custom_id=f"{OPEN_FORM_PREFIX}-{category['id']}-{requester_id}",
        title=f"{category['name']} ticket"[:MODAL_TITLE_MAX],
        requester_id=requester_id,
        fields=tuple(form_fields[:MODAL_MAX_INPUTS]),
    )


def build_close_form(channel_id: int, channel_name: str, requester_id: int) -> FormSpec:
    """Build the optional closure-reason prompt for a ticket channel."""
    return FormSpec(
        custom_id=f"{CLOSE_FORM_PREFIX}-{channel_id}",
        title=f"Closing ticket: {channel_name}"[:MODAL_TITLE_MAX],
        requester_id=requester_id,
        fields=(
            FormField(
                key=CLOSE_REASON_INPUT_ID,
                label="Closure reason:",
                required=False,
                long=True,
                max_length=TEXT_INPUT_VALUE_MAX,
            ),
        ),
    )


def collect_answers(form: FormSpec, values: Mapping[str, str]) -> List[FormAnswer]:
    """
    Keep the answered fields of a submission, in form order.

    A field is kept only if its key, label and trimmed response are all
    non-empty, so skipped optional inputs disappear.
    """
    answers: List[FormAnswer] = []
    for form_field in form.fields:
        value = (values.get(form_field.key) or "").strip()
        if form_field.key and form_field.label and value:
            answers.append(FormAnswer(
                key=form_field.key,
                label=form_field.label,
                value=value,
                is_verification=form_field.is_verification,
            ))
    return answers


def closure_reason(values: Mapping[str, str]) -> Optional[str]:
    """Trimmed closure reason from a close-form submission, or None."""
    reason = (values.get(CLOSE_REASON_INPUT_ID) or "").strip()
    return reason or None


__all__ = [
    "field_key",
    "build_intake_form",
    "build_close_form",
    "collect_answers",
    "closure_reason",
]
