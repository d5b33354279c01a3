"""
Ticketeer - Ticket Modals
=========================

Renders a FormSpec as a discord.ui.Modal and captures the submission.
"""

from typing import Dict, Optional

import discord

from src.core.constants import TEXT_INPUT_LABEL_MAX, TEXT_INPUT_PLACEHOLDER_MAX
from src.core.logger import logger

from .models import FormSpec


class TicketFormModal(discord.ui.Modal):
    """
    Modal built from a FormSpec.

    DESIGN:
        The modal does not act on the submission itself. It stores the
        values and the submitting interaction, then stops, so the caller
        awaiting wait() decides what happens next. A submission from
        anyone but the correlated requester ends the wait as cancelled.
    """

    def __init__(self, form: FormSpec, timeout: float) -> None:
        super().__init__(title=form.title, timeout=timeout, custom_id=form.custom_id)
        self.form = form
        self.inputs: Dict[str, discord.ui.TextInput] = {}
        self.values: Dict[str, str] = {}
        self.submission: Optional[discord.Interaction] = None
        self.mismatched = False

        for form_field in form.fields:
            text_input = discord.ui.TextInput(
                label=form_field.label[:TEXT_INPUT_LABEL_MAX],
                custom_id=form_field.key,
                style=discord.TextStyle.paragraph if form_field.long else discord.TextStyle.short,
                placeholder=(form_field.placeholder or "")[:TEXT_INPUT_PLACEHOLDER_MAX] or None,
                required=form_field.required,
                min_length=form_field.min_length,
                max_length=form_field.max_length,
            )
            self.inputs[form_field.key] = text_input
            self.add_item(text_input)

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        custom_id = (interaction.data or {}).get("custom_id")
        if interaction.user.id != self.form.requester_id or custom_id != self.form.custom_id:
            logger.warning("Form Submission Mismatch", [
                ("Form", self.form.custom_id),
                ("User", f"{interaction.user.name} ({interaction.user.id})"),
            ])
            self.mismatched = True
            self.stop()
            return False
        return True

    async def on_submit(self, interaction: discord.Interaction) -> None:
        self.values = {key: text_input.value for key, text_input in self.inputs.items()}
        self.submission = interaction
        self.stop()

    async def on_error(self, interaction: discord.Interaction, error: Exception) -> None:
        logger.error("Form Modal Error", [
            ("Form", self.form.custom_id),
            ("Error Type", type(error).__name__),
            ("Error", str(error)[:100]),
        ])
        self.stop()


__all__ = ["TicketFormModal"]
