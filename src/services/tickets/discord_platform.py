"""
Ticketeer - Discord Platform
============================

TicketPlatform implemented over discord.py.

DESIGN:
    This is the only ticket module that talks to the Discord API. It
    resolves ids to channels (cache first, then fetch), renders the
    payload records with render.py and maps discord.py's NotFound onto
    the "missing" return values the workflows expect. Other HTTP errors
    propagate so each workflow can decide whether they are fatal.
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

import discord

from src.core.constants import THREAD_AUTO_ARCHIVE
from src.core.logger import logger
from src.utils.discord_rate_limit import log_http_error, with_rate_limit_retry

from .modals import TicketFormModal
from .models import (
    AccessRule,
    CategoryHandle,
    ChannelHandle,
    FormSpec,
    FormSubmission,
    MessagePayload,
    Requester,
    SubmissionStatus,
)
from .platform import TicketPlatform
from .render import payload_kwargs, thread_messages_to_records
from .views import build_close_view

if TYPE_CHECKING:
    from src.bot import TicketeerBot


class DiscordPlatform(TicketPlatform):
    """Discord implementation of the ticket platform."""

    def __init__(self, bot: "TicketeerBot") -> None:
        self.bot = bot

    # =========================================================================
    # Identity
    # =========================================================================

    @property
    def bot_identity(self) -> Requester:
        user = self.bot.user
        return Requester(
            id=user.id,
            username=user.name,
            display_name=user.display_name,
            avatar_url=str(user.display_avatar.url),
            is_bot=True,
        )

    # =========================================================================
    # Resolution Helpers
    # =========================================================================

    async def _resolve(self, channel_id: int) -> Optional[Any]:
        """Cached channel or thread, fetched on a cache miss. None if it does not exist."""
        channel = self.bot.get_channel(channel_id)
        if channel is not None:
            return channel
        try:
            return await self.bot.fetch_channel(channel_id)
        except discord.NotFound:
            return None

    async def _require(self, channel_id: int) -> Any:
        channel = await self._resolve(channel_id)
        if channel is None:
            raise LookupError(f"Channel {channel_id} not found")
        return channel

    @staticmethod
    def _target(guild: discord.Guild, rule: AccessRule) -> Any:
        if rule.target_type == "role":
            return guild.get_role(rule.target_id) or discord.Object(id=rule.target_id, type=discord.Role)
        return guild.get_member(rule.target_id) or discord.Object(id=rule.target_id, type=discord.Member)

    # =========================================================================
    # Channels
    # =========================================================================

    async def fetch_category(self, category_id: int) -> Optional[CategoryHandle]:
        channel = await self._resolve(category_id)
        if not isinstance(channel, discord.CategoryChannel):
            return None

        rules = []
        for target, overwrite in channel.overwrites.items():
            allow, deny = overwrite.pair()
            rules.append(AccessRule(
                target_id=target.id,
                target_type="role" if isinstance(target, discord.Role) else "member",
                allow=allow.value,
                deny=deny.value,
            ))
        return CategoryHandle(id=channel.id, name=channel.name, overwrites=tuple(rules))

    async def fetch_channel(self, channel_id: int) -> Optional[ChannelHandle]:
        channel = await self._resolve(channel_id)
        if channel is None:
            return None
        return ChannelHandle(id=channel.id, name=channel.name, url=channel.jump_url)

    async def create_text_channel(
        self,
        category: CategoryHandle,
        name: str,
        overwrites: Sequence[AccessRule],
        reason: Optional[str] = None,
    ) -> ChannelHandle:
        parent = await self._resolve(category.id)
        if not isinstance(parent, discord.CategoryChannel):
            raise LookupError(f"Category {category.id} not found")

        guild = parent.guild
        permission_overwrites: Dict[Any, discord.PermissionOverwrite] = {}
        for rule in overwrites:
            permission_overwrites[self._target(guild, rule)] = discord.PermissionOverwrite.from_pair(
                discord.Permissions(rule.allow),
                discord.Permissions(rule.deny),
            )

        channel = await guild.create_text_channel(
            name=name,
            category=parent,
            overwrites=permission_overwrites,
            reason=reason,
        )
        return ChannelHandle(id=channel.id, name=channel.name, url=channel.jump_url)

    async def delete_channel(self, channel_id: int, reason: Optional[str] = None) -> None:
        channel = await self._resolve(channel_id)
        if channel is None:
            logger.debug("Channel Already Deleted", [("Channel", str(channel_id))])
            return
        try:
            await channel.delete(reason=reason)
        except discord.NotFound:
            pass

    async def set_member_access(
        self,
        channel_id: int,
        user_id: int,
        allowed: bool,
        reason: Optional[str] = None,
    ) -> None:
        channel = await self._require(channel_id)
        target = channel.guild.get_member(user_id) or discord.Object(id=user_id, type=discord.Member)
        if allowed:
            await channel.set_permissions(target, view_channel=True, reason=reason)
        else:
            await channel.set_permissions(target, overwrite=None, reason=reason)

    # =========================================================================
    # Messages
    # =========================================================================

    @with_rate_limit_retry()
    async def send_message(self, channel_id: int, payload: MessagePayload) -> None:
        channel = await self._require(channel_id)
        kwargs = payload_kwargs(payload)
        if payload.close_button:
            kwargs["view"] = build_close_view()
        await channel.send(content=payload.content, **kwargs)

    @with_rate_limit_retry()
    async def send_direct_message(self, user_id: int, payload: MessagePayload) -> None:
        user = self.bot.get_user(user_id) or await self.bot.fetch_user(user_id)
        await user.send(content=payload.content, **payload_kwargs(payload))

    async def create_private_thread(
        self,
        channel_id: int,
        name: str,
        reason: Optional[str] = None,
    ) -> ChannelHandle:
        channel = await self._require(channel_id)
        thread = await channel.create_thread(
            name=name,
            type=discord.ChannelType.private_thread,
            auto_archive_duration=THREAD_AUTO_ARCHIVE,
            invitable=False,
            reason=reason,
        )
        return ChannelHandle(id=thread.id, name=thread.name, url=thread.jump_url)

    async def fetch_thread_messages(self, thread_id: int, limit: int) -> List[Dict[str, Any]]:
        thread = await self._require(thread_id)
        messages = [message async for message in thread.history(limit=limit, oldest_first=True)]
        return thread_messages_to_records(messages)

    # =========================================================================
    # Interactions
    # =========================================================================

    async def prompt_form(self, responder: Any, form: FormSpec, timeout: float) -> FormSubmission:
        modal = TicketFormModal(form, timeout)
        try:
            await responder.response.send_modal(modal)
        except discord.HTTPException as e:
            log_http_error(e, "Show Form", [("Form", form.custom_id)])
            return FormSubmission(SubmissionStatus.CANCELLED)

        await modal.wait()

        if modal.submission is not None:
            return FormSubmission(SubmissionStatus.SUBMITTED, dict(modal.values), modal.submission)
        if modal.mismatched:
            return FormSubmission(SubmissionStatus.CANCELLED)
        return FormSubmission(SubmissionStatus.TIMEOUT)

    async def defer(self, responder: Any) -> None:
        if responder is None or responder.response.is_done():
            return
        try:
            await responder.response.defer(ephemeral=True, thinking=True)
        except discord.HTTPException as e:
            log_http_error(e, "Defer Interaction")

    async def respond(
        self,
        responder: Any,
        content: str,
        payload: Optional[MessagePayload] = None,
    ) -> None:
        if responder is None:
            return
        kwargs = payload_kwargs(payload)
        try:
            if responder.response.is_done():
                await responder.followup.send(content=content, ephemeral=True, **kwargs)
            else:
                await responder.response.send_message(content=content, ephemeral=True, **kwargs)
        except discord.HTTPException as e:
            log_http_error(e, "Interaction Reply", [
                ("User", str(responder.user.id)),
            ])


__all__ = ["DiscordPlatform"]
