"""
Ticketeer - Channel Provisioning
================================

Creates the private conversation channel for a new ticket.
"""

from typing import TYPE_CHECKING, List, Sequence

from src.core.database.models import CategoryRecord
from src.core.logger import logger

from .models import VIEW_CHANNEL, AccessRule, Requester
from .results import ErrorKind, TicketResult

if TYPE_CHECKING:
    from .service import TicketService


def build_ticket_overwrites(category_rules: Sequence[AccessRule], requester_id: int) -> List[AccessRule]:
    """
    Clone a category's access rules and grant the requester View Channel.

    An existing rule for the requester is merged rather than duplicated,
    keeping its other permissions.
    """
    rules = [rule for rule in category_rules
             if not (rule.target_type == "member" and rule.target_id == requester_id)]
    existing = next(
        (rule for rule in category_rules
         if rule.target_type == "member" and rule.target_id == requester_id),
        None,
    )

    allow = (existing.allow if existing else 0) | VIEW_CHANNEL
    deny = (existing.deny if existing else 0) & ~VIEW_CHANNEL
    rules.append(AccessRule(target_id=requester_id, target_type="member", allow=allow, deny=deny))
    return rules


class ProvisioningMixin:
    """Mixin for ticket channel creation."""

    async def _provision_channel(
        self: "TicketService",
        category: CategoryRecord,
        requester: Requester,
    ) -> TicketResult:
        """
        Create the ticket channel under the category's Discord category.

        Returns:
            OK(ChannelHandle) or FAILED(PROVISIONING_FAILED). Nothing is
            created unless the target category resolves.
        """
        try:
            target = await self.platform.fetch_category(category["category_id"])
        except Exception as e:
            logger.error("Ticket Category Lookup Failed", [
                ("Category", f"{category['name']} ({category['id']})"),
                ("Target", str(category["category_id"])),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])
            return TicketResult.failed(ErrorKind.PROVISIONING_FAILED, str(e))

        if target is None:
            logger.error("Ticket Category Channel Missing", [
                ("Category", f"{category['name']} ({category['id']})"),
                ("Target", str(category["category_id"])),
            ])
            return TicketResult.failed(
                ErrorKind.PROVISIONING_FAILED,
                f"category channel {category['category_id']} not found",
            )

        overwrites = build_ticket_overwrites(target.overwrites, requester.id)
        try:
            channel = await self.platform.create_text_channel(
                target,
                requester.username,
                overwrites,
                reason=f"Ticket opened by {requester.username} under category: {category['name']}",
            )
        except Exception as e:
            logger.error("Ticket Channel Creation Failed", [
                ("Category", category["name"]),
                ("User", f"{requester.username} ({requester.id})"),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])
            return TicketResult.failed(ErrorKind.PROVISIONING_FAILED, str(e))

        logger.tree("Ticket Channel Created", [
            ("Channel", f"#{channel.name} ({channel.id})"),
            ("Category", target.name),
            ("Overwrites", str(len(overwrites))),
        ], emoji="📁")
        return TicketResult.ok(channel)


__all__ = ["build_ticket_overwrites", "ProvisioningMixin"]
