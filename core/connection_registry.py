"""Connection registry: which channel belongs to which broadcast group."""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Set
import asyncio
import logging

logger = logging.getLogger(__name__)

BOSS_GROUP = "boss"
DEFAULT_SEND_TIMEOUT = 5.0


def employee_group(employee_id: str) -> str:
    return f"employee-{employee_id}"


class Channel(Protocol):
    """Anything that can push a JSON message to one client."""

    async def send_json(self, data: Any) -> None:
        ...


@dataclass(frozen=True)
class Outbound:
    """
    One message the router wants delivered.

    Exactly one addressing mode is used: ``everyone``, a ``group`` name,
    or a single ``channel``.
    """
    event: str
    data: Any = None
    group: Optional[str] = None
    channel: Any = None
    everyone: bool = False

    def envelope(self) -> dict:
        return {"type": self.event, "data": self.data}


def to_everyone(event: str, data: Any = None) -> Outbound:
    return Outbound(event=event, data=data, everyone=True)


def to_group(group: str, event: str, data: Any = None) -> Outbound:
    return Outbound(event=event, data=data, group=group)


def to_channel(channel: Channel, event: str, data: Any = None) -> Outbound:
    return Outbound(event=event, data=data, channel=channel)


class ConnectionRegistry:
    """
    Tracks connected channels and their group membership.

    A channel belongs to at most one group at a time. A group can hold
    several channels (reconnects, several open tabs) and addressed sends
    fan out to all of them. Only the coordinator mutates the registry,
    so no lock is needed.

    Each send is bounded by ``send_timeout`` seconds. A channel that does
    not accept a message in time is treated like a failed one and dropped,
    so one stalled client cannot hold up the coordinator.
    """

    def __init__(self, send_timeout: Optional[float] = DEFAULT_SEND_TIMEOUT):
        self.send_timeout = send_timeout
        # Map of group name to the channels subscribed to it
        self.groups: Dict[str, Set[Channel]] = {}
        # Map of every connected channel to its group (None until it joins)
        self.memberships: Dict[Channel, Optional[str]] = {}

    def connect(self, channel: Channel) -> None:
        """Register a channel that has not joined any group yet."""
        self.memberships.setdefault(channel, None)

    def subscribe(self, channel: Channel, group: str) -> None:
        """Put a channel into a group, leaving its previous group if any."""
        previous = self.memberships.get(channel)
        if previous == group:
            return
        if previous is not None:
            self._leave(channel, previous)

        self.memberships[channel] = group
        self.groups.setdefault(group, set()).add(channel)
        logger.debug(f"Channel {channel} joined group {group}")

    def disconnect(self, channel: Channel) -> Optional[str]:
        """Forget a channel. Returns the group it belonged to."""
        group = self.memberships.pop(channel, None)
        if group is not None:
            self._leave(channel, group)
        return group

    def _leave(self, channel: Channel, group: str) -> None:
        members = self.groups.get(group)
        if not members:
            return
        members.discard(channel)
        if not members:
            self.groups.pop(group, None)

    def group_of(self, channel: Channel) -> Optional[str]:
        return self.memberships.get(channel)

    def members(self, group: str) -> List[Channel]:
        return list(self.groups.get(group, set()))

    def channels(self) -> List[Channel]:
        return list(self.memberships)

    def connection_count(self) -> int:
        return len(self.memberships)

    def group_count(self) -> int:
        return len(self.groups)

    def resolve(self, outbound: Outbound) -> List[Channel]:
        """Turn an Outbound address into the list of live channels."""
        if outbound.everyone:
            return self.channels()
        if outbound.group is not None:
            return self.members(outbound.group)
        if outbound.channel is not None and outbound.channel in self.memberships:
            return [outbound.channel]
        return []

    async def deliver(self, outbound: Outbound) -> int:
        """
        Send one outbound message to every channel it addresses.

        Channels that fail to receive are dropped from the registry.
        Returns the number of successful sends.
        """
        message = outbound.envelope()
        disconnected = []
        sent = 0

        for channel in self.resolve(outbound):
            try:
                await asyncio.wait_for(channel.send_json(message), timeout=self.send_timeout)
                sent += 1
            except Exception as e:
                logger.warning(f"Failed to send {outbound.event} to {channel}: {e}")
                disconnected.append(channel)

        # Clean up dead channels
        for channel in disconnected:
            self.disconnect(channel)

        return sent
