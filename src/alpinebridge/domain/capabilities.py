"""AlpineBits capability negotiation (OTA_Ping handshake).

The client announces, per protocol version, the actions it implements and
optionally the sub-features ("supports") of each action. The server answers
with the intersection of that document and its own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .errors import ProtocolFormatError


@dataclass(frozen=True)
class ActionCapability:
    action: str
    supports: tuple[str, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"action": self.action}
        if self.supports is not None:
            result["supports"] = list(self.supports)
        return result


@dataclass(frozen=True)
class VersionCapability:
    version: str
    actions: tuple[ActionCapability, ...] = field(default_factory=tuple)

    def find_action(self, name: str) -> ActionCapability | None:
        for action in self.actions:
            if action.action == name:
                return action
        return None

    def to_dict(self) -> dict[str, Any]:
        return {"version": self.version, "actions": [a.to_dict() for a in self.actions]}


@dataclass(frozen=True)
class Capabilities:
    versions: tuple[VersionCapability, ...] = field(default_factory=tuple)

    def find_version(self, name: str) -> VersionCapability | None:
        for version in self.versions:
            if version.version == name:
                return version
        return None

    def to_dict(self) -> dict[str, Any]:
        return {"versions": [v.to_dict() for v in self.versions]}

    @classmethod
    def from_dict(cls, document: Any) -> Capabilities:
        """Build Capabilities from a decoded EchoData JSON document.

        Raises:
            ProtocolFormatError: If the document does not have the
                ``{versions: [{version, actions: [{action, supports?}]}]}`` shape.
        """
        if not isinstance(document, dict):
            raise ProtocolFormatError("capability document must be an object")

        raw_versions = document.get("versions", [])
        if not isinstance(raw_versions, list):
            raise ProtocolFormatError("versions must be a list")

        versions = []
        for raw_version in raw_versions:
            if not isinstance(raw_version, dict) or not isinstance(raw_version.get("version"), str):
                raise ProtocolFormatError("version entry must carry a version string")

            raw_actions = raw_version.get("actions") or []
            if not isinstance(raw_actions, list):
                raise ProtocolFormatError("actions must be a list")

            actions = []
            for raw_action in raw_actions:
                if not isinstance(raw_action, dict) or not isinstance(raw_action.get("action"), str):
                    raise ProtocolFormatError("action entry must carry an action string")
                supports = raw_action.get("supports")
                if supports is not None:
                    if not isinstance(supports, list) or not all(isinstance(s, str) for s in supports):
                        raise ProtocolFormatError("supports must be a list of strings")
                    supports = tuple(supports)
                actions.append(ActionCapability(action=raw_action["action"], supports=supports))

            versions.append(VersionCapability(version=raw_version["version"], actions=tuple(actions)))

        return cls(versions=tuple(versions))


# What this server implements. The handshake action (action_OTA_Ping) is
# implicit and must not be advertised.
SERVER_CAPABILITIES = Capabilities(
    versions=(
        VersionCapability(
            version="2024-10",
            actions=(
                ActionCapability(action="action_OTA_Read"),
                ActionCapability(action="action_OTA_NotifReport"),
            ),
        ),
    )
)


def _intersect_action(
    client_action: ActionCapability, server_action: ActionCapability
) -> ActionCapability | None:
    if client_action.supports is not None and server_action.supports is not None:
        common = tuple(
            dict.fromkeys(s for s in client_action.supports if s in server_action.supports)
        )
        if not common:
            return None
        return ActionCapability(action=client_action.action, supports=common)

    # Sub-features are only negotiated when both sides list them
    return ActionCapability(action=client_action.action)


def intersect_capabilities(
    client: Capabilities, server: Capabilities = SERVER_CAPABILITIES
) -> Capabilities:
    """Compute the capabilities both client and server support.

    Output follows the client's version and action order (first occurrence
    wins on duplicates). Versions and actions without overlap are dropped,
    never emitted empty.
    """
    versions: list[VersionCapability] = []
    seen_versions: set[str] = set()

    for client_version in client.versions:
        if client_version.version in seen_versions:
            continue
        seen_versions.add(client_version.version)

        server_version = server.find_version(client_version.version)
        if server_version is None:
            continue

        actions: list[ActionCapability] = []
        seen_actions: set[str] = set()
        for client_action in client_version.actions:
            if client_action.action in seen_actions:
                continue
            seen_actions.add(client_action.action)

            server_action = server_version.find_action(client_action.action)
            if server_action is None:
                continue

            common = _intersect_action(client_action, server_action)
            if common is not None:
                actions.append(common)

        if actions:
            versions.append(VersionCapability(version=client_version.version, actions=tuple(actions)))

    return Capabilities(versions=tuple(versions))
