"""Chat/console command conventions of the plugin framework."""
from typing import Iterable, Tuple

COMMAND_ATTRIBUTES = ("ChatCommand", "Command", "ConsoleCommand")
HOOK_METHOD_ATTRIBUTE = "HookMethod"
EXEMPT_ATTRIBUTES = COMMAND_ATTRIBUTES + (HOOK_METHOD_ATTRIBUTE,)

COMMAND_NAME_INDICATORS = ("command", "cmd")

# Canonical command handler shapes shown when an unused method looks like a command.
COMMAND_SHAPES: Tuple[str, ...] = (
    '[Command("name")]\nvoid CommandName(IPlayer player, string command, string[] args)',
    '[ChatCommand("name")]\nvoid CommandName(BasePlayer player, string command, string[] args)',
    '[ConsoleCommand("name")]\nvoid CommandName(ConsoleSystem.Arg args)',
)


def attribute_short_name(attribute: str) -> str:
    """``Oxide.Core.Plugins.ChatCommandAttribute`` -> ``ChatCommand``."""
    name = attribute.strip().lstrip("[").rstrip("]")
    name = name.split("(", 1)[0].rsplit(".", 1)[-1]
    if name.endswith("Attribute") and name != "Attribute":
        name = name[:-len("Attribute")]
    return name


def has_attribute(attributes: Iterable[str], wanted: Iterable[str]) -> bool:
    wanted = {w.lower() for w in wanted}
    return any(attribute_short_name(a).lower() in wanted for a in attributes)


def looks_like_command(name: str) -> bool:
    lowered = name.lower()
    return any(indicator in lowered for indicator in COMMAND_NAME_INDICATORS)
