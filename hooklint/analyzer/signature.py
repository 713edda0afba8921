"""Method signatures and the hook signature text grammar.

Hook catalogs describe callbacks as strings such as::

    OnPlayerConnected(BasePlayer player)
    object OnDispenserGather(ResourceDispenser dispenser, BasePlayer player, Item item)
    void OnEntityKill(BaseNetworkable entity, bool silent = false)

The optional leading token is the return type. Parameters are separated by
commas at generic depth zero, may omit the name, and become optional when a
default value follows ``=``.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .errors import ConfigParseError
from .type_ref import TypeRef


@dataclass(frozen=True)
class ParameterRef:
    """One ordered parameter of a method signature."""
    type: TypeRef
    name: str = ""
    optional: bool = False
    default: Optional[str] = None

    def render(self, with_name: bool = True) -> str:
        text = self.type.display
        if with_name and self.name:
            text = f"{text} {self.name}"
        if with_name and self.default is not None:
            text = f"{text} = {self.default}"
        return text


@dataclass(frozen=True)
class MethodSignature:
    """Name plus ordered parameter list; return type is informational only."""
    name: str
    parameters: Tuple[ParameterRef, ...] = field(default_factory=tuple)
    return_type: str = "void"

    @property
    def arity(self) -> int:
        return len(self.parameters)

    def render(self, with_names: bool = True, with_return: bool = False) -> str:
        """Render as ``Name(Type name, ...)``.

        Args:
            with_names: Include parameter names and defaults
            with_return: Prefix the return type when it is not ``void``

        Returns:
            Signature text in the catalog grammar
        """
        params = ", ".join(p.render(with_names) for p in self.parameters)
        text = f"{self.name}({params})"
        if with_return and self.return_type and self.return_type != "void":
            text = f"{self.return_type} {text}"
        return text

    def display_types(self) -> str:
        """Render as ``Name(Type1, Type2)`` without parameter names."""
        return self.render(with_names=False)

    def __str__(self) -> str:
        return self.render()


def split_top_level(text: str, separator: str = ",") -> List[str]:
    """Split on a separator that is not nested inside ``<>`` or ``[]``."""
    parts = []
    depth = 0
    current = []
    for ch in text:
        if ch in "<[":
            depth += 1
        elif ch in ">]":
            depth -= 1
        elif ch == separator and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    if current:
        parts.append("".join(current))
    return parts


def _split_return_type(text: str) -> Tuple[str, str]:
    # The return type ends at the first depth-0 space before the opening paren.
    depth = 0
    for index, ch in enumerate(text):
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
        elif ch == "(":
            break
        elif ch == " " and depth == 0:
            return text[:index].strip(), text[index + 1:].strip()
    return "void", text


def parse_parameter(text: str, source: str = "") -> ParameterRef:
    """Parse a single ``Type [name] [= default]`` parameter declaration.

    Raises:
        ConfigParseError: If the parameter has no type
    """
    default = None
    declaration = text
    if "=" in text:
        declaration, default = text.split("=", 1)
        default = default.strip()

    declaration = declaration.strip()
    for modifier in ("ref ", "out ", "in ", "params ", "this "):
        if declaration.startswith(modifier):
            declaration = declaration[len(modifier):].lstrip()

    if not declaration:
        raise ConfigParseError(source or text, "Empty parameter")

    # Split off a trailing identifier, keeping generic arguments intact.
    depth = 0
    split_at = -1
    for index, ch in enumerate(declaration):
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
        elif ch == " " and depth == 0:
            split_at = index

    if split_at > 0:
        type_name = declaration[:split_at].strip()
        name = declaration[split_at + 1:].strip()
    else:
        type_name, name = declaration, ""

    if not type_name:
        raise ConfigParseError(source or text, "Empty parameter")

    return ParameterRef(
        type=TypeRef.parse(type_name),
        name=name,
        optional=default is not None,
        default=default,
    )


def parse_hook_string(text: str) -> MethodSignature:
    """Parse one catalog signature string.

    Args:
        text: Signature text such as ``OnPlayerChat(BasePlayer player, string message)``

    Returns:
        Parsed MethodSignature with unresolved parameter types

    Raises:
        ConfigParseError: If the text is empty or malformed
    """
    if text is None or not str(text).strip():
        raise ConfigParseError(str(text), "Empty hook signature")

    text = str(text).strip()
    return_type, method_part = _split_return_type(text)

    open_paren = method_part.find("(")
    close_paren = method_part.rfind(")")
    if open_paren < 0 or close_paren < 0 or close_paren <= open_paren:
        raise ConfigParseError(text)
    if method_part[close_paren + 1:].strip():
        raise ConfigParseError(text, "Trailing text after parameter list")

    name = method_part[:open_paren].strip()
    if not name or not (name[0].isalpha() or name[0] == "_") or " " in name:
        raise ConfigParseError(text, "Invalid hook name")

    inner = method_part[open_paren + 1:close_paren]
    parameters = []
    if inner.strip():
        for chunk in split_top_level(inner):
            parameters.append(parse_parameter(chunk, text))

    return MethodSignature(name=name, parameters=tuple(parameters), return_type=return_type)
