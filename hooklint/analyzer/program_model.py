"""Program model: the compiled view of a plugin project the engine queries.

The engine never parses source. It works against the ``ProgramModel``
interface: type hierarchy queries plus a list of syntax units holding the
resolved call, member-access and identifier sites. ``SnapshotProgram`` is the
shipped adapter, built from a JSON snapshot exported by a compiler front end.
"""
import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

import networkx as nx

from .errors import SnapshotError, SymbolResolutionError
from .signature import MethodSignature, ParameterRef
from .type_ref import TypeRef


class MemberKind(Enum):
    """What a resolved symbol reference points at."""
    METHOD = "method"
    PROPERTY = "property"
    FIELD = "field"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Optional[str]) -> "MemberKind":
        try:
            return cls((value or "other").lower())
        except ValueError:
            return cls.OTHER


class MethodKind(Enum):
    ORDINARY = "ordinary"
    CONSTRUCTOR = "constructor"
    ACCESSOR = "accessor"
    OPERATOR = "operator"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Optional[str]) -> "MethodKind":
        try:
            return cls((value or "ordinary").lower())
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True)
class Location:
    file: str
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


@dataclass(frozen=True)
class MethodSymbol:
    """A method declared in the analyzed program."""
    id: str
    name: str
    owner: str
    parameters: Tuple[ParameterRef, ...] = field(default_factory=tuple)
    return_type: str = "void"
    kind: MethodKind = MethodKind.ORDINARY
    is_override: bool = False
    is_virtual: bool = False
    is_extension: bool = False
    is_static: bool = False
    attributes: Tuple[str, ...] = field(default_factory=tuple)
    original_id: Optional[str] = None
    location: Optional[Location] = None

    @property
    def signature(self) -> MethodSignature:
        return MethodSignature(self.name, self.parameters, self.return_type)

    @property
    def definition_id(self) -> str:
        """Id of the unconstructed generic definition (or the id itself)."""
        return self.original_id or self.id


@dataclass(frozen=True)
class SymbolRef:
    """A resolved reference to a program symbol."""
    id: str
    kind: MemberKind = MemberKind.METHOD
    original_id: Optional[str] = None

    def refers_to(self, method: MethodSymbol) -> bool:
        if self.kind is not MemberKind.METHOD:
            return False
        own = {self.id, self.original_id} - {None}
        return method.id in own or method.definition_id in own


@dataclass(frozen=True)
class ConstantArgument:
    value: object


@dataclass(frozen=True)
class LambdaArgument:
    parameter_count: int
    body_target: Optional[SymbolRef] = None


@dataclass(frozen=True)
class SymbolArgument:
    target: Optional[SymbolRef]


@dataclass(frozen=True)
class OtherArgument:
    text: str = ""


Argument = Union[ConstantArgument, LambdaArgument, SymbolArgument, OtherArgument]


@dataclass(frozen=True)
class CallSite:
    callee_name: str
    target: Optional[SymbolRef] = None
    arguments: Tuple[Argument, ...] = field(default_factory=tuple)
    line: int = 0


@dataclass(frozen=True)
class MemberAccessSite:
    target: Optional[SymbolRef]
    line: int = 0


@dataclass(frozen=True)
class IdentifierSite:
    target: Optional[SymbolRef]
    line: int = 0


Site = Union[CallSite, MemberAccessSite, IdentifierSite]


@dataclass(frozen=True)
class RegionDirective:
    """A ``#region label`` (opening) or ``#endregion`` line."""
    line: int
    opening: bool
    label: str = ""


@dataclass(frozen=True)
class SyntaxUnit:
    """One source file worth of resolved sites."""
    path: str
    sites: Tuple[Site, ...] = field(default_factory=tuple)
    regions: Tuple[RegionDirective, ...] = field(default_factory=tuple)


class ProgramModel:
    """Queries the engine needs from a compiled program.

    Adapters subclass this and implement every method. Hierarchy queries
    return empty tuples for types the adapter knows nothing about; symbol
    lookups raise SymbolResolutionError.
    """

    def base_chain(self, type_ref: TypeRef) -> Tuple[TypeRef, ...]:
        """Ordered base types, nearest first, excluding the type itself."""
        raise NotImplementedError

    def interfaces(self, type_ref: TypeRef) -> Tuple[TypeRef, ...]:
        """All interfaces the type implements, inherited ones included."""
        raise NotImplementedError

    def find_type(self, name: str) -> Optional[TypeRef]:
        raise NotImplementedError

    def methods(self) -> Tuple[MethodSymbol, ...]:
        raise NotImplementedError

    def methods_of(self, type_name: str) -> Tuple[MethodSymbol, ...]:
        raise NotImplementedError

    def method(self, method_id: str) -> MethodSymbol:
        raise NotImplementedError

    def units(self) -> Tuple[SyntaxUnit, ...]:
        raise NotImplementedError

    def unit_for(self, path: str) -> Optional[SyntaxUnit]:
        for unit in self.units():
            if unit.path == path:
                return unit
        return None


def simple_type_name(name: str) -> str:
    # Namespace qualifier ends at the last '.' outside generic brackets.
    depth = 0
    cut = -1
    for index, ch in enumerate(name):
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
        elif ch == "." and depth == 0:
            cut = index
    return name[cut + 1:] if cut >= 0 else name


class SnapshotProgram(ProgramModel):
    """In-memory program model.

    The type hierarchy lives in a ``networkx.DiGraph`` whose nodes are simple
    type names. Edges point from a type to its base class (``relation`` =
    ``"inherits"``) or to an implemented interface (``"implements"``).
    """

    def __init__(self):
        self.graph = nx.DiGraph()
        self._types: Dict[str, TypeRef] = {}
        self._methods: Dict[str, MethodSymbol] = {}
        self._methods_by_owner: Dict[str, List[MethodSymbol]] = {}
        self._units: List[SyntaxUnit] = []

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_type(self, name: str, base: Optional[str] = None,
                 interfaces: Iterable[str] = (), full_name: Optional[str] = None,
                 is_interface: bool = False) -> TypeRef:
        """Register a type and its direct supertypes.

        Args:
            name: Type name, simple or namespace-qualified
            base: Direct base class name, if any
            interfaces: Directly implemented (or extended) interfaces
            full_name: Fully qualified name when known
            is_interface: Whether the type itself is an interface

        Returns:
            TypeRef for the registered type
        """
        simple = simple_type_name(name)
        if full_name is None and simple != name:
            full_name = name
        ref = TypeRef(name=simple, full_name=full_name or simple)
        self._types[simple] = ref
        self.graph.add_node(simple, full_name=ref.full_name, is_interface=is_interface)

        if base:
            self._ensure_node(base)
            self.graph.add_edge(simple, simple_type_name(base), relation="inherits")
        for iface in interfaces:
            self._ensure_node(iface, is_interface=True)
            self.graph.add_edge(simple, simple_type_name(iface), relation="implements")
        return ref

    def _ensure_node(self, name: str, is_interface: bool = False):
        simple = simple_type_name(name)
        if simple not in self.graph:
            self.graph.add_node(simple, full_name=name, is_interface=is_interface)

    def add_method(self, method: MethodSymbol):
        self._methods[method.id] = method
        self._methods_by_owner.setdefault(simple_type_name(method.owner), []).append(method)

    def add_unit(self, unit: SyntaxUnit):
        self._units.append(unit)

    # ------------------------------------------------------------------
    # ProgramModel
    # ------------------------------------------------------------------

    def _node_for(self, type_ref: TypeRef) -> Optional[str]:
        for candidate in (type_ref.name, simple_type_name(type_ref.name),
                          simple_type_name(type_ref.full_name or "")):
            if candidate and candidate in self.graph:
                return candidate
        return None

    def _ref(self, node: str) -> TypeRef:
        known = self._types.get(node)
        if known is not None:
            return known
        return TypeRef(name=node, full_name=self.graph.nodes[node].get("full_name", node))

    def base_chain(self, type_ref: TypeRef) -> Tuple[TypeRef, ...]:
        node = self._node_for(type_ref)
        chain = []
        seen = set()
        while node is not None and node not in seen:
            seen.add(node)
            parent = None
            for _, target, data in self.graph.out_edges(node, data=True):
                if data.get("relation") == "inherits":
                    parent = target
                    break
            if parent is None or parent in seen:
                break
            chain.append(self._ref(parent))
            node = parent
        return tuple(chain)

    def interfaces(self, type_ref: TypeRef) -> Tuple[TypeRef, ...]:
        node = self._node_for(type_ref)
        if node is None:
            return ()
        found = []
        # Interfaces reachable through base classes count as implemented.
        for source, target in nx.edge_dfs(self.graph, node):
            edge = self.graph.edges[source, target]
            is_iface = edge.get("relation") == "implements" or self.graph.nodes[target].get("is_interface")
            if is_iface and target not in found:
                found.append(target)
        return tuple(self._ref(name) for name in found)

    def find_type(self, name: str) -> Optional[TypeRef]:
        simple = simple_type_name(name)
        if simple in self.graph:
            return self._ref(simple)
        return None

    def methods(self) -> Tuple[MethodSymbol, ...]:
        return tuple(self._methods.values())

    def methods_of(self, type_name: str) -> Tuple[MethodSymbol, ...]:
        return tuple(self._methods_by_owner.get(simple_type_name(type_name), ()))

    def method(self, method_id: str) -> MethodSymbol:
        try:
            return self._methods[method_id]
        except KeyError:
            raise SymbolResolutionError(f"Unknown method symbol: {method_id}") from None

    def units(self) -> Tuple[SyntaxUnit, ...]:
        return tuple(self._units)


# ----------------------------------------------------------------------
# Snapshot loading
# ----------------------------------------------------------------------

def _symbol_ref(data) -> Optional[SymbolRef]:
    if data is None:
        return None
    if isinstance(data, str):
        return SymbolRef(id=data)
    return SymbolRef(
        id=data["id"],
        kind=MemberKind.parse(data.get("kind")),
        original_id=data.get("originalId"),
    )


def _argument(data) -> Argument:
    kind = data.get("kind", "other")
    if kind == "constant":
        return ConstantArgument(data.get("value"))
    if kind == "lambda":
        return LambdaArgument(
            parameter_count=int(data.get("parameterCount", 0)),
            body_target=_symbol_ref(data.get("body")),
        )
    if kind == "symbol":
        return SymbolArgument(_symbol_ref(data.get("target")))
    return OtherArgument(str(data.get("text", "")))


def _site(data) -> Site:
    kind = data.get("kind")
    line = int(data.get("line", 0))
    target = _symbol_ref(data.get("target"))
    if kind == "call":
        return CallSite(
            callee_name=data.get("callee", ""),
            target=target,
            arguments=tuple(_argument(a) for a in data.get("arguments", [])),
            line=line,
        )
    if kind == "member":
        return MemberAccessSite(target=target, line=line)
    if kind == "identifier":
        return IdentifierSite(target=target, line=line)
    raise SnapshotError(f"Unknown site kind: {kind!r}")


def _parameter(data) -> ParameterRef:
    type_ref = TypeRef.parse(data["type"], full_name=data.get("fullName"))
    default = data.get("default")
    return ParameterRef(
        type=type_ref,
        name=data.get("name", ""),
        optional=default is not None or bool(data.get("optional", False)),
        default=default,
    )


def _method(data) -> MethodSymbol:
    location = data.get("location")
    return MethodSymbol(
        id=data["id"],
        name=data["name"],
        owner=simple_type_name(data["owner"]),
        parameters=tuple(_parameter(p) for p in data.get("parameters", [])),
        return_type=data.get("returnType", "void"),
        kind=MethodKind.parse(data.get("kind")),
        is_override=bool(data.get("isOverride", False)),
        is_virtual=bool(data.get("isVirtual", False)),
        is_extension=bool(data.get("isExtension", False)),
        is_static=bool(data.get("isStatic", False)),
        attributes=tuple(data.get("attributes", [])),
        original_id=data.get("originalId"),
        location=Location(
            file=location.get("file", ""),
            line=int(location.get("line", 0)),
            column=int(location.get("column", 0)),
        ) if location else None,
    )


def _region(data) -> RegionDirective:
    directive = data.get("directive", "region")
    return RegionDirective(
        line=int(data.get("line", 0)),
        opening=directive == "region",
        label=data.get("label", ""),
    )


def program_from_dict(data: dict) -> SnapshotProgram:
    """Build a SnapshotProgram from already-decoded snapshot JSON.

    Raises:
        SnapshotError: If a required key is missing or a value is malformed
    """
    program = SnapshotProgram()
    try:
        for entry in data.get("types", []):
            program.add_type(
                entry["name"],
                base=entry.get("base"),
                interfaces=entry.get("interfaces", []),
                full_name=entry.get("fullName"),
                is_interface=entry.get("kind") == "interface",
            )
        for entry in data.get("methods", []):
            program.add_method(_method(entry))
        for entry in data.get("units", []):
            program.add_unit(SyntaxUnit(
                path=entry.get("path", ""),
                sites=tuple(_site(s) for s in entry.get("sites", [])),
                regions=tuple(_region(r) for r in entry.get("regions", [])),
            ))
    except SnapshotError:
        raise
    except (KeyError, TypeError, AttributeError, ValueError) as e:
        raise SnapshotError(f"Malformed program snapshot: {e}") from e
    return program


def load_snapshot(path: Union[str, Path]) -> SnapshotProgram:
    """Load a program snapshot from a JSON file.

    Args:
        path: Path to the snapshot file

    Returns:
        SnapshotProgram ready for analysis

    Raises:
        SnapshotError: If the file cannot be read or decoded
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise SnapshotError(f"Cannot read snapshot {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise SnapshotError(f"Error decoding JSON in {path.name}: {e}") from e

    if not isinstance(data, dict):
        raise SnapshotError(f"Snapshot {path.name} is malformed (expected dict, got {type(data).__name__})")
    return program_from_dict(data)
