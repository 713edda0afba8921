"""Hook catalog: the immutable set of known callback signatures.

The catalog is built once from a ``RawCatalogConfig`` and never mutated. A
reload builds a new catalog. Live hooks (engine and plugin-provided) and
deprecated hooks are indexed separately by name.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple, Union

from .errors import ConfigParseError
from .signature import MethodSignature, parse_hook_string
from .type_compat import TypeCompatibility, normalize_type_name
from ..utils.logger import warn


@dataclass(frozen=True)
class Engine:
    """Hook raised by the game engine / framework itself."""

    def describe(self) -> str:
        return "engine"


@dataclass(frozen=True)
class PluginProvided:
    """Hook raised by another plugin."""
    plugin_name: str

    def describe(self) -> str:
        return f"plugin: {self.plugin_name}"


@dataclass(frozen=True)
class Unity:
    """Unity message (``Update``, ``Awake``...) delivered to MonoBehaviour components."""

    def describe(self) -> str:
        return "unity"


@dataclass(frozen=True)
class Deprecated:
    """Hook that still fires but has been superseded (or removed)."""
    replacement: Optional[MethodSignature] = None

    def describe(self) -> str:
        return "deprecated"

    @property
    def replacement_text(self) -> str:
        return self.replacement.render() if self.replacement else "no replacement"


SourceTag = Union[Engine, PluginProvided, Unity, Deprecated]


@dataclass(frozen=True)
class HookDescriptor:
    signature: MethodSignature
    source: SourceTag = field(default_factory=Engine)

    @property
    def name(self) -> str:
        return self.signature.name

    @property
    def is_deprecated(self) -> bool:
        return isinstance(self.source, Deprecated)

    @property
    def plugin_name(self) -> Optional[str]:
        return self.source.plugin_name if isinstance(self.source, PluginProvided) else None

    def render(self) -> str:
        """Signature text, suffixed with the providing plugin when there is one."""
        text = self.signature.render()
        if self.plugin_name:
            text = f"{text} (from plugin: {self.plugin_name})"
        return text


@dataclass(frozen=True)
class RawCatalogConfig:
    """Undecoded catalog inputs as read from configuration.

    Attributes:
        hooks: Engine hook signature strings
        plugin_hooks: (plugin_name, signature) pairs
        deprecated: (old_signature, new_signature_or_empty) pairs
        unity_hooks: Unity message signature strings
        version: Provider version the inputs came from
        warnings: Problems the provider hit while reading
    """
    hooks: Tuple[str, ...] = ()
    plugin_hooks: Tuple[Tuple[str, str], ...] = ()
    deprecated: Tuple[Tuple[str, str], ...] = ()
    unity_hooks: Tuple[str, ...] = ()
    version: Optional[str] = None
    warnings: Tuple[str, ...] = ()


def _dedup_key(signature: MethodSignature) -> Tuple[str, Tuple[str, ...]]:
    return signature.name, tuple(normalize_type_name(p.type.name) for p in signature.parameters)


def _index(descriptors) -> Mapping[str, Tuple[HookDescriptor, ...]]:
    """Group by name, keeping the first descriptor per dedup key."""
    index: Dict[str, List[HookDescriptor]] = {}
    seen = set()
    for descriptor in descriptors:
        key = _dedup_key(descriptor.signature)
        if key in seen:
            continue
        seen.add(key)
        index.setdefault(descriptor.name, []).append(descriptor)
    return MappingProxyType({name: tuple(bucket) for name, bucket in index.items()})


class HookCatalog:
    """Name-indexed, deduplicated hook descriptors.

    Within each index no two descriptors share a name and ordered parameter
    type list; the first one seen is kept. Unity messages live in their own
    index and only take part in lookups that ask for them, since they apply
    to MonoBehaviour components alone.
    """

    def __init__(self, descriptors=(), deprecated=(), warnings=(), version: Optional[str] = None,
                 unity=()):
        self._live = _index(descriptors)
        self._deprecated = _index(deprecated)
        self._unity = _index(unity)
        self.warnings: Tuple[str, ...] = tuple(warnings)
        self.version = version

    @classmethod
    def build(cls, raw: RawCatalogConfig, report: bool = True) -> "HookCatalog":
        """Parse raw configuration into a catalog.

        Malformed entries are skipped. Each skip is recorded in ``warnings``
        and, when ``report`` is set, printed as a tagged console warning.

        Args:
            raw: Configuration read by a catalog provider
            report: Print warnings as they are recorded

        Returns:
            New immutable HookCatalog
        """
        warnings: List[str] = list(raw.warnings)

        def record(message: str):
            warnings.append(message)
            if report:
                warn("HookCatalog", message)

        live: List[HookDescriptor] = []
        for text in raw.hooks:
            try:
                live.append(HookDescriptor(parse_hook_string(text), Engine()))
            except ConfigParseError as e:
                record(f"Skipping malformed hook {text!r}: {e.reason}")

        for plugin_name, text in raw.plugin_hooks:
            try:
                live.append(HookDescriptor(parse_hook_string(text), PluginProvided(plugin_name)))
            except ConfigParseError as e:
                record(f"Skipping malformed hook {text!r} from plugin {plugin_name}: {e.reason}")

        deprecated: List[HookDescriptor] = []
        for old_text, new_text in raw.deprecated:
            try:
                old_signature = parse_hook_string(old_text)
            except ConfigParseError as e:
                record(f"Skipping malformed deprecated hook {old_text!r}: {e.reason}")
                continue

            replacement = None
            if new_text and str(new_text).strip():
                try:
                    replacement = parse_hook_string(new_text)
                except ConfigParseError as e:
                    record(f"Replacement {new_text!r} for {old_signature.name} is malformed: {e.reason}")
            deprecated.append(HookDescriptor(old_signature, Deprecated(replacement)))

        unity: List[HookDescriptor] = []
        for text in raw.unity_hooks:
            try:
                unity.append(HookDescriptor(parse_hook_string(text), Unity()))
            except ConfigParseError as e:
                record(f"Skipping malformed Unity hook {text!r}: {e.reason}")

        return cls(live, deprecated, warnings, raw.version, unity=unity)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def lookup_by_name(self, name: str, include_deprecated: bool = False,
                       include_unity: bool = False) -> Tuple[HookDescriptor, ...]:
        """All descriptors with exactly this name.

        Args:
            name: Hook name (case-sensitive)
            include_deprecated: Append deprecated descriptors after live ones
            include_unity: Append Unity messages after live ones

        Returns:
            Tuple of descriptors in insertion order; empty when unknown
        """
        found = self._live.get(name, ())
        if include_unity:
            found = found + self._unity.get(name, ())
        if include_deprecated:
            found = found + self._deprecated.get(name, ())
        return found

    def matches(self, signature: MethodSignature,
                compat: Optional[TypeCompatibility] = None,
                require_parameter_names: bool = False,
                include_unity: bool = False) -> Tuple[HookDescriptor, ...]:
        """Live descriptors structurally matching a method signature.

        A descriptor matches when the arity is equal and every parameter type
        of the method is compatible with the catalogued type at the same
        position. Parameter names are ignored unless ``require_parameter_names``.
        Unity messages are candidates only with ``include_unity``.
        """
        compat = compat or TypeCompatibility()
        result = []
        for descriptor in self.lookup_by_name(signature.name, include_unity=include_unity):
            if self._structurally_matches(signature, descriptor.signature, compat, require_parameter_names):
                result.append(descriptor)
        return tuple(result)

    @staticmethod
    def _structurally_matches(candidate: MethodSignature, expected: MethodSignature,
                              compat: TypeCompatibility, require_parameter_names: bool) -> bool:
        if candidate.arity != expected.arity:
            return False
        for actual, wanted in zip(candidate.parameters, expected.parameters):
            if not compat.compatible(actual.type, wanted.type.name):
                return False
            if require_parameter_names and wanted.name and actual.name != wanted.name:
                return False
        return True

    def deprecated_for(self, name: str) -> Tuple[HookDescriptor, ...]:
        return self._deprecated.get(name, ())

    def is_known_name(self, name: str, include_unity: bool = False) -> bool:
        return name in self._live or (include_unity and name in self._unity)

    def live_descriptors(self, include_unity: bool = False) -> Tuple[HookDescriptor, ...]:
        found = tuple(d for bucket in self._live.values() for d in bucket)
        if include_unity:
            found = found + self.unity_descriptors()
        return found

    def unity_descriptors(self) -> Tuple[HookDescriptor, ...]:
        return tuple(d for bucket in self._unity.values() for d in bucket)

    def deprecated_descriptors(self) -> Tuple[HookDescriptor, ...]:
        return tuple(d for bucket in self._deprecated.values() for d in bucket)

    def names(self) -> Tuple[str, ...]:
        return tuple(self._live)

    def plugin_names(self) -> Tuple[str, ...]:
        plugins = []
        for descriptor in self.live_descriptors():
            if descriptor.plugin_name and descriptor.plugin_name not in plugins:
                plugins.append(descriptor.plugin_name)
        return tuple(plugins)

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._live.values())

    def __repr__(self) -> str:
        return (f"HookCatalog(hooks={len(self)}, unity={len(self.unity_descriptors())}, "
                f"deprecated={len(self.deprecated_descriptors())}, version={self.version!r})")
