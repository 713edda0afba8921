"""Classification of plugin methods against the hook catalog.

Each method gets exactly one outcome, decided by the first rule that fires:

    EXEMPT                   constructors, accessors, command/API attributes,
                             non-plugin classes, hook names with wrong parameters
    VALID_HOOK               structurally matches a live catalogued hook
    DEPRECATED               name of a deprecated hook
    USED / NOT_EVALUATED     reachability evidence (or a cancelled scan)
    UNUSED_API               inside ``#region API``
    UNUSED_COMMAND           name looks like a command handler
    UNUSED_WITH_SUGGESTIONS  similar hook names exist
    UNUSED_PLAIN             nothing else applies
"""
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from .commands import COMMAND_SHAPES, EXEMPT_ATTRIBUTES, has_attribute, looks_like_command
from .hook_catalog import HookCatalog, HookDescriptor
from .program_model import MethodKind, MethodSymbol, ProgramModel
from .reachability import ReachabilityScanner, UsageEvidence, UsageStatus
from .regions import in_api_region
from .similarity import SimilarityRanker
from .type_compat import TypeCompatibility, normalize_type_name
from .type_ref import TypeRef


DEFAULT_PLUGIN_BASE_TYPES = (
    "Oxide.Core.Plugins.Plugin",
    "Oxide.Plugins.RustPlugin",
    "Oxide.Plugins.CovalencePlugin",
    "UnityEngine.MonoBehaviour",
)

UNITY_BASE_TYPE = "UnityEngine.MonoBehaviour"


class Outcome(Enum):
    EXEMPT = "exempt"
    VALID_HOOK = "valid hook"
    DEPRECATED = "deprecated"
    USED = "used"
    NOT_EVALUATED = "not evaluated"
    UNUSED_API = "unused api"
    UNUSED_COMMAND = "unused command"
    UNUSED_WITH_SUGGESTIONS = "unused with suggestions"
    UNUSED_PLAIN = "unused"

    @property
    def is_unused(self) -> bool:
        return self.name.startswith("UNUSED")


@dataclass(frozen=True)
class Classification:
    """Outcome for one method plus the inputs its diagnostic needs."""
    outcome: Outcome
    method: MethodSymbol
    reason: str = ""
    hooks: Tuple[HookDescriptor, ...] = ()
    replacement: Optional[str] = None
    suggestions: Tuple[str, ...] = ()
    evidence: Optional[UsageEvidence] = None
    command_shapes: Tuple[str, ...] = ()

    @property
    def is_finding(self) -> bool:
        return self.outcome.is_unused or self.outcome is Outcome.DEPRECATED


@dataclass(frozen=True)
class PolicyOptions:
    """Tunables for classification.

    Attributes:
        max_suggestions: Cap on "did you mean" suggestions
        plugin_base_types: When non-empty, only methods of classes deriving
            from one of these types are evaluated; others are EXEMPT
        require_parameter_names: Also require catalogued parameter names to match
    """
    max_suggestions: int = 3
    plugin_base_types: Tuple[str, ...] = ()
    require_parameter_names: bool = False


def _replacement_text(descriptor: HookDescriptor) -> Optional[str]:
    replacement = descriptor.source.replacement
    return replacement.render() if replacement else None


class ClassificationPolicy:
    """Stateless rule chain; all context comes from the session."""

    def classify(self, method: MethodSymbol, session: "AnalysisSession", cancel=None) -> Classification:
        catalog = session.catalog

        if method.kind is not MethodKind.ORDINARY:
            return Classification(Outcome.EXEMPT, method, reason=f"{method.kind.value} method")
        if has_attribute(method.attributes, EXEMPT_ATTRIBUTES):
            return Classification(Outcome.EXEMPT, method, reason="exempt attribute")
        if session.options.plugin_base_types and not session.is_plugin_class(method.owner):
            return Classification(Outcome.EXEMPT, method, reason="not a plugin class")

        unity = session.is_unity_class(method.owner)
        matches = catalog.matches(method.signature, session.compat, session.options.require_parameter_names,
                                  include_unity=unity)
        if not matches and catalog.is_known_name(method.name, include_unity=unity):
            return Classification(
                Outcome.EXEMPT, method,
                reason="hook name with mismatched parameters",
                hooks=catalog.lookup_by_name(method.name, include_unity=unity),
            )

        if matches:
            return Classification(Outcome.VALID_HOOK, method, hooks=matches)

        deprecated = catalog.deprecated_for(method.name)
        if deprecated:
            return Classification(
                Outcome.DEPRECATED, method,
                hooks=deprecated,
                replacement=_replacement_text(deprecated[0]),
            )

        try:
            result = session.scanner.scan(method, TypeRef(method.owner), session.program, cancel)
        except LookupError:
            result = None
        if result is not None:
            if result.status is UsageStatus.USED:
                return Classification(Outcome.USED, method, evidence=result.evidence)
            if result.status is UsageStatus.UNKNOWN:
                return Classification(Outcome.NOT_EVALUATED, method, reason="scan cancelled")

        if self._in_api_region(method, session.program):
            return Classification(Outcome.UNUSED_API, method)

        if looks_like_command(method.name):
            return Classification(Outcome.UNUSED_COMMAND, method, command_shapes=COMMAND_SHAPES)

        suggestions = session.suggest(method.name, include_unity=unity)
        if suggestions:
            return Classification(
                Outcome.UNUSED_WITH_SUGGESTIONS, method,
                hooks=tuple(m.candidate for m in suggestions),
                suggestions=tuple(m.rendered for m in suggestions),
            )

        return Classification(Outcome.UNUSED_PLAIN, method)

    @staticmethod
    def _in_api_region(method: MethodSymbol, program: ProgramModel) -> bool:
        try:
            return in_api_region(method, program)
        except LookupError:
            return False


@dataclass(frozen=True)
class AnalysisSession:
    """Everything one analysis run needs, passed explicitly to every call.

    The catalog and the program model are shared read-only by all workers.
    """
    catalog: HookCatalog
    program: ProgramModel
    options: PolicyOptions = field(default_factory=PolicyOptions)
    compat: Optional[TypeCompatibility] = None
    scanner: ReachabilityScanner = field(default_factory=ReachabilityScanner)
    ranker: SimilarityRanker = field(default_factory=SimilarityRanker)
    policy: ClassificationPolicy = field(default_factory=ClassificationPolicy)

    def __post_init__(self):
        if self.compat is None:
            object.__setattr__(self, "compat", TypeCompatibility(self.program))

    def _derives_from(self, type_name: str, base_types: Iterable[str]) -> bool:
        bases = {normalize_type_name(b) for b in base_types}
        if normalize_type_name(type_name) in bases:
            return True
        try:
            chain = self.program.base_chain(TypeRef(type_name))
        except LookupError:
            return False
        return any(normalize_type_name(t.full_name or t.name) in bases
                   or normalize_type_name(t.name) in bases for t in chain)

    def is_plugin_class(self, type_name: str) -> bool:
        """Whether ``type_name`` is, or derives from, a configured plugin base."""
        return self._derives_from(type_name, self.options.plugin_base_types)

    def is_unity_class(self, type_name: str) -> bool:
        """Whether ``type_name`` derives from MonoBehaviour and so receives Unity messages."""
        return self._derives_from(type_name, (UNITY_BASE_TYPE,))

    def suggest(self, name: str, max_results: Optional[int] = None, include_unity: bool = False):
        """Rank live hooks by name similarity; returns SimilarityMatch list."""
        if max_results is None:
            max_results = self.options.max_suggestions
        candidates = [(d.name, d) for d in self.catalog.live_descriptors(include_unity)]
        return self.ranker.rank(name, candidates, max_results, render=HookDescriptor.render)

    def classify(self, method: MethodSymbol, cancel=None) -> Classification:
        return self.policy.classify(method, self, cancel)

    def classify_all(self, methods: Optional[Iterable[MethodSymbol]] = None,
                     jobs: int = 1, cancel=None) -> List[Classification]:
        """Classify many methods, optionally on a thread pool.

        Args:
            methods: Methods to classify; defaults to every method in the program
            jobs: Worker threads (1 runs inline)
            cancel: Optional ``threading.Event`` shared by all scans

        Returns:
            Classifications in input order
        """
        methods = list(self.program.methods() if methods is None else methods)
        if jobs <= 1 or len(methods) <= 1:
            return [self.classify(m, cancel) for m in methods]

        with ThreadPoolExecutor(max_workers=jobs) as pool:
            return list(pool.map(lambda m: self.classify(m, cancel), methods))
