"""Checks on methods that carry a live hook name.

These complement the classifier: a method named like a hook but with the
wrong parameters is EXEMPT there and reported here instead.
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

from .hook_catalog import HookDescriptor
from .program_model import MethodKind, MethodSymbol


class HookProblem(Enum):
    INCOMPLETE = "incomplete"
    STATIC = "static"


@dataclass(frozen=True)
class HookCheckResult:
    problem: HookProblem
    method: MethodSymbol
    expected: Tuple[HookDescriptor, ...] = ()

    @property
    def expected_text(self) -> str:
        return " or ".join(d.signature.render() for d in self.expected)


def check_method(method: MethodSymbol, session) -> List[HookCheckResult]:
    """Run the hook-shape checks for one method.

    Args:
        method: Method to inspect
        session: AnalysisSession providing catalog, compatibility and options

    Returns:
        Problems found; empty for methods that do not use a live hook name
    """
    catalog = session.catalog
    unity = session.is_unity_class(method.owner)
    if method.kind is not MethodKind.ORDINARY or not catalog.is_known_name(method.name, include_unity=unity):
        return []
    if session.options.plugin_base_types and not session.is_plugin_class(method.owner):
        return []

    if method.is_static:
        return [HookCheckResult(HookProblem.STATIC, method)]

    matches = catalog.matches(method.signature, session.compat, session.options.require_parameter_names,
                              include_unity=unity)
    if not matches:
        expected = catalog.lookup_by_name(method.name, include_unity=unity)
        return [HookCheckResult(HookProblem.INCOMPLETE, method, expected)]
    return []


def check_all(methods, session) -> List[HookCheckResult]:
    results = []
    for method in methods:
        results.extend(check_method(method, session))
    return results
