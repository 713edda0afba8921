"""Reachability: is a method referenced anywhere in the program?

The scan is read-only over the program model and keeps no state between
calls, so one scanner can serve many worker threads.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from .program_model import (
    CallSite,
    ConstantArgument,
    IdentifierSite,
    LambdaArgument,
    MemberAccessSite,
    MethodSymbol,
    ProgramModel,
    SymbolArgument,
    SyntaxUnit,
)
from .type_ref import TypeRef


# Framework calls that register a callback, and the index of the callback argument
REGISTRATION_CALLS: Dict[str, int] = {
    "AddChatCommand": 2,
    "AddConsoleCommand": 2,
    "AddCovalenceCommand": 1,
}


class UsageEvidence(Enum):
    DIRECT_CALL = "direct call"
    MEMBER_REFERENCE = "member reference"
    IDENTIFIER_REFERENCE = "identifier reference"
    REGISTERED_BY_CONSTANT_NAME = "registered by name"
    REGISTERED_BY_DELEGATE = "registered by delegate"
    REGISTERED_BY_DIRECT_SYMBOL = "registered by method group"
    OVERRIDE = "override"
    EXTENSION_METHOD = "extension method"


class UsageStatus(Enum):
    USED = "used"
    UNUSED = "unused"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ScanResult:
    status: UsageStatus
    evidence: Optional[UsageEvidence] = None
    path: Optional[str] = None
    line: int = 0

    @property
    def used(self) -> Optional[bool]:
        """True / False, or None when the scan was cancelled."""
        if self.status is UsageStatus.UNKNOWN:
            return None
        return self.status is UsageStatus.USED


UNUSED = ScanResult(UsageStatus.UNUSED)
NOT_EVALUATED = ScanResult(UsageStatus.UNKNOWN)


class ReachabilityScanner:
    """Finds usage evidence for a method across all syntax units."""

    def __init__(self, registration_calls: Optional[Dict[str, int]] = None):
        self.registration_calls = dict(registration_calls or REGISTRATION_CALLS)

    def is_used(self, method: MethodSymbol, owning_type: Optional[TypeRef],
                program: ProgramModel, cancel=None) -> Optional[bool]:
        return self.scan(method, owning_type, program, cancel).used

    def scan(self, method: MethodSymbol, owning_type: Optional[TypeRef],
             program: ProgramModel, cancel=None) -> ScanResult:
        """Look for the first piece of usage evidence.

        Args:
            method: Method under inspection
            owning_type: Type declaring the method; defaults to ``method.owner``
            program: Program model to search
            cancel: Optional ``threading.Event`` (anything with ``is_set()``),
                checked between syntax units

        Returns:
            ScanResult with status USED, UNUSED, or UNKNOWN when cancelled
        """
        if method.is_override:
            return ScanResult(UsageStatus.USED, UsageEvidence.OVERRIDE)
        if method.is_extension:
            return ScanResult(UsageStatus.USED, UsageEvidence.EXTENSION_METHOD)

        if owning_type is None:
            owning_type = TypeRef(method.owner)
        try:
            if self._overrides_base_member(method, owning_type, program):
                return ScanResult(UsageStatus.USED, UsageEvidence.OVERRIDE)
        except LookupError:
            pass

        for unit in program.units():
            if cancel is not None and cancel.is_set():
                return NOT_EVALUATED
            found = self._scan_unit(method, unit)
            if found is not None:
                evidence, line = found
                return ScanResult(UsageStatus.USED, evidence, unit.path, line)

        if cancel is not None and cancel.is_set():
            return NOT_EVALUATED
        return UNUSED

    @staticmethod
    def _overrides_base_member(method: MethodSymbol, owning_type: TypeRef, program: ProgramModel) -> bool:
        for base in program.base_chain(owning_type):
            for candidate in program.methods_of(base.name):
                if (candidate.is_virtual
                        and candidate.name == method.name
                        and len(candidate.parameters) == len(method.parameters)):
                    return True
        return False

    def _scan_unit(self, method: MethodSymbol, unit: SyntaxUnit) -> Optional[Tuple[UsageEvidence, int]]:
        calls = [s for s in unit.sites if isinstance(s, CallSite)]

        for call in calls:
            if call.target is not None and call.target.refers_to(method):
                return UsageEvidence.DIRECT_CALL, call.line

        for call in calls:
            evidence = self._registration_evidence(method, call)
            if evidence is not None:
                return evidence, call.line

        for site in unit.sites:
            if site.target is None or not site.target.refers_to(method):
                continue
            if isinstance(site, MemberAccessSite):
                return UsageEvidence.MEMBER_REFERENCE, site.line
            if isinstance(site, IdentifierSite):
                return UsageEvidence.IDENTIFIER_REFERENCE, site.line
        return None

    def _registration_evidence(self, method: MethodSymbol, call: CallSite) -> Optional[UsageEvidence]:
        index = self.registration_calls.get(call.callee_name)
        if index is None or len(call.arguments) <= index:
            return None

        argument = call.arguments[index]
        if isinstance(argument, ConstantArgument):
            if isinstance(argument.value, str) and argument.value == method.name:
                return UsageEvidence.REGISTERED_BY_CONSTANT_NAME
        elif isinstance(argument, LambdaArgument):
            if (argument.parameter_count == 1
                    and argument.body_target is not None
                    and argument.body_target.refers_to(method)):
                return UsageEvidence.REGISTERED_BY_DELEGATE
        elif isinstance(argument, SymbolArgument):
            if argument.target is not None and argument.target.refers_to(method):
                return UsageEvidence.REGISTERED_BY_DIRECT_SYMBOL
        return None
