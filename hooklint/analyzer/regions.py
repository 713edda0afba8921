"""``#region`` bookkeeping for syntax units."""
from typing import Iterable, List, Optional

from .program_model import MethodSymbol, ProgramModel, RegionDirective

API_REGION = "API"


def region_stack_at(directives: Iterable[RegionDirective], line: int) -> List[str]:
    """Open region labels (upper-cased, outermost first) in effect at ``line``.

    Unbalanced ``#endregion`` directives are ignored.
    """
    stack: List[str] = []
    for directive in sorted(directives, key=lambda d: d.line):
        if directive.line >= line:
            break
        if directive.opening:
            stack.append(directive.label.strip().upper())
        elif stack:
            stack.pop()
    return stack


def innermost_region(method: MethodSymbol, program: ProgramModel) -> Optional[str]:
    if method.location is None:
        return None
    unit = program.unit_for(method.location.file)
    if unit is None:
        return None
    stack = region_stack_at(unit.regions, method.location.line)
    return stack[-1] if stack else None


def in_api_region(method: MethodSymbol, program: ProgramModel) -> bool:
    """True when the innermost region around the method is labelled ``API``."""
    return innermost_region(method, program) == API_REGION
