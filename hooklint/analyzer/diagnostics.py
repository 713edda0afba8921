"""Diagnostic catalogue and plain-text rendering.

Rendered findings look like::

    warning[HL003]: Unused method detected
       at MyPlugin.cs:42:9
       = note: Method 'OnDispenser' is never used. ...
       = help: Methods should be used or removed to maintain clean code.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from .classifier import Classification, Outcome
from .hook_checks import HookCheckResult, HookProblem
from .program_model import Location


@dataclass(frozen=True)
class Rule:
    code: str
    title: str
    severity: str
    description: str


INCOMPLETE_HOOK = Rule(
    "HL002", "Hook method has incorrect parameters", "error",
    "Hook methods must be implemented with the correct parameter types to be called by the framework.",
)
UNUSED_METHOD = Rule(
    "HL003", "Unused method detected", "warning",
    "Methods should be used or removed to maintain clean code.",
)
DEPRECATED_HOOK = Rule(
    "HL004", "Deprecated hook found", "error",
    "This hook has been marked as deprecated and should be replaced with the new version.",
)
STATIC_HOOK = Rule(
    "HL030", "Hook method cannot be static", "error",
    "Hook methods must be instance methods to receive game events.",
)

UNUSED_PLAIN_MESSAGE = "Method '{0}' is never used"
UNUSED_HOOKS_MESSAGE = (
    "Method '{0}' is never used.\n"
    "If you intended this to be a hook, no matching hook was found.\n"
    "Similar hooks that might match: {1}"
)
UNUSED_COMMAND_MESSAGE = (
    "Method '{0}' is never used.\n"
    "If you intended this to be a command, here are the common command signatures:\n"
    "{1}"
)
UNUSED_API_MESSAGE = (
    "Method '{0}' is never used.\n"
    "If you want to expose this method as an API for other plugins, mark it with [HookMethod] attribute."
)
DEPRECATED_MESSAGE = 'Hook "{0}" is deprecated. Use "{1}" instead.'
DEPRECATED_NO_REPLACEMENT_MESSAGE = 'Hook "{0}" is deprecated and has no replacement.'
INCOMPLETE_MESSAGE = 'Hook "{0}" has missing or incorrect parameters. Expected: {1}'
STATIC_MESSAGE = "Hook method '{0}' cannot be static. Remove the static modifier."


@dataclass(frozen=True)
class Finding:
    """A rendered-ready diagnostic."""
    rule: Rule
    message: str
    method_name: str
    location: Optional[Location] = None
    example: Optional[str] = None

    @property
    def code(self) -> str:
        return self.rule.code

    @property
    def severity(self) -> str:
        return self.rule.severity


def finding_for_classification(result: Classification) -> Optional[Finding]:
    """Translate a classification into a finding, or None when nothing to report."""
    method = result.method
    name = method.name
    outcome = result.outcome

    if outcome is Outcome.DEPRECATED:
        if result.replacement:
            message = DEPRECATED_MESSAGE.format(name, result.replacement)
        else:
            message = DEPRECATED_NO_REPLACEMENT_MESSAGE.format(name)
        return Finding(DEPRECATED_HOOK, message, name, method.location)

    if outcome is Outcome.UNUSED_WITH_SUGGESTIONS:
        message = UNUSED_HOOKS_MESSAGE.format(name, ", ".join(result.suggestions))
        return Finding(UNUSED_METHOD, message, name, method.location)
    if outcome is Outcome.UNUSED_COMMAND:
        message = UNUSED_COMMAND_MESSAGE.format(name, "\n\n".join(result.command_shapes))
        return Finding(UNUSED_METHOD, message, name, method.location, example=result.command_shapes[0])
    if outcome is Outcome.UNUSED_API:
        return Finding(UNUSED_METHOD, UNUSED_API_MESSAGE.format(name), name, method.location,
                       example=f"[HookMethod(nameof({name}))]")
    if outcome is Outcome.UNUSED_PLAIN:
        return Finding(UNUSED_METHOD, UNUSED_PLAIN_MESSAGE.format(name), name, method.location)
    return None


def finding_for_check(result: HookCheckResult) -> Finding:
    method = result.method
    if result.problem is HookProblem.STATIC:
        return Finding(STATIC_HOOK, STATIC_MESSAGE.format(method.name), method.name, method.location)
    return Finding(
        INCOMPLETE_HOOK,
        INCOMPLETE_MESSAGE.format(method.name, result.expected_text),
        method.name,
        method.location,
        example=result.expected[0].signature.render(with_return=True) if result.expected else None,
    )


def collect_findings(classifications: Iterable[Classification],
                     checks: Iterable[HookCheckResult] = ()) -> List[Finding]:
    findings = [f for f in map(finding_for_classification, classifications) if f is not None]
    findings.extend(finding_for_check(c) for c in checks)
    return findings


def render_finding(finding: Finding) -> str:
    """Format a finding as multi-line text (no trailing newline)."""
    lines = [f"{finding.severity}[{finding.code}]: {finding.rule.title}"]
    if finding.location is not None and finding.location.file:
        name = Path(finding.location.file).name
        lines.append(f"   at {name}:{finding.location.line}:{finding.location.column}")

    note_lines = finding.message.split("\n")
    lines.append(f"   = note: {note_lines[0]}")
    lines.extend(f"           {line}" if line else "" for line in note_lines[1:])
    lines.append(f"   = help: {finding.rule.description}")
    if finding.example:
        example_lines = finding.example.split("\n")
        lines.append(f"   = example: {example_lines[0]}")
        lines.extend(f"              {line}" for line in example_lines[1:])
    return "\n".join(lines)
