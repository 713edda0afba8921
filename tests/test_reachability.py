"""Tests for ReachabilityScanner usage evidence."""
import threading

import pytest

from hooklint.analyzer.program_model import (
    CallSite,
    ConstantArgument,
    IdentifierSite,
    LambdaArgument,
    MemberAccessSite,
    MemberKind,
    MethodSymbol,
    OtherArgument,
    SymbolArgument,
    SymbolRef,
    SyntaxUnit,
)
from hooklint.analyzer.reachability import ReachabilityScanner, UsageEvidence, UsageStatus
from hooklint.analyzer.type_ref import TypeRef


@pytest.fixture
def scanner():
    return ReachabilityScanner()


@pytest.fixture
def handle_chat(method_factory):
    return method_factory("HandleChat", "BasePlayer player", "string command", "string[] args")


def _unit(*sites, path="Plugins/Demo.cs"):
    return SyntaxUnit(path=path, sites=tuple(sites))


def _ref(method):
    return SymbolRef(method.id, MemberKind.METHOD)


class TestSelfEvidence:
    """Overrides and extension methods are always used."""

    def test_override_flag(self, scanner, program, method_factory):
        """Overrides are used without scanning."""
        method = method_factory("OnTick", is_override=True)
        result = scanner.scan(method, None, program)
        assert result.status is UsageStatus.USED
        assert result.evidence is UsageEvidence.OVERRIDE

    def test_extension_method(self, scanner, program, method_factory):
        """Extension methods count as used."""
        method = method_factory("Shout", "BasePlayer player", is_extension=True, owner="Helper")
        assert scanner.scan(method, None, program).evidence is UsageEvidence.EXTENSION_METHOD

    def test_overrides_virtual_base_member(self, scanner, program, method_factory):
        """A same-signature virtual base member makes it an override."""
        program.add_method(method_factory("LoadDefaultConfig", owner="Plugin", is_virtual=True))
        method = method_factory("LoadDefaultConfig")
        result = scanner.scan(method, TypeRef("Demo"), program)
        assert result.evidence is UsageEvidence.OVERRIDE

    def test_same_name_non_virtual_base_member_is_not_override(self, scanner, program, method_factory):
        """Hiding a non-virtual base member is not an override."""
        program.add_method(method_factory("Puts", "string text", owner="Plugin"))
        method = method_factory("Puts", "string text")
        assert scanner.is_used(method, TypeRef("Demo"), program) is False


class TestSites:
    """Evidence from call, member-access and identifier sites."""

    def test_direct_call(self, scanner, program, method_factory):
        """A direct call is evidence."""
        method = method_factory("Compute")
        program.add_unit(_unit(CallSite("Compute", _ref(method), line=7)))
        result = scanner.scan(method, None, program)
        assert result.evidence is UsageEvidence.DIRECT_CALL
        assert result.path == "Plugins/Demo.cs"
        assert result.line == 7

    def test_call_to_generic_definition(self, scanner, program):
        """Calls to a generic instantiation count for the definition."""
        method = MethodSymbol(id="Demo.Convert<T>(T)", name="Convert", owner="Demo")
        program.add_unit(_unit(CallSite(
            "Convert", SymbolRef("Demo.Convert<int>(int)", MemberKind.METHOD, original_id="Demo.Convert<T>(T)"))))
        assert scanner.scan(method, None, program).evidence is UsageEvidence.DIRECT_CALL

    def test_call_to_other_method_is_not_evidence(self, scanner, program, method_factory):
        """Calls to other methods are ignored."""
        method = method_factory("Compute")
        program.add_unit(_unit(CallSite("Other", SymbolRef("Demo.Other()"))))
        assert scanner.is_used(method, None, program) is False

    def test_member_access(self, scanner, program, method_factory):
        """A member access to the method counts."""
        method = method_factory("OnTimer")
        program.add_unit(_unit(MemberAccessSite(_ref(method))))
        assert scanner.scan(method, None, program).evidence is UsageEvidence.MEMBER_REFERENCE

    def test_identifier(self, scanner, program, method_factory):
        """A bare method identifier counts."""
        method = method_factory("OnTimer")
        program.add_unit(_unit(IdentifierSite(_ref(method))))
        assert scanner.scan(method, None, program).evidence is UsageEvidence.IDENTIFIER_REFERENCE

    def test_reference_to_field_with_same_id_ignored(self, scanner, program, method_factory):
        """Field references with the same id are ignored."""
        method = method_factory("OnTimer")
        program.add_unit(_unit(IdentifierSite(SymbolRef(method.id, MemberKind.FIELD))))
        assert scanner.is_used(method, None, program) is False

    def test_direct_call_preferred_within_unit(self, scanner, program, method_factory):
        """Within a unit a direct call is reported first."""
        method = method_factory("Compute")
        program.add_unit(_unit(IdentifierSite(_ref(method)), CallSite("Compute", _ref(method))))
        assert scanner.scan(method, None, program).evidence is UsageEvidence.DIRECT_CALL


class TestRegistration:
    """AddChatCommand / AddConsoleCommand / AddCovalenceCommand callbacks."""

    def test_constant_name_registration(self, scanner, program, handle_chat):
        """A registration call naming the method counts."""
        program.add_unit(_unit(CallSite("AddChatCommand", SymbolRef("RustPlugin.AddChatCommand"), (
            ConstantArgument("chat"), OtherArgument("this"), ConstantArgument("HandleChat")))))

        assert scanner.is_used(handle_chat, None, program) is True
        assert scanner.scan(handle_chat, None, program).evidence is UsageEvidence.REGISTERED_BY_CONSTANT_NAME

    def test_constant_in_wrong_position_ignored(self, scanner, program, handle_chat):
        """A hook name constant in another argument slot is ignored."""
        program.add_unit(_unit(CallSite("AddChatCommand", None, (
            ConstantArgument("HandleChat"), OtherArgument("this"), ConstantArgument("Other")))))
        assert scanner.is_used(handle_chat, None, program) is False

    def test_too_few_arguments(self, scanner, program, handle_chat):
        """Registration calls without enough arguments are ignored."""
        program.add_unit(_unit(CallSite("AddConsoleCommand", None, (ConstantArgument("HandleChat"),))))
        assert scanner.is_used(handle_chat, None, program) is False

    def test_delegate_registration(self, scanner, program, method_factory):
        """A lambda of the registration's arity counts."""
        method = method_factory("OnConsoleReset", "ConsoleSystem.Arg arg")
        program.add_unit(_unit(CallSite("AddConsoleCommand", None, (
            ConstantArgument("reset"), OtherArgument("this"), LambdaArgument(1, _ref(method))))))
        assert scanner.scan(method, None, program).evidence is UsageEvidence.REGISTERED_BY_DELEGATE

    def test_multi_parameter_lambda_is_not_delegate_registration(self, scanner, program, method_factory):
        """A lambda with the wrong parameter count is not registration."""
        method = method_factory("OnConsoleReset", "ConsoleSystem.Arg arg")
        program.add_unit(_unit(CallSite("AddConsoleCommand", None, (
            ConstantArgument("reset"), OtherArgument("this"), LambdaArgument(2, _ref(method))))))
        assert scanner.is_used(method, None, program) is False

    def test_method_group_registration(self, scanner, program, handle_chat):
        """A method group passed to a registration counts."""
        program.add_unit(_unit(CallSite("AddChatCommand", None, (
            ConstantArgument("chat"), OtherArgument("this"), SymbolArgument(_ref(handle_chat))))))
        assert scanner.scan(handle_chat, None, program).evidence is UsageEvidence.REGISTERED_BY_DIRECT_SYMBOL

    def test_covalence_callback_is_second_argument(self, scanner, program, handle_chat):
        """AddCovalenceCommand takes the callback second."""
        program.add_unit(_unit(CallSite("AddCovalenceCommand", None, (
            ConstantArgument("chat"), ConstantArgument("HandleChat")))))
        assert scanner.scan(handle_chat, None, program).evidence is UsageEvidence.REGISTERED_BY_CONSTANT_NAME

    def test_unknown_registration_call_ignored(self, scanner, program, handle_chat):
        """Unknown call names are not registrations."""
        program.add_unit(_unit(CallSite("AddSomething", None, (
            ConstantArgument("chat"), OtherArgument("this"), ConstantArgument("HandleChat")))))
        assert scanner.is_used(handle_chat, None, program) is False


class TestCancellation:
    """A cancelled scan reports unknown, never a partial false."""

    def test_cancel_before_scan(self, scanner, program, method_factory):
        """A pre-set cancel event gives UNKNOWN."""
        method = method_factory("Compute")
        program.add_unit(_unit(CallSite("Compute", _ref(method))))
        cancel = threading.Event()
        cancel.set()

        result = scanner.scan(method, None, program, cancel)
        assert result.status is UsageStatus.UNKNOWN
        assert scanner.is_used(method, None, program, cancel) is None

    def test_cancel_between_units(self, scanner, program, method_factory):
        """Cancellation is checked between units."""
        method = method_factory("Compute")

        class CancelAfterFirstCheck:
            def __init__(self):
                self.calls = 0

            def is_set(self):
                self.calls += 1
                return self.calls > 1

        program.add_unit(_unit(path="A.cs"))
        program.add_unit(_unit(CallSite("Compute", _ref(method)), path="B.cs"))
        result = scanner.scan(method, None, program, CancelAfterFirstCheck())
        assert result.status is UsageStatus.UNKNOWN

    def test_override_needs_no_scan_even_when_cancelled(self, scanner, program, method_factory):
        """Overrides short-circuit before the cancel check."""
        cancel = threading.Event()
        cancel.set()
        method = method_factory("OnTick", is_override=True)
        assert scanner.is_used(method, None, program, cancel) is True

    def test_unset_event_scans_normally(self, scanner, program, method_factory):
        """An unset cancel event does not stop the scan."""
        method = method_factory("Compute")
        assert scanner.is_used(method, None, program, threading.Event()) is False
