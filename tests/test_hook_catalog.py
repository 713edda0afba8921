"""Tests for HookCatalog construction and structural matching."""
import pytest

from hooklint.analyzer.hook_catalog import (
    Deprecated,
    Engine,
    HookCatalog,
    HookDescriptor,
    PluginProvided,
    RawCatalogConfig,
    Unity,
)
from hooklint.analyzer.signature import parse_hook_string
from hooklint.analyzer.type_compat import TypeCompatibility


class TestBuild:
    """HookCatalog.build from raw configuration."""

    def test_empty_config_gives_empty_catalog(self):
        """An empty config builds an empty catalog."""
        catalog = HookCatalog.build(RawCatalogConfig(), report=False)
        assert len(catalog) == 0
        assert catalog.lookup_by_name("OnPlayerConnected") == ()
        assert catalog.warnings == ()

    def test_source_tags(self, catalog):
        """Engine and plugin hooks carry their source tag."""
        assert isinstance(catalog.lookup_by_name("OnServerSave")[0].source, Engine)
        balance = catalog.lookup_by_name("OnBalanceChanged")[0]
        assert balance.source == PluginProvided("Economics")
        assert balance.render() == "OnBalanceChanged(string playerId, double amount) (from plugin: Economics)"

    def test_malformed_entries_skipped_with_warning(self, capsys):
        """Malformed entries are skipped and reported."""
        raw = RawCatalogConfig(
            hooks=("OnPlayerConnected(BasePlayer player)", "Broken(int x", "AlsoFine()"),
            plugin_hooks=(("Economics", "no parens"),),
            deprecated=(("(int x)", "NewHook()"),),
        )
        catalog = HookCatalog.build(raw)

        assert len(catalog) == 2, "Valid entries must survive malformed neighbours"
        assert len(catalog.warnings) == 3
        assert any("Broken(int x" in w for w in catalog.warnings)
        assert catalog.deprecated_descriptors() == ()

        err = capsys.readouterr().err
        assert "[HookCatalog] Warning:" in err

    def test_report_false_is_silent(self, capsys):
        """report=False records warnings without printing them."""
        HookCatalog.build(RawCatalogConfig(hooks=("Broken(",)), report=False)
        assert capsys.readouterr().err == ""

    def test_first_seen_wins_on_duplicates(self):
        """The first descriptor for a duplicate key is kept."""
        raw = RawCatalogConfig(
            hooks=("OnPlayerConnected(BasePlayer player)",),
            plugin_hooks=(("Economics", "OnPlayerConnected(BasePlayer somebody)"),),
        )
        catalog = HookCatalog.build(raw, report=False)
        bucket = catalog.lookup_by_name("OnPlayerConnected")
        assert len(bucket) == 1
        assert isinstance(bucket[0].source, Engine)
        assert bucket[0].signature.parameters[0].name == "player"

    def test_alias_spellings_are_duplicates(self):
        """int and Int32 spellings of the same hook collapse to one."""
        catalog = HookCatalog.build(
            RawCatalogConfig(hooks=("OnTick(int n)", "OnTick(System.Int32 n)")), report=False)
        assert len(catalog.lookup_by_name("OnTick")) == 1

    def test_overloads_are_kept(self):
        """Overloads with different parameter types are all kept."""
        catalog = HookCatalog.build(
            RawCatalogConfig(hooks=("OnServerInitialized()", "OnServerInitialized(bool initial)")), report=False)
        assert len(catalog.lookup_by_name("OnServerInitialized")) == 2

    def test_deprecated_index_is_separate(self):
        """A name may appear in both the live and deprecated indexes."""
        raw = RawCatalogConfig(
            hooks=("OldHook(int x)",),
            deprecated=(("OldHook(int x)", "NewHook(int x, string y)"),),
        )
        catalog = HookCatalog.build(raw, report=False)
        assert len(catalog.lookup_by_name("OldHook")) == 1
        assert len(catalog.deprecated_for("OldHook")) == 1
        assert len(catalog.lookup_by_name("OldHook", include_deprecated=True)) == 2

    def test_deprecated_replacement(self, catalog):
        """Replacement signatures are parsed and rendered."""
        old = catalog.deprecated_for("OldHook")[0]
        assert old.is_deprecated
        assert old.source.replacement_text == "NewHook(int x, string y)"
        legacy = catalog.deprecated_for("LegacyHook")[0]
        assert legacy.source == Deprecated(None)
        assert legacy.source.replacement_text == "no replacement"

    def test_descriptors_are_immutable(self, catalog):
        """Descriptors and indexes cannot be modified."""
        descriptor = catalog.lookup_by_name("OnServerSave")[0]
        with pytest.raises(AttributeError):
            descriptor.source = Engine()
        with pytest.raises(TypeError):
            catalog._live["OnServerSave"] = ()


class TestMatches:
    """Structural matching: arity plus per-position compatibility."""

    def test_exact_signature(self, catalog, program):
        """An identical signature matches."""
        compat = TypeCompatibility(program)
        found = catalog.matches(parse_hook_string("OnPlayerConnected(BasePlayer p)"), compat)
        assert len(found) == 1

    def test_parameter_names_ignored(self, catalog, program):
        """Parameter names do not affect matching by default."""
        sig = parse_hook_string("OnEntityDeath(BaseCombatEntity victim, HitInfo hit)")
        assert catalog.matches(sig, TypeCompatibility(program))

    def test_parameter_names_enforced_when_requested(self, catalog, program):
        """require_parameter_names makes names significant."""
        sig = parse_hook_string("OnEntityDeath(BaseCombatEntity victim, HitInfo hit)")
        assert catalog.matches(sig, TypeCompatibility(program), require_parameter_names=True) == ()

    def test_arity_must_be_equal(self, catalog, program):
        """Parameter count must match exactly."""
        compat = TypeCompatibility(program)
        assert catalog.matches(parse_hook_string("OnPlayerConnected()"), compat) == ()
        assert catalog.matches(parse_hook_string("OnPlayerConnected(BasePlayer p, int extra)"), compat) == ()

    def test_derived_parameter_type_matches(self, catalog, program):
        """A derived parameter type satisfies a base type slot."""
        sig = parse_hook_string("OnEntityDeath(BasePlayer player, HitInfo info)")
        assert catalog.matches(sig, TypeCompatibility(program))

    def test_interface_parameter_matches(self, program):
        """An implementing type satisfies an interface slot."""
        # BasePlayer implements IPlayer
        catalog = HookCatalog.build(RawCatalogConfig(hooks=("Foo(IPlayer player)",)), report=False)
        found = catalog.matches(parse_hook_string("Foo(BasePlayer player)"), TypeCompatibility(program))
        assert [d.name for d in found] == ["Foo"]

    def test_unrelated_type_does_not_match(self, catalog, program):
        """An unrelated parameter type is rejected."""
        sig = parse_hook_string("OnPlayerConnected(HitInfo info)")
        assert catalog.matches(sig, TypeCompatibility(program)) == ()

    def test_deprecated_descriptors_never_match(self, catalog, program):
        """Deprecated hooks are not structural matches."""
        assert catalog.matches(parse_hook_string("OldHook(int x)"), TypeCompatibility(program)) == ()

    def test_default_compat_uses_aliases(self):
        """Without a program model, keyword aliases still match."""
        catalog = HookCatalog.build(RawCatalogConfig(hooks=("OnTick(int n)",)), report=False)
        assert catalog.matches(parse_hook_string("OnTick(Int32 n)"))


class TestUnityIndex:
    """Unity messages are kept apart from live hooks."""

    @pytest.fixture
    def unity_catalog(self):
        return HookCatalog.build(RawCatalogConfig(
            hooks=("OnServerSave()",),
            unity_hooks=("Update()", "Update()", "OnTriggerEnter(Collider other)", "Broken(int"),
        ), report=False)

    def test_hidden_unless_requested(self, unity_catalog):
        """Unity names are unknown to plain lookups."""
        assert not unity_catalog.is_known_name("Update")
        assert unity_catalog.lookup_by_name("Update") == ()
        assert unity_catalog.matches(parse_hook_string("Update()")) == ()
        assert len(unity_catalog) == 1

    def test_visible_when_requested(self, unity_catalog):
        """include_unity brings Unity messages into every query."""
        assert unity_catalog.is_known_name("Update", include_unity=True)
        found = unity_catalog.matches(parse_hook_string("Update()"), include_unity=True)
        assert [d.name for d in found] == ["Update"]
        assert isinstance(found[0].source, Unity)
        names = [d.name for d in unity_catalog.live_descriptors(include_unity=True)]
        assert names == ["OnServerSave", "Update", "OnTriggerEnter"]

    def test_unity_duplicates_and_malformed_entries(self, unity_catalog):
        """Unity entries are deduplicated and malformed ones skipped with a warning."""
        assert len(unity_catalog.unity_descriptors()) == 2
        assert len(unity_catalog.warnings) == 1
        assert "Unity hook" in unity_catalog.warnings[0]
        assert Unity().describe() == "unity"


def test_descriptor_properties():
    """Descriptor helpers expose name, plugin and deprecation."""
    descriptor = HookDescriptor(parse_hook_string("OnPickup(Item item)"), PluginProvided("Loot"))
    assert descriptor.name == "OnPickup"
    assert descriptor.plugin_name == "Loot"
    assert not descriptor.is_deprecated
