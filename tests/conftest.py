"""Shared fixtures for the hooklint test suite."""
from pathlib import Path

import pytest

from hooklint.analyzer.classifier import AnalysisSession, PolicyOptions
from hooklint.analyzer.hook_catalog import HookCatalog, RawCatalogConfig
from hooklint.analyzer.program_model import (
    Location,
    MethodSymbol,
    SnapshotProgram,
)
from hooklint.analyzer.signature import parse_parameter


FIXTURES_DIR = Path(__file__).parent / 'fixtures'
CONFIG_DIR = FIXTURES_DIR / 'hooklint_config'
BROKEN_CONFIG_DIR = FIXTURES_DIR / 'broken_config'
SNAPSHOT_PATH = FIXTURES_DIR / 'snapshots' / 'demo_plugin.json'


def make_method(name, *params, owner="Demo", line=10, **flags):
    """Build a MethodSymbol from ``"Type name"`` parameter strings."""
    parameters = tuple(parse_parameter(p) for p in params)
    default_id = f"{owner}.{name}({','.join(p.type.name for p in parameters)})"
    method_id = flags.pop('id', default_id)
    return MethodSymbol(
        id=method_id,
        name=name,
        owner=owner,
        parameters=parameters,
        location=Location(f"Plugins/{owner}.cs", line, 5),
        **flags,
    )


@pytest.fixture
def program():
    """Small type hierarchy modelled on the game's entity classes."""
    model = SnapshotProgram()
    model.add_type("Oxide.Core.Plugins.Plugin")
    model.add_type("Oxide.Plugins.RustPlugin", base="Oxide.Core.Plugins.Plugin")
    model.add_type("IPlayer", is_interface=True)
    model.add_type("IEntity", is_interface=True)
    model.add_type("BaseEntity", interfaces=["IEntity"])
    model.add_type("BaseCombatEntity", base="BaseEntity")
    model.add_type("BasePlayer", base="BaseCombatEntity", interfaces=["IPlayer"])
    model.add_type("NPCPlayer", base="BasePlayer")
    model.add_type("HitInfo")
    model.add_type("Item")
    model.add_type("Demo", base="RustPlugin")
    model.add_type("Helper")
    return model


@pytest.fixture
def raw_config():
    return RawCatalogConfig(
        hooks=(
            "OnPlayerConnected(BasePlayer player)",
            "void OnEntityDeath(BaseCombatEntity entity, HitInfo info)",
            "object OnDispenserGather(ResourceDispenser dispenser, BasePlayer player, Item item)",
            "void OnDispenserBonus(ResourceDispenser dispenser, BasePlayer player, Item item)",
            "object OnPickup(Item item, BasePlayer player)",
            "OnServerSave()",
        ),
        plugin_hooks=(("Economics", "OnBalanceChanged(string playerId, double amount)"),),
        deprecated=(("OldHook(int x)", "NewHook(int x, string y)"), ("LegacyHook()", "")),
        version="test",
    )


@pytest.fixture
def catalog(raw_config):
    return HookCatalog.build(raw_config, report=False)


@pytest.fixture
def session(catalog, program):
    return AnalysisSession(catalog=catalog, program=program, options=PolicyOptions(max_suggestions=3))


@pytest.fixture
def method_factory():
    return make_method


@pytest.fixture
def config_dir():
    return CONFIG_DIR


@pytest.fixture
def snapshot_path():
    return SNAPSHOT_PATH
