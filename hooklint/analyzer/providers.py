"""Catalog providers: where hook catalog inputs come from.

A provider turns some configuration source into a ``RawCatalogConfig``.
Providers are registered explicitly under a version key and created through
``create_provider``.

The ``directory`` provider reads a configuration folder::

    .hooklint/
        hooks.json            ["OnPlayerConnected(BasePlayer player)", ...]
        hooksPlugin.json      [{"pluginName": "Economics", "hookSignature": "..."}]
        deprecatedHooks.json  {"deprecated": {"OldHook(int x)": "NewHook(int x, string y)"}}
        unityHooks.json       ["Update()", "OnTriggerEnter(Collider other)"]  (optional)

Bundled providers (``240Dev``, ``266Dev``) ship a core hook list with the
package and merge any configuration folder on top of it.
"""
import json
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import Callable, Dict, IO, Iterator, List, Optional, Tuple, Type

from .errors import UnknownProviderError
from .hook_catalog import HookCatalog, RawCatalogConfig
from ..utils.logger import warn


HOOKS_FILE = "hooks.json"
PLUGIN_HOOKS_FILE = "hooksPlugin.json"
DEPRECATED_HOOKS_FILE = "deprecatedHooks.json"
UNITY_HOOKS_FILE = "unityHooks.json"
CONFIG_FILES = (HOOKS_FILE, PLUGIN_HOOKS_FILE, DEPRECATED_HOOKS_FILE)

BUNDLED_DATA = Path(__file__).parent / "data" / "bundled_hooks.json"


_REGISTRY: Dict[str, Type["CatalogProvider"]] = {}


def register_provider(version: str) -> Callable[[Type["CatalogProvider"]], Type["CatalogProvider"]]:
    """Class decorator registering a provider under a version key."""
    def decorator(cls):
        if version in _REGISTRY:
            raise ValueError(f"Provider already registered for version {version!r}")
        cls.version = version
        _REGISTRY[version] = cls
        return cls
    return decorator


def available_versions() -> Tuple[str, ...]:
    return tuple(sorted(_REGISTRY))


def create_provider(version: str, **options) -> "CatalogProvider":
    """Instantiate the provider registered for ``version``.

    Args:
        version: Registry key, e.g. ``directory`` or ``266Dev``
        **options: Passed to the provider constructor (``config_dir``)

    Raises:
        UnknownProviderError: If no provider is registered for the version
    """
    try:
        provider_cls = _REGISTRY[version]
    except KeyError:
        raise UnknownProviderError(
            f"No catalog provider for version {version!r}. "
            f"Available: {', '.join(available_versions())}"
        ) from None
    return provider_cls(**options)


def load_catalog(version: str = "directory", config_dir: Optional[str | Path] = None,
                 report: bool = True) -> HookCatalog:
    """Create the provider for ``version`` and build a catalog from it."""
    provider = create_provider(version, config_dir=config_dir)
    return HookCatalog.build(provider.load(report=report), report=report)


@contextmanager
def open_config_files(directory: Path, names=CONFIG_FILES) -> Iterator[Dict[str, IO[str]]]:
    """Open every configuration file that exists, closing all of them on exit.

    Args:
        directory: Configuration folder
        names: File names to look for

    Yields:
        Mapping of file name to open text handle (missing files omitted)
    """
    with ExitStack() as stack:
        handles = {}
        for name in names:
            path = directory / name
            if path.is_file():
                handles[name] = stack.enter_context(open(path, "r", encoding="utf-8"))
        yield handles


def _signature_text(entry) -> Optional[str]:
    if isinstance(entry, str):
        return entry
    if isinstance(entry, dict):
        return entry.get("hookSignature") or entry.get("HookSignature") or entry.get("signature")
    return None


def parse_hooks_document(data, warnings: List[str], file_name: str = HOOKS_FILE) -> List[str]:
    if isinstance(data, dict):
        data = data.get("hooks", [])
    if not isinstance(data, list):
        warnings.append(f"{file_name} is malformed (expected list, got {type(data).__name__})")
        return []
    hooks = []
    for entry in data:
        text = _signature_text(entry)
        if text is None:
            warnings.append(f"{file_name}: entry without a hook signature: {entry!r}")
            continue
        hooks.append(text)
    return hooks


def parse_plugin_hooks_document(data, warnings: List[str]) -> List[Tuple[str, str]]:
    if not isinstance(data, list):
        warnings.append(f"{PLUGIN_HOOKS_FILE} is malformed (expected list, got {type(data).__name__})")
        return []
    pairs = []
    for entry in data:
        if not isinstance(entry, dict):
            warnings.append(f"{PLUGIN_HOOKS_FILE}: entry is not an object: {entry!r}")
            continue
        plugin = entry.get("pluginName") or entry.get("PluginName")
        text = _signature_text(entry)
        if not plugin or not text:
            warnings.append(f"{PLUGIN_HOOKS_FILE}: entry needs pluginName and hookSignature: {entry!r}")
            continue
        pairs.append((plugin, text))
    return pairs


def parse_deprecated_document(data, warnings: List[str]) -> List[Tuple[str, str]]:
    if isinstance(data, dict) and isinstance(data.get("deprecated"), dict):
        data = data["deprecated"]
    if not isinstance(data, dict):
        warnings.append(f"{DEPRECATED_HOOKS_FILE} is malformed (expected dict, got {type(data).__name__})")
        return []
    return [(old, new or "") for old, new in data.items()]


class CatalogProvider:
    """Base class for catalog providers."""

    version: Optional[str] = None

    def __init__(self, config_dir: Optional[str | Path] = None):
        self.config_dir = Path(config_dir) if config_dir is not None else None

    def load(self, report: bool = True) -> RawCatalogConfig:
        raise NotImplementedError

    def _read_directory(self, warnings: List[str], require: bool = True):
        """Read the configuration files from ``config_dir``.

        ``unityHooks.json`` is optional even when ``require`` is set.

        Returns:
            (hooks, plugin_hooks, deprecated, unity_hooks) lists; empty when absent
        """
        hooks: List[str] = []
        plugin_hooks: List[Tuple[str, str]] = []
        deprecated: List[Tuple[str, str]] = []
        unity_hooks: List[str] = []

        if self.config_dir is None or not self.config_dir.is_dir():
            if require:
                warnings.append(f"Configuration directory not found: {self.config_dir}")
            return hooks, plugin_hooks, deprecated, unity_hooks

        with open_config_files(self.config_dir, CONFIG_FILES + (UNITY_HOOKS_FILE,)) as handles:
            for name in CONFIG_FILES + (UNITY_HOOKS_FILE,):
                handle = handles.get(name)
                if handle is None:
                    if require and name in CONFIG_FILES:
                        warnings.append(f"{name} not found in {self.config_dir}")
                    continue
                try:
                    data = json.load(handle)
                except json.JSONDecodeError as e:
                    warnings.append(f"Error decoding JSON in {name}: {e}")
                    continue
                except UnicodeDecodeError as e:
                    warnings.append(f"Error loading {name}: {e}")
                    continue

                if name == HOOKS_FILE:
                    hooks = parse_hooks_document(data, warnings)
                elif name == PLUGIN_HOOKS_FILE:
                    plugin_hooks = parse_plugin_hooks_document(data, warnings)
                elif name == DEPRECATED_HOOKS_FILE:
                    deprecated = parse_deprecated_document(data, warnings)
                else:
                    unity_hooks = parse_hooks_document(data, warnings, UNITY_HOOKS_FILE)

        return hooks, plugin_hooks, deprecated, unity_hooks


def _report(version: Optional[str], warnings: List[str], report: bool):
    if report:
        for message in warnings:
            warn(f"CatalogProvider:{version}", message)


@register_provider("directory")
class JsonDirectoryProvider(CatalogProvider):
    """Reads the hook catalog from a configuration folder only."""

    def load(self, report: bool = True) -> RawCatalogConfig:
        warnings: List[str] = []
        hooks, plugin_hooks, deprecated, unity_hooks = self._read_directory(warnings)
        _report(self.version, warnings, report)
        return RawCatalogConfig(
            hooks=tuple(hooks),
            plugin_hooks=tuple(plugin_hooks),
            deprecated=tuple(deprecated),
            unity_hooks=tuple(unity_hooks),
            version=self.version,
            warnings=tuple(warnings),
        )


class BundledProvider(CatalogProvider):
    """Core hook list shipped with hooklint, plus an optional config folder."""

    def load(self, report: bool = True) -> RawCatalogConfig:
        warnings: List[str] = []
        with open(BUNDLED_DATA, "r", encoding="utf-8") as f:
            bundled = json.load(f)

        hooks = parse_hooks_document(bundled.get("hooks", []), warnings)
        deprecated = parse_deprecated_document(bundled.get("deprecated", {}).get(self.version, {}), warnings)
        unity_hooks = parse_hooks_document(bundled.get("unity", []), warnings, UNITY_HOOKS_FILE)

        extra_hooks, plugin_hooks, extra_deprecated, extra_unity = self._read_directory(warnings, require=False)
        _report(self.version, warnings, report)
        return RawCatalogConfig(
            hooks=tuple(hooks + extra_hooks),
            plugin_hooks=tuple(plugin_hooks),
            deprecated=tuple(deprecated + extra_deprecated),
            unity_hooks=tuple(unity_hooks + extra_unity),
            version=self.version,
            warnings=tuple(warnings),
        )


@register_provider("240Dev")
class Bundled240DevProvider(BundledProvider):
    pass


@register_provider("266Dev")
class Bundled266DevProvider(BundledProvider):
    pass
