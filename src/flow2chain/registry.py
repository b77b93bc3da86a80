"""
Converter registry: node type tag → Converter.

The registry is set up once (built-ins, aliases, plugins) and then shared
by any number of conversion runs; it holds no per-run state.
"""

from __future__ import annotations

import difflib
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from .context import GenerationContext
from .converter import Converter
from .errors import (
    DuplicateTypeError, InvalidNodeError, PluginError, UnknownTargetError, UnsupportedNodeError,
)
from .fragments import CodeFragment
from .ir import Node

logger = logging.getLogger(__name__)


@dataclass
class NodeValidation:
    unsupported: List[Node] = field(default_factory=list)
    deprecated: List[Node] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.unsupported


class ConverterRegistry:
    def __init__(self) -> None:
        self._converters: Dict[str, Converter] = {}
        self._aliases: Dict[str, str] = {}

    def register(self, converter: Converter) -> None:
        if converter.type_tag in self._converters:
            raise DuplicateTypeError(converter.type_tag)
        self._converters[converter.type_tag] = converter
        logger.debug("registered converter %s (%s)", converter.type_tag, converter.category)

    def register_alias(self, alias: str, target: str) -> None:
        if target not in self._converters:
            raise UnknownTargetError(alias, target)
        self._aliases[alias] = target

    def unregister(self, type_tag: str) -> bool:
        return self._converters.pop(type_tag, None) is not None

    def unregister_alias(self, alias: str) -> bool:
        return self._aliases.pop(alias, None) is not None

    # ── Lookup ────────────────────────────────────────────────────────────

    def resolve_type(self, type_tag: str) -> Optional[str]:
        """Canonical tag for `type_tag`, following one alias hop."""
        if type_tag in self._converters:
            return type_tag
        target = self._aliases.get(type_tag)
        return target if target in self._converters else None

    def get_converter(self, type_tag: str) -> Optional[Converter]:
        canonical = self.resolve_type(type_tag)
        return self._converters[canonical] if canonical else None

    def has_converter(self, type_tag: str) -> bool:
        return self.get_converter(type_tag) is not None

    def can_convert(self, converter: Converter, node: Node) -> bool:
        return converter.can_convert(node, self.resolve_type(node.type))

    def registered_types(self) -> List[str]:
        return list(self._converters)

    def registered_aliases(self) -> Dict[str, str]:
        return dict(self._aliases)

    def converters_by_category(self, category: str) -> List[Converter]:
        return [c for c in self._converters.values() if c.category == category]

    def suggest(self, type_tag: str, limit: int = 3) -> List[str]:
        candidates = list(self._converters) + list(self._aliases)
        return difflib.get_close_matches(type_tag, candidates, n=limit, cutoff=0.6)

    def statistics(self) -> Dict[str, object]:
        by_category: Dict[str, int] = {}
        for c in self._converters.values():
            by_category[c.category] = by_category.get(c.category, 0) + 1
        return {
            "total_converters": len(self._converters),
            "total_aliases": len(self._aliases),
            "by_category": by_category,
            "deprecated": sum(1 for c in self._converters.values() if c.deprecated),
            "supported_versions": {t: list(c.supported_versions) for t, c in self._converters.items()},
        }

    # ── Conversion ────────────────────────────────────────────────────────

    def convert_node(self, node: Node, context: GenerationContext) -> List[CodeFragment]:
        converter = self.get_converter(node.type)
        if converter is None:
            raise UnsupportedNodeError(node.id, node.type)
        if not self.can_convert(converter, node):
            raise InvalidNodeError(node.id, node.type)
        if converter.deprecated:
            msg = f"Converter for '{node.type}' is deprecated."
            if converter.replacement:
                msg += f" Use '{converter.replacement}' instead."
            logger.warning("%s (node %s)", msg, node.id)
        logger.debug("converting %s with %s", node.id, converter.type_tag)
        return converter.convert(node, context)

    def get_all_dependencies(self, nodes: Sequence[Node]) -> List[str]:
        deps = set()
        for node in nodes:
            converter = self.get_converter(node.type)
            if converter is not None:
                deps.update(converter.dependencies)
        return sorted(deps)

    def validate_nodes(self, nodes: Sequence[Node]) -> NodeValidation:
        result = NodeValidation()
        for node in nodes:
            converter = self.get_converter(node.type)
            if converter is None:
                result.unsupported.append(node)
            elif converter.deprecated:
                result.deprecated.append(node)
        return result


# ── Plugins ──────────────────────────────────────────────────────────────────

@dataclass
class ConverterPlugin:
    name: str
    version: str
    converters: List[Converter] = field(default_factory=list)
    aliases: Dict[str, str] = field(default_factory=dict)
    description: str = ""
    initialize: Optional[Callable[[ConverterRegistry], None]] = None
    cleanup: Optional[Callable[[ConverterRegistry], None]] = None


class PluginManager:
    def __init__(self, registry: ConverterRegistry):
        self.registry = registry
        self._plugins: Dict[str, ConverterPlugin] = {}

    def load_plugin(self, plugin: ConverterPlugin) -> None:
        """Register every converter and alias of `plugin`, or none of them."""
        if plugin.name in self._plugins:
            raise PluginError(plugin.name, "already loaded")

        tags = [c.type_tag for c in plugin.converters]
        seen = set()
        for tag in tags:
            if tag in seen or self.registry.resolve_type(tag) == tag:
                raise DuplicateTypeError(tag)
            seen.add(tag)
        taken = self.registry.registered_aliases()
        for alias, target in plugin.aliases.items():
            if alias in taken or alias in seen or self.registry.resolve_type(alias) == alias:
                raise PluginError(plugin.name, f"alias '{alias}' is already registered")
            if target not in seen and self.registry.resolve_type(target) != target:
                raise UnknownTargetError(alias, target)

        for converter in plugin.converters:
            self.registry.register(converter)
        for alias, target in plugin.aliases.items():
            self.registry.register_alias(alias, target)
        if plugin.initialize:
            try:
                plugin.initialize(self.registry)
            except Exception:
                self._remove(plugin)
                raise
        self._plugins[plugin.name] = plugin
        logger.info("loaded plugin %s %s (%d converters)", plugin.name, plugin.version, len(tags))

    def _remove(self, plugin: ConverterPlugin) -> None:
        for alias in plugin.aliases:
            self.registry.unregister_alias(alias)
        for converter in plugin.converters:
            self.registry.unregister(converter.type_tag)

    def unload_plugin(self, name: str) -> bool:
        plugin = self._plugins.pop(name, None)
        if plugin is None:
            return False
        if plugin.cleanup:
            plugin.cleanup(self.registry)
        self._remove(plugin)
        return True

    def loaded_plugins(self) -> List[ConverterPlugin]:
        return list(self._plugins.values())

    def is_loaded(self, name: str) -> bool:
        return name in self._plugins
