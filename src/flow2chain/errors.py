from __future__ import annotations
from typing import List, Optional


class Flow2ChainError(Exception):
    """Base class for every fault raised by flow2chain."""


class RegistryError(Flow2ChainError):
    pass


class DuplicateTypeError(RegistryError):
    def __init__(self, type_tag: str):
        self.type_tag = type_tag
        super().__init__(f"Converter for type '{type_tag}' is already registered")


class UnknownTargetError(RegistryError):
    def __init__(self, alias: str, target: str):
        self.alias = alias
        self.target = target
        super().__init__(f"Cannot alias '{alias}': target type '{target}' is not registered")


class PluginError(RegistryError):
    def __init__(self, name: str, reason: str):
        self.name = name
        super().__init__(f"Plugin '{name}': {reason}")


class ConversionError(Flow2ChainError):
    pass


class UnsupportedNodeError(ConversionError):
    def __init__(self, node_id: str, node_type: str):
        self.node_id = node_id
        self.node_type = node_type
        super().__init__(f"No converter registered for node '{node_id}' of type '{node_type}'")


class InvalidNodeError(ConversionError):
    def __init__(self, node_id: str, node_type: str, reason: Optional[str] = None):
        self.node_id = node_id
        self.node_type = node_type
        msg = f"Converter for '{node_type}' cannot convert node '{node_id}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class CyclicDependencyError(ConversionError):
    def __init__(self, cycle: List[str]):
        self.cycle = list(cycle)
        super().__init__("Circular dependency detected: " + " -> ".join(self.cycle))


class UnresolvedReferenceError(ConversionError):
    def __init__(self, node_id: Optional[str], reference: str):
        self.node_id = node_id
        self.reference = reference
        super().__init__(f"Node '{node_id}' references '{reference}', which is not bound to any variable")


class UnresolvedPlaceholderError(ConversionError):
    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"Placeholder of kind '{kind}' was rendered before being resolved")
