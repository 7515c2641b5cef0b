"""
Plugin registry for pipeline stages.

This module provides a decorator-based registration pattern that allows
stage classes to be registered against a stage kind and instantiated by
name from a descriptor list. Domain and parameter arity live on
`StageKind`; the registry only maps names to classes.

Example:
    from specchain.registry import stage_registry

    @stage_registry.register("spec2db")
    class Spec2dBStage(FreqStage):
        ...

    # Later, instantiate by name
    stage = stage_registry.create("spec2db", True)
"""

from typing import Dict, Type, TypeVar, Callable, List

T = TypeVar('T')


class PluginRegistry:
    """
    Named registry of stage classes with decorator-based registration.

    Attributes:
        name: Identifier for this registry, used in error messages
    """

    def __init__(self, name: str):
        self.name = name
        self._registry: Dict[str, Type] = {}

    def register(self, key: str, override: bool = False) -> Callable[[Type[T]], Type[T]]:
        """
        Decorator to register a stage class under `key`.

        Raises:
            ValueError: If key already registered and override=False
        """
        def decorator(cls: Type[T]) -> Type[T]:
            if key in self._registry and not override:
                raise ValueError(
                    f"Plugin '{key}' already registered in '{self.name}'. "
                    f"Use override=True to replace."
                )
            self._registry[key] = cls
            return cls

        return decorator

    def get(self, key: str) -> Type[T]:
        """
        Get a registered class by key.

        Raises:
            KeyError: If plugin not found
        """
        if key not in self._registry:
            raise KeyError(
                f"Plugin '{key}' not found in '{self.name}' registry. "
                f"Available: {self.list()}"
            )
        return self._registry[key]

    def create(self, key: str, *args, **kwargs) -> T:
        """Instantiate the class registered under `key`."""
        return self.get(key)(*args, **kwargs)

    def list(self) -> List[str]:
        """Return list of registered plugin keys."""
        return list(self._registry.keys())

    def __contains__(self, key: str) -> bool:
        return key in self._registry

    def __iter__(self):
        return iter(self._registry.items())

    def __len__(self) -> int:
        return len(self._registry)

    def __repr__(self) -> str:
        return f"PluginRegistry('{self.name}', plugins={self.list()})"


stage_registry = PluginRegistry("stages")
