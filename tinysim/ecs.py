"""A small entity-component registry and the physics pipeline that drives it."""

from __future__ import annotations

from typing import Any, Iterable


class Registry:
    """Entities are integer ids; each holds at most one component per type."""

    def __init__(self) -> None:
        self._next_id = 0
        self._entities: dict[int, dict[type, Any]] = {}

    def create(self) -> int:
        """Create a new entity with no components and return its id."""
        entity = self._next_id
        self._next_id += 1
        self._entities[entity] = {}
        return entity

    def _components_of(self, entity: int) -> dict[type, Any]:
        try:
            return self._entities[entity]
        except KeyError:
            raise KeyError(f"unknown entity {entity!r}") from None

    def emplace(self, entity: int, component: Any) -> Any:
        """Attach ``component`` to ``entity`` under its own type and return it."""
        components = self._components_of(entity)
        kind = type(component)
        if kind in components:
            raise ValueError(f"entity {entity} already has a {kind.__name__}")
        components[kind] = component
        return component

    def get(self, entity: int, component_type: type) -> Any:
        """Return the component of the given type; raises KeyError if absent."""
        components = self._components_of(entity)
        try:
            return components[component_type]
        except KeyError:
            raise KeyError(
                f"entity {entity} has no {component_type.__name__}"
            ) from None

    def try_get(self, entity: int, component_type: type) -> Any | None:
        """Return the component of the given type, or None if absent."""
        return self._entities.get(entity, {}).get(component_type)

    def view(self, *args: type) -> list[tuple]:
        """Return ``(entity, component, ...)`` for every entity holding all the types."""
        if not args:
            raise TypeError("view() needs at least one component type")
        rows = []
        for entity, components in self._entities.items():
            if all(kind in components for kind in args):
                rows.append((entity, *(components[kind] for kind in args)))
        return rows


class PhysicsSubsystem:
    """One stage of the physics step; subclasses override the hooks they need.

    The default ``pre_update`` and ``post_update`` keep a count of started
    steps and the total simulated time that has been completed.
    """

    priority: int = 0
    steps_started: int = 0
    elapsed_time: float = 0.0

    def execution_priority(self) -> int:
        return self.priority

    def pre_update(self, registry: Registry, dt: float) -> None:
        """Hook run before any subsystem's update; counts the started step."""
        self.steps_started += 1

    def update(self, registry: Registry, dt: float) -> None:
        """Main step hook; subclasses put the stage's work here."""

    def post_update(self, registry: Registry, dt: float) -> None:
        """Hook run after every subsystem's update; adds ``dt`` to the elapsed time."""
        self.elapsed_time += dt


class PhysicsSystem:
    """Runs registered subsystems in three phases, each in registration order."""

    def __init__(self, subsystems: Iterable[PhysicsSubsystem] = ()) -> None:
        self.subsystems: list[PhysicsSubsystem] = list(subsystems)

    def register_subsystem(self, subsystem: PhysicsSubsystem) -> PhysicsSubsystem:
        self.subsystems.append(subsystem)
        return subsystem

    def update(self, registry: Registry, dt: float) -> None:
        for subsystem in self.subsystems:
            subsystem.pre_update(registry, dt)
        for subsystem in self.subsystems:
            subsystem.update(registry, dt)
        for subsystem in self.subsystems:
            subsystem.post_update(registry, dt)