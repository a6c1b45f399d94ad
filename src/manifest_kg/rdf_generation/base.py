"""Base graph sink class for emitting a build state."""

from abc import ABC, abstractmethod
import logging

from ..engine.state import BuildState, ClassTerm, Entity, PropertyTerm


class GraphSink(ABC):
    """Abstract base class for graph sinks.

    A sink accepts class and property declarations and entity records keyed
    by IRI. Declaring the same IRI twice merges the two records.
    """

    def __init__(self, name: str):
        """Initialize graph sink.

        Args:
            name: Name of the sink, used for logging
        """
        self.name = name
        self.logger = logging.getLogger(f"sink.{name}")

    @abstractmethod
    def declare_class(self, term: ClassTerm) -> None:
        """Declare a class of the vocabulary.

        Raises:
            ConflictError: If the class is already declared with different values
        """
        pass

    @abstractmethod
    def declare_property(self, term: PropertyTerm) -> None:
        """Declare a property of the vocabulary.

        Raises:
            ConflictError: If the property is already declared with different values
        """
        pass

    @abstractmethod
    def add_entity(self, entity: Entity) -> None:
        """Add an entity with its types, label and values.

        Raises:
            ConflictError: If the entity already has a different label
        """
        pass

    def emit(self, state: BuildState) -> None:
        """Send every class, property and entity of a build state to the sink."""
        for class_term in state.classes.values():
            self.declare_class(class_term)
        for property_term in state.properties.values():
            self.declare_property(property_term)
        for entity in state.entities.values():
            self.add_entity(entity)

        self.logger.debug(
            f"Emitted {len(state.classes)} classes, {len(state.properties)} "
            f"properties and {len(state.entities)} entities"
        )
