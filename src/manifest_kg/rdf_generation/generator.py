"""RDF generator which converts a build state to RDF."""

import logging
from pathlib import Path

from rdflib import BNode, Dataset, Graph, Literal, Namespace, URIRef
from rdflib.collection import Collection
from rdflib.namespace import OWL, RDF, RDFS

from ..engine.errors import ConflictError
from ..engine.state import BuildState, ClassTerm, Entity, PropertyTerm
from .base import GraphSink


class RDFGenerator(GraphSink):
    """Graph sink building rdflib graphs for the vocabulary and the instances."""

    # Supported output formats
    SUPPORTED_FORMATS = {
        "turtle",
        "ttl",
        "xml",
        "rdf",
        "n3",
        "nt",
        "json-ld",
        "jsonld",
        "trig",
        "pretty-xml",
        "nquads",
        "nq",
    }

    # File extension per normalized format
    EXTENSIONS = {
        "turtle": "ttl",
        "xml": "rdf",
        "pretty-xml": "rdf",
        "n3": "n3",
        "nt": "nt",
        "json-ld": "jsonld",
        "trig": "trig",
        "nquads": "nq",
    }

    def __init__(self, vocabulary_base: str = "", instances_base: str = ""):
        """
        Initialize RDF generator.

        Args:
            vocabulary_base: Base IRI of classes and properties, bound as ``vocab``
            instances_base: Base IRI of entities, bound as ``data``
        """
        super().__init__("rdf")
        self.vocabulary_base = vocabulary_base
        self.instances_base = instances_base
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

        self._setup_namespaces()
        self.reset()

    def _setup_namespaces(self) -> None:
        """Setup common RDF namespaces."""
        self.namespaces = {
            "rdf": "http://www.w3.org/1999/02/22-rdf-syntax-ns#",
            "rdfs": "http://www.w3.org/2000/01/rdf-schema#",
            "owl": "http://www.w3.org/2002/07/owl#",
            "xsd": "http://www.w3.org/2001/XMLSchema#",
        }
        if self.vocabulary_base:
            self.namespaces["vocab"] = self.vocabulary_base
        if self.instances_base:
            self.namespaces["data"] = self.instances_base

    def _bind_namespaces(self, graph: Graph) -> None:
        """Bind namespaces to graph."""
        for prefix, uri in self.namespaces.items():
            graph.bind(prefix, Namespace(uri))

    def reset(self) -> None:
        """Start over with empty graphs."""
        self.vocabulary = Graph()
        self.instances = Graph()
        self._bind_namespaces(self.vocabulary)
        self._bind_namespaces(self.instances)

    def declare_class(self, term: ClassTerm) -> None:
        subject = URIRef(term.iri)
        graph = self.vocabulary

        graph.add((subject, RDF.type, RDFS.Class))
        self._add_label(graph, subject, term.label)
        if term.comment:
            graph.add((subject, RDFS.comment, Literal(term.comment)))
        for parent in term.sub_class_of:
            graph.add((subject, RDFS.subClassOf, URIRef(parent)))
        for attribute, value in term.attributes.items():
            graph.add((subject, URIRef(attribute), Literal(value)))

        if term.one_of:
            # Enumerations are OWL classes with a closed member list
            graph.add((subject, RDF.type, OWL.Class))
            node = graph.value(subject, OWL.oneOf)
            if node is None:
                node = BNode()
                graph.add((subject, OWL.oneOf, node))
            members = Collection(graph, node)
            for member in term.one_of:
                if URIRef(member) not in members:
                    members.append(URIRef(member))

    def declare_property(self, term: PropertyTerm) -> None:
        subject = URIRef(term.iri)
        graph = self.vocabulary

        graph.add((subject, RDF.type, RDF.Property))
        self._add_label(graph, subject, term.label)
        if term.comment:
            graph.add((subject, RDFS.comment, Literal(term.comment)))
        for domain in term.domain:
            graph.add((subject, RDFS.domain, URIRef(domain)))
        for range_ in term.range:
            graph.add((subject, RDFS.range, URIRef(range_)))
        for attribute, value in term.attributes.items():
            graph.add((subject, URIRef(attribute), Literal(value)))

    def add_entity(self, entity: Entity) -> None:
        subject = URIRef(entity.iri)
        graph = self.instances

        for type_iri in entity.types:
            graph.add((subject, RDF.type, URIRef(type_iri)))
        if entity.label:
            self._add_label(graph, subject, entity.label)
        for property_iri, values in entity.values.items():
            predicate = URIRef(property_iri)
            for value in values:
                graph.add((subject, predicate, value))

    def _add_label(self, graph: Graph, subject: URIRef, label: str) -> None:
        """Add an rdfs:label, refusing a second, different one."""
        if not label:
            return
        current = graph.value(subject, RDFS.label)
        if current is not None and str(current) != label:
            raise ConflictError(
                f"<{subject}> already labelled '{current}', cannot relabel '{label}'"
            )
        graph.add((subject, RDFS.label, Literal(label)))

    def generate(self, state: BuildState, output_format: str) -> tuple[str, str]:
        """
        Generate RDF from a build state.

        Args:
            state: Build state of a manifest run
            output_format: Output format (turtle, xml, n3, nt, json-ld, etc.)

        Returns:
            tuple[str, str]: Vocabulary and instance serializations

        Raises:
            ValueError: If output format is not supported
            ConflictError: If a subject would get two different labels
        """
        self._check_format(output_format)

        self.reset()
        self.emit(state)

        return (
            self._serialize(self.vocabulary, output_format),
            self._serialize(self.instances, output_format),
        )

    def save(
        self,
        state: BuildState,
        vocabulary_path: str | Path,
        instances_path: str | Path,
        output_format: str,
    ) -> None:
        """
        Generate RDF and save the vocabulary and the instances to separate files.

        Args:
            state: Build state of a manifest run
            vocabulary_path: Output file of the vocabulary
            instances_path: Output file of the instances
            output_format: Output format (turtle, xml, n3, nt, json-ld, etc.)
        """
        vocabulary, instances = self.generate(state, output_format)

        for output_path, content, graph in (
            (Path(vocabulary_path), vocabulary, self.vocabulary),
            (Path(instances_path), instances, self.instances),
        ):
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, "w", encoding="utf-8") as f:
                f.write(content)

            self.logger.info(
                f"RDF saved to {output_path} in {output_format} format with {len(graph)} triples"
            )

    def extension_for(self, output_format: str) -> str:
        """File extension conventionally used for a format."""
        self._check_format(output_format)
        return self.EXTENSIONS[self._normalize_format_name(output_format)]

    def _check_format(self, output_format: str) -> None:
        if output_format.lower() not in self.SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported format: {output_format}. "
                f"Supported formats: {sorted(self.SUPPORTED_FORMATS)}"
            )

    def _serialize(self, graph: Graph, output_format: str) -> str:
        rdflib_format = self._normalize_format_name(output_format)
        if rdflib_format == "nquads":
            # N-Quads needs a context-aware store
            dataset = Dataset()
            for triple in graph:
                dataset.add(triple)
            graph = dataset

        try:
            return graph.serialize(format=rdflib_format)
        except Exception as e:
            raise ValueError(f"Failed to serialize RDF as {output_format}: {e}") from e

    def _normalize_format_name(self, format_name: str) -> str:
        """
        Normalize format name for rdflib.

        Args:
            format_name: Input format name

        Returns:
            str: Normalized format name for rdflib
        """
        format_mapping = {
            "ttl": "turtle",
            "rdf": "xml",
            "jsonld": "json-ld",
            "nq": "nquads",
        }

        normalized = format_name.lower()
        return format_mapping.get(normalized, normalized)
