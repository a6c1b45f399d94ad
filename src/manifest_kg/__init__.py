"""
Manifest KG Pipeline

A manifest-driven pipeline for building knowledge graphs from CSV files.
A model phase turns vocabulary CSVs into RDF classes and properties, an
instances phase turns data CSVs into typed entities and relationships, and
the result is written out as standardized RDF files.
"""

__version__ = "0.1.0"
__author__ = "Manifest KG"
