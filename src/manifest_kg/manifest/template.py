"""Starter manifests printed by ``manifest-kg template``."""

BASIC_MANIFEST = """{
  // Vocabulary CSV files: classes and their properties
  "model": {
    // Bare paths are BasicVocabularyStep steps
    "sequence": ["model/vocabulary.csv"]
  },
  // Data CSV files: one entity per row
  "instances": {
    // Bare paths are BasicInstanceStep steps typed after the file name
    "sequence": ["data/instances.csv"]
  }
}
"""

FULL_MANIFEST = """{
  "@context": {
    "@vocab": "https://ns.flur.ee/imports#",
    "sequence": {
      "@id": "https://ns.flur.ee/imports#sequence",
      "@container": "@list"
    }
  },
  "@type": "CSVImportManifest",
  "@id": "your-model-id",
  "name": "Your Model Name",
  "description": "Description of your data model",
  "model": {
    // Prefix of every class and property IRI
    "baseIRI": "http://example.org/terms/",
    // Step paths are relative to this directory
    "path": "model/",
    "sequence": [
      {
        "path": "vocabulary.csv",
        "@type": ["CSVImportStep", "BasicVocabularyStep"],
        "overrides": [
          {"column": "Class", "mapTo": "$Class.ID"},
          {"column": "Property", "mapTo": "$Property.ID"}
        ],
        "ignore": ["Notes"]
      },
      {
        // Every row declares a subclass of Material
        "path": "material-classes.csv",
        "@type": ["CSVImportStep", "SubClassVocabularyStep"],
        "subClassOf": ["Material"],
        "replaceClassIdWith": "$Class.Name",
        "extraItems": [
          {"column": "Category", "mapTo": "category", "onEntity": "CLASS"}
        ]
      },
      {
        "path": "properties.csv",
        "@type": ["CSVImportStep", "PropertiesVocabularyStep"]
      }
    ]
  },
  "instances": {
    // Prefix of every entity IRI
    "baseIRI": "http://example.org/data/",
    // Include the kebab-cased instance type in entity IRIs
    "namespaceIris": true,
    "path": "data/",
    "sequence": [
      {
        // Allowed values of the Color class
        "path": "colors.csv",
        "@type": ["CSVImportStep", "PicklistStep"],
        "instanceType": "Color"
      },
      {
        // Each entity is typed with the subclass named in "Material Type"
        "path": "materials.csv",
        "@type": ["CSVImportStep", "SubClassInstanceStep"],
        "instanceType": "Material",
        "subClassProperty": "Material Type",
        "mapToLabel": "Name"
      },
      {
        "path": "products.csv",
        "@type": ["CSVImportStep", "BasicInstanceStep"],
        "instanceType": "Product",
        "overrides": [{"column": "SKU", "mapTo": "@id"}],
        "delimitValuesOn": "|"
      },
      {
        // Line item columns become LineItem entities linked to their order
        "path": "orders.csv",
        "@type": ["CSVImportStep", "BasicInstanceStep"],
        "instanceType": "Order",
        "pivotColumns": [
          {
            "instanceType": "LineItem",
            "newRelationshipProperty": "hasLineItem",
            "columns": ["Product", "Quantity"]
          }
        ]
      },
      {
        // One property value per row, added to products loaded above
        "path": "product-attributes.csv",
        "@type": ["CSVImportStep", "PropertiesInstanceStep"],
        "instanceType": "Product",
        "overrides": [
          {"column": "SKU", "mapTo": "@id"},
          {"column": "Attribute", "mapTo": "$Property.ID"},
          {"column": "Value", "mapTo": "$Property.Value"}
        ]
      }
    ]
  }
}
"""

TEMPLATES = {
    "basic": BASIC_MANIFEST,
    "full": FULL_MANIFEST,
}


def get_template(name: str) -> str:
    """Return the manifest template called ``name`` ("basic" or "full")."""
    try:
        return TEMPLATES[name]
    except KeyError:
        raise ValueError(
            f"Unknown template: {name}. Available templates: {sorted(TEMPLATES)}"
        ) from None
