"""Data models for the PMD rule catalog.

Contains dataclasses used to structure and serialize the JSON catalog:
    - CatalogCategory   one ``category/<lang>/*.xml`` file
    - CatalogRule       one ``<rule>`` defined in a category file
    - CatalogRuleset    one ``rulesets/<lang>/*.xml`` file
"""

from dataclasses import dataclass, field


@dataclass
class CatalogCategory:
    name: str
    path: str

    def to_dict(self) -> dict:
        return {"name": self.name, "path": self.path}


@dataclass
class CatalogRule:
    name: str
    language: str
    category: CatalogCategory
    message: str | None = None
    description: str | None = None
    rulesets: list[str] = field(default_factory=list)

    @property
    def reference(self) -> str:
        """Path a ruleset uses to pull in this single rule."""
        return f"{self.category.path}/{self.name}"

    def to_dict(self) -> dict:
        return {
            "name":        self.name,
            "message":     self.message,
            "description": self.description,
            "language":    self.language,
            "category":    self.category.name,
            "rulesets":    list(self.rulesets),
        }


@dataclass
class CatalogRuleset:
    """A ruleset file and the ``<rule ref=...>`` entries it declares.

    ``references`` maps each ref to the rule names excluded from it.
    """

    name: str
    path: str
    references: dict[str, set[str]] = field(default_factory=dict)
    dependencies: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name":         self.name,
            "path":         self.path,
            "dependencies": list(self.dependencies),
        }
