"""PMD rule catalog.

Functions:
    build_catalog(lib_dir, pmd_version, languages)  -> dict
    write_catalog(catalog, output_path)             -> None

PMD ships rule definitions inside ``lib/pmd-<language>-<version>.jar``.
Category files (``category/**/*.xml``) define the rules; ruleset files
(``rulesets/**/*.xml``) reference rules, whole categories or other rulesets.
The catalog lists all three and links every rule to the rulesets that
include it.
"""

import json
import os
import warnings
import zipfile
from pathlib import Path
from xml.etree import ElementTree

from pmd_runner.models import CatalogCategory, CatalogRule, CatalogRuleset

DEFAULT_CATALOG_PATH = "catalogs/PmdCatalog.json"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class CatalogError(Exception):
    """Base exception for catalog errors."""


class NoSuchJarError(CatalogError):
    """Raised when the PMD jar for a language is missing."""


class JarReadError(CatalogError):
    """Raised when a PMD jar or one of its XML files cannot be read."""


class CatalogWriteError(CatalogError):
    """Raised when the catalog JSON cannot be written."""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def jar_name(language: str, pmd_version: str) -> str:
    return f"pmd-{language}-{pmd_version}.jar"


def build_catalog(lib_dir: str, pmd_version: str, languages: list[str]) -> dict:
    """Return ``{"rules": [...], "categories": [...], "rulesets": [...]}``.

    Raises:
        NoSuchJarError: a language jar is missing from *lib_dir*.
        JarReadError:   a jar is corrupt or holds malformed XML.
    """
    categories: list[CatalogCategory] = []
    rules: list[CatalogRule] = []
    rulesets: list[CatalogRuleset] = []

    for language in languages:
        category_files, ruleset_files = _read_jar(lib_dir, pmd_version, language)

        language_rules: list[CatalogRule] = []
        for path, root in category_files:
            category = CatalogCategory(name=root.get("name", ""), path=path)
            categories.append(category)
            language_rules.extend(_rules_from_category(root, category, language))

        language_rulesets = [_ruleset_from_root(root, path) for path, root in ruleset_files]
        _link_dependencies(language_rulesets)
        _link_rules(language_rules, language_rulesets)

        rules.extend(language_rules)
        rulesets.extend(language_rulesets)

    return {
        "rules":      [r.to_dict() for r in rules],
        "categories": [c.to_dict() for c in categories],
        "rulesets":   [r.to_dict() for r in rulesets],
    }


def write_catalog(catalog: dict, output_path: str = DEFAULT_CATALOG_PATH) -> None:
    """Write *catalog* as JSON, creating the parent directory if needed."""
    path = Path(output_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(catalog, indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError as exc:
        raise CatalogWriteError(f"Failed to write catalog to '{output_path}': {exc}") from exc


# ---------------------------------------------------------------------------
# Jar inspection
# ---------------------------------------------------------------------------

def _read_jar(lib_dir: str, pmd_version: str, language: str):
    """Return parsed (category files, ruleset files) as ``[(path, root)]`` lists."""
    jar_path = os.path.join(lib_dir, jar_name(language, pmd_version))
    category_files: list[tuple[str, ElementTree.Element]] = []
    ruleset_files: list[tuple[str, ElementTree.Element]] = []

    try:
        with zipfile.ZipFile(jar_path) as jar:
            for name in sorted(jar.namelist()):
                if not name.endswith(".xml"):
                    continue
                # Note the asymmetry: "category" is singular, "rulesets" plural
                if name.startswith("category"):
                    category_files.append((name, _parse(jar, name, language)))
                elif name.startswith("rulesets"):
                    ruleset_files.append((name, _parse(jar, name, language)))
    except FileNotFoundError as exc:
        raise NoSuchJarError(
            f"No PMD jar found for language '{language}' at '{jar_path}'"
        ) from exc
    except (zipfile.BadZipFile, OSError) as exc:
        raise JarReadError(f"Failed to read PMD jar for language '{language}': {exc}") from exc

    if not category_files and not ruleset_files:
        warnings.warn(
            f"'{jar_path}' contains no category or ruleset definitions.",
            UserWarning,
            stacklevel=3,
        )
    return category_files, ruleset_files


def _parse(jar: zipfile.ZipFile, name: str, language: str) -> ElementTree.Element:
    try:
        return ElementTree.fromstring(jar.read(name))
    except ElementTree.ParseError as exc:
        raise JarReadError(
            f"Malformed XML in '{name}' of the {language} jar: {exc}"
        ) from exc


def _local(tag: str) -> str:
    """Strip the ``{namespace}`` prefix ElementTree puts on tag names."""
    return tag.rsplit("}", 1)[-1]


def _child_text(element: ElementTree.Element, tag: str) -> str | None:
    for child in element:
        if _local(child.tag) == tag and child.text:
            return child.text.strip()
    return None


# ---------------------------------------------------------------------------
# Model construction
# ---------------------------------------------------------------------------

def _rules_from_category(root, category: CatalogCategory, language: str) -> list[CatalogRule]:
    rules = []
    for element in root.iter():
        if _local(element.tag) != "rule" or not element.get("name"):
            continue
        rules.append(CatalogRule(
            name=element.get("name"),
            language=language,
            category=category,
            message=element.get("message"),
            description=_child_text(element, "description"),
        ))
    return rules


def _ruleset_from_root(root, path: str) -> CatalogRuleset:
    ruleset = CatalogRuleset(name=root.get("name", ""), path=path)
    for element in root:
        if _local(element.tag) != "rule" or not element.get("ref"):
            continue
        excluded = {
            child.get("name") for child in element
            if _local(child.tag) == "exclude" and child.get("name")
        }
        ruleset.references.setdefault(element.get("ref"), set()).update(excluded)
    return ruleset


def _link_dependencies(rulesets: list[CatalogRuleset]) -> None:
    """Record refs that point at another ruleset file of the same language."""
    by_path = {r.path: r for r in rulesets}
    for ruleset in rulesets:
        ruleset.dependencies = [
            ref for ref in ruleset.references
            if ref in by_path and ref != ruleset.path
        ]


def _link_rules(rules: list[CatalogRule], rulesets: list[CatalogRuleset]) -> None:
    by_path = {r.path: r for r in rulesets}
    for rule in rules:
        for ruleset in rulesets:
            if _includes(ruleset, rule, by_path, {ruleset.path}):
                rule.rulesets.append(ruleset.name)


def _includes(ruleset: CatalogRuleset, rule: CatalogRule, by_path: dict, seen: set) -> bool:
    """True if *ruleset* pulls in *rule* directly, by category, or via a dependency."""
    if rule.reference in ruleset.references:
        return True
    excluded = ruleset.references.get(rule.category.path)
    if excluded is not None and rule.name not in excluded:
        return True
    for dependency in ruleset.dependencies:
        if dependency in seen:
            continue
        seen.add(dependency)
        if _includes(by_path[dependency], rule, by_path, seen):
            return True
    return False
