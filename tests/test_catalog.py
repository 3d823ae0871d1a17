"""Tests for pmd_runner/catalog.py"""

import json
import warnings
import zipfile

import pytest

from pmd_runner.catalog import (
    CatalogWriteError,
    JarReadError,
    NoSuchJarError,
    build_catalog,
    jar_name,
    write_catalog,
)

VERSION = "6.22.0"
NS = 'xmlns="http://pmd.sourceforge.net/ruleset/2.0.0"'


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _category(name: str, *rules: str) -> str:
    body = "".join(
        f'<rule name="{r}" language="apex" message="{r} message" class="x.{r}">'
        f"<description>\n  Describes {r}.\n</description></rule>"
        for r in rules
    )
    return f'<?xml version="1.0"?><ruleset name="{name}" {NS}>{body}</ruleset>'


def _ruleset(name: str, *refs) -> str:
    body = ""
    for ref in refs:
        if isinstance(ref, tuple):
            ref, excludes = ref
            inner = "".join(f'<exclude name="{e}"/>' for e in excludes)
            body += f'<rule ref="{ref}">{inner}</rule>'
        else:
            body += f'<rule ref="{ref}"/>'
    return f'<?xml version="1.0"?><ruleset name="{name}" {NS}><description>d</description>{body}</ruleset>'


def _make_jar(lib_dir, language: str, files: dict) -> None:
    lib_dir.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(lib_dir / jar_name(language, VERSION), "w") as jar:
        for name, content in files.items():
            jar.writestr(name, content)


APEX_FILES = {
    "category/apex/bestpractices.xml": _category("Best Practices", "AvoidGlobalModifier", "ApexUnitTestShouldNotUseSeeAllDataTrue"),
    "category/apex/design.xml": _category("Design", "ExcessiveClassLength", "CyclomaticComplexity"),
    "rulesets/apex/quickstart.xml": _ruleset(
        "quickstart",
        "category/apex/bestpractices.xml/AvoidGlobalModifier",
        ("category/apex/design.xml", ["CyclomaticComplexity"]),
    ),
    "rulesets/apex/extended.xml": _ruleset(
        "extended",
        "rulesets/apex/quickstart.xml",
        "category/apex/design.xml/CyclomaticComplexity",
    ),
    "net/sourceforge/pmd/Something.class": "binary",
    "META-INF/MANIFEST.MF": "Manifest-Version: 1.0\n",
}


def _rule(catalog: dict, name: str) -> dict:
    return next(r for r in catalog["rules"] if r["name"] == name)


@pytest.fixture
def apex_lib(tmp_path):
    lib = tmp_path / "lib"
    _make_jar(lib, "apex", APEX_FILES)
    return lib


# ---------------------------------------------------------------------------
# build_catalog() — structure
# ---------------------------------------------------------------------------

def test_catalog_lists_categories(apex_lib):
    catalog = build_catalog(str(apex_lib), VERSION, ["apex"])
    assert catalog["categories"] == [
        {"name": "Best Practices", "path": "category/apex/bestpractices.xml"},
        {"name": "Design", "path": "category/apex/design.xml"},
    ]


def test_catalog_lists_rules_with_metadata(apex_lib):
    catalog = build_catalog(str(apex_lib), VERSION, ["apex"])
    assert len(catalog["rules"]) == 4
    rule = _rule(catalog, "AvoidGlobalModifier")
    assert rule["message"] == "AvoidGlobalModifier message"
    assert rule["description"] == "Describes AvoidGlobalModifier."
    assert rule["language"] == "apex"
    assert rule["category"] == "Best Practices"


def test_catalog_lists_rulesets_and_dependencies(apex_lib):
    catalog = build_catalog(str(apex_lib), VERSION, ["apex"])
    by_name = {r["name"]: r for r in catalog["rulesets"]}
    assert by_name["extended"]["dependencies"] == ["rulesets/apex/quickstart.xml"]
    assert by_name["quickstart"]["dependencies"] == []


# ---------------------------------------------------------------------------
# build_catalog() — rule/ruleset links
# ---------------------------------------------------------------------------

def test_rule_referenced_directly(apex_lib):
    catalog = build_catalog(str(apex_lib), VERSION, ["apex"])
    assert sorted(_rule(catalog, "AvoidGlobalModifier")["rulesets"]) == ["extended", "quickstart"]


def test_rule_included_by_whole_category(apex_lib):
    catalog = build_catalog(str(apex_lib), VERSION, ["apex"])
    assert sorted(_rule(catalog, "ExcessiveClassLength")["rulesets"]) == ["extended", "quickstart"]


def test_excluded_rule_only_in_ruleset_that_adds_it_back(apex_lib):
    catalog = build_catalog(str(apex_lib), VERSION, ["apex"])
    assert _rule(catalog, "CyclomaticComplexity")["rulesets"] == ["extended"]


def test_unreferenced_rule_has_no_rulesets(apex_lib):
    catalog = build_catalog(str(apex_lib), VERSION, ["apex"])
    assert _rule(catalog, "ApexUnitTestShouldNotUseSeeAllDataTrue")["rulesets"] == []


def test_circular_ruleset_dependencies_terminate(tmp_path):
    lib = tmp_path / "lib"
    _make_jar(lib, "java", {
        "category/java/errorprone.xml": _category("Error Prone", "EmptyCatchBlock"),
        "rulesets/java/a.xml": _ruleset("a", "rulesets/java/b.xml"),
        "rulesets/java/b.xml": _ruleset("b", "rulesets/java/a.xml"),
    })
    catalog = build_catalog(str(lib), VERSION, ["java"])
    assert _rule(catalog, "EmptyCatchBlock")["rulesets"] == []


def test_multiple_languages_are_kept_apart(apex_lib):
    _make_jar(apex_lib, "java", {
        "category/java/design.xml": _category("Design", "GodClass"),
        "rulesets/java/quickstart.xml": _ruleset("quickstart", "category/java/design.xml"),
    })
    catalog = build_catalog(str(apex_lib), VERSION, ["apex", "java"])
    god_class = _rule(catalog, "GodClass")
    assert god_class["language"] == "java"
    assert god_class["rulesets"] == ["quickstart"]
    assert len(catalog["categories"]) == 3


# ---------------------------------------------------------------------------
# build_catalog() — errors
# ---------------------------------------------------------------------------

def test_missing_jar_raises(tmp_path):
    with pytest.raises(NoSuchJarError, match="visualforce"):
        build_catalog(str(tmp_path), VERSION, ["visualforce"])


def test_corrupt_jar_raises(tmp_path):
    (tmp_path / jar_name("apex", VERSION)).write_bytes(b"not a zip")
    with pytest.raises(JarReadError):
        build_catalog(str(tmp_path), VERSION, ["apex"])


def test_malformed_xml_raises(tmp_path):
    _make_jar(tmp_path, "apex", {"category/apex/broken.xml": "<ruleset><rule"})
    with pytest.raises(JarReadError, match="broken.xml"):
        build_catalog(str(tmp_path), VERSION, ["apex"])


def test_jar_without_definitions_warns(tmp_path):
    _make_jar(tmp_path, "apex", {"META-INF/MANIFEST.MF": "Manifest-Version: 1.0\n"})
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        catalog = build_catalog(str(tmp_path), VERSION, ["apex"])

    assert catalog == {"rules": [], "categories": [], "rulesets": []}
    assert any("no category or ruleset" in str(w.message) for w in caught)


# ---------------------------------------------------------------------------
# write_catalog()
# ---------------------------------------------------------------------------

def test_write_catalog_creates_parent_dir(tmp_path):
    out = tmp_path / "catalogs" / "PmdCatalog.json"
    write_catalog({"rules": [], "categories": [], "rulesets": []}, str(out))
    assert json.loads(out.read_text()) == {"rules": [], "categories": [], "rulesets": []}


def test_write_catalog_failure_raises(tmp_path):
    blocker = tmp_path / "catalogs"
    blocker.write_text("a file, not a directory")
    with pytest.raises(CatalogWriteError):
        write_catalog({}, str(blocker / "PmdCatalog.json"))
