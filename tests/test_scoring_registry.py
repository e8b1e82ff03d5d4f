from __future__ import annotations

from pathlib import Path

import pytest

from ReadinessEngine.scoring import (
    CategoryNotFoundError,
    CategoryRegistry,
    TestCategory,
    TestDefinition,
    TestKind,
    load_registry,
)


def test_default_registry_order_and_weights(registry: CategoryRegistry) -> None:
    assert registry.ids == (
        "security",
        "performance",
        "reliability",
        "compliance",
        "ux",
        "devops",
        "data",
        "integration",
    )
    assert registry.total_weight == 100
    assert len(registry) == 8


def test_critical_path_categories(registry: CategoryRegistry) -> None:
    critical = {category.id for category in registry if category.critical_path}
    assert critical == {"security", "performance", "reliability", "compliance"}


def test_get_unknown_category_raises(registry: CategoryRegistry) -> None:
    with pytest.raises(CategoryNotFoundError) as excinfo:
        registry.get("chaos")
    assert excinfo.value.category_id == "chaos"
    assert "chaos" in str(excinfo.value)
    assert isinstance(excinfo.value, LookupError)
    assert registry.find("chaos") is None
    assert "chaos" not in registry


def test_test_lookup_and_kinds(registry: CategoryRegistry) -> None:
    recovery = registry.test("disaster-recovery")
    assert recovery is not None
    assert recovery.kind is TestKind.HYBRID
    assert "redundancy-failover" in recovery.dependencies
    assert registry.test("missing") is None

    by_kind = registry.tests_by_kind()
    assert by_kind[TestKind.MANUAL] == 2
    assert by_kind[TestKind.HYBRID] == 1
    assert sum(by_kind.values()) == sum(len(category.tests) for category in registry)


def test_categories_preserve_test_order(registry: CategoryRegistry) -> None:
    security = registry.get("security")
    assert [test.id for test in security.tests][:2] == ["auth-authorization", "data-encryption"]


def test_duplicate_category_rejected() -> None:
    category = TestCategory(id="dup", name="Dup", description="", weight=1, critical_path=False)
    with pytest.raises(ValueError):
        CategoryRegistry([category, category])


def test_duplicate_test_id_rejected() -> None:
    check = TestDefinition(
        id="shared",
        name="Shared",
        description="",
        kind=TestKind.AUTOMATED,
        estimated_duration=10,
        success_criteria="",
    )
    first = TestCategory(id="a", name="A", description="", weight=1, critical_path=False, tests=(check,))
    second = TestCategory(id="b", name="B", description="", weight=1, critical_path=False, tests=(check,))
    with pytest.raises(ValueError):
        CategoryRegistry([first, second])


def test_invalid_definitions_rejected() -> None:
    with pytest.raises(ValueError):
        TestCategory(id="neg", name="Neg", description="", weight=-1, critical_path=False)
    with pytest.raises(ValueError):
        TestDefinition(
            id="slow",
            name="Slow",
            description="",
            kind=TestKind.MANUAL,
            estimated_duration=-5,
            success_criteria="",
        )


def test_load_registry_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "registry.yaml"
    path.write_text(
        """
categories:
  - id: api
    name: API
    weight: 3
    critical_path: true
    tests:
      - id: contract
        kind: automated
        estimated_duration: 60
        tags: [api]
  - id: docs
    weight: 1
""",
        encoding="utf-8",
    )
    loaded = load_registry(path)
    assert loaded.ids == ("api", "docs")
    assert loaded.get("api").critical_path is True
    assert loaded.test("contract").tags == frozenset({"api"})
    assert loaded.total_weight == 4


def test_load_registry_rejects_empty(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("categories: []\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_registry(path)
