"""
Import-boundary enforcement.

1. Kernel independence  -- ledger_kernel/** may not import ledger_modules or
                           ledger_config.
2. Config direction     -- ledger_config/** may not import ledger_modules.
3. Model purity         -- ledger_kernel/models/** may not import services,
                           selectors or domain.
4. Clock discipline     -- only domain/clock.py reads the wall clock.

All scanning is done via AST; these tests are read-only.
"""

import ast
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]


def _python_files(package: str) -> list[Path]:
    return sorted((REPO_ROOT / package).rglob("*.py"))


def _extract_imports(filepath: Path) -> list[tuple[int, str]]:
    """Return (line_number, module_string) for every import in *filepath*."""
    tree = ast.parse(filepath.read_text(), filename=str(filepath))
    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom) and node.module:
            results.append((node.lineno, node.module))
    return results


def _matches_any(module: str, prefixes: tuple[str, ...]) -> bool:
    return any(module == prefix or module.startswith(f"{prefix}.") for prefix in prefixes)


def _violations(package: str, forbidden: tuple[str, ...]) -> list[str]:
    found = []
    for filepath in _python_files(package):
        for lineno, module in _extract_imports(filepath):
            if _matches_any(module, forbidden):
                found.append(f"  {filepath.relative_to(REPO_ROOT)}:{lineno} imports '{module}'")
    return found


class TestLayering:

    def test_kernel_does_not_import_outer_layers(self):
        violations = _violations("ledger_kernel", ("ledger_modules", "ledger_config"))
        assert not violations, "Kernel imports an outer layer:\n" + "\n".join(violations)

    def test_config_does_not_import_modules(self):
        violations = _violations("ledger_config", ("ledger_modules",))
        assert not violations, "Config imports ledger_modules:\n" + "\n".join(violations)

    def test_models_import_only_db(self):
        violations = _violations(
            "ledger_kernel/models",
            (
                "ledger_kernel.services",
                "ledger_kernel.selectors",
                "ledger_kernel.domain",
            ),
        )
        assert not violations, "Model imports a higher kernel layer:\n" + "\n".join(violations)


class TestClockDiscipline:

    WALL_CLOCK_CALLS = frozenset({"datetime.now", "datetime.utcnow", "date.today"})

    def test_wall_clock_only_in_clock_module(self):
        violations = []
        for package in ("ledger_kernel", "ledger_modules", "ledger_config"):
            for filepath in _python_files(package):
                if filepath.name == "clock.py":
                    continue
                tree = ast.parse(filepath.read_text(), filename=str(filepath))
                for node in ast.walk(tree):
                    if (
                        isinstance(node, ast.Attribute)
                        and isinstance(node.value, ast.Name)
                        and f"{node.value.id}.{node.attr}" in self.WALL_CLOCK_CALLS
                    ):
                        violations.append(f"  {filepath.relative_to(REPO_ROOT)}:{node.lineno}")
        assert not violations, "Wall clock read outside Clock:\n" + "\n".join(violations)
