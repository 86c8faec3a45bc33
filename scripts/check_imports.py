#!/usr/bin/env python3
"""
Static analyzer to enforce the core/collaborator boundary.

termai/core is the sink every other layer reports failures into, so it must
never import the AI, auth, context or CLI layers that depend on it.
"""

import ast
import sys
from pathlib import Path
from typing import List, Tuple

FORBIDDEN_MODULES = ("ai", "auth", "cli", "context")


class ImportViolationChecker(ast.NodeVisitor):
    """AST visitor to check for forbidden imports in core modules."""

    def __init__(self, file_path: str):
        self.file_path = file_path
        self.violations: List[Tuple[int, str]] = []
        self.forbidden_patterns = [f"termai.{name}" for name in FORBIDDEN_MODULES]

    def _is_forbidden_import(self, module_name: str) -> bool:
        """Check if an absolute module name is one of the collaborator layers."""
        return any(
            module_name == pattern or module_name.startswith(pattern + ".")
            for pattern in self.forbidden_patterns
        )

    def _is_forbidden_relative(self, level: int, module_name: str) -> bool:
        """Relative imports reach termai/* from core only with two or more dots."""
        if level < 2 or not module_name:
            return False
        return module_name.split(".")[0] in FORBIDDEN_MODULES

    def visit_Import(self, node: ast.Import) -> None:
        """Check import statements."""
        for alias in node.names:
            if self._is_forbidden_import(alias.name):
                self.violations.append((node.lineno, f"Forbidden import: import {alias.name}"))
        self.generic_visit(node)

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        """Check from...import statements."""
        module = node.module or ""
        names = ", ".join(alias.name for alias in node.names)
        dots = "." * node.level
        if node.level == 0 and self._is_forbidden_import(module):
            self.violations.append((node.lineno, f"Forbidden import: from {module} import {names}"))
        elif self._is_forbidden_relative(node.level, module):
            self.violations.append(
                (node.lineno, f"Forbidden import: from {dots}{module} import {names}")
            )
        elif node.level >= 2 and not module:
            bad = [alias.name for alias in node.names if alias.name in FORBIDDEN_MODULES]
            if bad:
                self.violations.append(
                    (node.lineno, f"Forbidden import: from {dots} import {', '.join(bad)}")
                )
        elif node.level == 0 and module == "termai":
            bad = [alias.name for alias in node.names if alias.name in FORBIDDEN_MODULES]
            if bad:
                self.violations.append(
                    (node.lineno, f"Forbidden import: from termai import {', '.join(bad)}")
                )
        self.generic_visit(node)


def check_core_imports(root_path: Path) -> List[Tuple[str, int, str]]:
    """
    Check all Python files in termai/core for forbidden imports.

    Returns:
        List of violations as (file_path, line_number, message) tuples
    """
    violations = []
    core_path = root_path / "termai" / "core"

    if not core_path.exists():
        print(f"Warning: Core path {core_path} does not exist")
        return violations

    for py_file in sorted(core_path.rglob("*.py")):
        try:
            with open(py_file, "r", encoding="utf-8") as f:
                source = f.read()

            tree = ast.parse(source, filename=str(py_file))
            checker = ImportViolationChecker(str(py_file))
            checker.visit(tree)

            for line_no, message in checker.violations:
                violations.append((str(py_file), line_no, message))

        except SyntaxError as e:
            violations.append((str(py_file), e.lineno or 0, f"Syntax error: {e}"))
        except Exception as e:
            violations.append((str(py_file), 0, f"Error processing file: {e}"))

    return violations


def main() -> int:
    """Main entry point."""
    root_path = Path(__file__).parent.parent
    violations = check_core_imports(root_path)

    if not violations:
        print("✅ All core imports are valid - no cross-layer violations found")
        return 0

    print("❌ Cross-layer import violations found:")
    print()

    for file_path, line_no, message in violations:
        rel_path = Path(file_path).relative_to(root_path)
        print(f"  {rel_path}:{line_no} - {message}")

    print()
    print(f"Total violations: {len(violations)}")
    print()
    print("Core modules must not import from termai.ai, termai.auth, termai.cli or termai.context.")
    print("Collaborators call into the error core, never the other way around.")

    return 1


if __name__ == "__main__":
    sys.exit(main())
