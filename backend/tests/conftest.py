"""Pytest configuration and fixtures."""

import os

import pytest

from codescan.config import Settings


@pytest.fixture
def workspace_root(tmp_path) -> str:
    """Resolved workspace root; path checks compare resolved paths."""
    root = os.path.realpath(tmp_path / "workspaces")
    os.makedirs(root)
    return root


@pytest.fixture
def workspace(tmp_path) -> str:
    """A populated directory standing in for a checked-out repository."""
    path = os.path.realpath(tmp_path / "repo")
    os.makedirs(path)
    return path


@pytest.fixture
def settings(workspace_root) -> Settings:
    return Settings(
        _env_file=None,
        workspace_root=workspace_root,
        allow_local_repositories=True,
        database_url="sqlite+aiosqlite:///:memory:",
        pmd_path="/opt/pmd/bin/pmd",
    )


@pytest.fixture
def eslint_payload(workspace):
    return [
        {
            "filePath": os.path.join(workspace, "src", "app.js"),
            "messages": [
                {
                    "ruleId": "no-unused-vars",
                    "severity": 2,
                    "message": "'x' is defined but never used.",
                    "line": 3,
                    "column": 7,
                    "endLine": 3,
                    "endColumn": 8,
                },
                {
                    "ruleId": "react/jsx-key",
                    "severity": 1,
                    "message": "Missing \"key\" prop for element in iterator",
                    "line": 10,
                    "column": 5,
                    "suggestions": [{"desc": "Add a key prop"}],
                },
            ],
            "errorCount": 1,
            "warningCount": 1,
        },
        {
            "filePath": os.path.join(workspace, "node_modules", "lib", "index.js"),
            "messages": [
                {"ruleId": "semi", "severity": 2, "message": "Missing semicolon.", "line": 1, "column": 1}
            ],
        },
    ]


@pytest.fixture
def pmd_payload(workspace):
    return {
        "formatVersion": 0,
        "pmdVersion": "7.0.0",
        "files": [
            {
                "filename": os.path.join(workspace, "src", "main", "java", "App.java"),
                "violations": [
                    {
                        "beginline": 12,
                        "begincolumn": 5,
                        "endline": 12,
                        "endcolumn": 30,
                        "description": "Avoid unused local variables such as 'count'.",
                        "rule": "UnusedLocalVariable",
                        "ruleset": "Best Practices",
                        "priority": 3,
                        "externalInfoUrl": "https://docs.pmd-code.org/latest/pmd_rules_java_bestpractices.html",
                    },
                    {
                        "beginline": 20,
                        "begincolumn": 9,
                        "description": "Avoid empty catch blocks",
                        "rule": "EmptyCatchBlock",
                        "ruleset": "Error Prone",
                        "priority": 1,
                    },
                    {
                        "beginline": 0,
                        "description": "File-level finding",
                        "rule": "NoPackage",
                        "ruleset": "Code Style",
                        "priority": 5,
                    },
                ],
            }
        ],
        "processingErrors": [],
        "configurationErrors": [],
    }


@pytest.fixture
def pylint_payload(workspace):
    return [
        {
            "type": "convention",
            "module": "pkg.util",
            "obj": "",
            "line": 1,
            "column": 0,
            "endLine": None,
            "endColumn": None,
            "path": os.path.join(workspace, "pkg", "util.py"),
            "symbol": "missing-module-docstring",
            "message": "Missing module docstring",
            "message-id": "C0114",
        },
        {
            "type": "error",
            "module": "pkg.util",
            "obj": "run",
            "line": 8,
            "column": 4,
            "endLine": 8,
            "endColumn": 12,
            "path": os.path.join(workspace, "pkg", "util.py"),
            "symbol": "undefined-variable",
            "message": "Undefined variable 'result'",
            "message-id": "E0602",
        },
        {
            "type": "warning",
            "module": "pkg.main",
            "obj": "",
            "line": 2,
            "column": 0,
            "path": "pkg/main.py",
            "symbol": "unused-import",
            "message": "Unused import os",
            "message-id": "W0611",
        },
    ]


@pytest.fixture
def phpcs_payload(workspace):
    return {
        "totals": {"errors": 1, "warnings": 1, "fixable": 1},
        "files": {
            os.path.join(workspace, "src", "index.php"): {
                "errors": 1,
                "warnings": 1,
                "messages": [
                    {
                        "message": "Missing file doc comment",
                        "source": "PEAR.Commenting.FileComment.Missing",
                        "severity": 5,
                        "fixable": False,
                        "type": "ERROR",
                        "line": 2,
                        "column": 1,
                    },
                    {
                        "message": "Line exceeds 85 characters; contains 92 characters",
                        "source": "Generic.Files.LineLength.TooLong",
                        "severity": 5,
                        "fixable": True,
                        "type": "WARNING",
                        "line": 14,
                        "column": 93,
                    },
                ],
            },
            os.path.join(workspace, "vendor", "autoload.php"): {
                "errors": 1,
                "warnings": 0,
                "messages": [
                    {
                        "message": "Missing file doc comment",
                        "source": "PEAR.Commenting.FileComment.Missing",
                        "type": "ERROR",
                        "line": 1,
                        "column": 1,
                    }
                ],
            },
        },
    }
