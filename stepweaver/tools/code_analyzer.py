"""Regex based static analysis for diffs and source files."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import PurePath
from typing import TYPE_CHECKING, Any, Dict, List

from .base import BaseTool, ToolResult

if TYPE_CHECKING:
    from ..context import ExecutionContext
    from ..contracts import ToolBinding


SEVERITY_WEIGHTS = {"critical": 4, "high": 3, "medium": 2, "low": 1}
SEVERITY_SCORES = {"critical": 25, "high": 15, "medium": 8, "low": 3}
MAX_LINE_LENGTH = 120

_CREDENTIAL_PATTERNS = [
    re.compile(r"""password\s*=\s*['"][^'"]+['"]""", re.IGNORECASE),
    re.compile(r"""api_key\s*=\s*['"][^'"]+['"]""", re.IGNORECASE),
    re.compile(r"""secret\s*=\s*['"][^'"]+['"]""", re.IGNORECASE),
    re.compile(r"""token\s*=\s*['"][^'"]+['"]""", re.IGNORECASE),
]
_DECISION_PATTERNS = [
    re.compile(p)
    for p in (
        r"\bif\b",
        r"\belif\b",
        r"\belse\b",
        r"\bwhile\b",
        r"\bfor\b",
        r"\bswitch\b",
        r"\bcase\b",
        r"\btry\b",
        r"\bcatch\b",
        r"\bexcept\b",
        r"&&",
        r"\|\|",
    )
]
_MAGIC_NUMBER = re.compile(r"\b\d{3,}\b")
_HUNK_HEADER = re.compile(r"@@ -\d+(?:,\d+)? \+(\d+)(?:,\d+)? @@")
_COMMENT_PREFIXES = ("//", "#")

LANGUAGES = {
    "js": "javascript",
    "ts": "typescript",
    "py": "python",
    "java": "java",
    "c": "c",
    "cpp": "cpp",
    "cs": "csharp",
    "go": "go",
    "rs": "rust",
    "rb": "ruby",
    "php": "php",
    "swift": "swift",
    "kt": "kotlin",
    "sh": "bash",
    "sql": "sql",
    "yaml": "yaml",
    "yml": "yaml",
    "json": "json",
}


def detect_language(file_path: str) -> str:
    return LANGUAGES.get(PurePath(file_path).suffix.lstrip(".").lower(), "unknown")


def _issue(kind: str, category: str, severity: str, message: str, line: int, file: str, code: str, recommendation: str) -> Dict[str, Any]:
    return {
        "type": kind,
        "category": category,
        "severity": severity,
        "message": message,
        "line": line,
        "file": file,
        "code": code,
        "recommendation": recommendation,
    }


def check_security(line: str, line_number: int, file: str) -> List[Dict[str, Any]]:
    issues = []
    code = line.strip()
    if "SELECT" in code and "+" in code:
        issues.append(_issue(
            "sql_injection", "security", "high",
            "Potential SQL injection vulnerability detected",
            line_number, file, code,
            "Use parameterized queries or prepared statements",
        ))
    if any(p.search(code) for p in _CREDENTIAL_PATTERNS):
        issues.append(_issue(
            "hardcoded_credentials", "security", "critical",
            "Hardcoded credentials detected",
            line_number, file, code,
            "Use environment variables or secure configuration files",
        ))
    if "eval(" in code:
        issues.append(_issue(
            "eval_usage", "security", "high",
            "Use of eval() function detected",
            line_number, file, code,
            "Avoid eval() as it can execute arbitrary code",
        ))
    if any(call in code for call in ("exec(", "system(", "shell_exec(")):
        issues.append(_issue(
            "command_injection", "security", "high",
            "Potential command injection vulnerability",
            line_number, file, code,
            "Validate and sanitize all user inputs before executing commands",
        ))
    return issues


def check_quality(line: str, line_number: int, file: str) -> List[Dict[str, Any]]:
    issues = []
    code = line.strip()
    if len(line) > MAX_LINE_LENGTH:
        issues.append(_issue(
            "long_line", "style", "low",
            f"Line exceeds recommended length ({MAX_LINE_LENGTH} characters)",
            line_number, file, code,
            "Break long lines into multiple lines for better readability",
        ))
    if any(marker in code for marker in ("TODO", "FIXME", "HACK")):
        issues.append(_issue(
            "todo_comment", "maintainability", "low",
            "TODO/FIXME comment found",
            line_number, file, code,
            "Address TODO items before production deployment",
        ))
    if _MAGIC_NUMBER.search(code) and not any(p in code for p in _COMMENT_PREFIXES):
        issues.append(_issue(
            "magic_number", "maintainability", "medium",
            "Magic number detected",
            line_number, file, code,
            "Replace magic numbers with named constants",
        ))
    if "console.log" in code or "print(" in code:
        issues.append(_issue(
            "debug_code", "maintainability", "low",
            "Debug/logging statement found",
            line_number, file, code,
            "Remove debug statements or use proper logging framework",
        ))
    return issues


def calculate_complexity(code: str) -> int:
    return 1 + sum(len(p.findall(code)) for p in _DECISION_PATTERNS)


def calculate_risk_score(issues: List[Dict[str, Any]], lines_added: int, complexity: int) -> float:
    score = min(lines_added * 0.1, 20) + min(complexity * 0.5, 30)
    score += sum(SEVERITY_SCORES.get(issue["severity"], 0) for issue in issues)
    return min(score, 100)


def summarize(issues: List[Dict[str, Any]], risk_score: float) -> Dict[str, Any]:
    def count(key: str, value: str) -> int:
        return sum(1 for issue in issues if issue[key] == value)

    return {
        "total_issues": len(issues),
        "critical_issues": count("severity", "critical"),
        "high_issues": count("severity", "high"),
        "medium_issues": count("severity", "medium"),
        "low_issues": count("severity", "low"),
        "security_issues": count("category", "security"),
        "bug_issues": count("category", "bug"),
        "style_issues": count("category", "style"),
        "risk_level": "high" if risk_score > 80 else "medium" if risk_score > 50 else "low",
    }


def _sorted(issues: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(issues, key=lambda i: SEVERITY_WEIGHTS.get(i["severity"], 0), reverse=True)


def analyze_diff_text(diff: str) -> Dict[str, Any]:
    """Inspect the added lines of a unified diff."""
    issues: List[Dict[str, Any]] = []
    lines_added = lines_removed = 0
    current_file = ""
    current_line = 0

    for line in diff.splitlines():
        if line.startswith("+++") or line.startswith("---"):
            current_file = line[4:]
            continue
        if line.startswith("@@"):
            match = _HUNK_HEADER.match(line)
            if match:
                current_line = int(match.group(1))
            continue
        if line.startswith("+"):
            lines_added += 1
            added = line[1:]
            issues.extend(check_security(added, current_line, current_file))
            issues.extend(check_quality(added, current_line, current_file))
            current_line += 1
        elif line.startswith("-"):
            lines_removed += 1
        elif line.startswith(" "):
            current_line += 1

    complexity = calculate_complexity(diff)
    risk_score = calculate_risk_score(issues, lines_added, complexity)
    return {
        "issues": _sorted(issues),
        "metrics": {
            "lines_added": lines_added,
            "lines_removed": lines_removed,
            "complexity": complexity,
            "risk_score": risk_score,
        },
        "summary": summarize(issues, risk_score),
    }


def analyze_source(file_path: str, source: str) -> Dict[str, Any]:
    """Inspect every line of a full source file."""
    issues: List[Dict[str, Any]] = []
    lines = source.splitlines()
    for number, line in enumerate(lines, start=1):
        issues.extend(check_security(line, number, file_path))
        issues.extend(check_quality(line, number, file_path))

    stripped = [line.strip() for line in lines]
    comment_lines = sum(1 for s in stripped if s.startswith(_COMMENT_PREFIXES))
    blank_lines = sum(1 for s in stripped if not s)
    complexity = calculate_complexity(source)
    risk_score = calculate_risk_score(issues, len(lines), complexity)
    return {
        "issues": _sorted(issues),
        "metrics": {
            "total_lines": len(lines),
            "code_lines": len(lines) - comment_lines - blank_lines,
            "comment_lines": comment_lines,
            "blank_lines": blank_lines,
            "complexity": complexity,
            "risk_score": risk_score,
        },
        "summary": summarize(issues, risk_score),
    }


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class CodeAnalyzerTool(BaseTool):
    """Static code analysis for security and quality checks."""

    name = "code_analyzer"
    description = "Static code analysis tool for security and quality checks"
    actions = ("analyze_diff", "analyze_file")

    @classmethod
    def from_binding(cls, binding: "ToolBinding", credentials: Dict[str, str]) -> "CodeAnalyzerTool":
        return cls()

    async def analyze_diff(self, params: Dict[str, Any], context: "ExecutionContext") -> ToolResult:
        diff = params.get("diff")
        if not diff:
            return ToolResult(success=False, error="A 'diff' parameter is required")

        context.log("info", "Analyzing code diff", {"diff_length": len(diff)})
        analysis = analyze_diff_text(diff)
        context.log(
            "info",
            "Code diff analysis completed",
            {"issues_found": analysis["summary"]["total_issues"]},
        )
        return ToolResult(
            success=True,
            data=analysis,
            metadata={
                "analyzed_at": _now(),
                "language": params.get("language", "unknown"),
                "diff_length": len(diff),
            },
        )

    async def analyze_file(self, params: Dict[str, Any], context: "ExecutionContext") -> ToolResult:
        file_path = params.get("file_path")
        source = params.get("source")
        if not file_path:
            return ToolResult(success=False, error="A 'file_path' parameter is required")
        if source is None:
            try:
                with open(file_path, encoding="utf-8") as f:
                    source = f.read()
            except OSError as e:
                return ToolResult(
                    success=False,
                    error=f"Cannot read {file_path}: {e}",
                    metadata={"attempted_at": _now(), "file_path": file_path},
                )

        context.log("info", f"Analyzing file: {file_path}", {"source_length": len(source)})
        analysis = analyze_source(file_path, source)
        return ToolResult(
            success=True,
            data=analysis,
            metadata={
                "analyzed_at": _now(),
                "file_path": file_path,
                "language": params.get("language") or detect_language(file_path),
                "source_length": len(source),
            },
        )
