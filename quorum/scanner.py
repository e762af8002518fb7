"""Line-based detection of mock, demo and scaffold code."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol


class Severity(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class ScanFinding:
    line: int
    text: str
    rule: str
    severity: Severity

    def to_dict(self) -> dict[str, Any]:
        return {
            "line": self.line,
            "text": self.text,
            "rule": self.rule,
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class ScanResult:
    total_lines: int
    offending_lines: int
    findings: tuple[ScanFinding, ...] = field(default_factory=tuple)
    confidence: float = 1.0

    @classmethod
    def empty(cls) -> ScanResult:
        return cls(total_lines=0, offending_lines=0, findings=(), confidence=1.0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_lines": self.total_lines,
            "offending_lines": self.offending_lines,
            "findings": [f.to_dict() for f in self.findings],
            "confidence": self.confidence,
        }


class ContentScanner(Protocol):
    def scan(self, code: str) -> ScanResult: ...


OBVIOUS = (
    re.compile(r"\bplaceholder\b", re.IGNORECASE),
    re.compile(r"\bdummy\b", re.IGNORECASE),
    re.compile(r"\bmock(ed|ing)?\b", re.IGNORECASE),
    re.compile(r"\bdemo\b", re.IGNORECASE),
    re.compile(r"\bexample\b\s*(code|only)?", re.IGNORECASE),
    re.compile(r"lorem\s+ipsum", re.IGNORECASE),
)

PATTERNS = (
    re.compile(r"//\s*TODO\b", re.IGNORECASE),
    re.compile(r"#\s*TODO\b", re.IGNORECASE),
    re.compile(r"<!--\s*TODO\b", re.IGNORECASE),
    re.compile(r"\bfoo(bar)?\b", re.IGNORECASE),
    re.compile(r"\b(\w+)\.example\.com\b", re.IGNORECASE),
    re.compile(r"\bmock[A-Z]\w*\("),
    re.compile(r"\bfake[A-Z]\w*\("),
    re.compile(r"\bconsole\.log\(['\"]hello world", re.IGNORECASE),
    re.compile(r"apiKey\s*[:=]\s*['\"]sk_demo", re.IGNORECASE),
    re.compile(r"API_KEY\s*=\s*['\"]demo", re.IGNORECASE),
)

SCAFFOLDS = (
    re.compile(r"\bYour\s+code\s+here\b", re.IGNORECASE),
    re.compile(r"\bfill\s+in\s+implementation\b", re.IGNORECASE),
    re.compile(r"\bstub\b", re.IGNORECASE),
    re.compile(r"\bnot\s+implemented\b", re.IGNORECASE),
)

RULES: tuple[tuple[Severity, tuple[re.Pattern[str], ...]], ...] = (
    (Severity.HIGH, OBVIOUS),
    (Severity.MEDIUM, PATTERNS),
    (Severity.LOW, SCAFFOLDS),
)


class DemoCodeScanner:
    """Flags at most one finding per line, highest severity rule first."""

    def scan(self, code: str) -> ScanResult:
        lines = re.split(r"\r?\n", code)
        findings: list[ScanFinding] = []

        for number, text in enumerate(lines, start=1):
            finding = self._match_line(number, text)
            if finding is not None:
                findings.append(finding)

        if not findings:
            return ScanResult(total_lines=len(lines), offending_lines=0)

        serious = sum(1 for f in findings if f.severity != Severity.LOW)
        return ScanResult(
            total_lines=len(lines),
            offending_lines=len(findings),
            findings=tuple(findings),
            confidence=min(1.0, serious * 0.2 + 0.4),
        )

    def _match_line(self, number: int, text: str) -> ScanFinding | None:
        for severity, rules in RULES:
            for rule in rules:
                if rule.search(text):
                    return ScanFinding(line=number, text=text, rule=rule.pattern, severity=severity)
        return None
