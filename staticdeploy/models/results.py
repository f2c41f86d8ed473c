"""
Result Models

Dataclass models for command outputs, readiness observations and
integration check reports.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from staticdeploy.exceptions import IntegrationCheckFailure


@dataclass
class SSHResult:
    """Result of a remote (or local) command execution."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    host: str = ""
    command: str = ""
    duration_seconds: float = 0.0

    @property
    def is_success(self) -> bool:
        """Check if command succeeded."""
        return self.returncode == 0

    @property
    def is_failure(self) -> bool:
        """Check if command failed."""
        return self.returncode != 0

    @property
    def output(self) -> str:
        """Get combined output (stdout + stderr)."""
        return f"{self.stdout}\n{self.stderr}".strip()

    def __repr__(self) -> str:
        return f"SSHResult(host={self.host}, returncode={self.returncode}, duration={self.duration_seconds:.2f}s)"


@dataclass
class ProbeResponse:
    """One HTTP observation from a vantage point."""

    vantage: str
    url: str
    status_code: Optional[int] = None
    body: str = ""
    error: Optional[str] = None

    @property
    def reachable(self) -> bool:
        return self.error is None and self.status_code is not None

    def describe(self) -> str:
        if self.error:
            return f"{self.vantage} {self.url}: {self.error}"
        return f"{self.vantage} {self.url}: HTTP {self.status_code}"


@dataclass
class ValidationResult:
    """Outcome of one readiness attempt."""

    checked_at: datetime
    status_code: Optional[int]
    content_match: bool
    passed: bool
    attempt: int = 1
    elapsed_seconds: float = 0.0
    probes: List[ProbeResponse] = field(default_factory=list)

    @classmethod
    def from_probes(
        cls, probes: List[ProbeResponse], marker: str, attempt: int, elapsed: float
    ) -> "ValidationResult":
        """
        Build a result from the probes of a single attempt.

        All vantage points must answer 200 with the marker in the body.
        """
        status_ok = bool(probes) and all(p.status_code == 200 for p in probes)
        content_ok = bool(probes) and all(marker in p.body for p in probes)
        reachable = bool(probes) and all(p.reachable for p in probes)
        # First non-200 status wins so the operator sees what went wrong
        status_code = next(
            (p.status_code for p in probes if p.status_code != 200),
            probes[0].status_code if probes else None,
        )
        return cls(
            checked_at=datetime.now(timezone.utc),
            status_code=status_code,
            content_match=content_ok,
            passed=reachable and status_ok and content_ok,
            attempt=attempt,
            elapsed_seconds=elapsed,
            probes=probes,
        )

    def summary(self) -> str:
        return "; ".join(p.describe() for p in self.probes) or "no probes"

    def __repr__(self) -> str:
        return f"ValidationResult(passed={self.passed}, status={self.status_code}, attempt={self.attempt})"


class CheckCategory(Enum):
    """Integration check categories."""

    CONTAINER = "container"
    NETWORK = "network"
    SSL = "ssl"
    DIAGNOSTICS = "diagnostics"


@dataclass
class CheckResult:
    """Result of a single integration check."""

    name: str
    passed: bool
    message: str
    details: Optional[str] = None


@dataclass
class IntegrationReport:
    """Pass/fail report per check category."""

    target: str
    categories: Dict[CheckCategory, List[CheckResult]] = field(
        default_factory=lambda: {category: [] for category in CheckCategory}
    )

    def add(self, category: CheckCategory, check: CheckResult) -> None:
        self.categories.setdefault(category, []).append(check)

    def category_passed(self, category: CheckCategory) -> bool:
        """A category passes when it ran at least one check and none failed."""
        checks = self.categories.get(category, [])
        return bool(checks) and all(c.passed for c in checks)

    @property
    def passed(self) -> bool:
        return all(self.category_passed(category) for category in CheckCategory)

    @property
    def failures(self) -> List[str]:
        return [
            f"{category.value}:{check.name}"
            for category, checks in self.categories.items()
            for check in checks
            if not check.passed
        ]

    def raise_for_failures(self) -> None:
        """Raise IntegrationCheckFailure if any check failed."""
        if not self.passed:
            failures = self.failures or [
                f"{c.value}:no checks" for c in CheckCategory if not self.categories.get(c)
            ]
            raise IntegrationCheckFailure(failures)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "passed": self.passed,
            "categories": {
                category.value: {
                    "passed": self.category_passed(category),
                    "checks": [
                        {
                            "name": c.name,
                            "passed": c.passed,
                            "message": c.message,
                            "details": c.details,
                        }
                        for c in checks
                    ],
                }
                for category, checks in self.categories.items()
            },
        }
