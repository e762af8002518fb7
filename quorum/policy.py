"""
Tiered content policy: decides allow, warn or block for generated code and the
credits awarded for flagged lines.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from .errors import InvalidRequestError
from .scanner import ContentScanner, DemoCodeScanner, ScanResult


class PolicyMode(StrEnum):
    DISABLED = "disabled"
    WARN = "warn"
    BLOCK = "block"


@dataclass(frozen=True)
class PolicyProfile:
    enabled: bool
    mode: PolicyMode
    credit_per_line: float
    manual_flag_multiplier: float
    min_confidence: float


@dataclass(frozen=True)
class EnforcementResult:
    allowed: bool
    scan_result: ScanResult
    credits_awarded: int
    message: str
    requires_regeneration: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "allowed": self.allowed,
            "scan_result": self.scan_result.to_dict(),
            "credits_awarded": self.credits_awarded,
            "message": self.message,
            "requires_regeneration": self.requires_regeneration,
        }


TIER_POLICIES: Mapping[int, PolicyProfile] = MappingProxyType(
    {
        1: PolicyProfile(False, PolicyMode.DISABLED, 0, 1, 0.5),
        2: PolicyProfile(False, PolicyMode.DISABLED, 0, 1, 0.5),
        3: PolicyProfile(True, PolicyMode.BLOCK, 10, 2, 0.6),
        4: PolicyProfile(True, PolicyMode.WARN, 15, 2.5, 0.5),
        5: PolicyProfile(True, PolicyMode.WARN, 20, 3, 0.4),
    }
)

_PROFILE_FIELDS = {f.name for f in fields(PolicyProfile)}
_default_scanner = DemoCodeScanner()


def get_tier_policy(tier: int) -> PolicyProfile:
    try:
        return TIER_POLICIES[tier]
    except KeyError:
        raise InvalidRequestError(
            f"Unknown tier {tier!r}; expected one of {sorted(TIER_POLICIES)}"
        ) from None


def calculate_credits(offending_lines: int, credit_per_line: float, multiplier: float = 1) -> int:
    return math.ceil(offending_lines * credit_per_line * multiplier)


def _apply_override(profile: PolicyProfile, override: Mapping[str, Any] | None) -> PolicyProfile:
    if not override:
        return profile
    unknown = set(override) - _PROFILE_FIELDS
    if unknown:
        raise InvalidRequestError(f"Unknown policy fields: {', '.join(sorted(unknown))}")
    values = dict(override)
    if "mode" in values:
        values["mode"] = PolicyMode(values["mode"])
    return replace(profile, **values)


def enforce(
    code: str,
    tier: int,
    override: Mapping[str, Any] | None = None,
    scanner: ContentScanner | None = None,
) -> EnforcementResult:
    """Run the tier's policy over ``code``.

    A disabled profile always allows with zero credits, without scanning.
    """
    profile = _apply_override(get_tier_policy(tier), override)

    if not profile.enabled:
        return EnforcementResult(
            allowed=True,
            scan_result=ScanResult.empty(),
            credits_awarded=0,
            message="Policy disabled for this tier",
            requires_regeneration=False,
        )

    scan = (scanner or _default_scanner).scan(code)

    if scan.offending_lines == 0:
        return EnforcementResult(True, scan, 0, "Code passed validation", False)

    if scan.confidence < profile.min_confidence:
        return EnforcementResult(True, scan, 0, "Confidence below threshold, allowing code", False)

    credits = calculate_credits(scan.offending_lines, profile.credit_per_line)

    if profile.mode == PolicyMode.BLOCK:
        return EnforcementResult(
            allowed=False,
            scan_result=scan,
            credits_awarded=credits,
            message=(
                f"Blocked: {scan.offending_lines} mock/demo lines detected. "
                f"{credits} credits awarded. Regeneration required."
            ),
            requires_regeneration=True,
        )

    return EnforcementResult(
        allowed=True,
        scan_result=scan,
        credits_awarded=credits,
        message=(
            f"Warning: {scan.offending_lines} mock/demo lines detected. "
            f"{credits} credits awarded."
        ),
        requires_regeneration=False,
    )


def handle_manual_flag(
    code: str,
    tier: int,
    notes: str | None = None,
    scanner: ContentScanner | None = None,
) -> EnforcementResult:
    """A user-reported flag: always blocks and applies the manual multiplier."""
    profile = get_tier_policy(tier)
    scan = (scanner or _default_scanner).scan(code)
    credits = calculate_credits(
        scan.offending_lines, profile.credit_per_line, profile.manual_flag_multiplier
    )
    return EnforcementResult(
        allowed=False,
        scan_result=scan,
        credits_awarded=credits,
        message=(
            f"Manual flag: {scan.offending_lines} lines flagged. {credits} credits awarded "
            f"({profile.manual_flag_multiplier:g}x multiplier). Notes: {notes or 'None'}"
        ),
        requires_regeneration=True,
    )
