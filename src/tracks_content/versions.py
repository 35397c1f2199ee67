from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

from tracks_core.errors import InvalidVersionSpecError
from tracks_core.settings import VersionPlan

ALL_VERSIONS_TOKENS = {"*", "all"}
FEATURE_KEY = "feature"
LATEST_RELEASE = "latest"
RELEASE_COMPARISON_PATTERN = re.compile(r"^(>=|<=|!=|=|>|<)?(\d+(?:\.\d+)*)$")
ALTERNATIVE_SEPARATOR = re.compile(r"\s+or\s+")


def _release_key(release: str) -> tuple[int, ...]:
    return tuple(int(part) for part in release.split("."))


def _compare_release(release: str, operator: str, target: str) -> bool:
    left = _release_key(release)
    right = _release_key(target)
    # Pad so "3" and "3.0" compare equal.
    width = max(len(left), len(right))
    left = left + (0,) * (width - len(left))
    right = right + (0,) * (width - len(right))
    if operator == ">=":
        return left >= right
    if operator == "<=":
        return left <= right
    if operator == ">":
        return left > right
    if operator == "<":
        return left < right
    if operator == "!=":
        return left != right
    return left == right


def _parse_range(range_expr: str) -> list[tuple[str, str]]:
    """Split a release range such as ``">=3.1 <3.5"`` into comparisons.

    Whitespace between an operator and its release is tolerated, so
    ``"> 3.9"`` reads the same as ``">3.9"``.
    """
    compact = re.sub(r"(>=|<=|!=|=|>|<)\s+", r"\1", range_expr.strip())
    comparisons: list[tuple[str, str]] = []
    for token in compact.split():
        match = RELEASE_COMPARISON_PATTERN.fullmatch(token)
        if match is None:
            raise InvalidVersionSpecError(f"invalid release range: {range_expr!r}")
        comparisons.append((match.group(1) or "=", match.group(2)))
    if not comparisons:
        raise InvalidVersionSpecError(f"empty release range: {range_expr!r}")
    return comparisons


class VersionCatalog:
    def __init__(
        self,
        plans: Sequence[VersionPlan],
        features: Mapping[str, Any] | None = None,
    ) -> None:
        self.plans = list(plans)
        self.features = dict(features or {})
        self._plans_by_name: dict[str, VersionPlan] = {}
        for plan in self.plans:
            self._plans_by_name[plan.name] = plan
            self._plans_by_name[plan.short_name] = plan
        self.all_versions: list[str] = [
            version for plan in self.plans for version in self.plan_versions(plan)
        ]

    def find_plan(self, name: str) -> VersionPlan | None:
        return self._plans_by_name.get(name.strip())

    def plan_versions(self, plan: VersionPlan) -> list[str]:
        if not plan.releases:
            return [f"{plan.name}@{LATEST_RELEASE}"]
        return [f"{plan.name}@{release}" for release in plan.releases]

    def _plan_versions_in_range(self, plan: VersionPlan, range_expr: str) -> list[str]:
        if range_expr.strip() in ALL_VERSIONS_TOKENS:
            return self.plan_versions(plan)
        comparisons = _parse_range(range_expr)
        # Rolling plans only have "latest", which no numeric range selects.
        return [
            f"{plan.name}@{release}"
            for release in plan.releases
            if all(_compare_release(release, op, target) for op, target in comparisons)
        ]

    def _feature_versions(self, name: str, seen: frozenset[str]) -> list[str]:
        if name in seen:
            raise InvalidVersionSpecError(f"circular feature reference: {name!r}")
        if name not in self.features:
            raise InvalidVersionSpecError(f"unknown feature: {name!r}")
        return self._collect(self.features[name], seen | {name})

    def _ordered(self, selected: set[str], extras: list[str]) -> list[str]:
        ordered = [version for version in self.all_versions if version in selected]
        ordered.extend(version for version in extras if version not in ordered)
        return ordered

    def _collect(self, spec: Any, seen: frozenset[str]) -> list[str]:
        if isinstance(spec, str):
            value = spec.strip()
            if value in ALL_VERSIONS_TOKENS:
                return list(self.all_versions)
            plan = self.find_plan(value)
            if plan is not None:
                return self.plan_versions(plan)
            if value in self.features:
                return self._feature_versions(value, seen)
            return [value]

        if isinstance(spec, (list, tuple)):
            selected: set[str] = set()
            extras: list[str] = []
            for item in spec:
                for version in self._collect(item, seen):
                    if version in self.all_versions:
                        selected.add(version)
                    elif version not in extras:
                        extras.append(version)
            return self._ordered(selected, extras)

        if isinstance(spec, Mapping):
            selected = set()
            for key, value in spec.items():
                if key == FEATURE_KEY:
                    names = [value] if isinstance(value, str) else list(value)
                    for name in names:
                        selected.update(self._feature_versions(str(name).strip(), seen))
                    continue
                plan = self.find_plan(str(key))
                if plan is None:
                    continue
                if not isinstance(value, str):
                    raise InvalidVersionSpecError(
                        f"release range for {key!r} must be a string"
                    )
                selected.update(self._plan_versions_in_range(plan, value))
            return self._ordered(selected, [])

        raise InvalidVersionSpecError(
            f"unsupported version specifier type: {type(spec).__name__}"
        )

    def get_applicable_versions(self, version_spec: Any) -> list[str]:
        return self._collect(version_spec, frozenset())

    def version_matches(self, expression: str, current_version: str) -> bool:
        """Evaluate a templating version condition against ``current_version``.

        ``expression`` holds alternatives joined by ``or``; each alternative
        is a feature name, a plan name, or a plan with a release comparison
        (``ghes >= 3.9``).
        """
        for alternative in ALTERNATIVE_SEPARATOR.split(expression.strip()):
            tokens = alternative.split(maxsplit=1)
            if not tokens:
                continue
            name = tokens[0]
            if len(tokens) == 1 and name in self.features:
                versions = self._feature_versions(name, frozenset())
            else:
                plan = self.find_plan(name)
                if plan is None:
                    raise InvalidVersionSpecError(
                        f"unknown version name in condition: {name!r}"
                    )
                if len(tokens) == 1:
                    versions = self.plan_versions(plan)
                else:
                    versions = self._plan_versions_in_range(plan, tokens[1])
            if current_version in versions:
                return True
        return False
