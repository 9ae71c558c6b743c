"""Tank-mix compatibility analysis for selected fertilizer products."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Iterable, Mapping, Sequence, Tuple

from .models import CompatibilityStatus, CompatibilityVerdict, Product, RiskLevel
from .utils import first_number, load_dataset

_LOGGER = logging.getLogger(__name__)

DATA_FILE = "nutrient_compatibility.json"

# pH spread above which products are treated as incompatible
PH_INCOMPATIBLE_SPREAD = 4.0
# pH spread above which the mix needs monitoring
PH_CAUTION_SPREAD = 2.0

NO_ISSUES_EXPLANATION = (
    "No known incompatibilities or cautions detected based on nutrient matrix and pH."
)
ISSUES_EXPLANATION = "Compatibility issues or cautions detected based on nutrient matrix."

_Pair = Tuple[str, str]

__all__ = [
    "CompatibilityRule",
    "CompatibilityMatrix",
    "load_matrix",
    "extract_ph",
    "analyze_compatibility",
    "clear_cache",
]


@dataclass(frozen=True, slots=True)
class CompatibilityRule:
    status: CompatibilityStatus
    reason: str = ""


def _pair_key(n1: str, n2: str) -> _Pair:
    return (n1, n2) if n1 <= n2 else (n2, n1)


class CompatibilityMatrix:
    """Symmetric nutrient interaction table keyed by unordered pairs."""

    def __init__(self, rules: Mapping[_Pair, CompatibilityRule] | None = None) -> None:
        self._rules: Dict[_Pair, CompatibilityRule] = {}
        for (n1, n2), rule in (rules or {}).items():
            self.add(n1, n2, rule)

    def add(self, n1: str, n2: str, rule: CompatibilityRule) -> None:
        """Store ``rule`` for the pair, rejecting a conflicting status."""

        key = _pair_key(n1, n2)
        existing = self._rules.get(key)
        if existing is not None:
            if existing.status is not rule.status:
                raise ValueError(
                    f"Conflicting compatibility rules for {key[0]}/{key[1]}: "
                    f"{existing.status.value} vs {rule.status.value}"
                )
            if existing.reason:
                return
        self._rules[key] = rule

    @classmethod
    def from_dataset(cls, data: Mapping[str, object]) -> "CompatibilityMatrix":
        """Build a matrix from ``{"A_B": {"status": ..., "reason": ...}}`` data.

        Unknown statuses and malformed keys raise :class:`ValueError`; listing a
        pair in both directions is allowed only when both entries agree.
        """

        matrix = cls()
        for key, info in data.items():
            if not isinstance(info, Mapping):
                raise ValueError(f"Invalid compatibility entry for {key}")
            n1, sep, n2 = str(key).partition("_")
            if not sep or not n1 or not n2:
                raise ValueError(f"Invalid compatibility pair key {key!r}")
            try:
                status = CompatibilityStatus(str(info.get("status", "")).lower())
            except ValueError as exc:
                raise ValueError(f"Unknown compatibility status for {key}") from exc
            matrix.add(n1, n2, CompatibilityRule(status, str(info.get("reason") or "")))
        return matrix

    def lookup(self, n1: str, n2: str) -> CompatibilityRule | None:
        return self._rules.get(_pair_key(n1, n2))

    def pairs(self) -> list[str]:
        return sorted(f"{a}_{b}" for a, b in self._rules)

    def __len__(self) -> int:
        return len(self._rules)


@lru_cache(maxsize=1)
def load_matrix() -> CompatibilityMatrix:
    """Return the matrix built from the configured dataset."""
    return CompatibilityMatrix.from_dataset(load_dataset(DATA_FILE))


def clear_cache() -> None:
    load_matrix.cache_clear()


def extract_ph(product: Product) -> float | None:
    """Return the first number of the product's declared pH, if any."""
    return first_number(product.ph)


def _check_ph(verdict: CompatibilityVerdict, products: Sequence[Product]) -> None:
    values = [ph for ph in (extract_ph(p) for p in products) if ph is not None]
    if len(values) < 2:
        return
    spread = max(values) - min(values)
    if spread > PH_INCOMPATIBLE_SPREAD:
        verdict.compatible = False
        verdict.raise_risk(RiskLevel.HIGH)
        verdict.explanation += "Significant pH incompatibility detected. "
        verdict.chemical_interactions.append("pH incompatibility between products")
        verdict.warnings.append("pH extremes can cause precipitation and reduced efficacy")
        verdict.recommendations.append("Separate applications by at least 24 hours")
        verdict.recommendations.append("Test pH of final mix before application")
    elif spread > PH_CAUTION_SPREAD:
        verdict.raise_risk(RiskLevel.MEDIUM)
        verdict.explanation += "Moderate pH differences detected. "
        verdict.chemical_interactions.append("pH differences may affect nutrient availability")
        verdict.recommendations.append("Monitor pH of final mix")


def _check_nutrient_pairs(
    verdict: CompatibilityVerdict,
    products: Sequence[Product],
    matrix: CompatibilityMatrix,
) -> None:
    # Each unordered nutrient pair is reported once however often it recurs
    reported: set[_Pair] = set()
    for i, prod_a in enumerate(products):
        for j, prod_b in enumerate(products):
            if i == j:
                continue
            for nut_a in prod_a.nutrients:
                for nut_b in prod_b.nutrients:
                    rule = matrix.lookup(nut_a, nut_b)
                    if rule is None:
                        continue
                    key = _pair_key(nut_a, nut_b)
                    if key in reported:
                        continue
                    reported.add(key)
                    if rule.status is CompatibilityStatus.COMPATIBLE:
                        continue

                    note = (
                        f"{nut_a} (from {prod_a.product_name}) + "
                        f"{nut_b} (from {prod_b.product_name}): {rule.reason}"
                    )
                    verdict.chemical_interactions.append(note)
                    verdict.warnings.append(f"{nut_a} + {nut_b}: {rule.reason}")
                    if rule.status is CompatibilityStatus.INCOMPATIBLE:
                        verdict.compatible = False
                        verdict.raise_risk(RiskLevel.HIGH)
                        verdict.recommendations.append(
                            f"Do not mix {nut_a} and {nut_b} products together."
                        )
                    else:
                        verdict.raise_risk(RiskLevel.MEDIUM)
                        verdict.recommendations.append(
                            f"Use caution when mixing {nut_a} and {nut_b} products."
                        )


def analyze_compatibility(
    products: Iterable[Product],
    matrix: CompatibilityMatrix | None = None,
) -> CompatibilityVerdict:
    """Return the tank-mix verdict for ``products``.

    The pH spread is checked before the nutrient matrix. Risk only ever
    escalates, so a later caution never lowers an earlier ``high``. Fewer
    than two products yield a vacuous compatible verdict.
    """

    items = list(products)
    verdict = CompatibilityVerdict(products=[p.product_name for p in items])
    if len(items) >= 2:
        if matrix is None:
            matrix = load_matrix()
        _check_ph(verdict, items)
        _check_nutrient_pairs(verdict, items, matrix)

    if not verdict.chemical_interactions and not verdict.explanation:
        verdict.explanation = NO_ISSUES_EXPLANATION
    elif verdict.chemical_interactions and not verdict.explanation:
        verdict.explanation = ISSUES_EXPLANATION

    _LOGGER.debug(
        "Compatibility of %s: %s risk, %d interactions",
        verdict.products,
        verdict.risk.value,
        len(verdict.chemical_interactions),
    )
    return verdict
