"""Shared record types for the fertilizer product finder."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple

__all__ = [
    "Combinator",
    "CompatibilityStatus",
    "RiskLevel",
    "ProductForm",
    "Product",
    "ApplicationMethodCategory",
    "CompatibilityVerdict",
    "TokenGroups",
]

# Ordered groups of interchangeable nutrient tokens, e.g. ``(("Kelp", "Seaweed"), ("Ca",))``
TokenGroups = Tuple[Tuple[str, ...], ...]


class Combinator(str, Enum):
    """How resolved token groups combine when filtering products."""

    ALL = "all"
    ANY = "any"


class CompatibilityStatus(str, Enum):
    COMPATIBLE = "compatible"
    CAUTION = "caution"
    INCOMPATIBLE = "incompatible"


class RiskLevel(str, Enum):
    """Tank-mix risk with a total order ``low < medium < high``."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _RISK_ORDER[self]

    def escalate(self, other: "RiskLevel") -> "RiskLevel":
        """Return the higher of ``self`` and ``other``; never lowers the risk."""
        return other if other.rank > self.rank else self


_RISK_ORDER = {RiskLevel.LOW: 0, RiskLevel.MEDIUM: 1, RiskLevel.HIGH: 2}


class ProductForm(str, Enum):
    LIQUID = "Liquid"
    POWDER = "Powder"
    GRANULAR = "Granular"
    SOLID = "Solid"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: str | None) -> "ProductForm":
        """Return the form matching ``value`` case-insensitively or ``OTHER``."""
        text = (value or "").strip().casefold()
        for form in cls:
            if form.value.casefold() == text:
                return form
        return cls.OTHER


@dataclass(frozen=True, slots=True)
class Product:
    """Catalog entry. Instances are immutable for the process lifetime.

    The ``analysis`` and ``application_rates`` mappings are stored as read-only
    proxies and left out of the hash, so products can be used in sets.
    """

    product_name: str
    nutrients: tuple[str, ...] = ()
    product_form: str = ""
    organic_certified: bool = False
    description: str = ""
    benefits: tuple[str, ...] = ()
    analysis: Mapping[str, str] = field(default_factory=dict, hash=False)
    application: tuple[str, ...] = ()
    application_rates: Mapping[str, str] = field(default_factory=dict, hash=False)
    instructions: str | None = None
    storage_handling: str | None = None
    link: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "analysis", MappingProxyType(dict(self.analysis)))
        object.__setattr__(
            self, "application_rates", MappingProxyType(dict(self.application_rates))
        )

    @property
    def form(self) -> ProductForm:
        return ProductForm.parse(self.product_form)

    @property
    def ph(self) -> str | None:
        """Return the raw pH entry of the analysis mapping if declared."""
        value = self.analysis.get("pH")
        return str(value) if value else None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Product":
        """Build a product from a validated catalog record."""

        return cls(
            product_name=str(data["product_name"]),
            nutrients=tuple(str(n) for n in data.get("nutrients", ())),
            product_form=str(data.get("product_form") or ""),
            organic_certified=bool(data.get("organic_certified", False)),
            description=str(data.get("description") or ""),
            benefits=tuple(str(b) for b in data.get("benefits", ())),
            analysis={str(k): str(v) for k, v in (data.get("analysis") or {}).items()},
            application=tuple(str(a) for a in data.get("application", ())),
            application_rates={
                str(k): str(v) for k, v in (data.get("application_rates") or {}).items()
            },
            instructions=data.get("instructions"),
            storage_handling=data.get("storage_handling"),
            link=data.get("link"),
        )

    def as_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {f.name: getattr(self, f.name) for f in fields(self)}
        for key in ("nutrients", "benefits", "application"):
            result[key] = list(result[key])
        result["analysis"] = dict(self.analysis)
        result["application_rates"] = dict(self.application_rates)
        return result


@dataclass(frozen=True, slots=True)
class ApplicationMethodCategory:
    """Fixed application method category such as ``Foliar Spray``."""

    name: str
    description: str = ""
    methods: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()


@dataclass(slots=True)
class CompatibilityVerdict:
    """Result of a tank-mix compatibility analysis."""

    compatible: bool = True
    risk: RiskLevel = RiskLevel.LOW
    explanation: str = ""
    chemical_interactions: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    alternative_strategies: list[str] = field(default_factory=list)
    products: list[str] = field(default_factory=list)
    ai_generated: bool = False

    def raise_risk(self, level: RiskLevel) -> None:
        self.risk = self.risk.escalate(level)

    def as_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result["risk"] = self.risk.value
        return result
