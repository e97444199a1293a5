"""Loading of payroll configuration data.

Tax brackets, allowance amounts, contribution rates, position tier caps and
hub grants are data, not code. They live as YAML under ``payroll_engine/config``
(or the directory named by ``PAYROLL_CONFIG_DIR``) and are converted once into
frozen objects that every calculator receives at construction time.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from payroll_engine.core.money import to_decimal
from payroll_engine.core.validation import ConfigurationError

DEFAULT_CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"
TAX_TABLE_FILE = "tax_tables.th.yaml"
RULES_FILE = "payroll_rules.yaml"


@dataclass(frozen=True)
class TaxBracket:
    min_income: Decimal
    max_income: Decimal | None
    rate: Decimal


@dataclass(frozen=True)
class TaxYearTable:
    year: int
    brackets: tuple[TaxBracket, ...]
    employment_deduction_rate: Decimal
    employment_deduction_max: Decimal
    personal_allowance: Decimal
    spouse_allowance: Decimal
    first_child_allowance: Decimal
    subsequent_child_allowance: Decimal
    parent_allowance: Decimal
    social_security_rate: Decimal
    social_security_max_monthly: Decimal
    provident_fund_rate: Decimal
    saving_fund_rate: Decimal
    provident_fund_max: Decimal


@dataclass(frozen=True)
class PositionTierRule:
    patterns: tuple[str, ...]
    cap: Decimal

    def matches(self, title: str) -> bool:
        lowered = title.lower()
        return any(pattern in lowered for pattern in self.patterns)


@dataclass(frozen=True)
class PositionTierCapTable:
    rules: tuple[PositionTierRule, ...]
    default_cap: Decimal

    def cap_for(self, title: str | None) -> Decimal:
        if title:
            for rule in self.rules:
                if rule.matches(title):
                    return rule.cap
        return self.default_cap


@dataclass(frozen=True)
class ContributionRates:
    pvd_employee_rate: Decimal = Decimal("3")
    pvd_employer_rate: Decimal = Decimal("3")
    saving_fund_rate: Decimal = Decimal("1.5")
    social_security_rate: Decimal = Decimal("5")
    social_security_max_monthly: Decimal = Decimal("750")
    health_welfare_employee_rate: Decimal = Decimal("0")
    health_welfare_employer_rate: Decimal = Decimal("0")


@dataclass(frozen=True)
class PayrollConfig:
    tax_tables: dict[int, TaxYearTable]
    contributions: ContributionRates
    annual_increase_rate: Decimal
    position_tiers: PositionTierCapTable
    hub_grants: dict[str, str] = field(default_factory=dict)

    def tax_table(self, year: int) -> TaxYearTable:
        table = self.tax_tables.get(year)
        if table is None:
            raise ConfigurationError(f"no tax bracket table configured for tax year {year}")
        return table

    def hub_grant_for(self, organization: str) -> str:
        grant_ref = self.hub_grants.get(organization)
        if not grant_ref:
            raise ConfigurationError(f"no hub grant configured for organization {organization}")
        return grant_ref


def _config_dir(config_dir: Path | str | None) -> Path:
    if config_dir is not None:
        return Path(config_dir)
    env_dir = os.getenv("PAYROLL_CONFIG_DIR")
    if env_dir:
        return Path(env_dir).expanduser().resolve()
    return DEFAULT_CONFIG_DIR


def _load_yaml(path: Path) -> dict:
    if not path.exists():
        raise ConfigurationError(f"configuration file not found: {path}")
    with path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"configuration file {path.name} must contain a mapping")
    return data


def _section(data: dict, key: str) -> dict:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"configuration section {key!r} must be a mapping")
    return value


def parse_tax_year(year: int, data: dict[str, Any]) -> TaxYearTable:
    raw_brackets = data.get("brackets") or []
    if not raw_brackets:
        raise ConfigurationError(f"tax year {year} has no brackets")

    brackets = []
    for raw in sorted(raw_brackets, key=lambda item: to_decimal(item["min_income"])):
        max_income = raw.get("max_income")
        brackets.append(
            TaxBracket(
                min_income=to_decimal(raw["min_income"]),
                max_income=to_decimal(max_income) if max_income is not None else None,
                rate=to_decimal(raw.get("rate", 0)),
            )
        )

    employment = _section(data, "employment_deduction")
    allowances = _section(data, "allowances")
    social_security = _section(data, "social_security")
    provident_fund = _section(data, "provident_fund")

    return TaxYearTable(
        year=year,
        brackets=tuple(brackets),
        employment_deduction_rate=to_decimal(employment.get("rate", 50)),
        employment_deduction_max=to_decimal(employment.get("max", 100000)),
        personal_allowance=to_decimal(allowances.get("personal", 60000)),
        spouse_allowance=to_decimal(allowances.get("spouse", 60000)),
        first_child_allowance=to_decimal(allowances.get("first_child", 30000)),
        subsequent_child_allowance=to_decimal(allowances.get("subsequent_child", 60000)),
        parent_allowance=to_decimal(allowances.get("parent", 30000)),
        social_security_rate=to_decimal(social_security.get("rate", 5)),
        social_security_max_monthly=to_decimal(social_security.get("max_monthly", 750)),
        provident_fund_rate=to_decimal(provident_fund.get("rate", 0)),
        saving_fund_rate=to_decimal(provident_fund.get("saving_fund_rate", 0)),
        provident_fund_max=to_decimal(provident_fund.get("max", 500000)),
    )


def parse_rules(data: dict[str, Any]) -> tuple[ContributionRates, Decimal, PositionTierCapTable, dict[str, str]]:
    contributions = _section(data, "contributions")
    pvd = _section(contributions, "pvd")
    social_security = _section(contributions, "social_security")
    health_welfare = _section(contributions, "health_welfare")
    rates = ContributionRates(
        pvd_employee_rate=to_decimal(pvd.get("employee_rate", 3)),
        pvd_employer_rate=to_decimal(pvd.get("employer_rate", 3)),
        saving_fund_rate=to_decimal(pvd.get("saving_fund_rate", "1.5")),
        social_security_rate=to_decimal(social_security.get("rate", 5)),
        social_security_max_monthly=to_decimal(social_security.get("max_monthly", 750)),
        health_welfare_employee_rate=to_decimal(health_welfare.get("employee_rate", 0)),
        health_welfare_employer_rate=to_decimal(health_welfare.get("employer_rate", 0)),
    )

    increase = _section(data, "annual_increase")
    rules = tuple(
        PositionTierRule(
            patterns=tuple(str(pattern).lower() for pattern in raw.get("patterns", [])),
            cap=to_decimal(raw["cap"]),
        )
        for raw in increase.get("position_tier_caps", [])
    )
    tiers = PositionTierCapTable(rules=rules, default_cap=to_decimal(increase.get("default_cap", 5000)))

    hub_grants = {str(org): str(grant) for org, grant in _section(data, "hub_grants").items()}
    return rates, to_decimal(increase.get("rate", 1)), tiers, hub_grants


def load_payroll_config(config_dir: Path | str | None = None) -> PayrollConfig:
    """Read tax tables and payroll rules from ``config_dir``."""

    root = _config_dir(config_dir)
    tax_data = _section(_load_yaml(root / TAX_TABLE_FILE), "years")
    tax_tables = {int(year): parse_tax_year(int(year), values or {}) for year, values in tax_data.items()}
    rates, increase_rate, tiers, hub_grants = parse_rules(_load_yaml(root / RULES_FILE))
    return PayrollConfig(
        tax_tables=tax_tables,
        contributions=rates,
        annual_increase_rate=increase_rate,
        position_tiers=tiers,
        hub_grants=hub_grants,
    )
