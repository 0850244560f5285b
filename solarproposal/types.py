from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra='ignore')


class Company(_Record):
    name: str = Field(validation_alias=AliasChoices('name', 'nome'))
    tax_id: str | None = Field(default=None, validation_alias=AliasChoices('tax_id', 'cnpj'))
    address: str | None = Field(default=None, validation_alias=AliasChoices('address', 'endereco'))
    contact: str | None = Field(default=None, validation_alias=AliasChoices('contact', 'contato'))


class Client(_Record):
    name: str = Field(validation_alias=AliasChoices('name', 'nome'))
    document_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices('document_id', 'documento'),
    )
    address: str | None = Field(default=None, validation_alias=AliasChoices('address', 'endereco'))


class Kpis(_Record):
    power_kwp: float = Field(validation_alias=AliasChoices('power_kwp', 'potenciaKWp'))
    monthly_energy_kwh: float = Field(
        validation_alias=AliasChoices('monthly_energy_kwh', 'energiaMensalKWh'),
    )
    annual_savings: float = Field(validation_alias=AliasChoices('annual_savings', 'economiaAnualBRL'))
    payback_years: float = Field(validation_alias=AliasChoices('payback_years', 'paybackAnos'))
    irr_percent: float | None = Field(
        default=None,
        validation_alias=AliasChoices('irr_percent', 'tirPercent'),
    )


class Finance(_Record):
    capex: float = Field(validation_alias=AliasChoices('capex', 'capexBRL'))
    tariff: float = Field(validation_alias=AliasChoices('tariff', 'tarifaBRLkWh'))
    # Fraction per year: 0.5% => 0.005
    annual_degradation: float | None = Field(
        default=None,
        validation_alias=AliasChoices('annual_degradation', 'degradacaoAnual'),
    )


class LineItem(_Record):
    description: str = Field(validation_alias=AliasChoices('description', 'descricao'))
    quantity: int = Field(gt=0, validation_alias=AliasChoices('quantity', 'qtd'))
    unit_price: Decimal = Field(ge=0, validation_alias=AliasChoices('unit_price', 'precoUnit'))

    @property
    def total(self) -> Decimal:
        return self.quantity * self.unit_price


class ProposalRecord(_Record):
    title: str = Field(validation_alias=AliasChoices('title', 'titulo'))
    issue_date: date = Field(validation_alias=AliasChoices('issue_date', 'dataISO'))
    company: Company
    client: Client
    kpis: Kpis
    finance: Finance
    items: tuple[LineItem, ...] = Field(default=(), validation_alias=AliasChoices('items', 'itens'))
    notes: tuple[str, ...] = Field(default=(), validation_alias=AliasChoices('notes', 'observacoes'))
    technical_assumptions: tuple[str, ...] = Field(
        default=(),
        validation_alias=AliasChoices('technical_assumptions', 'premissasTecnicas'),
    )

    @field_validator('issue_date', mode='before')
    @classmethod
    def _date_of_timestamp(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str) and 'T' in value:
            text = value.strip()
            if text.endswith('Z'):
                text = text[:-1] + '+00:00'
            try:
                return datetime.fromisoformat(text).date()
            except ValueError:
                # left for the date parser to report
                return value
        return value

    @field_validator('items', 'notes', 'technical_assumptions', mode='before')
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return () if value is None else value

    @property
    def subtotal(self) -> Decimal:
        return sum((item.total for item in self.items), Decimal('0'))


class ChartImages(_Record):
    payback: bytes | None = None
    annual_generation: bytes | None = None


class AssetBundle(_Record):
    logo: bytes | None = None
    charts: ChartImages = Field(default_factory=ChartImages)
