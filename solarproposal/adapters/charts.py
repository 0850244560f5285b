"""Raster charts embedded in the proposal, rendered with matplotlib.

Charts are returned as PNG bytes of exactly ``width`` x ``height`` pixels.
"""
from __future__ import annotations

import logging
from io import BytesIO
from typing import Callable

import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.figure import Figure
from matplotlib.ticker import FuncFormatter

from ..config import Settings, get_settings
from ..errors import InvalidChartInput
from ..report.formatting import format_brl, format_fraction_percent
from ..types import ChartImages, ProposalRecord


# Force non-interactive backend
plt.switch_backend('Agg')

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 600
DEFAULT_HEIGHT = 400
DEFAULT_DPI = 100
MAX_YEARS = 50
MAX_DEGRADATION = 0.05

MONTH_LABELS = ('Jan', 'Fev', 'Mar', 'Abr', 'Mai', 'Jun', 'Jul', 'Ago', 'Set', 'Out', 'Nov', 'Dez')
# Southern hemisphere irradiation profile, January first
SEASONAL_FACTORS = (1.2, 1.1, 1.0, 0.9, 0.8, 0.7, 0.8, 0.9, 1.0, 1.1, 1.2, 1.3)

COLORS = {
    'primary': '#1F77B4',
    'positive': '#2CA02C',
    'negative': '#D62728',
    'accent': '#FF7F0E',
    'secondary': '#7F8C8D',
}


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise InvalidChartInput(message)


def _check_canvas(width: int, height: int, dpi: int) -> None:
    _require(width > 0 and height > 0, f'chart size must be positive, got {width}x{height}')
    _require(dpi > 0, f'chart dpi must be positive, got {dpi}')


def _check_years(years: int) -> None:
    _require(1 <= years <= MAX_YEARS, f'years must be between 1 and {MAX_YEARS}, got {years}')


def _currency_axis(value: float, _position: int) -> str:
    return format_brl(value, precision=0)


def _new_figure(width: int, height: int, dpi: int) -> tuple[Figure, Axes]:
    fig, ax = plt.subplots(figsize=(width / dpi, height / dpi), dpi=dpi)
    ax.grid(True, alpha=0.3, linestyle='-', linewidth=0.5)
    for spine in ('top', 'right'):
        ax.spines[spine].set_visible(False)
    ax.tick_params(axis='both', labelsize=8)
    return fig, ax


def generate_custom_chart(
    draw: Callable[[Axes], None],
    *,
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
    dpi: int = DEFAULT_DPI,
) -> bytes:
    """Render any chart drawn by ``draw`` on pre-styled axes as PNG bytes.

    The shared grid, spine and tick styling is applied before ``draw`` runs,
    so callers only add their series, labels and titles.
    """
    _check_canvas(width, height, dpi)
    fig, ax = _new_figure(width, height, dpi)
    buf = BytesIO()
    try:
        draw(ax)
        fig.tight_layout()
        # No bbox_inches='tight': it would change the pixel size.
        fig.savefig(buf, format='png', dpi=dpi, facecolor='white', edgecolor='none')
    finally:
        plt.close(fig)
    return buf.getvalue()


def payback_series(capex: float, annual_savings: float, years: int) -> list[float]:
    """Cumulative cash flow: ``-capex`` at year 0, then ``savings * n - capex``."""
    return [annual_savings * year - capex for year in range(years + 1)]


def monthly_generation(monthly_energy: float, factor: float = 1.0) -> list[float]:
    return [monthly_energy * seasonal * factor for seasonal in SEASONAL_FACTORS]


def generate_payback_chart(
    capex: float,
    annual_savings: float,
    years: int = 25,
    *,
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
    dpi: int = DEFAULT_DPI,
) -> bytes:
    _require(capex > 0, f'capex must be positive, got {capex}')
    _require(annual_savings > 0, f'annual savings must be positive, got {annual_savings}')
    _check_years(years)

    series = payback_series(capex, annual_savings, years)
    labels = ['Inicial'] + [f'Ano {year}' for year in range(1, years + 1)]

    positions = list(range(len(series)))
    step = max(1, len(labels) // 10)

    def _draw(ax: Axes) -> None:
        ax.plot(positions, series, color=COLORS['primary'], linewidth=2, marker='o', markersize=3)
        ax.fill_between(positions, series, 0, where=[value >= 0 for value in series],
                        color=COLORS['positive'], alpha=0.15, interpolate=True)
        ax.fill_between(positions, series, 0, where=[value < 0 for value in series],
                        color=COLORS['negative'], alpha=0.15, interpolate=True)
        ax.axhline(0, color=COLORS['secondary'], linewidth=0.8)
        ax.set_xticks(positions[::step])
        ax.set_xticklabels(labels[::step], rotation=45, ha='right')
        ax.yaxis.set_major_formatter(FuncFormatter(_currency_axis))
        ax.set_title('Fluxo de Caixa Acumulado', fontsize=11)

    return generate_custom_chart(_draw, width=width, height=height, dpi=dpi)


def generate_annual_generation_chart(
    monthly_energy: float,
    degradation: float = 0.005,
    years: int = 25,
    *,
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
    dpi: int = DEFAULT_DPI,
) -> bytes:
    _require(monthly_energy > 0, f'monthly energy must be positive, got {monthly_energy}')
    _require(
        0 <= degradation <= MAX_DEGRADATION,
        f'degradation must be between 0 and {MAX_DEGRADATION}, got {degradation}',
    )
    _check_years(years)

    curves = [
        ('Ano 1', 1.0, COLORS['primary']),
        ('Ano 10', (1 - degradation) ** 9, COLORS['accent']),
        (f'Ano {years}', (1 - degradation) ** (years - 1), COLORS['negative']),
    ]

    positions = list(range(len(MONTH_LABELS)))

    def _draw(ax: Axes) -> None:
        for label, factor, color in curves:
            ax.plot(positions, monthly_generation(monthly_energy, factor), label=label, color=color, linewidth=2)
        ax.set_xticks(positions)
        ax.set_xticklabels(MONTH_LABELS)
        ax.set_ylabel('kWh', fontsize=9)
        ax.set_title(f'Geração Mensal (degradação {format_fraction_percent(degradation)}/ano)', fontsize=11)
        ax.legend(fontsize=8, frameon=False)

    return generate_custom_chart(_draw, width=width, height=height, dpi=dpi)


def generate_cost_comparison_chart(
    cost_without_solar: float,
    cost_with_solar: float,
    annual_savings: float,
    *,
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
    dpi: int = DEFAULT_DPI,
) -> bytes:
    for name, value in (
        ('cost without solar', cost_without_solar),
        ('cost with solar', cost_with_solar),
        ('annual savings', annual_savings),
    ):
        _require(value >= 0, f'{name} must not be negative, got {value}')

    labels = ['Sem Solar', 'Com Solar', 'Economia']
    values = [cost_without_solar, cost_with_solar, annual_savings]
    bar_colors = [COLORS['negative'], COLORS['positive'], COLORS['primary']]

    def _draw(ax: Axes) -> None:
        ax.bar(labels, values, color=bar_colors, alpha=0.8)
        ax.yaxis.set_major_formatter(FuncFormatter(_currency_axis))
        ax.set_title('Custo Anual de Energia', fontsize=11)

    return generate_custom_chart(_draw, width=width, height=height, dpi=dpi)


def estimate_cost_comparison(record: ProposalRecord) -> tuple[float, float, float]:
    """Annual energy cost without and with the system, plus the savings.

    Without solar the bill is the savings plus a 10% capex equivalent; with
    solar only a 2% capex maintenance cost remains.
    """
    capex = record.finance.capex
    savings = record.kpis.annual_savings
    return savings + capex * 0.1, capex * 0.02, savings


def _render_or_skip(label: str, render: Callable[[], bytes]) -> bytes | None:
    try:
        return render()
    except InvalidChartInput as exc:
        logger.warning('Skipping %s chart: %s', label, exc)
        return None


def build_chart_images(record: ProposalRecord, settings: Settings | None = None) -> ChartImages:
    settings = settings or get_settings()
    size = {
        'width': settings.chart_width_px,
        'height': settings.chart_height_px,
        'dpi': settings.chart_dpi,
    }
    degradation = record.finance.annual_degradation
    if degradation is None:
        degradation = settings.chart_default_degradation

    payback = _render_or_skip(
        'payback',
        lambda: generate_payback_chart(
            record.finance.capex,
            record.kpis.annual_savings,
            settings.chart_horizon_years,
            **size,
        ),
    )
    generation = _render_or_skip(
        'annual generation',
        lambda: generate_annual_generation_chart(
            record.kpis.monthly_energy_kwh,
            degradation,
            settings.chart_horizon_years,
            **size,
        ),
    )
    return ChartImages(payback=payback, annual_generation=generation)
