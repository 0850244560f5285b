from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from pydantic import ValidationError

from solarproposal.adapters.charts import (
    build_chart_images,
    estimate_cost_comparison,
    generate_annual_generation_chart,
    generate_cost_comparison_chart,
    generate_payback_chart,
)
from solarproposal.adapters.pdf_inspect import inspect_pdf
from solarproposal.config import get_settings
from solarproposal.errors import DocumentBuildError, InvalidChartInput
from solarproposal.report.proposal_pdf import build_proposal_pdf
from solarproposal.storage import (
    append_event,
    default_output_path,
    read_json,
    write_bytes_atomic,
    write_json_atomic,
)
from solarproposal.types import AssetBundle, ChartImages, ProposalRecord


logger = logging.getLogger(__name__)


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _error(message: str) -> int:
    _print_json({'status': 'error', 'message': message})
    return 2


def _existing_file(raw: str | None) -> Path | None:
    if not raw:
        return None
    path = Path(raw).expanduser().resolve()
    if not path.exists() or not path.is_file():
        raise FileNotFoundError(str(path))
    return path


def _read_optional(raw: str | None) -> bytes | None:
    path = _existing_file(raw)
    return path.read_bytes() if path is not None else None


def _load_record(raw: str) -> ProposalRecord:
    path = _existing_file(raw)
    return ProposalRecord.model_validate(read_json(path))


def cmd_build(args: argparse.Namespace) -> int:
    settings = get_settings()
    try:
        record = _load_record(args.record)
        logo = _read_optional(args.logo)
        payback = _read_optional(args.payback_chart)
        generation = _read_optional(args.generation_chart)
    except FileNotFoundError as exc:
        return _error(f'File not found: {exc}')
    except (ValidationError, ValueError) as exc:
        return _error(f'Invalid proposal record: {exc}')

    if args.render_charts:
        rendered = build_chart_images(record, settings)
        payback = payback or rendered.payback
        generation = generation or rendered.annual_generation

    assets = AssetBundle(logo=logo, charts=ChartImages(payback=payback, annual_generation=generation))
    try:
        pdf_bytes = build_proposal_pdf(record, assets, settings=settings)
    except DocumentBuildError as exc:
        return _error(str(exc))

    output_path = Path(args.output).expanduser().resolve() if args.output else default_output_path(record.title)
    write_bytes_atomic(output_path, pdf_bytes)

    page_count = inspect_pdf(pdf_bytes).page_count
    summary_path = output_path.with_suffix('.json')
    append_event(
        'built',
        title=record.title,
        path=str(output_path),
        bytes=len(pdf_bytes),
        page_count=page_count,
    )
    summary = {
        'status': 'ok',
        'title': record.title,
        'path': str(output_path),
        'summary_path': str(summary_path),
        'bytes': len(pdf_bytes),
        'page_count': page_count,
        'item_count': len(record.items),
        'subtotal': str(record.subtotal),
        'charts': {
            'payback': payback is not None,
            'annual_generation': generation is not None,
        },
    }
    write_json_atomic(summary_path, summary)
    _print_json(summary)
    return 0


def cmd_charts(args: argparse.Namespace) -> int:
    settings = get_settings()
    try:
        record = _load_record(args.record)
    except FileNotFoundError as exc:
        return _error(f'File not found: {exc}')
    except (ValidationError, ValueError) as exc:
        return _error(f'Invalid proposal record: {exc}')

    out_dir = Path(args.out_dir).expanduser().resolve()
    size = {
        'width': settings.chart_width_px,
        'height': settings.chart_height_px,
        'dpi': settings.chart_dpi,
    }
    degradation = record.finance.annual_degradation
    if degradation is None:
        degradation = settings.chart_default_degradation
    renderers = {
        'payback.png': lambda: generate_payback_chart(
            record.finance.capex, record.kpis.annual_savings, settings.chart_horizon_years, **size
        ),
        'geracao_anual.png': lambda: generate_annual_generation_chart(
            record.kpis.monthly_energy_kwh, degradation, settings.chart_horizon_years, **size
        ),
        'comparacao_custos.png': lambda: generate_cost_comparison_chart(
            *estimate_cost_comparison(record), **size
        ),
    }

    written: list[str] = []
    skipped: dict[str, str] = {}
    for name, render in renderers.items():
        try:
            png = render()
        except InvalidChartInput as exc:
            logger.warning('Chart %s not rendered: %s', name, exc)
            skipped[name] = str(exc)
            continue
        path = out_dir / name
        write_bytes_atomic(path, png)
        written.append(str(path))

    _print_json({'status': 'ok', 'written': written, 'skipped': skipped})
    return 0


def cmd_inspect(args: argparse.Namespace) -> int:
    try:
        path = _existing_file(args.pdf)
    except FileNotFoundError as exc:
        return _error(f'PDF not found: {exc}')
    _print_json(inspect_pdf(path.read_bytes()).to_dict())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Solar proposal PDF generator')
    sub = parser.add_subparsers(dest='command', required=True)

    build = sub.add_parser('build', help='Build the proposal PDF from a record JSON file')
    build.add_argument('--record', required=True, help='Path to the proposal record JSON')
    build.add_argument('--logo', required=False, help='Company logo (PNG or JPEG)')
    build.add_argument('--payback-chart', required=False, help='Pre-rendered payback chart')
    build.add_argument('--generation-chart', required=False, help='Pre-rendered annual generation chart')
    build.add_argument('--render-charts', action='store_true', help='Render missing charts from the record')
    build.add_argument('--output', required=False, help='Output PDF path')
    build.set_defaults(func=cmd_build)

    charts = sub.add_parser('charts', help='Render the proposal charts to PNG files')
    charts.add_argument('--record', required=True, help='Path to the proposal record JSON')
    charts.add_argument('--out-dir', required=True, help='Directory for the PNG files')
    charts.set_defaults(func=cmd_charts)

    inspect = sub.add_parser('inspect', help='Print page count, metadata and text of a PDF')
    inspect.add_argument('--pdf', required=True, help='Path to PDF file')
    inspect.set_defaults(func=cmd_inspect)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(get_settings().log_level).upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    return int(args.func(args))


if __name__ == '__main__':
    raise SystemExit(main())
