from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    app_name: str = 'Solar Proposal PDF'

    data_dir: Path = Field(default=Path('./data'))
    log_level: str = Field(
        default='INFO',
        validation_alias=AliasChoices('SOLARPROPOSAL_LOG_LEVEL', 'LOG_LEVEL'),
    )

    # PDF export. Without font files the built-in Helvetica faces are used.
    pdf_font_regular_path: Path | None = None
    pdf_font_bold_path: Path | None = None
    pdf_subject: str = 'Proposta de sistema fotovoltaico'
    pdf_producer: str = 'solarproposal'
    # Fixed creation date and document id so identical input gives identical bytes
    pdf_invariant: bool = True

    # Charting collaborator
    chart_width_px: int = 800
    chart_height_px: int = 500
    chart_dpi: int = 100
    chart_horizon_years: int = 25
    chart_default_degradation: float = 0.005

    def proposals_dir(self) -> Path:
        return self.data_dir / 'proposals'


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
