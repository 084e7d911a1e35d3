# Report configuration
# Values come from the environment, with defaults for the Public Health Scotland extract

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

DEFAULT_DATA_PATH = 'data/opendata_inc9418_hb.csv'
DEFAULT_HEALTH_BOARD = 'S08000016'  # NHS Borders
DEFAULT_OUTPUT_DIR = 'output'
DEFAULT_TOP_N = 6
DEFAULT_RECENT_YEARS = 5
DEFAULT_FIRST_YEAR = 1994
DEFAULT_LAST_YEAR = 2018


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class ReportConfig:
    """Settings for a single report run."""
    data_path: Path
    health_board: str
    output_dir: Path
    top_n: int = DEFAULT_TOP_N
    recent_years: int = DEFAULT_RECENT_YEARS
    first_year: int = DEFAULT_FIRST_YEAR
    last_year: int = DEFAULT_LAST_YEAR

    def __post_init__(self):
        if not self.health_board:
            raise ValueError("Health board code must be provided or set in CANCER_REPORT_HEALTH_BOARD")
        if self.top_n < 1:
            raise ValueError(f"top_n must be at least 1, got {self.top_n}")
        if self.recent_years < 1:
            raise ValueError(f"recent_years must be at least 1, got {self.recent_years}")
        if self.first_year > self.last_year:
            raise ValueError(f"first_year {self.first_year} is after last_year {self.last_year}")

    @property
    def year_range(self) -> Tuple[int, int]:
        return self.first_year, self.last_year

    @classmethod
    def from_env(cls, data_path: Optional[str] = None, health_board: Optional[str] = None) -> 'ReportConfig':
        """Build a config from CANCER_REPORT_* environment variables.

        Explicit arguments win over the environment, which wins over the defaults.
        """
        return cls(
            data_path=Path(data_path or os.getenv('CANCER_REPORT_DATA_PATH', DEFAULT_DATA_PATH)),
            health_board=health_board or os.getenv('CANCER_REPORT_HEALTH_BOARD', DEFAULT_HEALTH_BOARD),
            output_dir=Path(os.getenv('CANCER_REPORT_OUTPUT_DIR', DEFAULT_OUTPUT_DIR)),
            top_n=_int_from_env('CANCER_REPORT_TOP_N', DEFAULT_TOP_N),
            recent_years=_int_from_env('CANCER_REPORT_RECENT_YEARS', DEFAULT_RECENT_YEARS),
            first_year=_int_from_env('CANCER_REPORT_FIRST_YEAR', DEFAULT_FIRST_YEAR),
            last_year=_int_from_env('CANCER_REPORT_LAST_YEAR', DEFAULT_LAST_YEAR),
        )
