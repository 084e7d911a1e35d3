# Regional cancer incidence report
# Builds the derived tables behind the charts and narrative for one health board

import sys
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Union

import pandas as pd

from incidence_loader import SEX_STRATA, load_incidence_data
from incidence_metrics import (
    SIR_METRIC,
    adjust_rates,
    incidence_by_year,
    recent_average_ratio,
    total_incidence_by_site,
)
from report_config import ReportConfig
from report_errors import IncidenceReportError
from site_mappings import AGGREGATE_SITE_LABEL, apply_site_mappings, exclude_aggregate_sites

logger = logging.getLogger(__name__)

NON_MELANOMA_SKIN_LABEL = 'Non-melanoma skin cancer'


@dataclass(frozen=True)
class ReportTables:
    """Derived tables for one report run.

    ``top_by_total`` and ``top_by_sir`` are independent rankings and may
    name different sites.
    """
    ranked_totals: pd.DataFrame
    top_by_total: pd.DataFrame
    incidence_trend: pd.DataFrame
    adjusted_rates: pd.DataFrame
    recent_sir_ranking: pd.DataFrame
    top_by_sir: pd.DataFrame
    top_sir_rates: pd.DataFrame

    def as_dict(self) -> Dict[str, pd.DataFrame]:
        return {
            'ranked_totals': self.ranked_totals,
            'top_by_total': self.top_by_total,
            'incidence_trend': self.incidence_trend,
            'adjusted_rates': self.adjusted_rates,
            'recent_sir_ranking': self.recent_sir_ranking,
            'top_by_sir': self.top_by_sir,
            'top_sir_rates': self.top_sir_rates,
        }


def incidence_trend(by_year: pd.DataFrame, sites: List[str]) -> pd.DataFrame:
    """Yearly incidence, both sexes combined, for the given sites in ranking order."""
    rows = by_year[by_year['cancer_site'].isin(sites)]
    trend = rows.groupby(['cancer_site', 'year'], as_index=False)['incidence_count'].sum()
    order = {site: i for i, site in enumerate(sites)}
    trend['_order'] = trend['cancer_site'].map(order)
    trend = trend.sort_values(['_order', 'year'], kind='mergesort').drop(columns='_order')
    return trend.reset_index(drop=True)


def build_report(df: pd.DataFrame, top_n: int = 6, recent_years: int = 5) -> ReportTables:
    """Compute every derived table from a normalised incidence frame.

    ``df`` must already carry ``canonical_site`` / ``is_canonical`` (see
    :func:`site_mappings.apply_site_mappings`).
    """
    logger.info(f"🎯 Building report tables (top {top_n}, last {recent_years} years)...")

    ranked_totals = total_incidence_by_site(df)
    top_by_total = ranked_totals.head(top_n).reset_index(drop=True)

    by_year = incidence_by_year(df)
    trend = incidence_trend(by_year, top_by_total['cancer_site'].tolist())

    canonical = df[df['is_canonical']]
    adjusted = adjust_rates(canonical)

    sir_ranking = recent_average_ratio(adjusted, recent_years)
    top_by_sir = sir_ranking.head(top_n).reset_index(drop=True)

    top_sir_sites = top_by_sir['cancer_site'].tolist()
    top_sir_rates = adjusted[adjusted['cancer_site'].isin(top_sir_sites)].reset_index(drop=True)

    logger.info(
        f"Top by total: {', '.join(top_by_total['cancer_site'])}; "
        f"top by {SIR_METRIC}: {', '.join(top_sir_sites)}"
    )

    return ReportTables(
        ranked_totals=ranked_totals,
        top_by_total=top_by_total,
        incidence_trend=trend,
        adjusted_rates=adjusted,
        recent_sir_ranking=sir_ranking,
        top_by_sir=top_by_sir,
        top_sir_rates=top_sir_rates,
    )


def documented_total(df: pd.DataFrame) -> int:
    """All registered cases: the all-sites aggregate (which omits non-melanoma
    skin cancer) plus non-melanoma skin cancer, both sexes, every year.

    Takes the loaded frame before aggregate rows are excluded.
    """
    sexed = df[df['sex'].isin(SEX_STRATA)]
    aggregate = sexed.loc[sexed['cancer_site'] == AGGREGATE_SITE_LABEL, 'incidence_count'].sum()
    skin = sexed.loc[sexed['cancer_site'] == NON_MELANOMA_SKIN_LABEL, 'incidence_count'].sum()
    return int(aggregate + skin)


def run_report(config: ReportConfig) -> ReportTables:
    """Load, normalise and summarise the dataset named in ``config``."""
    loaded = load_incidence_data(config.data_path, config.health_board, config.year_range)
    logger.info(f"Documented total for {config.health_board}: {documented_total(loaded):,}")

    normalised = apply_site_mappings(exclude_aggregate_sites(loaded))
    return build_report(normalised, config.top_n, config.recent_years)


def summarise(tables: ReportTables) -> Dict:
    """Headline figures for the console summary and the dashboard."""
    totals = tables.ranked_totals
    years = tables.adjusted_rates['year']
    return {
        'total_sites': int(len(totals)),
        'total_incidence': int(totals['total_incidence'].sum()) if len(totals) > 0 else 0,
        'first_year': int(years.min()) if len(years) > 0 else None,
        'last_year': int(years.max()) if len(years) > 0 else None,
        'top_by_total': dict(zip(tables.top_by_total['cancer_site'], tables.top_by_total['total_incidence'])),
        'top_by_sir': dict(zip(tables.top_by_sir['cancer_site'], tables.top_by_sir[f'mean_{SIR_METRIC}'])),
    }


def write_report_tables(tables: ReportTables, output_dir: Union[str, Path]) -> List[Path]:
    """Write each derived table to ``<output_dir>/<name>.csv``."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for name, table in tables.as_dict().items():
        path = output_dir / f"{name}.csv"
        table.to_csv(path, index=False)
        written.append(path)

    logger.info(f"Wrote {len(written)} tables to {output_dir}")
    return written


def print_summary(summary: Dict, health_board: str):
    print("=" * 60)
    print(f"  CANCER INCIDENCE REPORT: {health_board}")
    print("=" * 60)
    if summary['first_year'] is None:
        print("  Years:               no adjusted rates")
    else:
        print(f"  Years:               {summary['first_year']}-{summary['last_year']}")
    print(f"  Canonical sites:     {summary['total_sites']:>8}")
    print(f"  Total incidence:     {summary['total_incidence']:>8,}")
    print("-" * 60)
    print("  Top sites by total incidence:")
    for site, total in summary['top_by_total'].items():
        print(f"    • {site}: {total:,}")
    print("-" * 60)
    print("  Top sites by recent standardised incidence ratio:")
    for site, ratio in summary['top_by_sir'].items():
        print(f"    • {site}: {ratio:.1f}")
    print("=" * 60)


def main():
    logging.basicConfig(level=logging.INFO)

    try:
        config = ReportConfig.from_env()
        tables = run_report(config)
        write_report_tables(tables, config.output_dir)
    except (IncidenceReportError, ValueError, FileNotFoundError) as e:
        logger.error(f"❌ Report failed: {e}")
        sys.exit(1)

    print_summary(summarise(tables), config.health_board)


if __name__ == "__main__":
    main()
