# Incidence aggregation and sex-weighted rate adjustment

import logging
from typing import Iterable, List, Sequence

import numpy as np
import pandas as pd

from incidence_loader import SEX_STRATA
from report_errors import InsufficientYearsError

logger = logging.getLogger(__name__)

RATE_METRICS = ['crude_rate', 'standardised_incidence_ratio']
SIR_METRIC = 'standardised_incidence_ratio'


def _canonical_sexed_rows(df: pd.DataFrame) -> pd.DataFrame:
    return df[df['is_canonical'] & df['sex'].isin(SEX_STRATA)]


def incidence_by_year(df: pd.DataFrame) -> pd.DataFrame:
    """Sum canonical incidence by site, year and sex (Female and Male only)."""
    rows = _canonical_sexed_rows(df)
    grouped = (
        rows.groupby(['canonical_site', 'year', 'sex'], sort=False, as_index=False)['incidence_count']
        .sum()
        .rename(columns={'canonical_site': 'cancer_site'})
    )
    return grouped


def total_incidence_by_site(df: pd.DataFrame) -> pd.DataFrame:
    """Total canonical incidence per site over all years, largest first.

    Sites with equal totals keep the order in which they first appear.
    """
    rows = _canonical_sexed_rows(df)
    totals = (
        rows.groupby('canonical_site', sort=False)['incidence_count']
        .sum()
        .reset_index()
        .rename(columns={'canonical_site': 'cancer_site', 'incidence_count': 'total_incidence'})
    )
    totals = totals.sort_values('total_incidence', ascending=False, kind='mergesort')
    totals['total_incidence'] = totals['total_incidence'].astype('int64')
    return totals.reset_index(drop=True)


def combine_weighted(counts: Sequence[float], values: Sequence[float]) -> float:
    """Incidence-weighted mean of per-sex values; NaN when the weights sum to zero."""
    counts = np.asarray(counts, dtype=float)
    values = np.asarray(values, dtype=float)
    mask = ~np.isnan(counts) & ~np.isnan(values)
    total = counts[mask].sum()
    if total == 0:
        return np.nan
    return float((counts[mask] * values[mask]).sum() / total)


def adjust_rates(df: pd.DataFrame, metrics: Iterable[str] = None) -> pd.DataFrame:
    """Combine Female and Male rates into one incidence-weighted value.

    For each (year, cancer_site, metric) the value is
    ``sum(count * rate) / sum(count)`` over the two sexes. The ``All``
    stratum is ignored. A zero count total gives NaN.

    Returns a long frame with columns ``year``, ``cancer_site``,
    ``metric`` and ``value``.
    """
    metrics = list(RATE_METRICS if metrics is None else metrics)
    group_cols = ['year', 'cancer_site']
    rows = df[df['sex'].isin(SEX_STRATA)]
    tmp = rows[group_cols + ['incidence_count'] + metrics].copy()

    agg_map = {}
    for metric in metrics:
        # Rows with a missing rate carry no weight for that metric
        mask = tmp[metric].notna()
        tmp[f'{metric}_wx'] = tmp[metric].where(mask, 0) * tmp['incidence_count'].where(mask, 0)
        tmp[f'{metric}_w'] = tmp['incidence_count'].where(mask, 0)
        agg_map[f'{metric}_wx'] = 'sum'
        agg_map[f'{metric}_w'] = 'sum'

    if len(tmp) == 0:
        return pd.DataFrame(columns=['year', 'cancer_site', 'metric', 'value'])

    grouped = tmp.groupby(group_cols, sort=False, as_index=False).agg(agg_map)

    for metric in metrics:
        denom = grouped[f'{metric}_w'].astype(float).replace(0, np.nan)
        grouped[metric] = grouped[f'{metric}_wx'] / denom
        zero_weight = grouped[f'{metric}_w'] == 0
        if zero_weight.any():
            logger.warning(
                f"⚠️ {int(zero_weight.sum())} site-years have no incidence for {metric}; value left missing"
            )

    grouped = grouped[group_cols + metrics]
    adjusted = grouped.melt(id_vars=group_cols, value_vars=metrics, var_name='metric', value_name='value')
    adjusted['value'] = adjusted['value'].astype(float)
    return adjusted.reset_index(drop=True)


def latest_years(years: Iterable[int], count: int) -> List[int]:
    """The ``count`` most recent distinct years, oldest first."""
    available = sorted(set(int(y) for y in years))
    if len(available) < count:
        raise InsufficientYearsError(count, len(available), context={'years': available})
    return available[-count:]


def recent_average_ratio(adjusted: pd.DataFrame, recent_years: int = 5, metric: str = SIR_METRIC) -> pd.DataFrame:
    """Average a combined metric over the latest years and rank sites by it.

    Ties keep the input order of the sites; sites with no value in the
    window rank last.
    """
    series = adjusted[adjusted['metric'] == metric]
    window = latest_years(series['year'], recent_years)
    recent = series[series['year'].isin(window)]

    column = f'mean_{metric}'
    ranking = (
        recent.groupby('cancer_site', sort=False)['value']
        .mean()
        .reset_index()
        .rename(columns={'value': column})
    )
    ranking = ranking.sort_values(column, ascending=False, kind='mergesort', na_position='last')
    logger.info(f"Ranked {len(ranking)} sites by mean {metric} over {window[0]}-{window[-1]}")
    return ranking.reset_index(drop=True)
