# Cancer incidence loader
# Reads the Public Health Scotland incidence extract and restricts it to one health board

import re
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, List, Tuple, Union

import numpy as np
import pandas as pd

from report_errors import HealthBoardNotFoundError, InvalidRecordError, MissingColumnError

logger = logging.getLogger(__name__)

FEMALE = 'Female'
MALE = 'Male'
ALL_SEXES = 'All'
SEX_VALUES = (FEMALE, MALE, ALL_SEXES)
SEX_STRATA = (FEMALE, MALE)

# Normalised source header -> record field
SOURCE_COLUMNS = {
    'hb': 'health_board',
    'year': 'year',
    'cancer_site': 'cancer_site',
    'cancer_site_icd10_code': 'cancer_site_code',
    'sex': 'sex',
    'incidences_all_ages': 'incidence_count',
    'crude_rate': 'crude_rate',
    'easr': 'easr',
    'standardised_incidence_ratio': 'standardised_incidence_ratio',
}

TEXT_FIELDS = ['health_board', 'cancer_site', 'cancer_site_code', 'sex']
RATE_FIELDS = ['crude_rate', 'easr', 'standardised_incidence_ratio']


@dataclass(frozen=True)
class IncidenceRecord:
    """One row of yearly incidence for a site, sex and health board."""
    health_board: str
    year: int
    cancer_site: str
    cancer_site_code: str
    sex: str
    incidence_count: int
    crude_rate: float
    easr: float
    standardised_incidence_ratio: float


RECORD_FIELDS = [f.name for f in fields(IncidenceRecord)]


def normalise_column_name(name: str) -> str:
    """Convert a source header such as ``CancerSiteICD10Code`` into ``cancer_site_icd10_code``."""
    text = str(name).strip()
    text = re.sub(r'(?<=[a-z0-9])(?=[A-Z])', '_', text)
    text = re.sub(r'(?<=[A-Z])(?=[A-Z][a-z])', '_', text)
    text = re.sub(r'[^0-9a-zA-Z]+', '_', text)
    return text.strip('_').lower()


def _rename_to_fields(df: pd.DataFrame) -> pd.DataFrame:
    """Normalise headers and map them onto record field names."""
    df = df.copy()
    df.columns = [normalise_column_name(c) for c in df.columns]

    rename = {}
    for source, field in SOURCE_COLUMNS.items():
        if field in df.columns:
            continue
        if source in df.columns:
            rename[source] = field
    df = df.rename(columns=rename)

    missing = [field for field in RECORD_FIELDS if field not in df.columns]
    if missing:
        raise MissingColumnError(missing, context={'columns': list(df.columns)})

    return df[RECORD_FIELDS]


def _coerce_numeric(df: pd.DataFrame, column: str) -> pd.Series:
    values = pd.to_numeric(df[column], errors='coerce')
    bad = values.isna() & df[column].notna() & (df[column].astype(str).str.strip() != '')
    if bad.any():
        sample = df.loc[bad, column].astype(str).unique()[:5].tolist()
        raise InvalidRecordError(column, f"non-numeric values {sample}")
    return values


def validate_incidence_frame(df: pd.DataFrame, year_range: Tuple[int, int] = (1994, 2018)) -> pd.DataFrame:
    """Check an incidence frame against the record schema and return a typed copy.

    Headers may be in source form (``IncidencesAllAges``) or already named
    after the record fields. Columns beyond the schema are dropped.
    """
    df = _rename_to_fields(df)

    for column in TEXT_FIELDS:
        df[column] = df[column].fillna('').astype(str).str.strip()

    unknown_sex = sorted(set(df['sex']) - set(SEX_VALUES))
    if unknown_sex:
        raise InvalidRecordError('sex', f"unexpected values {unknown_sex}")

    years = _coerce_numeric(df, 'year')
    if years.isna().any():
        raise InvalidRecordError('year', "missing values")
    if not np.all(np.mod(years, 1) == 0):
        raise InvalidRecordError('year', "non-integer values")
    first_year, last_year = year_range
    out_of_range = (years < first_year) | (years > last_year)
    if out_of_range.any():
        found = sorted(years[out_of_range].astype(int).unique().tolist())
        raise InvalidRecordError('year', f"{found} outside {first_year}-{last_year}")
    df['year'] = years.astype('int64')

    counts = _coerce_numeric(df, 'incidence_count')
    if counts.isna().any():
        raise InvalidRecordError('incidence_count', "missing values")
    if (counts < 0).any():
        raise InvalidRecordError('incidence_count', "negative counts")
    if not np.all(np.mod(counts, 1) == 0):
        raise InvalidRecordError('incidence_count', "non-integer counts")
    df['incidence_count'] = counts.astype('int64')

    for column in RATE_FIELDS:
        rates = _coerce_numeric(df, column)
        if (rates < 0).any():
            raise InvalidRecordError(column, "negative values")
        if rates.isna().any():
            logger.warning(f"{int(rates.isna().sum())} rows have no {column}")
        df[column] = rates.astype('float64')

    return df.reset_index(drop=True)


def filter_health_board(df: pd.DataFrame, health_board: str) -> pd.DataFrame:
    """Keep only rows for one health board."""
    codes = df['health_board'].fillna('').astype(str).str.strip()
    filtered = df[codes == health_board].copy()
    if len(filtered) == 0:
        raise HealthBoardNotFoundError(
            health_board, context={'available': sorted(codes.unique().tolist())[:20]}
        )
    return filtered


def load_incidence_data(
    path: Union[str, Path],
    health_board: str,
    year_range: Tuple[int, int] = (1994, 2018)
) -> pd.DataFrame:
    """Load the incidence CSV for one health board with a validated schema."""
    logger.info(f"📥 Loading incidence data from {path}")
    # Only blank cells are missing; tokens such as "NA" must fail validation
    raw = pd.read_csv(path, dtype=str, keep_default_na=False, na_values=[''])
    logger.info(f"Read {len(raw):,} rows with {len(raw.columns)} columns")

    df = _rename_to_fields(raw)
    df = filter_health_board(df, health_board)
    df = validate_incidence_frame(df, year_range)

    logger.info(
        f"Kept {len(df):,} rows for {health_board} "
        f"({df['year'].min()}-{df['year'].max()}, {df['cancer_site'].nunique()} sites)"
    )
    return df


def records_from_frame(df: pd.DataFrame) -> List[IncidenceRecord]:
    """Materialise validated rows as immutable records."""
    records = []
    for row in df[RECORD_FIELDS].itertuples(index=False):
        values: Dict = row._asdict()
        values['year'] = int(values['year'])
        values['incidence_count'] = int(values['incidence_count'])
        records.append(IncidenceRecord(**values))
    return records
