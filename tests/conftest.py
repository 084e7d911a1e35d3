"""Pytest configuration and shared fixtures.

The synthetic dataset mirrors the Public Health Scotland incidence extract:
one row per health board, year, site and sex (Female, Male, All), with
source-style headers. Counts and rates are constant across years so the
expected totals can be worked out by hand.
"""
import pandas as pd
import pytest

from incidence_loader import load_incidence_data
from site_mappings import apply_site_mappings, exclude_aggregate_sites

BOARD = 'S08000016'
OTHER_BOARD = 'S08000017'
YEARS = list(range(2012, 2019))

# site, code, (female count, male count), (female crude, male crude), (female SIR, male SIR)
SITES = [
    ('Non-melanoma skin cancer', 'C44', (40, 50), (80.0, 95.0), (90.0, 110.0)),
    ('Basal cell carcinoma of the skin', 'C44, M-8090-8098', (25, 30), (50.0, 57.0), (92.0, 104.0)),
    ('Breast', 'C50', (60, 1), (150.0, 3.0), (105.0, 300.0)),
    ('Colorectal cancer', 'C18-C20', (30, 35), (55.0, 65.0), (95.0, 105.0)),
    ('Colon', 'C18', (20, 22), (37.0, 41.0), (97.0, 103.0)),
    ('Prostate', 'C61', (0, 55), (0.0, 110.0), (0.0, 120.0)),
    ('Trachea, bronchus and lung', 'C33-C34', (28, 32), (50.0, 60.0), (100.0, 100.0)),
    ('Carcinoma in situ of cervix uteri', 'D06', (36, 0), (70.0, 0.0), (85.0, 0.0)),
    ('Uterus', 'C53-C55', (20, 0), (39.0, 0.0), (98.0, 0.0)),
    ('Cervix uteri', 'C53', (12, 0), (23.0, 0.0), (96.0, 0.0)),
]

# Lung SIR is doubled before the recent window so window selection is visible
LUNG_EARLY_SIR = 200.0
RECENT_WINDOW_START = 2014

AGGREGATE_COUNTS = (174, 123)  # canonical sites except non-melanoma skin cancer

EXPECTED_TOTALS = [
    ('Non-melanoma skin cancer', 630),
    ('Colorectal cancer', 455),
    ('Breast', 427),
    ('Trachea, bronchus and lung', 420),
    ('Prostate', 385),
    ('Carcinoma in situ of cervix uteri', 252),
    ('Uterus', 140),
]
EXPECTED_DOCUMENTED_TOTAL = 2709

EXPECTED_SIR_ORDER = [
    'Prostate',
    'Breast',
    'Non-melanoma skin cancer',
    'Colorectal cancer',
    'Trachea, bronchus and lung',
    'Uterus',
    'Carcinoma in situ of cervix uteri',
]


def _site_rows(board, year, site, code, counts, crude, sir, scale=1):
    female, male = (c * scale for c in counts)
    rows = [
        (board, year, site, code, 'Female', female, crude[0], crude[0], sir[0]),
        (board, year, site, code, 'Male', male, crude[1], crude[1], sir[1]),
        # The All stratum carries values that must never reach a combined rate
        (board, year, site, code, 'All', female + male, 999.0, 999.0, 999.0),
    ]
    return rows


def make_raw_frame(boards=(BOARD, OTHER_BOARD)) -> pd.DataFrame:
    rows = []
    for scale, board in enumerate(boards, start=1):
        for year in YEARS:
            for site, code, counts, crude, sir in SITES:
                if site == 'Trachea, bronchus and lung' and year < RECENT_WINDOW_START:
                    sir = (LUNG_EARLY_SIR, LUNG_EARLY_SIR)
                rows.extend(_site_rows(board, year, site, code, counts, crude, sir, scale))
            rows.extend(_site_rows(
                board, year, 'All cancer types', 'C00-C97, excluding C44',
                AGGREGATE_COUNTS, (400.0, 420.0), (100.0, 100.0), scale
            ))

    df = pd.DataFrame(rows, columns=[
        'HB', 'Year', 'CancerSite', 'CancerSiteICD10Code', 'Sex',
        'IncidencesAllAges', 'CrudeRate', 'EASR', 'StandardisedIncidenceRatio',
    ])
    df.insert(1, 'HBQF', '')
    return df


@pytest.fixture
def raw_frame():
    """Source-shaped frame covering two health boards."""
    return make_raw_frame()


@pytest.fixture
def incidence_csv(tmp_path, raw_frame):
    """The raw frame written to disk as the loader expects it."""
    path = tmp_path / 'opendata_inc9418_hb.csv'
    raw_frame.to_csv(path, index=False)
    return path


@pytest.fixture
def loaded_frame(incidence_csv):
    return load_incidence_data(incidence_csv, BOARD)


@pytest.fixture
def normalised_frame(loaded_frame):
    return apply_site_mappings(exclude_aggregate_sites(loaded_frame))


def make_record_frame(rows):
    """Small frame already in record-field form: (year, site, code, sex, count, crude, sir)."""
    return pd.DataFrame(
        [
            {
                'health_board': BOARD,
                'year': year,
                'cancer_site': site,
                'cancer_site_code': code,
                'sex': sex,
                'incidence_count': count,
                'crude_rate': crude,
                'easr': crude,
                'standardised_incidence_ratio': sir,
            }
            for year, site, code, sex, count, crude, sir in rows
        ]
    )
