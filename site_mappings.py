# Cancer site superset mappings
# Collapses diagnostic sub-site codes onto the parent site that already reports them

import logging
from typing import Dict, List, Optional, Tuple

import pandas as pd

from incidence_loader import IncidenceRecord

logger = logging.getLogger(__name__)

# Aggregate row that double-counts every other site
AGGREGATE_SITE_LABEL = 'All cancer types'

# ICD-10 code strings (as published in CancerSiteICD10Code) of sub-sites,
# grouped under the parent site whose row already includes them
CANCER_SITE_MAPPINGS = {
    'head_and_neck': {
        'parent': 'Head and neck',
        'codes': [
            'C00',          # Lip
            'C01-C02',      # Tongue
            'C03-C06',      # Oral cavity
            'C07-C08',      # Salivary glands
            'C09-C10',      # Oropharynx
            'C11',          # Nasopharynx
            'C12-C13',      # Hypopharynx
            'C30-C31',      # Nasal cavities and middle ear
            'C32',          # Larynx
        ],
    },
    'colorectal': {
        'parent': 'Colorectal cancer',
        'codes': [
            'C18',          # Colon
            'C19-C20',      # Rectum and rectosigmoid junction
        ],
    },
    'non_melanoma_skin': {
        'parent': 'Non-melanoma skin cancer',
        'codes': [
            'C44, M-8090-8098',                     # Basal cell carcinoma of the skin
            'C44, M-8050-8078, M-8083-8084',        # Squamous cell carcinoma of the skin
        ],
    },
    'uterus': {
        'parent': 'Uterus',
        'codes': [
            'C53',          # Cervix uteri
            'C54',          # Corpus uteri
        ],
    },
    'brain_and_cns': {
        'parent': 'Brain and central nervous system',
        'codes': [
            'C71',          # Malignant brain cancer
        ],
    },
    'leukaemia': {
        'parent': 'Leukaemias',
        'codes': [
            'C91.0',                                    # Acute lymphoblastic leukaemia
            'C92.0, C92.4-C92.5, C93.0, C94.0, C94.2',  # Acute myeloid leukaemia
            'C91.1',                                    # Chronic lymphocytic leukaemia
            'C92.1',                                    # Chronic myeloid leukaemia
        ],
    },
    'bone_and_connective_tissue': {
        'parent': 'Bone and connective tissue',
        'codes': [
            'C40-C41',      # Bone
            'C45',          # Mesothelioma
            'C47, C49',     # Connective and soft tissue
        ],
    },
}


def _clean_code(code: Optional[str]) -> str:
    if code is None or (isinstance(code, float) and pd.isna(code)):
        return ''
    return str(code).strip()


def build_code_lookup(mappings: Dict[str, Dict] = None) -> Dict[str, str]:
    """Flatten a mapping table into a sub-site code -> parent label lookup."""
    mappings = CANCER_SITE_MAPPINGS if mappings is None else mappings
    lookup = {}
    for group_key, group in mappings.items():
        for code in group['codes']:
            code = _clean_code(code)
            if code in lookup:
                raise ValueError(
                    f"Code {code!r} in '{group_key}' is already mapped to '{lookup[code]}'"
                )
            lookup[code] = group['parent']
    return lookup


CODE_LOOKUP = build_code_lookup()


def get_sub_site_codes(parent: str) -> List[str]:
    """Get the sub-site codes collapsed into a parent site."""
    for group in CANCER_SITE_MAPPINGS.values():
        if group['parent'] == parent:
            return list(group['codes'])
    return []


def normalise_site(site: str, code: Optional[str], lookup: Dict[str, str] = None) -> Tuple[str, bool]:
    """Map a site label and its code onto (canonical label, is canonical).

    Codes listed under a parent give the parent's label and ``False``: the
    parent row already counts these cases. Anything else is its own
    canonical site.
    """
    lookup = CODE_LOOKUP if lookup is None else lookup
    parent = lookup.get(_clean_code(code))
    if parent is not None:
        return parent, False
    return site, True


def normalise_record(record: IncidenceRecord, lookup: Dict[str, str] = None) -> Tuple[str, bool]:
    """Same as :func:`normalise_site` for a loaded record."""
    return normalise_site(record.cancer_site, record.cancer_site_code, lookup)


def exclude_aggregate_sites(df: pd.DataFrame) -> pd.DataFrame:
    """Drop the all-sites aggregate rows before any totals are taken."""
    mask = df['cancer_site'] == AGGREGATE_SITE_LABEL
    if mask.any():
        logger.info(f"Excluding {int(mask.sum())} '{AGGREGATE_SITE_LABEL}' rows")
    return df[~mask].copy()


def apply_site_mappings(df: pd.DataFrame, lookup: Dict[str, str] = None) -> pd.DataFrame:
    """Add ``canonical_site`` and ``is_canonical`` columns to a copy of the frame."""
    df = df.copy()

    if len(df) == 0:
        df['canonical_site'] = pd.Series(dtype=str)
        df['is_canonical'] = pd.Series(dtype=bool)
        return df

    if (df['cancer_site'] == AGGREGATE_SITE_LABEL).any():
        raise ValueError(f"'{AGGREGATE_SITE_LABEL}' rows must be excluded before normalisation")

    normalised = [
        normalise_site(site, code, lookup)
        for site, code in zip(df['cancer_site'], df['cancer_site_code'])
    ]
    df['canonical_site'] = [label for label, _ in normalised]
    df['is_canonical'] = [flag for _, flag in normalised]

    sub_sites = df.loc[~df['is_canonical'], 'cancer_site'].unique()
    logger.info(
        f"Mapped {len(sub_sites)} sub-sites onto parents; "
        f"{df.loc[df['is_canonical'], 'canonical_site'].nunique()} canonical sites remain"
    )
    return df
