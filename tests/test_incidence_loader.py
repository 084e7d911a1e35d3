"""Tests for loading and validating the incidence extract."""
import dataclasses

import pytest

from conftest import BOARD, OTHER_BOARD, YEARS, make_record_frame
from incidence_loader import (
    IncidenceRecord,
    RECORD_FIELDS,
    load_incidence_data,
    normalise_column_name,
    records_from_frame,
    validate_incidence_frame,
)
from report_errors import (
    HealthBoardNotFoundError,
    IncidenceReportError,
    InvalidRecordError,
    MissingColumnError,
)


class TestColumnNames:

    @pytest.mark.parametrize('source, expected', [
        ('HB', 'hb'),
        ('CancerSiteICD10Code', 'cancer_site_icd10_code'),
        ('IncidencesAllAges', 'incidences_all_ages'),
        ('StandardisedIncidenceRatio', 'standardised_incidence_ratio'),
        ('EASR', 'easr'),
        (' Cancer Site ', 'cancer_site'),
        ('crude_rate', 'crude_rate'),
    ])
    def test_normalise_column_name(self, source, expected):
        assert normalise_column_name(source) == expected


class TestLoadIncidenceData:

    def test_filters_to_one_health_board(self, loaded_frame):
        assert set(loaded_frame['health_board']) == {BOARD}
        # 10 sites plus the aggregate, three sexes, seven years
        assert len(loaded_frame) == 11 * 3 * len(YEARS)

    def test_columns_follow_record_schema(self, loaded_frame):
        assert list(loaded_frame.columns) == RECORD_FIELDS
        assert loaded_frame['year'].dtype == 'int64'
        assert loaded_frame['incidence_count'].dtype == 'int64'
        assert loaded_frame['crude_rate'].dtype == 'float64'

    def test_other_board_is_loadable(self, incidence_csv):
        df = load_incidence_data(incidence_csv, OTHER_BOARD)
        breast = df[(df['cancer_site'] == 'Breast') & (df['sex'] == 'Female')]
        assert set(breast['incidence_count']) == {120}

    def test_unknown_health_board(self, incidence_csv):
        with pytest.raises(HealthBoardNotFoundError) as exc:
            load_incidence_data(incidence_csv, 'S08000099')
        assert BOARD in exc.value.context['available']

    def test_missing_column(self, tmp_path, raw_frame):
        path = tmp_path / 'no_counts.csv'
        raw_frame.drop(columns=['IncidencesAllAges']).to_csv(path, index=False)

        with pytest.raises(MissingColumnError) as exc:
            load_incidence_data(path, BOARD)
        assert exc.value.missing == ['incidence_count']
        assert exc.value.error_code == 'MISSING_COLUMN'
        assert isinstance(exc.value, IncidenceReportError)

    def test_year_outside_range(self, incidence_csv):
        with pytest.raises(InvalidRecordError) as exc:
            load_incidence_data(incidence_csv, BOARD, year_range=(2014, 2018))
        assert exc.value.column == 'year'

    def test_negative_count(self, tmp_path, raw_frame):
        raw_frame.loc[0, 'IncidencesAllAges'] = -1
        path = tmp_path / 'negative.csv'
        raw_frame.to_csv(path, index=False)

        with pytest.raises(InvalidRecordError) as exc:
            load_incidence_data(path, BOARD)
        assert exc.value.column == 'incidence_count'

    def test_non_numeric_rate(self, tmp_path, raw_frame):
        raw_frame['CrudeRate'] = raw_frame['CrudeRate'].astype(object)
        raw_frame.loc[0, 'CrudeRate'] = 'n/a'
        path = tmp_path / 'text_rate.csv'
        raw_frame.to_csv(path, index=False)

        with pytest.raises(InvalidRecordError) as exc:
            load_incidence_data(path, BOARD)
        assert exc.value.column == 'crude_rate'

    @pytest.mark.parametrize('token', ['NA', 'null', 'NaN', '#N/A'])
    def test_na_like_rate_tokens_rejected(self, tmp_path, raw_frame, token):
        raw_frame['StandardisedIncidenceRatio'] = raw_frame['StandardisedIncidenceRatio'].astype(object)
        raw_frame.loc[0, 'StandardisedIncidenceRatio'] = token
        path = tmp_path / 'token_rate.csv'
        raw_frame.to_csv(path, index=False)

        with pytest.raises(InvalidRecordError) as exc:
            load_incidence_data(path, BOARD)
        assert exc.value.column == 'standardised_incidence_ratio'

    def test_blank_rate_is_missing(self, tmp_path, raw_frame):
        raw_frame['CrudeRate'] = raw_frame['CrudeRate'].astype(object)
        raw_frame.loc[0, 'CrudeRate'] = ''
        path = tmp_path / 'blank_rate.csv'
        raw_frame.to_csv(path, index=False)

        df = load_incidence_data(path, BOARD)
        assert df['crude_rate'].isna().sum() == 1

    def test_unknown_sex(self, tmp_path, raw_frame):
        raw_frame.loc[0, 'Sex'] = 'Unknown'
        path = tmp_path / 'sex.csv'
        raw_frame.to_csv(path, index=False)

        with pytest.raises(InvalidRecordError) as exc:
            load_incidence_data(path, BOARD)
        assert exc.value.column == 'sex'

    def test_missing_rate_is_allowed(self, tmp_path, raw_frame):
        raw_frame['StandardisedIncidenceRatio'] = raw_frame['StandardisedIncidenceRatio'].astype(object)
        raw_frame.loc[0, 'StandardisedIncidenceRatio'] = ''
        path = tmp_path / 'gap.csv'
        raw_frame.to_csv(path, index=False)

        df = load_incidence_data(path, BOARD)
        assert df['standardised_incidence_ratio'].isna().sum() == 1


class TestRecords:

    def test_validate_accepts_field_names(self):
        df = make_record_frame([
            (2018, 'Breast', 'C50', 'Female', 100, 200.0, 110.0),
            (2018, 'Breast', 'C50', 'Male', 0, 0.0, 0.0),
        ])
        validated = validate_incidence_frame(df)
        assert len(validated) == 2

    def test_records_are_immutable(self, loaded_frame):
        records = records_from_frame(loaded_frame)

        assert len(records) == len(loaded_frame)
        first = records[0]
        assert isinstance(first, IncidenceRecord)
        assert isinstance(first.year, int)
        with pytest.raises(dataclasses.FrozenInstanceError):
            first.incidence_count = 0
