"""Tests for the report chart builders."""
import pytest

from charts import adjusted_rate_chart, incidence_trend_chart, totals_bar_chart
from incidence_report import build_report


@pytest.fixture
def tables(normalised_frame):
    return build_report(normalised_frame, top_n=3)


class TestCharts:

    def test_totals_bar_chart(self, tables):
        fig = totals_bar_chart(tables.top_by_total)

        assert len(fig.data) == 1
        assert list(fig.data[0].x) == list(tables.top_by_total['cancer_site'])
        assert fig.layout.yaxis.title.text == "Total Incidence"

    def test_incidence_trend_chart_one_line_per_site(self, tables):
        fig = incidence_trend_chart(tables.incidence_trend)
        assert len(fig.data) == 3

    def test_sir_chart_marks_expected_level(self, tables):
        fig = adjusted_rate_chart(tables.top_sir_rates, 'standardised_incidence_ratio')

        assert len(fig.data) == 3
        assert fig.layout.yaxis.title.text == "Standardised incidence ratio"
        assert len(fig.layout.shapes) == 1

    def test_crude_rate_chart(self, tables):
        fig = adjusted_rate_chart(tables.top_sir_rates, 'crude_rate', title="Crude rates")

        assert fig.layout.title.text == "Crude rates"
        assert len(fig.layout.shapes) == 0

    def test_unknown_metric(self, tables):
        with pytest.raises(ValueError, match='easr'):
            adjusted_rate_chart(tables.top_sir_rates, 'easr')
