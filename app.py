# Regional Cancer Incidence Report Dashboard
# Streamlit presentation layer over the derived report tables

import logging
from dataclasses import replace

import pandas as pd
import streamlit as st

from charts import adjusted_rate_chart, incidence_trend_chart, totals_bar_chart
from incidence_metrics import SIR_METRIC
from incidence_report import ReportTables, run_report, summarise
from report_config import ReportConfig
from report_errors import HealthBoardNotFoundError, IncidenceReportError, MissingColumnError
from site_mappings import CANCER_SITE_MAPPINGS

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

st.set_page_config(
    page_title="Cancer Incidence Report",
    page_icon="🏥",
    layout="wide",
    initial_sidebar_state="expanded"
)

# =============================================
# DATA LOADING
# =============================================

@st.cache_data(ttl=1800, show_spinner=False)
def load_report(data_path: str, health_board: str, top_n: int, recent_years: int):
    """Run the report pipeline for the dashboard."""

    logger.info(f"🔄 Loading report for {health_board} from {data_path}")

    try:
        config = replace(
            ReportConfig.from_env(data_path=data_path, health_board=health_board),
            top_n=top_n,
            recent_years=recent_years
        )
        return run_report(config)

    except FileNotFoundError:
        st.error(f"❌ Data file not found: {data_path}")
        st.markdown("""
        **Download the extract first:**

        Public Health Scotland open data, *Annual Cancer Incidence* by health board,
        saved as `data/opendata_inc9418_hb.csv` (or set `CANCER_REPORT_DATA_PATH`).
        """)
    except MissingColumnError as e:
        st.error(f"❌ {e.message}")
        st.info("💡 Run `python check_schema.py` to compare the file's columns with the expected schema")
    except HealthBoardNotFoundError as e:
        st.error(f"❌ {e.message}")
        available = e.context.get('available', [])
        if available:
            st.write("**Health boards in this file:** " + ", ".join(available))
    except (IncidenceReportError, ValueError) as e:
        st.error(f"❌ Error building report: {e}")

    logger.error(f"Report failed for {health_board}")
    return None

# =============================================
# REPORT PAGES
# =============================================

def overview_page(tables: ReportTables, summary: dict):
    """Headline figures and the two top-N rankings."""

    st.header("🏠 Overview")

    col1, col2, col3 = st.columns(3)

    with col1:
        st.metric("Canonical Sites", summary['total_sites'])

    with col2:
        st.metric("Total Incidence", f"{summary['total_incidence']:,}")

    with col3:
        st.metric("Years", f"{summary['first_year']}-{summary['last_year']}")

    st.plotly_chart(
        totals_bar_chart(tables.top_by_total, title="Most Frequent Cancer Sites"),
        use_container_width=True
    )

    col1, col2 = st.columns(2)

    with col1:
        st.subheader("📊 Top Sites by Total Incidence")
        st.dataframe(
            tables.top_by_total.rename(columns={
                'cancer_site': 'Cancer Site', 'total_incidence': 'Total Incidence'
            }),
            use_container_width=True,
            hide_index=True
        )

    with col2:
        st.subheader("📈 Top Sites by Recent Standardised Incidence Ratio")
        st.dataframe(
            tables.top_by_sir.rename(columns={
                'cancer_site': 'Cancer Site', f'mean_{SIR_METRIC}': 'Mean SIR'
            }).round(1),
            use_container_width=True,
            hide_index=True
        )

    with st.expander("All canonical sites"):
        st.dataframe(tables.ranked_totals, use_container_width=True, hide_index=True)


def trends_page(tables: ReportTables):
    """Yearly incidence for the most frequent sites."""

    st.header("📈 Incidence Trends")

    st.plotly_chart(
        incidence_trend_chart(tables.incidence_trend, title="Yearly Incidence, Most Frequent Sites"),
        use_container_width=True
    )

    pivot = tables.incidence_trend.pivot(index='year', columns='cancer_site', values='incidence_count')
    st.dataframe(pivot, use_container_width=True)


def rates_page(tables: ReportTables):
    """Sex-weighted crude rates and SIRs for the highest-SIR sites."""

    st.header("⚖️ Rate Comparison")
    st.markdown(
        "Female and male rates are combined as an incidence-weighted average, "
        "so single-sex sites are not diluted by the opposite sex."
    )

    metric = st.radio(
        "Metric",
        options=['standardised_incidence_ratio', 'crude_rate'],
        format_func=lambda m: "Standardised incidence ratio" if m == 'standardised_incidence_ratio' else "Crude rate",
        horizontal=True
    )

    st.plotly_chart(adjusted_rate_chart(tables.top_sir_rates, metric), use_container_width=True)

    missing = tables.adjusted_rates['value'].isna().sum()
    if missing:
        st.warning(f"⚠️ {missing} site-years had no incidence in either sex and are shown as gaps")


def mappings_page():
    """The superset mapping used to avoid double counting."""

    st.header("🔬 Site Mappings")
    st.markdown("Sub-site rows below are excluded from totals because the parent row already counts them.")

    rows = []
    for group in CANCER_SITE_MAPPINGS.values():
        for code in group['codes']:
            rows.append({'Parent Site': group['parent'], 'Sub-site Code': code})

    st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)

# =============================================
# MAIN APPLICATION
# =============================================

def main():
    """Main application function."""

    st.title("🏥 Regional Cancer Incidence Report")
    st.markdown("**Cancer incidence, 1994-2018, for service planning**")

    st.sidebar.header("⚙️ Configuration")

    defaults = ReportConfig.from_env()

    data_path = st.sidebar.text_input(
        "Incidence CSV",
        value=str(defaults.data_path),
        help="Public Health Scotland annual cancer incidence by health board"
    )

    health_board = st.sidebar.text_input(
        "Health Board Code",
        value=defaults.health_board,
        help="Nine-character board code, e.g. S08000016"
    )

    top_n = st.sidebar.slider("Sites per ranking", min_value=3, max_value=15, value=defaults.top_n)

    recent_years = st.sidebar.slider(
        "Recent years for SIR ranking", min_value=1, max_value=10, value=defaults.recent_years
    )

    if st.sidebar.button("🔄 Clear Cache"):
        st.cache_data.clear()
        st.sidebar.success("Cache cleared!")

    with st.spinner("🔄 Building report tables..."):
        tables = load_report(data_path, health_board, top_n, recent_years)

    if tables is None:
        st.stop()

    summary = summarise(tables)

    st.sidebar.header("🧭 Navigation")
    selected_page = st.sidebar.radio(
        "Select Page:",
        options=["Overview", "Incidence Trends", "Rate Comparison", "Site Mappings"]
    )

    if selected_page == "Overview":
        overview_page(tables, summary)
    elif selected_page == "Incidence Trends":
        trends_page(tables)
    elif selected_page == "Rate Comparison":
        rates_page(tables)
    elif selected_page == "Site Mappings":
        mappings_page()

if __name__ == "__main__":
    main()
