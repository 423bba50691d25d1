import logging

import streamlit as st

from lumina import config
from lumina.charts import render_chart
from lumina.data_model import ChartType
from lumina.errors import ReadFailureError
from lumina.export import PDF_MIME, WORD_MIME, export_pdf, export_word, report_file_name
from lumina.facets import FacetSelection, entity_values, metric_columns
from lumina.filters import FilteredView, FilterSet, operators_for_column
from lumina.inference import text_columns
from lumina.parser import fetch_sample_csv, read_upload
from lumina.session import Step, UploadSession, process_pasted_text, process_sample, process_upload

# ================== CONFIG ==================
st.set_page_config(page_title=f"{config.APP_TITLE} — Data to Report", page_icon="📊", layout="wide")
logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("lumina.app")

UPLOAD_TYPES = ["csv", "json", "xlsx", "xls", "png", "jpg", "jpeg", "webp"]


# ================== STATE ==================
def _init_state():
    ss = st.session_state
    if "upload" not in ss:
        ss.upload = UploadSession()
    if "view" not in ss:
        ss.view = FilteredView()
    if "facet" not in ss:
        ss.facet = None
    if "uploader_key" not in ss:
        ss.uploader_key = 0


def _on_new_dataset():
    """Fresh dataset: drop old filters and facet choices."""
    ss = st.session_state
    ss.view.set_dataset(ss.upload.state.dataset)
    ss.view.set_filters(FilterSet())
    ss.facet = FacetSelection.default(ss.upload.state.dataset)


def _run_with_spinner(label, fn, *args):
    with st.spinner(label):
        state = fn(st.session_state.upload, *args)
    if state.step == Step.DASHBOARD:
        _on_new_dataset()


def _reset():
    st.session_state.upload.reset()
    st.session_state.view = FilteredView()
    st.session_state.facet = None
    st.session_state.uploader_key += 1


@st.cache_data(ttl=3600, show_spinner=False)
def _sample_csv():
    return fetch_sample_csv(config.SAMPLE_CSV_URL)[1].encode("utf-8")


_init_state()
ss = st.session_state

# ================== SIDEBAR ==================
with st.sidebar:
    st.header("⬇️ Sample data")
    st.caption("A small CSV from GitHub, handy for a first look.")
    if st.button("Analyze the sample dataset"):
        _run_with_spinner("Downloading and analyzing sample…", process_sample)
    try:
        st.download_button("Sample CSV (.csv)", data=_sample_csv(), file_name="sample.csv", mime="text/csv")
    except ReadFailureError:
        st.warning("Sample CSV not available")

    st.divider()
    st.header("📦 Data Source")
    uploaded_file = st.file_uploader("Upload CSV / JSON / Excel, or a photo of a table", type=UPLOAD_TYPES,
                                     key=f"uploader_{ss.uploader_key}")
    # file_id changes on every upload, even of the same file
    if ss.upload.is_new_upload(uploaded_file.file_id if uploaded_file is not None else None):
        try:
            raw = read_upload(uploaded_file)
        except ReadFailureError as e:
            ss.upload.fail(ss.upload.begin(uploaded_file.name), str(e))
        else:
            _run_with_spinner("Reading and analyzing your data…", process_upload,
                              uploaded_file.name, uploaded_file.type or "", raw)

    st.caption("Or paste CSV / JSON text:")
    pasted = st.text_area("Paste data", height=140, label_visibility="collapsed")
    if st.button("Analyze pasted data", disabled=not pasted.strip()):
        _run_with_spinner("Analyzing pasted data…", process_pasted_text, pasted)

    st.divider()
    if st.button("Start over"):
        _reset()
        st.rerun()

# ================== MAIN UI ==================
st.title(f"📊 {config.APP_TITLE}")
st.caption("Upload a dataset, get a written report with suggested charts, then filter and compare.")

state = ss.upload.state
if state.error:
    c1, c2 = st.columns([12, 1])
    c1.error(state.error)
    if c2.button("✕", help="Dismiss"):
        ss.upload.dismiss_error()
        st.rerun()

if state.step != Step.DASHBOARD:
    if not config.get_api_key():
        st.warning("GOOGLE_API_KEY is not set: uploads will parse, but AI analysis will fail.")
    st.info("Upload a file, paste data, or try the sample dataset from the sidebar to begin.")
    st.stop()

dataset = state.dataset
analysis = state.analysis
view = ss.view
if view.dataset is not dataset:
    _on_new_dataset()

# ===== Report =====
st.markdown(f"### 💡 {analysis.headline}")
st.markdown(analysis.summary)
if analysis.key_insights:
    st.markdown("**Key insights**")
    for insight in analysis.key_insights:
        st.markdown(f"- {insight}")

# ===== Filters =====
def _set_filters(filters):
    view.set_filters(filters)


def _edit_filter(fid, field):
    value = st.session_state[f"flt_{field}_{fid}"]
    _set_filters(view.filters.update(fid, dataset, **{field: value}))


with st.expander(f"🔍 Filter data ({len(view.filters)} active)", expanded=True):
    if not len(view.filters):
        st.caption("No filters applied. Showing all data.")
    for p in view.filters:
        c1, c2, c3, c4 = st.columns([3, 2, 3, 1])
        c1.selectbox("Column", dataset.columns, index=dataset.columns.index(p.column),
                     key=f"flt_column_{p.id}", on_change=_edit_filter, args=(p.id, "column"))
        ops = list(operators_for_column(dataset, p.column))
        # widget keys survive a column change; force the reset operator/value through
        st.session_state[f"flt_operator_{p.id}"] = p.operator
        st.session_state[f"flt_value_{p.id}"] = p.value
        c2.selectbox("Operator", ops, key=f"flt_operator_{p.id}",
                     on_change=_edit_filter, args=(p.id, "operator"))
        c3.text_input("Value", key=f"flt_value_{p.id}", on_change=_edit_filter, args=(p.id, "value"))
        c4.button("🗑", key=f"flt_rm_{p.id}", help="Remove filter",
                  on_click=lambda fid=p.id: _set_filters(view.filters.remove(fid)))
    st.button("➕ Add filter", on_click=lambda: _set_filters(view.filters.add(dataset)))

filtered = view.result
st.success(f"Showing {len(filtered):,} of {len(dataset):,} rows × {len(dataset.columns)} cols")
st.dataframe(filtered.head(config.PREVIEW_ROWS).to_frame(), use_container_width=True)

# ===== Suggested charts =====
figures = []
if analysis.charts:
    st.markdown("### 📈 Figures")
    cols = st.columns(2)
    for i, cfg in enumerate(analysis.charts):
        fig = render_chart(cfg, filtered.rows)
        figures.append(fig)
        with cols[i % 2]:
            st.markdown(f"**Figure {i + 1}. {cfg.title}**")
            st.pyplot(fig, use_container_width=True, clear_figure=False)
            if cfg.description:
                st.caption(cfg.description)

# ===== Facet comparison =====
groups = text_columns(filtered)
metrics = metric_columns(filtered)
if groups and metrics:
    with st.expander("🧭 Compare entities", expanded=True):
        facet = ss.facet or FacetSelection.default(filtered)
        c1, c2 = st.columns([2, 1])
        group_key = c1.selectbox("Group by", groups,
                                 index=groups.index(facet.group_key) if facet.group_key in groups else 0)
        if group_key != facet.group_key:
            facet = facet.with_group(filtered, group_key)
        chart_type = c2.radio("Chart", [ChartType.RADAR.value, ChartType.BAR.value], horizontal=True,
                              index=0 if facet.chart_type == ChartType.RADAR else 1)
        facet = FacetSelection(facet.group_key, facet.entities, facet.metrics, ChartType(chart_type))

        st.caption("Entities")
        ent_cols = st.columns(6)
        for i, entity in enumerate(entity_values(filtered, facet.group_key)):
            checked = ent_cols[i % 6].checkbox(entity, value=entity in facet.entities, key=f"ent_{group_key}_{entity}")
            if checked != (entity in facet.entities):
                facet = facet.toggle_entity(entity)
        st.caption("Metrics")
        met_cols = st.columns(6)
        for i, metric in enumerate(metrics):
            checked = met_cols[i % 6].checkbox(metric, value=metric in facet.metrics, key=f"met_{metric}")
            if checked != (metric in facet.metrics):
                facet = facet.toggle_metric(metric)
        ss.facet = facet

        facet_charts = facet.charts(filtered)
        if not facet_charts or not facet.metrics:
            st.info("Select at least one entity and one metric.")
        else:
            grid = st.columns(3)
            for i, fc in enumerate(facet_charts):
                fig = render_chart(fc.config, fc.rows, width=3.5, height=3.2)
                with grid[i % 3]:
                    st.pyplot(fig, use_container_width=True, clear_figure=True)
                    st.caption(fc.config.description)

# ===== Export =====
st.divider()
c1, c2 = st.columns(2)
try:
    c1.download_button("⬇️ Export PDF", data=export_pdf(analysis, figures, state.file_name),
                       file_name=report_file_name(state.file_name, "pdf"), mime=PDF_MIME)
except Exception as e:
    logger.exception("PDF export failed")
    c1.error(f"Failed to generate PDF: {e}")
c2.download_button("⬇️ Export Word", data=export_word(analysis, state.file_name),
                   file_name=report_file_name(state.file_name, "doc"), mime=WORD_MIME)
