"""Main Streamlit application entry point."""
import streamlit as st
from placemapper.core.config import LOG_LEVEL
from placemapper.core.geocode_queue import ProcessorState
from placemapper.core.session import LocatorSession, create_session
from placemapper.utils.error_handler import handle_streamlit_errors
from placemapper.utils.error_tracking import setup_error_tracking
from placemapper.utils.logging import setup_logging

# Page configuration
st.set_page_config(
    page_title="Place Mapper",
    page_icon="📍",
    layout="wide"
)

# Setup logging
setup_logging(LOG_LEVEL)

# Initialize session state
if "locator" not in st.session_state:
    setup_error_tracking()
    st.session_state.locator = create_session()

locator: LocatorSession = st.session_state.locator
# Retried on later reruns until the outlines arrive
locator.ensure_country_polygons()


# --- Callbacks (run before the script reruns) ---

def submit_batch():
    if locator.processor.submit_batch(st.session_state.batch_input):
        st.session_state.batch_input = ""


def resolve_ambiguity(key: str):
    locator.processor.resolve_ambiguity(st.session_state[key])


def skip_ambiguity():
    locator.processor.skip_ambiguity()


def start_rename(location_id: int):
    st.session_state.editing_id = location_id


def save_rename(location_id: int):
    locator.registry.rename(location_id, st.session_state[f"rename_{location_id}"])
    st.session_state.pop("editing_id", None)


def cancel_rename():
    st.session_state.pop("editing_id", None)


def toggle_fill_countries():
    locator.highlighter.set_enabled(st.session_state.fill_countries)


def toggle_docs():
    if locator.docs.is_open:
        locator.docs.close()
    else:
        locator.docs.open()


# --- Page sections ---

def render_input():
    st.subheader("Locations")
    loading = locator.processor.is_loading
    st.text_area(
        "Enter place names, separated by ';' or new lines:",
        key="batch_input",
        height=120,
        placeholder="Paris; Nairobi\nLake Titicaca"
    )
    st.button(
        "Adding..." if loading else "Add to Map",
        type="primary",
        disabled=loading,
        on_click=submit_batch,
        use_container_width=True
    )
    if loading:
        st.caption(f"⏳ {locator.processor.pending_count} place(s) left in the queue")


def render_ambiguity():
    context = locator.processor.ambiguity
    if context is None:
        return

    with st.container(border=True):
        st.warning(context.prompt)
        # Fresh key per pending query so a previous choice is not carried over
        key = f"ambiguity_{locator.processor.ambiguity_serial}"
        st.selectbox(
            "Choose a match",
            options=list(range(len(context.choices))),
            format_func=lambda i: context.choices[i].display_name,
            key=key,
            label_visibility="collapsed"
        )
        col1, col2 = st.columns(2)
        with col1:
            st.button("OK", type="primary", on_click=resolve_ambiguity, args=(key,), use_container_width=True)
        with col2:
            st.button("Skip", on_click=skip_ambiguity, use_container_width=True)


def render_location_list():
    rows = locator.location_list.rows
    if not rows:
        st.caption("No places yet.")
        return

    editing_id = st.session_state.get("editing_id")
    for row in rows:
        if not row.is_placed:
            col1, col2 = st.columns([6, 1])
            with col1:
                st.markdown(f":red[{row.text}]" if row.is_error else f":gray[{row.text}]")
            with col2:
                st.button("🗑️", key=f"dismiss_{row.key}", help="Remove",
                          on_click=locator.registry.dismiss_unresolved, args=(row.key,))
            continue

        location_id = row.location_id
        if editing_id == location_id:
            st.text_input("Rename", value=row.text, key=f"rename_{location_id}", label_visibility="collapsed")
            col1, col2 = st.columns(2)
            with col1:
                st.button("Save", key=f"save_{location_id}", on_click=save_rename, args=(location_id,),
                          use_container_width=True)
            with col2:
                st.button("Cancel", key=f"cancel_{location_id}", on_click=cancel_rename,
                          use_container_width=True)
            continue

        col1, col2, col3, col4 = st.columns([6, 1, 1, 1])
        with col1:
            st.markdown(row.text)
        with col2:
            st.button("✏️", key=f"edit_{location_id}", help="Rename", on_click=start_rename, args=(location_id,))
        with col3:
            st.button("🔍", key=f"zoom_{location_id}", help="Zoom To",
                      on_click=locator.registry.zoom_to, args=(location_id,))
        with col4:
            st.button("🗑️", key=f"remove_{location_id}", help="Remove",
                      on_click=locator.registry.remove, args=(location_id,))


def render_map():
    highlighter = locator.highlighter
    st.checkbox(
        "Fill Countries",
        key="fill_countries",
        disabled=not highlighter.available,
        help=highlighter.unavailable_reason or locator.polygons_error,
        on_change=toggle_fill_countries
    )
    if highlighter.available and locator.polygons_error:
        st.caption(f"⚠️ {locator.polygons_error}")
    st.pydeck_chart(locator.map_surface.to_deck(), use_container_width=True)

    if len(locator.registry):
        with st.expander("📋 Placed locations", expanded=False):
            placements = locator.registry.to_dataframe()
            st.dataframe(placements, use_container_width=True, hide_index=True)
            st.download_button(
                label="📊 Download as CSV",
                data=placements.to_csv(index=False),
                file_name="placed_locations.csv",
                mime="text/csv"
            )


def render_docs():
    docs = locator.docs
    st.sidebar.button(
        "Close documentation" if docs.is_open else "📖 Documentation",
        on_click=toggle_docs,
        use_container_width=True
    )
    if docs.is_open:
        st.sidebar.markdown(f"### {docs.title}")
        st.sidebar.markdown(docs.markdown, unsafe_allow_html=True)


@handle_streamlit_errors()
def render_page():
    st.title("📍 Place Mapper")
    st.markdown("Look up a batch of place names and put them on the map")

    render_docs()

    col1, col2 = st.columns([1, 2])
    with col1:
        render_input()
        render_ambiguity()
        render_location_list()
    with col2:
        render_map()


@handle_streamlit_errors()
def step_queue() -> bool:
    """Process one queued query; True when the page should rerun for the next."""
    if locator.processor.state != ProcessorState.DRAINING:
        return False
    locator.processor.step()
    return True


render_page()

if step_queue():
    st.rerun()
