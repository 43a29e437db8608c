# gymdesk/ui/state.py
import streamlit as st

from gymdesk.config import THEME_PREFS_FILE
from gymdesk.services.supabase_client import get_supabase_client, get_gym_timezone
from gymdesk.services.workflows import WorkflowCoordinator, Outcome
from gymdesk.ui.theme import JsonFilePreferenceStore, load_theme

# Session keys shared by streamlit_app.py and the helpers below
KEY_COORDINATOR = "_coordinator"
KEY_THEME = "_theme"
KEY_FLASH = "_flash"
KEY_DO_RESET = "_do_reset"

KEY_TEMPLATE_NAME = "new_template_name"
KEY_TEMPLATE_DESCRIPTION = "new_template_description"
KEY_TEMPLATE_DURATION = "new_template_duration"
KEY_TEMPLATE_MAX_MEMBERS = "new_template_max_members"

KEY_TRAINER_FIRST_NAME = "new_trainer_first_name"
KEY_TRAINER_LAST_NAME = "new_trainer_last_name"
KEY_TRAINER_EMAIL = "new_trainer_email"
KEY_TRAINER_PHONE = "new_trainer_phone"

NEW_FORM_KEYS = (
    KEY_TEMPLATE_NAME,
    KEY_TEMPLATE_DESCRIPTION,
    KEY_TEMPLATE_DURATION,
    KEY_TEMPLATE_MAX_MEMBERS,
    KEY_TRAINER_FIRST_NAME,
    KEY_TRAINER_LAST_NAME,
    KEY_TRAINER_EMAIL,
    KEY_TRAINER_PHONE,
)

KEY_TRAINER_SEARCH = "trainer_search"
KEY_TEMPLATE_SEARCH = "template_search"
KEY_ACTIVE_TRAINER = "active_trainer_id"

def get_coordinator() -> WorkflowCoordinator:
    """One coordinator per browser session; its views live in st.session_state."""
    if KEY_COORDINATOR not in st.session_state:
        st.session_state[KEY_COORDINATOR] = WorkflowCoordinator(
            get_supabase_client(),
            views=st.session_state,
            tz_name=get_gym_timezone(),
        )
    return st.session_state[KEY_COORDINATOR]

def preference_store() -> JsonFilePreferenceStore:
    return JsonFilePreferenceStore(st.secrets.get("PREFS_FILE", THEME_PREFS_FILE))

def init_state_if_missing() -> None:
    """Call at the top of the page before rendering widgets."""
    if KEY_THEME not in st.session_state:
        st.session_state[KEY_THEME] = load_theme(preference_store())

def flash(outcome: Outcome) -> None:
    # Survives st.rerun so the message shows on the next run
    st.session_state[KEY_FLASH] = outcome

def show_flash() -> None:
    outcome = st.session_state.pop(KEY_FLASH, None)
    if outcome is not None:
        render_outcome(outcome)

def render_outcome(outcome: Outcome) -> None:
    if outcome.kind == "error":
        st.error(outcome.message)
    elif outcome.kind == "info":
        st.info(outcome.message)
    else:
        st.success(outcome.message)

def finish(outcome: Outcome) -> None:
    """Show the result of a workflow; successful mutations rerun so every view redraws."""
    if outcome.ok:
        flash(outcome)
        st.rerun()
    render_outcome(outcome)

def show_load_errors(coordinator: WorkflowCoordinator) -> None:
    for message in coordinator.pop_errors():
        st.error(message)

def mark_reset() -> None:
    st.session_state[KEY_DO_RESET] = True

def apply_reset_if_marked() -> None:
    """Clear the "new template" and "new trainer" forms after a successful create.

    Streamlit refuses writes to a widget key once the widget exists, so this
    runs at the top of the script, before any form is drawn.
    """
    if st.session_state.get(KEY_DO_RESET):
        for key in NEW_FORM_KEYS:
            st.session_state[key] = ""
        st.session_state[KEY_DO_RESET] = False
