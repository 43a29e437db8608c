import logging
from datetime import date, timedelta

import streamlit as st

from gymdesk.config import (
    BOOKING_WAITLIST,
    DAY_OFF_TYPES,
    DEFAULT_DAY_OFF_TYPE,
    DIFFICULTY_LEVELS,
    RECURRENCE_KINDS,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_SCHEDULED,
    AVAILABLE_WEEKS,
    DEFAULT_LOCATION,
)
from gymdesk.services.schedule_stats import (
    classes_today_count,
    date_header_label,
    filter_templates,
    filter_trainers,
    group_by_date,
    next_class,
    schedule_frame,
    templates_frame,
    trainers_frame,
)
from gymdesk.ui.state import (
    KEY_ACTIVE_TRAINER,
    KEY_TEMPLATE_DESCRIPTION,
    KEY_TEMPLATE_DURATION,
    KEY_TEMPLATE_MAX_MEMBERS,
    KEY_TEMPLATE_NAME,
    KEY_TEMPLATE_SEARCH,
    KEY_THEME,
    KEY_TRAINER_EMAIL,
    KEY_TRAINER_FIRST_NAME,
    KEY_TRAINER_LAST_NAME,
    KEY_TRAINER_PHONE,
    KEY_TRAINER_SEARCH,
    apply_reset_if_marked,
    finish,
    get_coordinator,
    init_state_if_missing,
    mark_reset,
    preference_store,
    render_outcome,
    show_flash,
    show_load_errors,
)
from gymdesk.ui.theme import status_badge, theme_css, toggle_theme
from gymdesk.utils.dates import available_dates
from gymdesk.utils.form_parser import format_time

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

st.set_page_config(page_title="Gym Desk", layout="wide")

# -----------------------------
# Access gate
# -----------------------------
def require_password():
    expected = st.secrets.get("APP_PASSWORD")
    if not expected or st.session_state.get("authenticated"):
        return

    with st.form("login"):
        pw = st.text_input("Password", type="password")
        ok = st.form_submit_button("Login")

    if not ok:
        st.stop()

    if pw == expected:
        st.session_state["authenticated"] = True
        st.rerun()
    else:
        st.error("Incorrect password")
        st.stop()

require_password()

init_state_if_missing()
apply_reset_if_marked()
coordinator = get_coordinator()

# -----------------------------
# Theme (explicit config, persisted through the preference store)
# -----------------------------
theme = st.session_state[KEY_THEME]
st.markdown(theme_css(theme), unsafe_allow_html=True)
with st.sidebar:
    st.caption(f"Theme: {theme.mode}")
    if st.button("Toggle theme", key="toggle_theme_btn"):
        st.session_state[KEY_THEME] = toggle_theme(preference_store(), theme)
        st.rerun()
    if st.button("Refresh data", key="refresh_all_btn"):
        coordinator.invalidate_prefix("")
        st.rerun()

show_flash()

def _class_line(s) -> str:
    return f"**{format_time(s.scheduled_time)}** · {s.class_name} · {s.trainer_name} · {s.current_bookings}/{s.max_bookings}"


tab_trainers, tab_templates, tab_schedule, tab_dashboard, tab_days_off = st.tabs(
    ["Trainers", "Class Templates", "Schedule", "Trainer Dashboard", "Days Off"]
)

# -----------------------------
# Trainers (admin)
# -----------------------------
with tab_trainers:
    st.header("Trainers")
    trainers = coordinator.trainers_view()
    show_load_errors(coordinator)

    with st.expander("New trainer"):
        c1, c2 = st.columns(2)
        with c1:
            new_first = st.text_input("First name", key=KEY_TRAINER_FIRST_NAME)
            new_last = st.text_input("Last name", key=KEY_TRAINER_LAST_NAME)
        with c2:
            new_email = st.text_input("Email", key=KEY_TRAINER_EMAIL)
            new_phone = st.text_input("Phone (optional)", key=KEY_TRAINER_PHONE)
        if st.button("Create trainer", key="create_trainer_btn"):
            outcome = coordinator.create_trainer(new_first, new_last, new_email, new_phone)
            if outcome.ok:
                mark_reset()
            finish(outcome)

    query = st.text_input("Search trainers", key=KEY_TRAINER_SEARCH)
    shown = filter_trainers(trainers, query)
    st.dataframe(trainers_frame(shown), use_container_width=True, hide_index=True)

    for item in shown:
        t = item.trainer
        with st.expander(f"{t.full_name} · {item.stats.upcoming_count} upcoming / {item.stats.total_count} scheduled"):
            for s in item.stats.upcoming:
                st.markdown(
                    f"{s.scheduled_date} {format_time(s.scheduled_time)} · {s.class_name} {status_badge(s.status)}",
                    unsafe_allow_html=True,
                )

            c1, c2 = st.columns(2)
            with c1:
                first = st.text_input("First name", value=t.first_name, key=f"tr_first_{t.id}")
                last = st.text_input("Last name", value=t.last_name, key=f"tr_last_{t.id}")
                code = st.text_input("Trainer code", value=t.trainer_code, key=f"tr_code_{t.id}")
            with c2:
                email = st.text_input("Email", value=t.email, key=f"tr_email_{t.id}")
                phone = st.text_input("Phone", value=t.phone, key=f"tr_phone_{t.id}")

            b1, b2 = st.columns(2)
            with b1:
                if st.button("Save", key=f"tr_save_{t.id}"):
                    finish(coordinator.update_trainer(t, first, last, email, phone, code))
            with b2:
                confirm = st.checkbox("Confirm delete", key=f"tr_confirm_{t.id}")
                if st.button("Delete trainer", key=f"tr_delete_{t.id}", disabled=not confirm):
                    finish(coordinator.delete_trainer(item))

# -----------------------------
# Class templates (admin)
# -----------------------------
with tab_templates:
    st.header("Class Templates")
    templates = coordinator.templates_view()
    show_load_errors(coordinator)

    with st.expander("New class template"):
        name = st.text_input("Class name", key=KEY_TEMPLATE_NAME)
        description = st.text_area("Description (optional)", key=KEY_TEMPLATE_DESCRIPTION)
        c1, c2 = st.columns(2)
        with c1:
            duration = st.text_input("Duration (minutes)", key=KEY_TEMPLATE_DURATION)
        with c2:
            max_members = st.text_input("Max members", key=KEY_TEMPLATE_MAX_MEMBERS)
        if st.button("Create template", key="create_template_btn"):
            outcome = coordinator.create_template(name, description, duration, max_members)
            if outcome.ok:
                mark_reset()
            finish(outcome)

    query = st.text_input("Search templates", key=KEY_TEMPLATE_SEARCH)
    shown = filter_templates(templates, query)
    st.dataframe(templates_frame(shown), use_container_width=True, hide_index=True)

    for item in shown:
        tp = item.template
        with st.expander(f"{tp.name} · {item.stats.upcoming_count} upcoming / {item.stats.total_count} scheduled"):
            e_name = st.text_input("Class name", value=tp.name, key=f"tp_name_{tp.id}")
            e_desc = st.text_area("Description", value=tp.description, key=f"tp_desc_{tp.id}")
            c1, c2 = st.columns(2)
            with c1:
                e_dur = st.text_input("Duration (minutes)", value=str(tp.duration), key=f"tp_dur_{tp.id}")
            with c2:
                e_max = st.text_input("Max members", value=str(tp.max_members), key=f"tp_max_{tp.id}")

            b1, b2 = st.columns(2)
            with b1:
                if st.button("Save", key=f"tp_save_{tp.id}"):
                    finish(coordinator.update_template(tp, e_name, e_desc, e_dur, e_max))
            with b2:
                confirm = st.checkbox("Confirm delete", key=f"tp_confirm_{tp.id}")
                if st.button("Delete template", key=f"tp_delete_{tp.id}", disabled=not confirm):
                    finish(coordinator.delete_template(item))

# -----------------------------
# Schedule (admin)
# -----------------------------
with tab_schedule:
    st.header("Schedule")
    today = coordinator.today()

    with st.expander("Schedule a class"):
        templates = coordinator.templates_view()
        trainers = coordinator.trainers_view()
        if not templates or not trainers:
            st.info("Create at least one class template and one trainer first.")
        else:
            tp_item = st.selectbox("Class", templates, format_func=lambda x: x.template.name, key="sc_template")
            tr_item = st.selectbox("Trainer", trainers, format_func=lambda x: x.trainer.full_name, key="sc_trainer")
            c1, c2, c3 = st.columns(3)
            with c1:
                sc_day = st.selectbox(
                    "Date",
                    available_dates(today, AVAILABLE_WEEKS),
                    format_func=lambda d: f"{date_header_label(d, today)} ({d.isoformat()})",
                    key="sc_day",
                )
            with c2:
                sc_time = st.text_input("Time (HH:MM)", value="09:00", key="sc_time")
            with c3:
                sc_max = st.text_input("Max bookings", value=str(tp_item.template.max_members or 10), key="sc_max")
            c4, c5, c6 = st.columns(3)
            with c4:
                sc_diff = st.selectbox("Difficulty", DIFFICULTY_LEVELS, key="sc_diff")
            with c5:
                sc_loc = st.text_input("Location", value=DEFAULT_LOCATION, key="sc_loc")
            with c6:
                sc_rec = st.selectbox("Repeat", RECURRENCE_KINDS, key="sc_rec")
            if st.button("Schedule", type="primary", key="sc_submit"):
                finish(
                    coordinator.schedule_class(
                        tp_item.template.id, tr_item.trainer.id, sc_day, sc_time, sc_max, sc_diff, sc_loc, sc_rec
                    )
                )

    records = coordinator.schedule_window_view()
    show_load_errors(coordinator)
    if not records:
        st.info("No classes scheduled in the next 90 days.")

    with st.expander("Table view"):
        st.dataframe(schedule_frame(records), use_container_width=True, hide_index=True)

    for day_iso, day_records in group_by_date(records).items():
        st.subheader(date_header_label(date.fromisoformat(day_iso), today))
        for s in day_records:
            with st.container():
                st.markdown(f"{_class_line(s)} {status_badge(s.status)}", unsafe_allow_html=True)
                if s.status not in (STATUS_SCHEDULED, STATUS_IN_PROGRESS):
                    continue
                c1, c2, c3 = st.columns([2, 2, 1])
                with c1:
                    if st.button("Find another trainer", key=f"re_load_{s.id}"):
                        st.session_state[f"re_candidates_{s.id}"] = coordinator.reassignment_candidates(s)
                    candidates = st.session_state.get(f"re_candidates_{s.id}")
                    if candidates is not None and not candidates.ok:
                        render_outcome(candidates)
                    elif candidates is not None:
                        new_tr = st.selectbox(
                            "Reassign to", candidates.data, format_func=lambda x: x.full_name, key=f"re_pick_{s.id}"
                        )
                        if st.button("Confirm reassignment", key=f"re_go_{s.id}") and new_tr is not None:
                            st.session_state.pop(f"re_candidates_{s.id}", None)
                            finish(coordinator.reassign_schedule(s, new_tr.id))
                with c2:
                    new_max = st.text_input("Max bookings", value=str(s.max_bookings), key=f"mx_{s.id}")
                    if st.button("Update capacity", key=f"mx_go_{s.id}"):
                        finish(coordinator.update_max_bookings(s, new_max))
                with c3:
                    if st.button("Cancel class", key=f"cx_{s.id}"):
                        finish(coordinator.cancel_schedule(s.id))
        st.divider()

# -----------------------------
# Trainer dashboard
# -----------------------------
with tab_dashboard:
    st.header("Trainer Dashboard")
    trainers = coordinator.trainers_view()
    if not trainers:
        st.info("No trainers found.")
    else:
        picked = st.selectbox("Trainer", trainers, format_func=lambda x: x.trainer.full_name, key=KEY_ACTIVE_TRAINER)
        trainer = picked.trainer
        now = coordinator.now()
        my_classes = coordinator.trainer_schedules_view(trainer.id)
        days_off = coordinator.days_off_view(trainer.id)
        show_load_errors(coordinator)
        day_off_dates = {d.date for d in days_off}

        c1, c2 = st.columns(2)
        with c1:
            if now.date().isoformat() in day_off_dates:
                st.metric("Today", "Day off")
            else:
                st.metric("Classes left today", classes_today_count(my_classes, now, day_off_dates))
        with c2:
            nxt = next_class(my_classes, now)
            st.metric("Next class", f"{nxt.class_name} {nxt.scheduled_date} {format_time(nxt.scheduled_time)}" if nxt else "None")

        for day_iso, day_records in group_by_date(my_classes).items():
            label = date_header_label(date.fromisoformat(day_iso), now.date())
            st.subheader(f"{label} (day off)" if day_iso in day_off_dates else label)
            for s in day_records:
                with st.expander(f"{format_time(s.scheduled_time)} · {s.class_name} · {s.status}"):
                    b1, b2 = st.columns(2)
                    with b1:
                        if s.status == STATUS_SCHEDULED and st.button("Start class", key=f"st_on_{s.id}"):
                            finish(coordinator.update_schedule_status(s.id, STATUS_IN_PROGRESS))
                    with b2:
                        if s.status in (STATUS_SCHEDULED, STATUS_IN_PROGRESS) and st.button(
                            "Complete class", key=f"st_done_{s.id}"
                        ):
                            finish(coordinator.update_schedule_status(s.id, STATUS_COMPLETED))

                    if not st.checkbox("Show attendees", key=f"show_att_{s.id}"):
                        continue
                    loaded = coordinator.attendees(s.id)
                    if not loaded.ok:
                        render_outcome(loaded)
                        continue
                    bookings, attended = loaded.data
                    if not bookings:
                        st.caption("No bookings yet.")
                    for b in bookings:
                        a1, a2 = st.columns([3, 1])
                        with a1:
                            was = b.member_id in attended
                            label = b.member_name or b.member_id
                            if b.status == BOOKING_WAITLIST:
                                label += " (waitlist)"
                            now_attended = st.checkbox(label, value=was, key=f"att_{s.id}_{b.member_id}")
                            if now_attended != was:
                                finish(coordinator.set_attendance(s.id, b.member_id, now_attended, trainer.id))
                        with a2:
                            if st.button("Remove", key=f"rm_{b.id}"):
                                finish(coordinator.remove_booking(b.id, s))

# -----------------------------
# Days off
# -----------------------------
with tab_days_off:
    st.header("Days Off")
    trainers = coordinator.trainers_view()
    if not trainers:
        st.info("No trainers found.")
    else:
        picked = st.selectbox("Trainer", trainers, format_func=lambda x: x.trainer.full_name, key="do_trainer")
        trainer = picked.trainer
        today = coordinator.today()

        c1, c2, c3 = st.columns([2, 2, 1])
        with c1:
            do_day = st.date_input(
                "Date", value=today, min_value=today, max_value=today + timedelta(days=90), key="do_day"
            )
        with c2:
            do_kind = st.selectbox(
                "Type",
                list(DAY_OFF_TYPES),
                index=list(DAY_OFF_TYPES).index(DEFAULT_DAY_OFF_TYPE),
                format_func=lambda k: DAY_OFF_TYPES[k],
                key="do_kind",
            )
        with c3:
            if st.button("Add", key="do_add"):
                finish(coordinator.add_day_off(trainer.id, do_day, do_kind))

        days_off = coordinator.days_off_view(trainer.id)
        show_load_errors(coordinator)
        if not days_off:
            st.info("No days off in the next 90 days.")
        for d in days_off:
            r1, r2 = st.columns([4, 1])
            with r1:
                st.write(f"{date_header_label(date.fromisoformat(d.date), today)} · {d.date} · {DAY_OFF_TYPES.get(d.type, d.type)}")
            with r2:
                if st.button("Remove", key=f"do_rm_{d.id}"):
                    finish(coordinator.remove_day_off(trainer.id, d.id))
