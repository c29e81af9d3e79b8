"""
Streamlit Frontend for Fund Portal

The browser interface: login/register, a dashboard, the user's basic
information and the six calculators.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Forms are validated before anything is calculated
3. Clear error messages in simple language
4. Results are shown, never stored

Session state holds the access token, the signed-in user and the
basic information. Logging out clears all of it.
"""

import asyncio
from datetime import date

import streamlit as st

from fundportal.audit import configure_logging, create_correlation_id
from fundportal.catalog import get_calculator
from fundportal.config import get_settings, validate_all_settings
from fundportal.models.profile import BasicInfo, Gender, MaritalStatus
from fundportal.orchestrator import AuthFlow, CalculatorFlow, create_app_components
from fundportal.presentation import format_result
from fundportal.services.auth import AuthError, InvalidTokenError
from fundportal.services.storage import StorageError


# Page configuration
st.set_page_config(
    page_title="Fund Portal",
    page_icon="📈",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .note-box {
        padding: 16px;
        background-color: #e8f0fe;
        border-radius: 10px;
        border-left: 5px solid #1a73e8;
        margin: 10px 0;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> tuple[AuthFlow, CalculatorFlow]:
    """Get or create application components (cached)."""
    configure_logging(get_settings().app.log_level)
    auth_flow, calculator_flow = create_app_components()
    run_async(auth_flow.ensure_admin_user())
    return auth_flow, calculator_flow


def init_session():
    defaults = {
        "token": None,
        "user": None,
        "basic_info": None,
        "auth_view": "login",
        "selected_calculator": None,
        "last_result": None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def logout():
    for key in ("token", "user", "basic_info", "selected_calculator", "last_result"):
        st.session_state[key] = None
    st.session_state.auth_view = "login"


def main():
    """Main application entry point."""
    init_session()

    try:
        auth_flow, calculator_flow = get_components()
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        render_settings_page()
        return

    if not st.session_state.token:
        render_auth_page(auth_flow)
        return

    # Sidebar navigation
    user = st.session_state.user
    st.sidebar.title("📈 Fund Portal")
    st.sidebar.markdown(f"Signed in as **{user.name}**")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["🏠 Dashboard", "👤 Basic Information", "🧮 Calculators", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    if st.sidebar.button("🚪 Logout"):
        logout()
        st.rerun()

    # Route to appropriate page
    if page == "🏠 Dashboard":
        render_dashboard_page(auth_flow)
    elif page == "👤 Basic Information":
        render_basic_info_page()
    elif page == "🧮 Calculators":
        render_calculators_page(calculator_flow)
    elif page == "⚙️ Settings":
        render_settings_page()


# =============================================================================
# AUTH
# =============================================================================

def render_auth_page(auth_flow: AuthFlow):
    st.title("📈 Fund Portal")

    if st.session_state.auth_view == "login":
        render_login_form(auth_flow)
        if st.button("New here? Create an account"):
            st.session_state.auth_view = "register"
            st.rerun()
    else:
        render_register_form(auth_flow)
        if st.button("Already registered? Log in"):
            st.session_state.auth_view = "login"
            st.rerun()


def render_login_form(auth_flow: AuthFlow):
    st.markdown("### Log in")
    with st.form("login_form"):
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Log in", type="primary")

    if submitted:
        try:
            session = run_async(auth_flow.login_form(
                {"username": username, "password": password},
                correlation_id=create_correlation_id(),
            ))
        except AuthError as e:
            st.error(str(e))
            return
        except StorageError:
            st.error("Account storage is unavailable. Please try again later.")
            return
        st.session_state.token = session.token
        st.session_state.user = session.user
        st.rerun()


def render_register_form(auth_flow: AuthFlow):
    st.markdown("### Create an account")
    with st.form("register_form"):
        name = st.text_input("Full name")
        mobile = st.text_input("Mobile")
        email = st.text_input("Email")
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        confirm = st.text_input("Confirm password", type="password")
        submitted = st.form_submit_button("Register", type="primary")

    if submitted:
        if password != confirm:
            st.error("Passwords do not match")
            return
        try:
            session = run_async(auth_flow.register_form(
                {
                    "name": name,
                    "mobile": mobile,
                    "email": email,
                    "username": username,
                    "password": password,
                },
                correlation_id=create_correlation_id(),
            ))
        except AuthError as e:
            st.error(str(e))
            return
        except StorageError:
            st.error("Account storage is unavailable. Please try again later.")
            return
        st.session_state.token = session.token
        st.session_state.user = session.user
        st.rerun()


# =============================================================================
# DASHBOARD AND PROFILE
# =============================================================================

def render_dashboard_page(auth_flow: AuthFlow):
    st.title(f"🏠 Welcome, {st.session_state.user.name}")

    try:
        stats = run_async(auth_flow.get_stats(st.session_state.token))
    except InvalidTokenError:
        st.warning("Your session has expired. Please log in again.")
        logout()
        st.rerun()
        return

    col1, col2, col3 = st.columns(3)
    col1.metric("Registered Users", stats.users)
    col2.metric("Calculators", stats.calculators)
    col3.metric("Basic Info", "Complete" if st.session_state.basic_info else "Pending")

    if not st.session_state.basic_info:
        st.info("👤 Complete your basic information so the calculators can use your age.")


def render_basic_info_page():
    st.title("👤 Basic Information")
    current = st.session_state.basic_info

    with st.form("basic_info_form"):
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Name", value=current.name if current else "")
            occupation = st.text_input("Occupation", value=current.occupation if current else "")
            dob = st.date_input(
                "Date of birth",
                value=current.dob if current else date(1990, 1, 1),
                min_value=date(1900, 1, 1),
                max_value=date.today(),
            )
            age = st.number_input("Age", min_value=1, max_value=120, value=current.age if current else 30)
        with col2:
            genders = list(Gender)
            gender = st.selectbox(
                "Gender",
                options=genders,
                index=genders.index(current.gender) if current else 0,
                format_func=lambda g: g.value,
            )
            statuses = list(MaritalStatus)
            marital_status = st.selectbox(
                "Marital status",
                options=statuses,
                index=statuses.index(current.marital_status) if current else 0,
                format_func=lambda m: m.value,
            )
            dependents = st.number_input(
                "Dependents", min_value=0, max_value=20, value=current.dependents if current else 0
            )
        submitted = st.form_submit_button("💾 Save", type="primary")

    if submitted:
        try:
            st.session_state.basic_info = BasicInfo(
                name=name,
                occupation=occupation,
                dob=dob,
                age=int(age),
                gender=gender,
                marital_status=marital_status,
                dependents=int(dependents),
            )
        except ValueError as e:
            st.error(f"Please check the form: {e}")
            return
        st.success("✅ Basic information saved.")


# =============================================================================
# CALCULATORS
# =============================================================================

def render_calculators_page(calculator_flow: CalculatorFlow):
    st.title("🧮 Portfolio Calculators")
    st.markdown("Choose a calculator to analyze your financial portfolio.")

    if st.session_state.selected_calculator is None:
        cols = st.columns(3)
        for index, calculator in enumerate(calculator_flow.list_calculators()):
            with cols[index % 3]:
                st.markdown(f"#### {calculator.name}")
                st.caption(calculator.description)
                if st.button("Start", key=f"start_{calculator.id.value}"):
                    st.session_state.selected_calculator = calculator.id.value
                    st.session_state.last_result = None
                    st.rerun()
        return

    render_calculator_form(calculator_flow, st.session_state.selected_calculator)


def render_calculator_form(calculator_flow: CalculatorFlow, calculator_id: str):
    calculator = get_calculator(calculator_id)
    basic_info = st.session_state.basic_info

    st.markdown(f"### {calculator.name}")
    if calculator.uses_current_age and basic_info is None:
        st.warning(
            "⚠️ Basic information is missing. "
            "Please complete it first; the calculator will use an age of 0."
        )

    with st.form(f"form_{calculator.id.value}"):
        form = {}
        cols = st.columns(2)
        for index, field in enumerate(calculator.fields):
            label = f"{field.label} ({field.unit})" if field.unit else field.label
            with cols[index % 2]:
                form[field.id] = st.text_input(label, placeholder=field.prompt, key=f"{calculator.id.value}_{field.id}")
        submitted = st.form_submit_button("Calculate", type="primary")

    if st.button("⬅️ Back to calculators"):
        st.session_state.selected_calculator = None
        st.session_state.last_result = None
        st.rerun()

    if submitted:
        validation, result, message = run_async(calculator_flow.run(
            calculator.id.value,
            form,
            basic_info,
            correlation_id=create_correlation_id(),
        ))
        if result is None:
            st.error(message)
            st.session_state.last_result = None
        else:
            if validation.warnings:
                st.warning(message)
            st.session_state.last_result = result

    if st.session_state.last_result is not None:
        render_results(st.session_state.last_result)


def render_results(result):
    formatted = format_result(result)
    st.markdown("### Results")

    if formatted.cards:
        cols = st.columns(min(len(formatted.cards), 4))
        for index, (title, value) in enumerate(formatted.cards):
            cols[index % len(cols)].metric(title, value)

    for table in formatted.tables:
        rows = [dict(zip(table.headers, row)) for row in table.rows]
        st.dataframe(rows, use_container_width=True, hide_index=True)

    if formatted.notes:
        notes = "".join(f"<li>{note}</li>" for note in formatted.notes)
        st.markdown(
            f'<div class="note-box"><strong>Notes:</strong><ul>{notes}</ul></div>',
            unsafe_allow_html=True,
        )


# =============================================================================
# SETTINGS
# =============================================================================

def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")

    status = validate_all_settings()

    sections = [
        ("Application", "app"),
        ("Authentication (JWT / bcrypt)", "auth"),
        ("Admin account", "admin"),
        ("Google Sheets (Storage)", "google_sheets"),
    ]

    for name, key in sections:
        if key not in status:
            st.info(f"ℹ️ {name} - Not enabled (using in-memory storage)")
        elif status[key]:
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your settings. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
