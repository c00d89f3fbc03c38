"""
Streamlit Front End for the Teller

The screen the card holder uses: sign in with card details and PIN,
then pick one of the six menu options.

DESIGN PRINCIPLES:
1. No business rules here - everything goes through TellerSession
2. Every outcome is shown, including save failures
3. A failed account load stops the page; there is nothing to operate on
"""

import streamlit as st
from pydantic import ValidationError

from teller.audit import AuditLogger, configure_logging
from teller.config import get_settings, validate_all_settings
from teller.orchestrator import (
    MenuOption,
    SessionOutcome,
    TellerSession,
    create_app_components,
)


# Page configuration
st.set_page_config(
    page_title="Teller",
    page_icon="🏧",
    layout="centered",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .success-box {
        padding: 20px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 10px 0;
    }
    .error-box {
        padding: 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
</style>
""", unsafe_allow_html=True)


def get_session() -> TellerSession:
    """Load the account once per browser session."""
    if "teller_session" not in st.session_state:
        try:
            configure_logging(get_settings().app.log_level)
            session, load_result = create_app_components()
        except ValidationError as e:
            AuditLogger().log_error("configuration_error", str(e))
            st.error(f"❌ Configuration error: {e}")
            st.info("Check the Settings page for details.")
            st.stop()
        if session is None:
            st.markdown(f"""
            <div class="error-box">
                <h4>❌ Account unavailable</h4>
                <p>{load_result.failure.value.replace('_', ' ').title()}: {load_result.message}</p>
            </div>
            """, unsafe_allow_html=True)
            st.stop()
        st.session_state.teller_session = session
        st.session_state.last_outcome = None
    return st.session_state.teller_session


def show_outcome(outcome: SessionOutcome) -> None:
    box = "success-box" if outcome.success else "error-box"
    icon = "✅" if outcome.success else "⚠️"
    message = outcome.message.replace("\n", "<br>")
    st.markdown(f"""
    <div class="{box}">
        <p>{icon} {message}</p>
    </div>
    """, unsafe_allow_html=True)

    if outcome.save is not None and not outcome.save.success:
        st.error(f"Your account could not be saved: {outcome.save.message}")


def render_sign_in(session: TellerSession) -> None:
    """Card details and PIN form."""
    st.title("🏧 Welcome")

    if session.is_locked:
        st.error("Too many failed attempts. The card has been retained.")
        st.stop()

    with st.form("sign_in"):
        card_number = st.text_input("Card number")
        cvc = st.text_input("CVC", max_chars=4)
        expiration_date = st.text_input("Expiration date (MM/YY)")
        pin = st.text_input("PIN", type="password")
        submitted = st.form_submit_button("Sign in", type="primary")

    if submitted:
        result = session.authenticate(card_number, cvc, expiration_date, pin)
        if result.authenticated:
            st.rerun()
        elif result.attempts_remaining:
            st.error(f"{result.message} {result.attempts_remaining} attempt(s) left.")
        else:
            st.error(result.message)


def render_menu(session: TellerSession) -> None:
    """The six-option teller menu."""
    account = session.account
    st.title(f"🏧 Hello, {account.first_name}")

    option = st.radio(
        "Select an option:",
        list(MenuOption),
        format_func=lambda o: f"{o.value}. {o.label}",
    )

    outcome = None

    if option == MenuOption.CHECK_BALANCE:
        if st.button("Check Balance", type="primary"):
            outcome = session.check_balance()

    elif option in (MenuOption.WITHDRAW, MenuOption.DEPOSIT):
        verb = "withdraw" if option == MenuOption.WITHDRAW else "deposit"
        with st.form(verb):
            amount = st.text_input(f"Enter the amount to {verb}:")
            if st.form_submit_button(option.label, type="primary"):
                outcome = session.dispatch(option, amount=amount)

    elif option == MenuOption.CHANGE_PIN:
        with st.form("change_pin"):
            new_pin = st.text_input("Enter your new PIN:", type="password")
            if st.form_submit_button("Change PIN", type="primary"):
                outcome = session.change_pin(new_pin)

    elif option == MenuOption.CONVERT_CURRENCY:
        rates = session.rates
        with st.form("convert"):
            currency = st.selectbox(
                "Select currency to convert to:",
                ["1", "2"],
                format_func=lambda c: (
                    f"Convert to USD (rate {rates.usd})" if c == "1"
                    else f"Convert to EUR (rate {rates.eur})"
                ),
            )
            amount = st.text_input("Enter the amount to convert:")
            if st.form_submit_button("Convert", type="primary"):
                outcome = session.convert(currency, amount)

    elif option == MenuOption.EXIT:
        if st.button("Exit", type="primary"):
            outcome = session.exit()

    if outcome is not None:
        st.session_state.last_outcome = outcome
    if st.session_state.get("last_outcome") is not None:
        show_outcome(st.session_state.last_outcome)

    with st.expander("🧾 Mini statement"):
        entries = session.statement(get_settings().app.statement_size)
        if not entries:
            st.info("No transactions yet.")
        for entry in entries:
            st.markdown(
                f"`{entry.transaction_date:%Y-%m-%d %H:%M:%S}` "
                f"**{entry.transaction_type.value}** {entry.amount}"
            )


def render_settings_page() -> None:
    """Configuration status."""
    st.title("⚙️ Settings")

    status = validate_all_settings()
    sections = [
        ("Storage", "storage"),
        ("Exchange rates", "rates"),
        ("Google Sheets (optional backend)", "google_sheets"),
        ("Application", "app"),
    ]
    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name}")
        else:
            st.error(f"❌ {name} - {status.get(f'{key}_error', 'Not configured')}")

    st.markdown("---")
    st.markdown(
        "Configure the teller with `TELLER_*` environment variables "
        "or a `.env` file."
    )


def main():
    """Main application entry point."""
    st.sidebar.title("🏧 Teller")
    page = st.sidebar.radio("Navigate to:", ["Teller", "Settings"], index=0)

    if page == "Settings":
        render_settings_page()
        return

    session = get_session()

    if session.is_closed:
        st.title("👋 Goodbye")
        show_outcome(st.session_state.last_outcome)
        if st.button("Start a new session"):
            del st.session_state["teller_session"]
            st.rerun()
        return

    if not session.is_authenticated:
        render_sign_in(session)
    else:
        render_menu(session)


if __name__ == "__main__":
    main()
