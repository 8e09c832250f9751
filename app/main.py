"""
Streamlit Frontend for Budget Buddy

A small dashboard over the same flows the webhook and the chat use.

DESIGN PRINCIPLES:
1. Every number shown comes from the spreadsheet, never from the LLM
2. Clear error messages in simple language
3. Manual entries go through the exact ingestion path card events use
"""

import asyncio
from datetime import date, datetime

import streamlit as st

from budget_buddy.audit import create_correlation_id
from budget_buddy.config import validate_all_settings
from budget_buddy.errors import BudgetBuddyError, ConfigurationError
from budget_buddy.models.query import BudgetStatus
from budget_buddy.orchestrator import (
    STATUS_DUPLICATE,
    STATUS_RECORDED,
    AppComponents,
    create_app_components,
)
from ui_boxes import message_box


# Page configuration
st.set_page_config(
    page_title="Budget Buddy",
    page_icon="💰",
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
    .success-box {
        padding: 20px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 10px 0;
    }
    .warning-box {
        padding: 20px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
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

STATUS_BADGES = {
    BudgetStatus.OK.value: "🟢",
    BudgetStatus.WARNING.value: "🟡",
    BudgetStatus.OVER_BUDGET.value: "🔴",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    return create_app_components()


def main():
    """Main application entry point."""
    try:
        components = get_components()
    except ConfigurationError as e:
        st.title("💰 Budget Buddy")
        st.error(f"Budget Buddy is not configured: {e}")
        st.markdown(f"Missing or invalid settings: `{e.offending_input}`")
        render_settings_page()
        return

    # Sidebar navigation
    st.sidebar.title("💰 Budget Buddy")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Budget", "🔍 Search", "❓ Ask Question", "➕ Log Transaction", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **Ask questions like:**
        - "Am I over budget this month?"
        - "How much did I spend at Uber in January?"
        """
    )

    # Route to appropriate page
    if page == "📊 Budget":
        render_budget_page(components)
    elif page == "🔍 Search":
        render_search_page(components)
    elif page == "❓ Ask Question":
        render_query_page(components)
    elif page == "➕ Log Transaction":
        render_log_page(components)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_budget_page(components: AppComponents):
    """Render budget vs actuals for a month."""
    st.title("📊 Budget")

    month = st.text_input("Month (YYYY-MM)", value=date.today().strftime("%Y-%m"))
    if not st.button("Show Budget", type="primary"):
        return

    try:
        overview = run_async(components.budget.compute_status(month, create_correlation_id()))
    except BudgetBuddyError as e:
        st.error(str(e))
        return

    col1, col2, col3 = st.columns(3)
    col1.metric("Target", f"{overview.total_target:,.2f}")
    col2.metric("Spent", f"{overview.total_actual:,.2f}")
    col3.metric("Remaining", f"{overview.total_remaining:,.2f}")

    st.table([
        {
            "": STATUS_BADGES[row.status.value],
            "Category": row.category,
            "Target": f"{row.target:,.2f}",
            "Actual": f"{row.actual:,.2f}",
            "Remaining": f"{row.remaining:,.2f}",
            "Status": row.status.value.replace("_", " ").title(),
        }
        for row in overview.rows
    ])

    if overview.categories_over_budget:
        st.markdown(
            message_box("warning-box", "⚠️ Over budget", ", ".join(overview.categories_over_budget)),
            unsafe_allow_html=True,
        )


def render_search_page(components: AppComponents):
    """Render the transaction search page."""
    st.title("🔍 Search Transactions")

    col1, col2, col3 = st.columns(3)
    with col1:
        merchant = st.text_input("Merchant contains")
        category = st.text_input("Category")
    with col2:
        month = st.text_input("Month (YYYY-MM)")
        day = st.text_input("Date (YYYY-MM-DD)")
    with col3:
        min_amount = st.number_input("Minimum amount", min_value=0.0, value=0.0, step=10.0)
        limit = st.number_input("Show at most", min_value=1, value=10, step=1)

    if not st.button("🔍 Search", type="primary"):
        return

    criteria = {
        "merchant": merchant,
        "category": category,
        "month": month,
        "date": day,
        "min_amount": min_amount if min_amount > 0 else None,
        "limit": int(limit),
    }
    try:
        result = run_async(components.search.search(criteria, create_correlation_id()))
    except BudgetBuddyError as e:
        st.error(str(e))
        return

    st.markdown(f"**{result.query_summary}** (total {result.total_found:,.2f})")
    if result.transactions:
        st.table([txn.model_dump(mode="json") for txn in result.transactions])
    else:
        st.info("No transactions matched.")


def render_query_page(components: AppComponents):
    """Render the question/query page."""
    st.title("❓ Ask a Question")

    if components.advisor_flow is None:
        st.warning("The advisor is disabled.")
        return

    question = st.text_input(
        "Your question:",
        placeholder="e.g., Am I over budget on groceries this month?",
    )

    if st.button("🔍 Get Answer", type="primary") and question:
        with st.spinner("Looking up your records..."):
            try:
                answer = run_async(
                    components.advisor_flow.answer_question(
                        question=question,
                        correlation_id=create_correlation_id(),
                    )
                )
            except BudgetBuddyError as e:
                st.error(f"Error: {e}")
                return

        st.markdown(message_box("success-box", "📊 Answer", answer.reply), unsafe_allow_html=True)

        if answer.tool:
            with st.expander("🔍 Data used"):
                st.markdown(f"**Tool:** {answer.tool}")
                st.json(answer.data or {})


def render_log_page(components: AppComponents):
    """Render the manual transaction entry page."""
    st.title("➕ Log Transaction")
    st.markdown("Record a cash or missed card transaction.")

    col1, col2 = st.columns(2)
    with col1:
        merchant = st.text_input("Merchant *")
        city = st.text_input("City", value="Unknown")
    with col2:
        txn_date = st.date_input("Date *", value=date.today())
        amount = st.number_input("Amount *", min_value=0.0, step=0.01, format="%.2f")

    if not st.button("✅ Save", type="primary"):
        return

    payload = {
        "dateTime": datetime.combine(txn_date, datetime.min.time()).isoformat(),
        "merchant": {"name": merchant, "city": city},
        "centsAmount": round(amount * 100),
    }
    response = run_async(
        components.transaction_log_flow.handle(payload, create_correlation_id())
    )

    body = response.body
    if response.status_code == STATUS_RECORDED:
        txn = body["transaction"]
        st.markdown(
            message_box(
                "success-box",
                f"✅ {body['message']}",
                f"Merchant: {txn['merchant']}",
                f"Category: {txn['category']} ({txn['source']})",
                level=3,
            ),
            unsafe_allow_html=True,
        )
    elif response.status_code == STATUS_DUPLICATE:
        st.info(body["message"])
    else:
        st.markdown(
            message_box("error-box", f"❌ {body['message']}", body["error"]["message"]),
            unsafe_allow_html=True,
        )


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Gemini (AI)", "gemini"),
        ("Application", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your API keys. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
