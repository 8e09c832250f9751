"""
Main Orchestrator for Budget Buddy

This module ties together all the components and defines the
end-to-end flows for:
1. Transaction logging (webhook payload -> ingestion -> status response)
2. Advisor questions (question -> plan -> tool -> answer)

DESIGN DECISION: The flows are the only place where typed errors are
turned into transport responses. Everything below them raises.
"""

from typing import Any, NamedTuple, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from budget_buddy.agents import AdvisorAgent
from budget_buddy.audit import AuditLogger, create_correlation_id
from budget_buddy.config import AppSettings, GoogleSheetsSettings, get_settings
from budget_buddy.errors import BudgetBuddyError, ErrorKind
from budget_buddy.ingestion import IngestionPipeline
from budget_buddy.models.audit import AuditEventBuilder
from budget_buddy.models.transaction import IngestStatus
from budget_buddy.queries import BudgetAggregator, ToolExecutor, TransactionSearch
from budget_buddy.services.classifier import CategoryClassifier, GeminiCategoryClassifier
from budget_buddy.services.storage import GoogleSheetsClient, TabularStore

# Outcome -> status code for the HTTP transport
STATUS_RECORDED = 201
STATUS_DUPLICATE = 200
STATUS_INVALID = 400
STATUS_FAILED = 500


class HandlerResponse(BaseModel):
    """Transport-neutral response for the ingestion entry point."""

    status_code: int
    body: dict[str, Any] = Field(default_factory=dict)


class AdvisorAnswer(BaseModel):
    """Answer to one advisor question."""

    reply: str
    tool: Optional[str] = None
    data: Optional[dict[str, Any]] = None


class TransactionLogFlow:
    """
    Entry point for incoming transaction events.

    Maps the ternary ingestion outcome onto status codes:
    recorded -> 201, duplicate -> 200, failed -> 400 (bad input) / 500.
    """

    def __init__(
        self,
        pipeline: IngestionPipeline,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._pipeline = pipeline
        self._audit_logger = audit_logger or AuditLogger()

    async def handle(
        self,
        payload: Any,
        correlation_id: Optional[UUID] = None,
    ) -> HandlerResponse:
        correlation_id = correlation_id or create_correlation_id()
        try:
            result = await self._pipeline.ingest(payload, correlation_id)
        except BudgetBuddyError as e:
            await self._audit_logger.log(
                AuditEventBuilder.ingestion_rejected(
                    error_kind=e.kind.value,
                    error_message=str(e),
                    details={"operation": e.operation, "offending_input": e.offending_input},
                    correlation_id=correlation_id,
                )
            )
            status_code = STATUS_INVALID if e.kind == ErrorKind.VALIDATION else STATUS_FAILED
            return HandlerResponse(
                status_code=status_code,
                body={
                    "status": "failed",
                    "message": "Failed to record transaction data.",
                    "error": e.to_dict(),
                },
            )

        if result.status == IngestStatus.DUPLICATE:
            return HandlerResponse(
                status_code=STATUS_DUPLICATE,
                body={
                    "status": result.status.value,
                    "message": "Duplicate transaction, not recorded.",
                    "transactionId": result.transaction_id,
                },
            )

        return HandlerResponse(
            status_code=STATUS_RECORDED,
            body={
                "status": result.status.value,
                "message": "Transaction data successfully recorded!",
                "transactionId": result.transaction_id,
                "transaction": result.transaction.model_dump(mode="json"),
            },
        )


class AdvisorFlow:
    """
    Orchestrates one advisor question.

    The LLM is NEVER allowed to answer spending questions directly.
    It can only phrase the output of a deterministic tool.
    """

    def __init__(
        self,
        agent: AdvisorAgent,
        executor: ToolExecutor,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._agent = agent
        self._executor = executor
        self._audit_logger = audit_logger or AuditLogger()

    async def answer_question(
        self,
        question: str,
        correlation_id: Optional[UUID] = None,
    ) -> AdvisorAnswer:
        correlation_id = correlation_id or create_correlation_id()
        question = (question or "").strip()
        if not question:
            return AdvisorAnswer(reply="Question is required.")

        tool_call = await self._agent.plan(question)

        if tool_call.tool is None:
            answer = AdvisorAnswer(
                reply=tool_call.reply or "Ask me about your budget or your spending."
            )
        else:
            result = await self._executor.execute(tool_call.tool, tool_call.args, correlation_id)
            reply = await self._agent.generate_response(question, result)
            answer = AdvisorAnswer(
                reply=reply.response,
                tool=result.tool,
                data=result.data if result.success else None,
            )

        await self._audit_logger.log(
            AuditEventBuilder.question_answered(
                question=question,
                tool=answer.tool,
                correlation_id=correlation_id,
            )
        )
        return answer


class AppComponents(NamedTuple):
    store: TabularStore
    transaction_log_flow: TransactionLogFlow
    advisor_flow: Optional[AdvisorFlow]
    budget: BudgetAggregator
    search: TransactionSearch


def create_app_components(
    store: Optional[TabularStore] = None,
    classifier: Optional[CategoryClassifier] = None,
    advisor_agent: Optional[AdvisorAgent] = None,
    sheets_settings: Optional[GoogleSheetsSettings] = None,
    app_settings: Optional[AppSettings] = None,
    with_advisor: bool = True,
    audit_store: Optional[TabularStore] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Collaborators that are not passed in are built from settings,
    which raises ConfigurationError right away if anything is missing.

    With persist_audit on, audit rows go to `audit_store` (or a separate
    Sheets client for the audit spreadsheet), never to the data store:
    queries stay read-only and ingestion writes exactly one row.
    """
    app_settings = app_settings or get_settings().app
    if sheets_settings is None and store is None:
        sheets_settings = get_settings().google_sheets
    # Without sheet settings (injected store) the default range names apply
    ranges = sheets_settings or GoogleSheetsSettings.model_construct()

    store = store or GoogleSheetsClient(sheets_settings)
    classifier = classifier or GeminiCategoryClassifier()

    if not app_settings.persist_audit:
        audit_store = None
    elif audit_store is None and sheets_settings is not None:
        audit_store = GoogleSheetsClient(sheets_settings.model_copy(update={
            "spreadsheet_id": sheets_settings.audit_spreadsheet_id or sheets_settings.spreadsheet_id,
        }))
    if audit_store is not None and audit_store is store:
        raise ValueError("audit_store must be separate from the transaction store")

    audit_logger = AuditLogger(storage=audit_store, audit_range=ranges.audit_range)

    pipeline = IngestionPipeline(
        store=store,
        classifier=classifier,
        transactions_range=ranges.transactions_range,
        transaction_ids_range=ranges.transaction_ids_range,
        rules_range=ranges.rules_range,
        dedup_window=app_settings.dedup_window,
        audit_logger=audit_logger,
    )
    budget = BudgetAggregator(
        store=store,
        budget_range=ranges.budget_range,
        actuals_range=ranges.actuals_range,
        warning_ratio=app_settings.warning_ratio,
        audit_logger=audit_logger,
    )
    search = TransactionSearch(
        store=store,
        transactions_range=ranges.transactions_range,
        default_limit=app_settings.default_search_limit,
        audit_logger=audit_logger,
    )

    advisor_flow = None
    if with_advisor:
        agent = advisor_agent or AdvisorAgent(currency=app_settings.currency_symbol)
        advisor_flow = AdvisorFlow(
            agent=agent,
            executor=ToolExecutor(budget, search),
            audit_logger=audit_logger,
        )

    return AppComponents(
        store=store,
        transaction_log_flow=TransactionLogFlow(pipeline, audit_logger),
        advisor_flow=advisor_flow,
        budget=budget,
        search=search,
    )
