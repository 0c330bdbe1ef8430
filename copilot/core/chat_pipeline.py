"""Chat orchestration: retrieve, ground, generate, verify, respond."""

import logging
import uuid

from copilot.core.chat_context import build_context, resolve_pinned_company
from copilot.core.config import get_settings
from copilot.core.llm import CompletionProvider, get_completion_provider
from copilot.core.logging import get_logger, log_with_context
from copilot.core.retrieval import RetrievalEngine, get_retrieval_engine
from copilot.core.schemas_chat import ChatRequest, ChatResponse, ChatTurn
from copilot.core.verifier import (
    build_regeneration_prompt,
    effective_forbidden_terms,
    verify_answer,
)
from copilot.db.companies import CompanyStore, get_company_store

logger = get_logger(__name__)


def clamp_top_k(top_k: int | None, default: int, maximum: int) -> int:
    """Missing, zero or negative -> default; above maximum -> maximum."""
    if top_k is None or top_k <= 0:
        return default
    return min(top_k, maximum)


class ChatOrchestrator:
    """Runs one chat request through the grounded-answer pipeline."""

    def __init__(
        self,
        engine: RetrievalEngine,
        completion: CompletionProvider,
        store: CompanyStore,
        forbidden_terms: list[str],
        default_top_k: int = 5,
        max_top_k: int = 10,
        max_context_companies: int = 30,
        history_limit: int = 10,
    ):
        self.engine = engine
        self.completion = completion
        self.store = store
        self.forbidden_terms = forbidden_terms
        self.default_top_k = default_top_k
        self.max_top_k = max_top_k
        self.max_context_companies = max_context_companies
        self.history_limit = history_limit

    def _history_messages(self, history: list[ChatTurn]) -> list[dict[str, str]]:
        if self.history_limit <= 0:
            return []
        recent = history[-self.history_limit :]
        return [{"role": turn.role, "content": turn.content} for turn in recent]

    def handle_chat(self, request: ChatRequest) -> ChatResponse:
        """
        Answer a chat message grounded on portfolio companies.

        Args:
            request: Validated chat request

        Returns:
            ChatResponse whose sources are exactly the companies given to the model

        Raises:
            ProviderError: If answer generation fails, or embedding fails with no
                later retrieval stage to fall back to
            StoreError: If the store is unreachable for every retrieval stage
        """
        request_id = str(uuid.uuid4())
        top_k = clamp_top_k(request.top_k, self.default_top_k, self.max_top_k)

        log_with_context(
            logger,
            logging.INFO,
            f"Chat request: {request.message[:50]}",
            request_id=request_id,
            top_k=top_k,
            selected_company_slug=request.selected_company_slug,
        )

        pinned = resolve_pinned_company(self.store, request.selected_company_slug)
        candidates = self.engine.retrieve(request.message, top_k, request_id=request_id)
        context = build_context(candidates, pinned, self.max_context_companies)

        user_prompt = context.render_user_prompt(request.message)
        history = self._history_messages(request.history)

        answer = self.completion.complete(context.system_prompt, user_prompt, history)

        deny_list = effective_forbidden_terms(
            self.forbidden_terms, [c.name for c in context.companies]
        )
        result = verify_answer(answer, deny_list)
        if not result.clean:
            log_with_context(
                logger,
                logging.WARNING,
                "Answer mentioned companies outside the context, regenerating",
                request_id=request_id,
                violations=result.violations,
            )
            regeneration_prompt = build_regeneration_prompt(
                context.system_prompt, result.violations
            )
            answer = self.completion.complete(regeneration_prompt, user_prompt, history)

            retry = verify_answer(answer, deny_list)
            if not retry.clean:
                log_with_context(
                    logger,
                    logging.WARNING,
                    "Regenerated answer still mentions outside companies",
                    request_id=request_id,
                    violations=retry.violations,
                )

        sources = context.citations()
        log_with_context(
            logger,
            logging.INFO,
            "Chat answer ready",
            request_id=request_id,
            context_companies=len(context.companies),
            sources=len(sources),
        )
        return ChatResponse(answer=answer, sources=sources)


def get_chat_orchestrator() -> ChatOrchestrator:
    """Build the orchestrator from the shared providers and store."""
    settings = get_settings()
    return ChatOrchestrator(
        engine=get_retrieval_engine(),
        completion=get_completion_provider(),
        store=get_company_store(),
        forbidden_terms=settings.forbidden_terms,
        default_top_k=settings.CHAT_DEFAULT_TOP_K,
        max_top_k=settings.CHAT_MAX_TOP_K,
        max_context_companies=settings.MAX_CONTEXT_COMPANIES,
        history_limit=settings.CHAT_HISTORY_LIMIT,
    )
