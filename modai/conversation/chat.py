import logging
from typing import Optional

from ..llm.router import ChatOptions, ChatResult, ProviderRouter
from .models import Conversation, MessageMetadata
from .storage import ConversationStore
from .window import select_context

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = (
    "Hello! I'm MOD AI Assistant with access to 15+ advanced AI models including "
    "Claude Sonnet 4, GPT-4o, and ultra-fast Groq models. I can help with coding, "
    "writing, analysis, image generation, and much more. "
    "What would you like to explore today?"
)

APOLOGY_MESSAGE = (
    "I apologize, but I'm having trouble processing your request. "
    "Please try again or switch to a different model."
)


class ChatService:
    """Ties stored history, the context window and the provider router together."""

    def __init__(
        self,
        store: ConversationStore,
        router: ProviderRouter,
        token_budget: int = 4000,
    ) -> None:
        self.store = store
        self.router = router
        self.token_budget = token_budget

    def start_conversation(self, model: str) -> str:
        conv_id = self.store.create_conversation(model)
        self.store.add_message(conv_id, WELCOME_MESSAGE, "assistant", model=model)
        return conv_id

    def ensure_conversation(self, model: str) -> Conversation:
        """Current conversation, else the latest one, else a fresh one."""
        conv_id = self.store.get_current_id()
        if conv_id is None:
            existing = self.store.list_conversations()
            if existing:
                conv_id = existing[0].id
                self.store.set_current(conv_id)
            else:
                conv_id = self.start_conversation(model)
        return self.store.get_conversation(conv_id)

    async def send(
        self,
        conv_id: str,
        message: str,
        model: str,
        options: Optional[ChatOptions] = None,
    ) -> Optional[ChatResult]:
        """Send *message* within a stored conversation and record both turns.

        Returns None if the conversation does not exist. Provider errors are
        re-raised after an apology is recorded in the conversation.
        """
        conv = self.store.get_conversation(conv_id)
        if conv is None:
            return None

        history = [
            {"role": m.role, "content": m.content}
            for m in select_context(conv, self.token_budget)
        ]
        self.store.add_message(conv_id, message, "user")
        if conv.model != model:
            self.store.set_model(conv_id, model)

        try:
            result = await self.router.chat(message, history, model, options)
        except Exception:
            logger.error("Chat request failed for conversation %s", conv_id, exc_info=True)
            self.store.add_message(conv_id, APOLOGY_MESSAGE, "assistant")
            raise

        self.store.add_message(
            conv_id,
            result.message,
            "assistant",
            model=result.model,
            metadata=MessageMetadata(
                tokens=result.metadata.tokens,
                cost=result.metadata.cost,
                provider=result.provider,
            ),
        )
        return result

    def record_image(self, conv_id: str, prompt: str, model: str) -> None:
        self.store.add_message(
            conv_id, f'Generated image for: "{prompt}"', "assistant", model=model
        )
