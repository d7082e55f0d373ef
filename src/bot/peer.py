"""Caps bot-to-bot conversations with the peer bot."""

import logging

from src.config import settings

logger = logging.getLogger(__name__)

TRIGGER_PHRASE = "talk to cooper"


class PeerConversation:
    """Counts replies to the peer bot until the owner starts a new round."""

    def __init__(self, max_replies: int | None = None) -> None:
        self.max_replies = max_replies if max_replies is not None else settings.max_bot_conversation
        self.count = 0

    def reset(self) -> None:
        self.count = 0
        logger.info("Peer conversation reset")

    def try_reply(self) -> bool:
        """Claim one reply slot. False once the cap is reached."""
        if self.count >= self.max_replies:
            return False
        self.count += 1
        logger.info("Peer bot spoke. Conversation count: %d", self.count)
        return True


def is_trigger(text: str) -> bool:
    return TRIGGER_PHRASE in text.lower()


peer_conversation = PeerConversation()
