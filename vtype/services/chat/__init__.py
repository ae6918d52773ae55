from vtype.services.chat.message_store import MessageRepository

__all__ = ["MessageRepository"]
