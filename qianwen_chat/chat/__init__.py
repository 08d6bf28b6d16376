from qianwen_chat.chat.session import ChatSession

__all__ = ["ChatSession"]
