from qianwen_chat.streaming.parser import SSEStreamParser, call_now

__all__ = ["SSEStreamParser", "call_now"]
