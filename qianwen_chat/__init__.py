"""qianwen_chat 顶层包。

通义千问（DashScope 百炼应用）流式对话客户端：
配置加载、消息与历史模型、SSE 流解析、Provider 适配与会话管理。
"""

from qianwen_chat.api.service import create_chat_session
from qianwen_chat.chat.session import ChatSession
from qianwen_chat.domain.models import Message, StreamSinks

__all__ = ["ChatSession", "Message", "StreamSinks", "create_chat_session"]
