"""领域层模型与协议。

包含：
- models: Message / StreamEvent / StreamSinks 数据模型。
- history: 有容量上限的 ConversationHistory。
- exceptions: 业务异常类型定义。
"""
