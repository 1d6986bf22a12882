"""领域层模型与协议。

包含：
- models: Message / RequestEnvelope / ResponseEnvelope / StreamFragment 等模型。
- wire: chat/completions 线上 JSON 结构（pydantic）。
- conversation: 只追加的会话历史 ConversationState。
- exceptions: 业务异常类型定义。
"""
