"""
Agents used by the chat relay runtime.

- SessionAgent: mints a ChatKit client secret (one upstream call)
- ConversationAgent: thread -> message -> run -> poll -> reply
"""
