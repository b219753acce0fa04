"""
Pydantic / datamodels used by the chat relay runtime.

Split into:
- run_models: RunStatus + RunInfo + ThreadMessage + RelayState
- api_models: HTTP request/response schemas
"""
