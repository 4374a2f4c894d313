"""
Services for QueryGate.

- llm_service: language model boundary (Anthropic)
- query_memory: remembered queries and the prompt summary
- conversation: history windowing and answer summaries
- tool_client: in-process tool access for the orchestrator
- nl_query_service: tiered natural-language query orchestrator
"""
