"""
External service integrations.

- llm: LLM client for content review, translation and summaries
  (supports local/OpenAI/Anthropic)
- pagespeed: Google PageSpeed Insights for performance analysis
- storage: local filesystem storage for screenshots and reports
"""
