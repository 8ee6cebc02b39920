"""
Natural-language query routing.

Responsibilities:
- Turn a free-text question into one intent (recommend, top_values,
  timeseries) plus its parameters.
- Use the domain pack vocabulary to extract facet filters and a budget.
- Prefer the Groq router, falling back to deterministic regex rules.
"""
