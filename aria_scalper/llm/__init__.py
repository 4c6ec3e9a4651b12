"""Market context packet rendered as a text prompt for an LLM."""