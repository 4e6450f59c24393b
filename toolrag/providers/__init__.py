"""Request building and response parsing for Anthropic, xAI and Gemini."""