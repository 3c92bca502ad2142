from src.ai_agent.llm_client import CompletionResult

TEAM_MEETING_REPLY = """Sure! Here is the event:
```json
{"summary": "Team meeting", "startDateTime": "2025-01-15T15:00:00", "endDateTime": "2025-01-15T16:00:00", "attendees": []}
```"""


class StubLLMClient:
    """Completion client returning a canned reply and recording every call"""

    def __init__(self, text: str = TEAM_MEETING_REPLY, error: Exception = None):
        self.text = text
        self.error = error
        self.calls = []
        self.is_configured = True

    def generate(self, prompt, temperature, max_tokens, top_p=None, top_k=None):
        self.calls.append({"prompt": prompt, "temperature": temperature, "max_tokens": max_tokens})
        if self.error is not None:
            raise self.error
        return CompletionResult(text=self.text, tokens_used=42)

    def ask(self, question, tabs_context=None, max_tokens=None, temperature=None):
        self.calls.append({"question": question, "tabs_context": tabs_context,
                           "max_tokens": max_tokens, "temperature": temperature})
        if self.error is not None:
            raise self.error
        return CompletionResult(text=self.text, tokens_used=42)
