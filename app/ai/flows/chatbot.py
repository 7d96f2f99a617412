"""In-app assistant limited to Zimmah's features."""

from pydantic import BaseModel, Field

from app.ai.flows.base import PromptFlow


class ChatInput(BaseModel):
    message: str = Field(..., min_length=1, description="The user's message to the chatbot.")


class ChatOutput(BaseModel):
    response: str = Field(..., description="The chatbot's response to the user's message.")


CHATBOT_TEMPLATE = """You are a helpful AI assistant for Zimmah, a digital vault for Shariah-compliant assets. Your goal is to be user-friendly and provide assistance related to the project's features: Wasiyat (Wills), Qarz (Debts), and Amanat (Trusts).

  - Do not answer any questions that are outside the scope of the Zimmah application. If a user asks an irrelevant question, politely decline and steer the conversation back to the app's features.
  - Do not answer any unethical or inappropriate questions.
  - Maintain a helpful and friendly tone.

  User message:
  {{{message}}}

  Your response:
"""

chatbot_flow = PromptFlow(
    name="chatbot",
    input_model=ChatInput,
    output_model=ChatOutput,
    template=CHATBOT_TEMPLATE,
)
