"""Evaluates a financial practice against Shariah principles."""

from typing import Optional

from pydantic import BaseModel, Field

from app.ai.flows.base import PromptFlow


class ShariahComplianceInput(BaseModel):
    financial_practice: str = Field(
        ..., min_length=1, description="The specific financial practice to evaluate for Shariah compliance."
    )
    user_details: Optional[str] = Field(
        default=None, description="Optional details about the user and their specific circumstances."
    )


class ShariahComplianceOutput(BaseModel):
    compliance_tips: str = Field(..., description="AI-powered tips and reminders to ensure Shariah compliance.")
    is_compliant: bool = Field(..., description="Whether the financial practice is Shariah compliant.")
    reasoning: Optional[str] = Field(default=None, description="The reasoning behind the compliance determination.")


SHARIAH_COMPLIANCE_TEMPLATE = """You are an AI assistant specialized in Shariah-compliant finance.

You will evaluate a given financial practice and provide tips and reminders to ensure adherence to Shariah principles. You will also determine if the practice is compliant and provide a reasoning for your determination.  Consider the user details, if available, when evaluating the financial practice.

Financial Practice: {{{financial_practice}}}
User Details: {{{user_details}}}

Respond in a helpful and informative manner.

Ensure you answer the questions. Output the answer in JSON format.
"""

shariah_compliance_flow = PromptFlow(
    name="shariah_compliance",
    input_model=ShariahComplianceInput,
    output_model=ShariahComplianceOutput,
    template=SHARIAH_COMPLIANCE_TEMPLATE,
)
