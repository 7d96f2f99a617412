"""
app/ai/flows/base.py

Purpose: Prompt-template flows

A flow is a named pair of input/output models plus a static prompt
template. Running it validates the input, fills `{{{field}}}` placeholders,
asks the model for a JSON object matching the output model and validates
the reply.
"""

import json
import re
from typing import Any, Dict, Generic, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError as PydanticValidationError

from app.ai.llm_client import LlmClient
from app.core.errors import jsonable_errors
from app.core.exceptions import ExternalServiceError
from app.core.logging import get_logger, LogContext

logger = get_logger(__name__)

InputT = TypeVar("InputT", bound=BaseModel)
OutputT = TypeVar("OutputT", bound=BaseModel)

PLACEHOLDER = re.compile(r"\{\{\{\s*(\w+)\s*\}\}\}")

SYSTEM_INSTRUCTION = (
    "Reply with a single JSON object that validates against this JSON schema. "
    "Do not wrap it in markdown.\n{schema}"
)


def render_template(template: str, values: Dict[str, Any]) -> str:
    """Fills `{{{name}}}` placeholders; missing or None values render empty."""

    def substitute(match: re.Match) -> str:
        value = values.get(match.group(1))
        return "" if value is None else str(value)

    return PLACEHOLDER.sub(substitute, template)


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        text = text.rsplit("```", 1)[0]
    return text.strip()


class PromptFlow(Generic[InputT, OutputT]):

    def __init__(self, name: str, input_model: Type[InputT], output_model: Type[OutputT], template: str):
        self.name = name
        self.input_model = input_model
        self.output_model = output_model
        self.template = template

    def render(self, flow_input: InputT) -> str:
        return render_template(self.template, flow_input.model_dump())

    def system_instruction(self) -> str:
        return SYSTEM_INSTRUCTION.format(schema=json.dumps(self.output_model.model_json_schema()))

    def parse(self, reply: str) -> OutputT:
        try:
            return self.output_model.model_validate_json(_strip_code_fence(reply))
        except PydanticValidationError as e:
            raise ExternalServiceError(
                f"{self.name} returned an invalid reply", details=jsonable_errors(e.errors(include_url=False))
            ) from e

    async def run(self, llm: LlmClient, flow_input: Union[InputT, Dict[str, Any]]) -> OutputT:
        """
        Raises:
            pydantic.ValidationError: If the input does not validate
            ExternalServiceError: If the model call fails or its reply does
                not match the output model
        """
        if not isinstance(flow_input, self.input_model):
            flow_input = self.input_model.model_validate(flow_input)

        with LogContext(flow=self.name):
            prompt = self.render(flow_input)
            reply = await llm.complete_json(prompt, system=self.system_instruction())
            output = self.parse(reply)
            logger.info("Flow completed")

        return output
