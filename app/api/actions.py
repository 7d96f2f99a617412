"""
app/api/actions.py

Purpose: AI server actions

- POST /actions/generate-will     Wasiyat draft from a description
- POST /actions/compliance-tips   Shariah compliance evaluation
- POST /actions/chat              In-app assistant

Every action answers {success, data} or {success: false, error} with a
generic message. Failures are logged, never retried.
"""

from fastapi import APIRouter, Depends

from app.ai.flows.base import PromptFlow
from app.ai.flows.chatbot import ChatInput, ChatOutput, chatbot_flow
from app.ai.flows.generate_will import GenerateWillInput, GenerateWillOutput, generate_will_flow
from app.ai.flows.shariah_compliance import (
    ShariahComplianceInput,
    ShariahComplianceOutput,
    shariah_compliance_flow,
)
from app.ai.llm_client import LlmClient
from app.api.deps import get_llm, get_principal
from app.core.exceptions import ZimmahError
from app.core.logging import get_logger, LogContext
from app.db.rules import Principal
from app.schemas.response import ActionResult
from utils.constants import CHAT_FAILED, COMPLIANCE_TIPS_FAILED, GENERATE_WILL_FAILED

logger = get_logger(__name__)
router = APIRouter()


async def run_action(flow: PromptFlow, llm: LlmClient, flow_input, failure_message: str, auth: Principal) -> ActionResult:
    with LogContext(user_id=auth.uid, flow=flow.name):
        try:
            output = await flow.run(llm, flow_input)
        except ZimmahError as e:
            logger.error(f"Action failed: {e.message}")
            return ActionResult(success=False, error=failure_message)
        except Exception as e:
            logger.error(f"Action failed unexpectedly: {e}", exc_info=True)
            return ActionResult(success=False, error=failure_message)

    return ActionResult(success=True, data=output)


@router.post("/generate-will", response_model=ActionResult[GenerateWillOutput])
async def generate_will_action(
    body: GenerateWillInput, llm: LlmClient = Depends(get_llm), auth: Principal = Depends(get_principal)
):
    return await run_action(generate_will_flow, llm, body, GENERATE_WILL_FAILED, auth)


@router.post("/compliance-tips", response_model=ActionResult[ShariahComplianceOutput])
async def compliance_tips_action(
    body: ShariahComplianceInput, llm: LlmClient = Depends(get_llm), auth: Principal = Depends(get_principal)
):
    return await run_action(shariah_compliance_flow, llm, body, COMPLIANCE_TIPS_FAILED, auth)


@router.post("/chat", response_model=ActionResult[ChatOutput])
async def chat_action(
    body: ChatInput, llm: LlmClient = Depends(get_llm), auth: Principal = Depends(get_principal)
):
    return await run_action(chatbot_flow, llm, body, CHAT_FAILED, auth)
