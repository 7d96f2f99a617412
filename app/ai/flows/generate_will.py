"""Drafts an Islamic will (Wasiyat) in a fixed format from the user's wishes."""

from pydantic import BaseModel, Field

from app.ai.flows.base import PromptFlow


class GenerateWillInput(BaseModel):
    prompt: str = Field(
        ...,
        min_length=1,
        description="A detailed description of the user's wishes for their will, "
                    "including beneficiaries, assets, and any specific instructions.",
    )


class GenerateWillOutput(BaseModel):
    will_draft: str = Field(
        ...,
        description="A draft of the will (Wasiyat) generated based on the user's prompt and Shariah principles.",
    )


GENERATE_WILL_TEMPLATE = """
Generate an Islamic Wasiyat (Will) using the following fixed format.
Always fill in the headings and text clearly, but do not change the structure or headings.

User input:
{{{prompt}}}

Format output exactly like this:
### 🕌 WASIYAT (ISLAMIC WILL)

**بِسْمِ اللّٰہِ الرَّحْمٰنِ الرَّحِیْم**
**In the Name of Allah, the Most Gracious, the Most Merciful**

This is the Wasiyat (Last Will) of **[Full Name]**,
son/daughter of **[Father's Name]**,
residing at **[Address]**.

---

**1. Declaration:**
[Fill here]

**2. Funeral and Burial:**
[Fill here]

**3. Debts and Obligations:**
[Fill here]

**4. Distribution of Property:**
[Fill here]

**5. Appointment of Executor:**
[Fill here]

**6. Special Instructions:**
[Fill here]

---

**Witness 1:** ________________________
**Witness 2:** ________________________

**Signature of Testator:** ________________________
**Date:** ________________________
"""

generate_will_flow = PromptFlow(
    name="generate_will",
    input_model=GenerateWillInput,
    output_model=GenerateWillOutput,
    template=GENERATE_WILL_TEMPLATE,
)
