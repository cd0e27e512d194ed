"""
Brand voice analysis: turn writing examples and/or a style guide into a profile
written as second-person instructions. The profile becomes the cached system
prompt for every later generation on the account.
"""
import asyncio
import logging
from typing import Callable

from sqlalchemy.orm import Session

from repurposer.models.account import Account
from repurposer.services.ai_gateway import AiGateway, GatewayResult, LogContext, build_payload

logger = logging.getLogger(__name__)

BRAND_VOICE_OPERATION = "brand_voice_analysis"

EXAMPLES_SYSTEM_PROMPT = (
    "You are an expert content strategist and brand voice analyst. Your job is to analyze writing samples "
    "and create clear, actionable brand voice profiles that can be used to generate consistent content."
)
STYLE_GUIDE_SYSTEM_PROMPT = (
    "You are an expert at analyzing brand style guides and extracting clear, actionable writing rules. "
    "Your job is to transform style guide documents into practical instructions that can be followed "
    "when creating content."
)
COMBINED_SYSTEM_PROMPT = (
    "You are an expert content strategist who specializes in creating comprehensive brand voice profiles. "
    "Your job is to combine explicit style guide rules with implicit patterns from writing examples to "
    "create detailed, actionable brand voice instructions."
)


def _examples_text(examples: list[str]) -> str:
    return "\n\n---\n\n".join(f"Example {i}:\n{ex}" for i, ex in enumerate(examples, start=1))


def _audience_lines(target_audience: str, words_to_avoid: str, avoid_label: str = "Words/Phrases to Avoid") -> str:
    lines = []
    if target_audience:
        lines.append(f"Target Audience: {target_audience}")
    if words_to_avoid:
        lines.append(f"{avoid_label}: {words_to_avoid}")
    return "\n".join(lines)


def examples_prompt(examples: list[str], target_audience: str = "", words_to_avoid: str = "") -> str:
    return f"""Analyze the following content examples and create a detailed brand voice profile. This profile will be used to generate content that matches this writing style.

{_examples_text(examples)}

{_audience_lines(target_audience, words_to_avoid)}

Create a brand voice profile that includes:
1. **Tone & Personality**: Describe the overall tone (professional, casual, authoritative, friendly, etc.) and personality traits that come through in the writing.

2. **Writing Style**: Note specific patterns like sentence length, paragraph structure, use of questions, storytelling elements, data/statistics usage, etc.

3. **Vocabulary & Language**: Common phrases, industry terminology, level of formality, use of jargon, and any distinctive word choices.

4. **Content Structure**: How ideas are typically organized, use of headers, bullet points, calls-to-action, etc.

5. **Unique Characteristics**: Any standout elements that make this voice distinctive.

Write the profile in second person ("You write in a...") so it can be used as instructions for generating future content. Keep it concise but comprehensive (2-3 paragraphs)."""


def style_guide_prompt(style_guide: str, target_audience: str = "", words_to_avoid: str = "") -> str:
    return f"""Analyze the following brand style guide and extract the key rules and guidelines into a usable brand voice profile. This is a STYLE GUIDE containing RULES about how to write, not examples of actual writing.

STYLE GUIDE:
{style_guide}

{_audience_lines(target_audience, words_to_avoid, "Additional Words/Phrases to Avoid")}

Extract and organize the guidelines into a brand voice profile that includes:

1. **Tone & Voice Rules**: What tone should be used? What personality should come through? What emotions should the writing evoke?

2. **Do's and Don'ts**: Specific rules about what TO do and what NOT to do when writing.

3. **Language Guidelines**: Required terminology, forbidden words/phrases, level of formality, use of contractions, active vs passive voice, etc.

4. **Formatting Rules**: Requirements for sentence length, paragraph structure, use of headers, bullet points, etc.

5. **Brand-Specific Requirements**: Any unique brand requirements, taglines to include, phrases to use, etc.

Write the profile in second person ("You should...", "Always...", "Never...") so it can be used as instructions for generating future content. Be specific and actionable. Include all rules from the style guide - don't summarize or generalize them away."""


def combined_prompt(style_guide: str, examples: list[str], target_audience: str = "", words_to_avoid: str = "") -> str:
    return f"""Create a comprehensive brand voice profile by combining the RULES from the style guide with observations from the WRITING EXAMPLES.

BRAND STYLE GUIDE (contains rules and guidelines):
{style_guide}

---

WRITING EXAMPLES (actual content to analyze):
{_examples_text(examples)}

{_audience_lines(target_audience, words_to_avoid)}

Create a unified brand voice profile that:

1. **Incorporates All Style Guide Rules**: Include every do, don't, and requirement from the style guide.

2. **Adds Observed Patterns**: Note additional patterns from the writing examples that aren't explicitly stated in the style guide (sentence structures, storytelling techniques, hook styles, etc.).

3. **Resolves Any Conflicts**: If the examples differ from the style guide, note this and prioritize the style guide rules.

4. **Tone & Personality**: Combine stated tone guidelines with observed personality traits.

5. **Practical Writing Instructions**: Make everything actionable and specific.

Write the profile in second person as instructions for generating future content. Be comprehensive - include both the explicit rules AND the implicit patterns observed in the examples. This profile will be the primary guide for all future content generation."""


def select_prompt(
    examples: list[str], style_guide: str, target_audience: str = "", words_to_avoid: str = ""
) -> tuple[str, str, int]:
    """(system_prompt, user_prompt, max_tokens) for the inputs provided."""
    examples = [ex.strip() for ex in examples if ex and ex.strip()]
    style_guide = (style_guide or "").strip()
    if style_guide and examples:
        return COMBINED_SYSTEM_PROMPT, combined_prompt(style_guide, examples, target_audience, words_to_avoid), 2500
    if style_guide:
        return STYLE_GUIDE_SYSTEM_PROMPT, style_guide_prompt(style_guide, target_audience, words_to_avoid), 2000
    if examples:
        return EXAMPLES_SYSTEM_PROMPT, examples_prompt(examples, target_audience, words_to_avoid), 1500
    raise ValueError("Provide writing examples, a style guide, or both")


def save_profile(db: Session, account_id: str, profile: str, target_audience: str, words_to_avoid: str) -> Account:
    account = db.query(Account).filter(Account.id == account_id).first()
    account.brand_voice_profile = profile
    if target_audience:
        account.target_audience = target_audience
    if words_to_avoid:
        account.words_to_avoid = words_to_avoid
    db.commit()
    db.refresh(account)
    return account


class BrandVoiceService:
    def __init__(self, gateway: AiGateway, session_factory: Callable[[], Session]):
        self._gateway = gateway
        self._session_factory = session_factory

    async def analyze(
        self,
        account: Account,
        *,
        examples: list[str] | None = None,
        style_guide: str = "",
        target_audience: str = "",
        words_to_avoid: str = "",
    ) -> tuple[Account, GatewayResult]:
        """Analyze and store the profile on the account. Raises ValueError on empty input."""
        system, prompt, max_tokens = select_prompt(examples or [], style_guide, target_audience, words_to_avoid)
        payload = build_payload(prompt, model=self._gateway.default_model, max_tokens=max_tokens, system_prompt=system)
        result = await self._gateway.complete(account, payload, LogContext(operation=BRAND_VOICE_OPERATION))

        def _save():
            db = self._session_factory()
            try:
                return save_profile(db, account.id, result.text.strip(), target_audience, words_to_avoid)
            finally:
                db.close()

        updated = await asyncio.get_running_loop().run_in_executor(None, _save)
        logger.info("Brand voice profile updated for account %s", account.id)
        return updated, result
