"""
Prompt templates for content generation and revision.
The system prompt carries the brand voice and is sent as a cached block; the user
prompt carries the instruction plus a type-specific prefix of the source text.
"""
from dataclasses import dataclass

from repurposer.services.content_types import (
    CONTENT_TYPE_SPECS,
    ContentType,
    LinkedInLength,
    ToneOverride,
)

TONE_INSTRUCTIONS = {
    ToneOverride.FORMAL: "Use a more formal, executive-level tone than usual.",
    ToneOverride.CASUAL: "Use a more casual, conversational tone than usual.",
    ToneOverride.TECHNICAL: "Focus on technical details, data, and specific metrics.",
}

LINKEDIN_WORD_RANGES = {
    LinkedInLength.SHORT: "50-100",
    LinkedInLength.MEDIUM: "150-200",
    LinkedInLength.LONG: "250-350",
}


@dataclass(frozen=True)
class PromptOptions:
    tone: ToneOverride | None = None
    target_audience: str = ""
    words_to_avoid: str = ""
    linkedin_length: LinkedInLength = LinkedInLength.MEDIUM


@dataclass(frozen=True)
class Prompts:
    system: str
    user: str


def system_prompt(brand_voice: str) -> str:
    return f"""You are an expert content creator. Your job is to transform transcripts into engaging, on-brand content.

BRAND VOICE:
{brand_voice}

Always maintain this brand voice while creating content. Be specific, use examples from the transcript, and create content that provides real value to readers."""


def _guidance(options: PromptOptions) -> str:
    lines = [TONE_INSTRUCTIONS[options.tone]] if options.tone else []
    if options.target_audience:
        lines.append(f"Target audience: {options.target_audience}")
    if options.words_to_avoid:
        lines.append(f"Avoid these words/phrases: {options.words_to_avoid}")
    return "\n".join(lines)


def _linkedin(source: str, count: int, guidance: str, options: PromptOptions) -> str:
    words = LINKEDIN_WORD_RANGES[options.linkedin_length]
    return f"""Generate {count} LinkedIn posts based on the following transcript. Each post should:
- Be {words} words
- Start with an attention-grabbing hook
- Include a specific insight or data point from the transcript
- End with a question or call-to-action to drive engagement
- Use short paragraphs (1-3 sentences each)

{guidance}

TRANSCRIPT:
{source}

Generate exactly {count} posts. Format each post with "---POST {{N}}---" separator where N is the post number (1, 2, 3, etc)."""


def _blog(source: str, count: int, guidance: str, options: PromptOptions) -> str:
    return f"""Write a blog post based on the following transcript. The post should:
- Be 800-1200 words
- Have a compelling title
- Include an introduction that hooks the reader
- Be organized with clear sections/headers
- Include specific examples and insights from the transcript
- End with a conclusion and call-to-action

{guidance}

TRANSCRIPT:
{source}

Format: Start with the title on the first line, then the content."""


def _emails(source: str, count: int, guidance: str, options: PromptOptions) -> str:
    return f"""Create a {count}-email nurture sequence based on the following transcript. Each email should:
- Be 100-150 words
- Have a compelling subject line
- Build on the previous email
- Include one key insight from the transcript
- Have a clear call-to-action

The sequence should educate the reader progressively.

{guidance}

TRANSCRIPT:
{source}

Format each email with "---EMAIL {{N}}---" separator, then "Subject: [subject line]" on the next line, followed by the email body."""


def _thread(source: str, count: int, guidance: str, options: PromptOptions) -> str:
    return f"""Create a Twitter/X thread based on the following transcript. The thread should:
- Have 8-12 tweets
- Start with a hook tweet that grabs attention
- Each tweet should be under 280 characters
- Include specific insights and takeaways
- End with a summary or call-to-action
- Use thread numbering (1/, 2/, etc.)

{guidance}

TRANSCRIPT:
{source}

Format each tweet on its own line, numbered."""


def _summary(source: str, count: int, guidance: str, options: PromptOptions) -> str:
    return f"""Write an executive summary based on the following transcript. The summary should:
- Be 250-400 words
- Start with the main thesis/key takeaway
- Include 3-5 key points
- Be written for busy executives
- Focus on actionable insights and business implications
- End with recommendations or next steps

{guidance}

TRANSCRIPT:
{source}"""


_TEMPLATES = {
    ContentType.LINKEDIN_POST: _linkedin,
    ContentType.BLOG_POST: _blog,
    ContentType.EMAIL_SEQUENCE: _emails,
    ContentType.TWITTER_THREAD: _thread,
    ContentType.EXECUTIVE_SUMMARY: _summary,
}


def build_prompts(
    content_type: ContentType,
    source_text: str,
    brand_voice: str,
    options: PromptOptions | None = None,
) -> Prompts:
    options = options or PromptOptions()
    type_spec = CONTENT_TYPE_SPECS[content_type]
    source = (source_text or "")[: type_spec.source_chars]
    user = _TEMPLATES[content_type](source, type_spec.item_count, _guidance(options), options)
    return Prompts(system=system_prompt(brand_voice), user=user)


# ---- Revision (AI polish) ----

REVISE_SYSTEM_PROMPT = "You are a skilled content editor. Focus on polish, not rewriting."


def build_revise_prompt(content_type: ContentType | str, brand_voice: str, original_text: str, guidance: str = "") -> str:
    try:
        label = CONTENT_TYPE_SPECS[ContentType(content_type)].label
    except ValueError:
        label = str(content_type)
    user_guidance = f"USER GUIDANCE:\n{guidance}\n\n" if guidance else ""
    return f"""You are a content editor. Polish the following {label} content with a LIGHT TOUCH.

BRAND VOICE:
{brand_voice or 'Professional and helpful'}

YOUR TASK:
- Tighten verbose sentences
- Improve hooks/openings if weak
- Strengthen CTAs if unclear
- Fix awkward phrasing
- Maintain the original message and structure

DO NOT:
- Change the core message or argument
- Add new sections or significantly expand
- Remove key points
- Change the overall tone drastically
- Add emojis unless the original had them

{user_guidance}Return ONLY the polished content, no explanations.

ORIGINAL CONTENT:
{original_text}"""
