"""Builds the system and user messages for an eligibility analysis.

Untrusted document text only ever travels in the user message, wrapped in
boundary markers. All instructions live in the system message.
"""

from visacheck.analysis.models import MAX_SCORE, PromptPair
from visacheck.config.visa_data import VisaType

DOCUMENT_START = "<<<DOCUMENT_START>>>"
DOCUMENT_END = "<<<DOCUMENT_END>>>"


def wrap_document_with_markers(document_text: str) -> str:
    return f"{DOCUMENT_START}\n{document_text}\n{DOCUMENT_END}"


def build_checkpoints_list(visa_type: VisaType) -> str:
    """Render one numbered line per required document of the visa type."""
    lines = []
    for index, doc in enumerate(visa_type.required_documents, start=1):
        description = doc.description or "Required document"
        tag = "Required" if doc.required else "Optional"
        lines.append(f"{index}. {doc.display_name}: {description} ({tag})")
    return "\n".join(lines)


def build_system_prompt(template: str, visa_type: VisaType, country_name: str) -> str:
    return template.format(
        country_name=country_name,
        visa_name=visa_type.name,
        checkpoints_list=build_checkpoints_list(visa_type),
        document_start=DOCUMENT_START,
        document_end=DOCUMENT_END,
        max_score=MAX_SCORE,
    )


def build_prompts(
    template: str,
    document_text: str,
    visa_type: VisaType,
    country_name: str,
) -> PromptPair:
    return PromptPair(
        system_prompt=build_system_prompt(template, visa_type, country_name),
        user_prompt=wrap_document_with_markers(document_text),
    )
