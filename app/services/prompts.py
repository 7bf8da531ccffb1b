"""
Prompt building for the listing analysis, quick edits and Pro Style generation.

Everything here is pure: same selections in, same text out.
"""

from typing import Union

from ..models.style import ModelChoice, QuickEdit, StyleSelection

# ── Analysis ─────────────────────────────────────────────────────────

ANALYSIS_PROMPT = """You are an expert reseller for platforms like Wallapop and Vinted.
Analyze this image.
1. Identify if it is an 'OBJECT' (furniture, electronics, decor) or 'CLOTHING' (apparel, shoes, accessories).
2. Write a catchy, SEO-friendly Title.
3. Write a persuasive Description highlighting condition and style.
4. Suggest a Price Range in Euros (e.g. "15€ - 25€").
5. Generate 5 relevant Hashtags.
6. Suggest 2 marketplaces (e.g., Wallapop, Vinted, Depop).
"""

LISTING_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "category": {"type": "STRING", "enum": ["OBJECT", "CLOTHING", "UNKNOWN"]},
        "title": {"type": "STRING"},
        "description": {"type": "STRING"},
        "priceRange": {"type": "STRING"},
        "hashtags": {"type": "ARRAY", "items": {"type": "STRING"}},
        "suggestedMarketplaces": {"type": "ARRAY", "items": {"type": "STRING"}},
    },
    "required": ["category", "title", "description", "priceRange", "hashtags"],
}


# ── Quick edit ───────────────────────────────────────────────────────

def compose_edit_instruction(phrase: Union[QuickEdit, str]) -> str:
    """A quick edit is sent exactly as chosen or typed."""
    if isinstance(phrase, QuickEdit):
        return phrase.value
    return phrase


# ── Pro Style ────────────────────────────────────────────────────────

FRAMING = (
    "Generate a high-quality, realistic product photography image "
    "of the item in the attached image."
)
PRESERVE_PRODUCT = (
    "Important: Keep the main product identical to the input image. "
    "Improve lighting and composition suitable for a high-end marketplace listing."
)


def subject_clause(model: ModelChoice) -> str:
    if model == ModelChoice.NO_MODEL:
        return "- Subject: The product by itself."
    return f"- Subject: The product worn/held by a {model.value}."


def compose_generation_prompt(selection: StyleSelection) -> str:
    """
    Build the Pro Style instruction.

    Order is fixed: framing, subject, environment, aesthetics, product
    constraint, then the custom details only when some were typed.
    """
    lines = [
        FRAMING,
        "",
        "Configuration:",
        subject_clause(selection.model),
        f"- Environment/Background: {selection.location.value}.",
        f"- Aesthetics/Vibe: {selection.style.value}.",
        "",
        PRESERVE_PRODUCT,
    ]
    custom = selection.custom_details.strip()
    if custom:
        lines.append(f"Additional Instructions: {custom}")
    return "\n".join(lines)
