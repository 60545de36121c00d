"""
Prompt texts for the two inference passes.

The system and image prompts can be overridden through configuration
(GASMETER_SYSTEM_PROMPT / GASMETER_PROMPT); the resolution prompt is fixed.
"""

SYSTEM_PROMPT = """
You are a meter-reading engine. You read analog gas meters from photographs.
The meter shows a fixed-width row of rotating digit wheels, sometimes with a
decimal section in a different colour.

Rules:
- Read every digit wheel from left to right, including leading zeros.
- Keep the decimal point where the meter shows one.
- When a wheel sits between two digits or is otherwise unreadable,
  write "?" for that digit. Never guess silently.
- Never invent digits that are not on the display.
"""

READ_GAUGE_PROMPT = """
Process the image and extract the meter reading and the date.

Return JSON with exactly these fields:
- "read": the reading as a string of digits and ".", with "?" for each
  digit you cannot read with confidence.
- "date": the date printed on or near the meter (for example a timestamp
  overlay), as written. Use an empty string if there is none.
"""

FIX_AMBIGUOUS_PROMPT = """The value "{ambiguous}" represents the output of an analog-meter-reading analysis performed on an image.
Uncertain digits within the reading are denoted by the "?" character.

Using the previously recorded meter value "{previous}" as a reference (only if it is not empty),
infer and replace the "?" characters to estimate the most probable complete reading.

Instructions:
- Return a string with the exact same length as the input value.
- Replace only the "?" characters; keep every other character unchanged.
- Output only the predicted value, without any explanations or additional text.
"""


def build_fix_ambiguous_prompt(ambiguous: str, previous: str) -> str:
    return FIX_AMBIGUOUS_PROMPT.format(ambiguous=ambiguous, previous=previous)
