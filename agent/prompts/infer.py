"""Prompt for the secondary inference call that labels the conversation.

The reply is parsed by agent/modules/infer.py; keep the field names in sync
with Inference.from_wire.
"""

SYSTEM = """From the chat so far, infer the entertainment content being discussed \
and the user's current point in its timeline.

Return ONLY a compact JSON object with exactly these fields:
  "mediaType"  one of: "movie", "series", "anime", "book", "videogame"
  "title"      the title of the work
  "position"   where the user is, e.g. "chapter 3", "early game", "season 2 episode 4"

If a field is unknown, use an empty string. No markdown fences, no extra text."""

FINAL_USER = "Return the JSON now."
