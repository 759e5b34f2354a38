"""Prompt assembly and output budgeting for AI flow generation."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict

from app.api.schemas.flow_generation import GenerationRequest

PROMPT_VERSION = "maat-flow-architect/2025-01"

MIN_OUTPUT_TOKENS = 3500
TOKENS_PER_DAY = 200

# Order matters: the first category whose keywords match wins.
FLOW_CATEGORIES: Dict[str, Dict[str, Any]] = {
    "workout": {
        "keywords": ("workout", "gym", "lift", "training", "exercise", "practice drums", "practice guitar"),
        "user_hint": (
            "Training-only flow: every note is a session or recovery day. "
            "No meals, chores, or meetings unless the description asks for them."
        ),
    },
    "body": {
        "keywords": ("hair", "skin", "scalp", "body care", "detox"),
        "user_hint": "Body-care flow: each day is a mini protocol with amounts, durations, and order of steps.",
    },
    "business": {
        "keywords": ("business", "startup", "marketing", "sales", "clients", "leads"),
        "user_hint": "Business flow: each day ends with a concrete deliverable or measurable outreach target.",
    },
    "generic": {
        "keywords": (),
        "user_hint": "",
    },
}

FLOW_JSON_SCHEMA = """{
  "flowName": "string",
  "overview": {
    "title": "string",
    "summary": "string"
  },
  "notes": [
    {
      "day_index": 0,
      "title": "string",
      "details": "string",
      "allDay": true,
      "startsAt": "HH:MM",
      "endsAt": "HH:MM",
      "chips": [1, 2, 3]
    }
  ]
}"""

WORKOUT_EXAMPLE = """{
  "flowName": "Upper/Lower Strength Split",
  "overview": {
    "title": "Upper/Lower Strength & Core",
    "summary": "Progressive compound lifts with joint-friendly accessories and steady core work. Sessions last 45-60 minutes."
  },
  "notes": [
    {
      "day_index": 0,
      "title": "Day 1 - Upper Body Strength",
      "details": "Warm-up: 5-8 min brisk walk or bike.\\n\\n1) Bench Press - 4 x 5-6 reps, 2-3 min rest.\\n2) Bent-Over Barbell Row - 4 x 6-8 reps, 2 min rest. Pull to lower ribs, back flat.\\n3) Seated Dumbbell Shoulder Press - 3 x 8-10 reps, 90 sec rest.\\n4) Lat Pulldown - 3 x 8-10 reps, 90 sec rest.\\n5) Plank - 3 x 30-45 sec, 45 sec rest.\\n\\nCool-down: 5 min chest and upper-back stretching.",
      "allDay": false,
      "startsAt": "18:00",
      "endsAt": "19:00",
      "chips": [1]
    },
    {
      "day_index": 1,
      "title": "Day 2 - Active Recovery",
      "details": "1) 20 min easy walk, conversational pace.\\n2) Hip flexor stretch - 2 x 45 sec per side.\\n3) Cat-cow - 2 x 10 slow reps.\\n4) Foam roll quads and upper back - 5 min total.",
      "allDay": false,
      "startsAt": "18:00",
      "endsAt": "18:40",
      "chips": [2]
    }
  ]
}"""


@dataclass(frozen=True)
class PromptBundle:
    system_instruction: str
    user_instruction: str
    output_budget: int
    flow_category: str
    day_count: int


def infer_flow_category(description: str) -> str:
    """Classify the request by keyword so the model can self-constrain."""
    text = (description or "").lower()
    for category, config in FLOW_CATEGORIES.items():
        keywords = config["keywords"]
        if keywords and any(keyword in text for keyword in keywords):
            return category
    return "generic"


def compute_output_budget(day_count: int, ceiling: int) -> int:
    """Scale max output tokens with the date span, floored and capped.

    Undersized budgets truncate the JSON on long ranges; always asking for the
    ceiling wastes spend on short ones.
    """
    requested = max(MIN_OUTPUT_TOKENS, math.ceil(day_count * TOKENS_PER_DAY))
    return min(requested, ceiling)


def build_prompt(request: GenerationRequest, output_ceiling: int) -> PromptBundle:
    day_count = request.day_count
    category = infer_flow_category(request.description)
    return PromptBundle(
        system_instruction=build_system_instruction(),
        user_instruction=build_user_instruction(request, category, day_count),
        output_budget=compute_output_budget(day_count, output_ceiling),
        flow_category=category,
        day_count=day_count,
    )


def build_system_instruction() -> str:
    return (
        f"[prompt {PROMPT_VERSION}]\n"
        "You are the Ma'at Flow Architect.\n"
        "You design multi-day lifestyle FLOWS for the Ma'at Living Calendar app. A Flow is a sequence of "
        "daily, actionable notes tied to specific days of a date range; the app converts your JSON into "
        "scheduled events.\n\n"
        "### OUTPUT SCHEMA\n"
        "You MUST obey this JSON schema exactly (no extra fields, no comments):\n"
        f"{FLOW_JSON_SCHEMA}\n\n"
        "### CORE RULES\n"
        "- Output ONLY one valid JSON object matching the schema. No markdown, no prose, no explanations.\n"
        "- `day_index` is 0-based from the start date (0 = first day). Indices are contiguous: one note per "
        "calendar day in the range, in order, no gaps and no duplicates.\n"
        "- `chips` lists decan day numbers 1-10 the day belongs to. If unclear, cycle (day_index % 10) + 1.\n"
        "- `allDay` true: `startsAt`/`endsAt` are ignored (\"00:00\" is fine).\n"
        "- `allDay` false: `startsAt` and `endsAt` MUST be 24h \"HH:MM\" and `endsAt` must be later than `startsAt`.\n\n"
        "### ALWAYS RESPECT\n"
        "- The requested date range (start_date through end_date).\n"
        "- The FLOW_TYPE you receive. FLOW_TYPE=workout means training-related notes only: no Lunch, Dinner, "
        "chores, or meetings unless the user explicitly includes meals.\n"
        "- User preferences: \"weekdays only\" schedules Monday-Friday; specific times (7pm, mornings) drive "
        "`startsAt`/`endsAt`; \"3 days per week\" spaces sessions across the range.\n\n"
        "### STYLE\n"
        "- Never vague or merely motivational. Every `details` field is step-by-step: lists of actions with "
        "quantities, durations, measurements, or examples. Clear \"how to\", never \"remember to\".\n"
        "- Separate action lines with newlines; no walls of text.\n\n"
        "### SOURCE MATERIAL\n"
        "- The request may include SOURCE_TEXT (notes, book pages, chat logs). Boil it down into a structured flow: "
        "keep the important ideas and their sequence, turn high-level advice into concrete daily tasks, and keep "
        "every explicit constraint it states.\n\n"
        "### WEEKDAY / TIME CONSTRAINTS\n"
        "- When the user names weekdays, weekends, or times, honor them in `day_index` and `startsAt`/`endsAt`.\n"
        "- For \"weekdays only\", fill weekend days with light review or reflection tasks that fit the theme.\n\n"
        "### BODY / HEALTH FLOWS\n"
        "- For goals like regrowing hair, better sleep, or a detox: include protocols, recipes, and reasonable "
        "amounts (e.g. \"drink 16 oz warm water with lemon\"), grounded in safe, common-sense practice.\n"
        "- Each day reads like a mini protocol, not a reminder.\n\n"
        "### WORKOUT / TRAINING FLOWS (STRICT)\n"
        "1. Each training day includes 3-6 distinct exercises, each with sets, reps, and rest "
        "(e.g. \"3 x 10-12 reps, 60-90 sec rest\"), the equipment needed, and a clear session goal.\n"
        "2. Use real programming: upper/lower, push/pull/legs, full-body, or skill blocks; progress slightly "
        "across days; include at least one lighter recovery day in any flow of 7+ days.\n"
        "3. `details` MUST contain at least 4 separate action lines, numbered 1), 2), 3) or split by newlines. "
        "A single short sentence like \"Increase intensity with weights.\" is INVALID.\n"
        "4. Topic discipline: a training-only request gets no Lunch, Dinner, Meetings, or chores. Nutrition "
        "appears only when the user explicitly asks for it in this flow.\n\n"
        "### EXAMPLE (follow the format and detail level, not the content)\n"
        f"{WORKOUT_EXAMPLE}\n\n"
        "### JSON OUTPUT REQUIREMENTS\n"
        "- No trailing commas. No comments. Do NOT wrap the JSON in backticks.\n"
        "- Even for an extremely short request, generate a full, rich flow covering the whole date range.\n\n"
        "Your job: given the description, date range, timezone, and optional source text, return ONE JSON "
        "object exactly matching the schema above, with detailed, real-world tasks for each day."
    )


def build_user_instruction(request: GenerationRequest, category: str, day_count: int) -> str:
    start = request.start_date.isoformat()
    end = request.end_date.isoformat()
    lines = [
        f"FLOW_TYPE: {category}",
        "",
        f"USER_DESCRIPTION: {request.description.strip()}",
        "",
        f"DATE_RANGE: {start} -> {end}",
        "",
    ]
    hint = FLOW_CATEGORIES.get(category, {}).get("user_hint")
    if hint:
        lines.append(f"CATEGORY_RULES: {hint}")
    if request.flow_name:
        lines.append(f"Flow name: {request.flow_name}")
    if request.timezone:
        lines.append(f"Timezone: {request.timezone}")
    if request.source_text:
        lines.extend(["", "SOURCE_TEXT:", request.source_text])
    lines.extend(
        [
            "",
            f"Date range: {day_count} days ({start} to {end}).",
            f"Generate exactly {day_count} notes, one per calendar day in this range, with day_index 0 through "
            f"{day_count - 1}. Each note must have a detailed \"details\" field: no placeholders, no generic summaries.",
            "",
            "Generate a JSON flow strictly following the schema.",
        ]
    )
    return "\n".join(lines).strip()
