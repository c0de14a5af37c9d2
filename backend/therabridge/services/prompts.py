from __future__ import annotations
from typing import List, Optional, Sequence, TypedDict

from therabridge.schemas import Modality


class MoodPoint(TypedDict, total=False):
    score: int
    date: str
    notes: Optional[str]


class EventPoint(TypedDict, total=False):
    type: str
    intensity: int
    description: Optional[str]
    date: str


class HomeworkPoint(TypedDict, total=False):
    title: str
    status: str
    completion_notes: Optional[str]


_PREAMBLE = "You are a supportive AI assistant embedded in a therapy continuity platform. "

MODALITY_SYSTEM_PROMPTS = {
    Modality.CBT: (
        _PREAMBLE
        + "You operate strictly within Cognitive Behavioral Therapy (CBT) principles. "
        "Your role is to help clients notice connections between thoughts, feelings, and behaviors between therapy sessions.\n"
        "\n"
        "STRICT GUARDRAILS:\n"
        "- Never provide a diagnosis, clinical assessment, or medical advice\n"
        "- Never replace the role of the therapist\n"
        "- Never interpret dreams or perform psychoanalysis\n"
        "- Always encourage the client to bring insights to their next therapy session\n"
        "- If any crisis language is detected, immediately redirect to crisis resources\n"
        "- Keep language warm, supportive, and non-judgmental\n"
        "- Focus on thought patterns, cognitive distortions, and behavioral activation\n"
        "- Use Socratic questioning to guide self-reflection"
    ),
    Modality.DBT: (
        _PREAMBLE
        + "You operate strictly within Dialectical Behavior Therapy (DBT) principles. "
        "Your role is to help clients practice DBT skills between sessions.\n"
        "\n"
        "STRICT GUARDRAILS:\n"
        "- Never provide a diagnosis, clinical assessment, or medical advice\n"
        "- Never replace the role of the therapist\n"
        "- Always encourage the client to bring insights to their next therapy session\n"
        "- If any crisis language is detected, immediately redirect to crisis resources\n"
        "- Focus on the four DBT skill modules: Mindfulness, Distress Tolerance, Emotion Regulation, "
        "and Interpersonal Effectiveness\n"
        "- Use validating, dialectical language that balances acceptance and change\n"
        "- Encourage skill practice and diary card completion"
    ),
    Modality.TRAUMA_INFORMED: (
        _PREAMBLE
        + "You operate strictly within trauma-informed care principles. "
        "Your role is to provide grounding, psychoeducation, and gentle reflection between therapy sessions.\n"
        "\n"
        "STRICT GUARDRAILS:\n"
        "- Never provide a diagnosis, clinical assessment, or medical advice\n"
        "- Never replace the role of the therapist\n"
        "- Never push clients to discuss traumatic events in detail. This is NOT trauma processing\n"
        "- Always emphasize safety, choice, and control\n"
        "- If any crisis language is detected, immediately redirect to crisis resources\n"
        "- Focus on grounding techniques, window of tolerance, and nervous system regulation\n"
        "- Use trauma-sensitive language that avoids re-traumatization\n"
        "- Always remind clients they are in control of what they share"
    ),
    Modality.EMDR: (
        _PREAMBLE
        + "You operate strictly within EMDR preparation and stabilization principles. "
        "Your role is to support clients with resource installation and stabilization between EMDR sessions.\n"
        "\n"
        "STRICT GUARDRAILS:\n"
        "- Never provide a diagnosis, clinical assessment, or medical advice\n"
        "- Never replace the role of the therapist\n"
        "- NEVER attempt to guide EMDR processing. Only a trained EMDR therapist may do this\n"
        "- Focus only on stabilization, resourcing, and preparation activities\n"
        "- If any crisis language is detected, immediately redirect to crisis resources\n"
        "- Encourage use of the safe/calm place, container exercise, and positive resource figures\n"
        "- Keep the client in their window of tolerance"
    ),
    Modality.GENERAL: (
        _PREAMBLE
        + "Your role is to provide general emotional support and reflection prompts between therapy sessions.\n"
        "\n"
        "STRICT GUARDRAILS:\n"
        "- Never provide a diagnosis, clinical assessment, or medical advice\n"
        "- Never replace the role of the therapist\n"
        "- Always encourage the client to bring insights to their next therapy session\n"
        "- If any crisis language is detected, immediately redirect to crisis resources\n"
        "- Keep language warm, supportive, and non-judgmental\n"
        "- Focus on self-awareness, emotional literacy, and coping skills\n"
        "- Never make definitive statements about a client's mental health"
    ),
}


def system_prompt_for(modality: Modality | str) -> str:
    return MODALITY_SYSTEM_PROMPTS[Modality(modality)]


def modality_label(modality: Modality | str) -> str:
    return Modality(modality).value.replace("_", "-")


def session_prep_system_prompt(modality: Modality | str) -> str:
    return (
        "You are a clinical support AI that generates structured session preparation summaries "
        f"for licensed therapists. You operate within {modality_label(modality)} principles. "
        "You never diagnose, never replace clinical judgment, and always frame outputs as observations "
        "for the therapist to consider. Your summaries are factual, structured, and clinically appropriate."
    )


def _lines(items: List[str], placeholder: str) -> str:
    return "\n".join(items) or placeholder


def build_reflection_prompt(
    modality: Modality | str,
    recent_mood_scores: Sequence[int],
    recent_events: Sequence[str],
    client_goals: Sequence[str],
) -> str:
    if recent_mood_scores:
        avg_mood = f"{sum(recent_mood_scores) / len(recent_mood_scores):.1f}"
    else:
        avg_mood = "unknown"

    scores = ", ".join(str(s) for s in recent_mood_scores) or "No recent data"
    events = "; ".join(recent_events) if recent_events else "None logged"
    goals = "; ".join(client_goals) if client_goals else "Not specified"

    return (
        "Based on the following client data, generate 2-3 thoughtful, open-ended reflection prompts "
        "for the client to explore before their next therapy session. "
        f"The prompts should be aligned with {modality_label(modality)} principles.\n"
        "\n"
        f"Recent mood scores (1-10 scale): {scores}\n"
        f"Average mood: {avg_mood}/10\n"
        f"Recent emotional events: {events}\n"
        f"Current therapy goals: {goals}\n"
        "\n"
        "Generate reflection prompts that:\n"
        "1. Are open-ended and non-leading\n"
        "2. Encourage self-awareness without causing distress\n"
        "3. Connect to the client's stated goals\n"
        "4. Are appropriate for between-session reflection (not therapy processing)\n"
        "\n"
        "Format as a numbered list of prompts only. Do not include any preamble or explanation."
    )


def build_session_prep_prompt(
    modality: Modality | str,
    client_name: str,
    recent_mood_data: Sequence[MoodPoint],
    recent_events: Sequence[EventPoint],
    homework_status: Sequence[HomeworkPoint],
    active_goals: Sequence[str],
    days_since_last_session: int,
) -> str:
    mood_lines = [
        f"- {m['date']}: Score {m['score']}/10" + (f' (notes: "{m["notes"]}")' if m.get("notes") else "")
        for m in recent_mood_data
    ]
    event_lines = [
        f"- {e['date']}: {e['type']} (intensity {e['intensity']}/10)"
        + (f": {e['description']}" if e.get("description") else "")
        for e in recent_events
    ]
    homework_lines = [
        f'- "{h["title"]}": {h["status"]}'
        + (f" (notes: {h['completion_notes']})" if h.get("completion_notes") else "")
        for h in homework_status
    ]

    return (
        "Generate a structured session preparation summary for a therapist. This summary will help the "
        f"therapist prepare for their upcoming session with {client_name}.\n"
        "\n"
        f"MODALITY: {modality_label(modality).upper()}\n"
        f"Days since last session: {days_since_last_session}\n"
        "\n"
        f"MOOD DATA (last {len(recent_mood_data)} entries):\n"
        f"{_lines(mood_lines, 'No mood data recorded')}\n"
        "\n"
        "EMOTIONAL EVENTS:\n"
        f"{_lines(event_lines, 'No events logged')}\n"
        "\n"
        "HOMEWORK ASSIGNMENTS:\n"
        f"{_lines(homework_lines, 'No homework assigned')}\n"
        "\n"
        "ACTIVE THERAPY GOALS:\n"
        f"{_lines(list(active_goals), 'No goals specified')}\n"
        "\n"
        "Generate a structured summary with these sections:\n"
        "1. **Between-Session Overview** (2-3 sentences on overall engagement and patterns)\n"
        "2. **Mood & Emotional Patterns** (notable trends or changes)\n"
        "3. **Key Events to Explore** (flagged events worth discussing in session)\n"
        "4. **Homework Review** (completion status and any notable responses)\n"
        "5. **Suggested Session Focus** (2-3 modality-aligned areas to consider, NOT prescriptive)\n"
        "\n"
        "IMPORTANT: This is a clinical support tool only. Do not make diagnostic statements, clinical "
        "assessments, or treatment recommendations. Frame all suggestions as observations for the "
        "therapist to consider."
    )


def build_post_session_prompt(
    modality: Modality | str,
    session_notes: str,
    homework_assigned: Sequence[str],
    goals_worked_on: Sequence[str],
    next_session_date: Optional[str] = None,
) -> str:
    return (
        "Generate a brief post-session continuity message for a therapy client. This message will help "
        "the client maintain momentum after their session.\n"
        "\n"
        f"MODALITY: {modality_label(modality).upper()}\n"
        f"Session themes: {session_notes}\n"
        f"Homework assigned: {', '.join(homework_assigned) or 'None'}\n"
        f"Goals worked on: {', '.join(goals_worked_on) or 'Not specified'}\n"
        f"Next session: {next_session_date or 'To be scheduled'}\n"
        "\n"
        "Generate a warm, supportive continuity message that:\n"
        "1. Acknowledges the work done in session (without revealing clinical details)\n"
        "2. Gently reminds the client of their homework\n"
        "3. Offers 1-2 brief between-session reflection questions aligned with the modality\n"
        "4. Encourages the client to log their mood and any significant events\n"
        "5. Reminds them when their next session is\n"
        "\n"
        "Keep it concise (under 200 words), warm, and non-clinical. Do not include any diagnostic language."
    )
