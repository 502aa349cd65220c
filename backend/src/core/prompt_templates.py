"""
Prompt builders for interview question and concept explanation generation.

Pure string builders. Both prompts ask the model for a single JSON object so
the orchestrator can validate the reply against a schema.
"""

from typing import Optional


SYSTEM_PROMPT = (
    "You are an experienced technical interviewer and mentor who prepares candidates for job interviews. "
    "You write accurate, practical content and you always answer with valid JSON only, no markdown."
)


def build_questions_prompt(
    role: str,
    experience: Optional[str],
    topics_to_focus: Optional[str],
    number_of_questions: int,
) -> str:
    """Prompt for `number_of_questions` Q/A pairs.

    Output expectation (model side): {"questions": [{"question": ..., "answer": ...}, ...]}
    """
    exp = (experience or "").strip()
    topics = (topics_to_focus or "").strip()

    prompt = (
        f"[INSTRUCTIONS]\n"
        f"- Role: {role}\n"
        f"- Candidate experience: {exp + ' years' if exp.isdigit() else (exp or 'not specified')}\n"
        f"- Focus topics: {topics or 'general topics for the role'}\n"
        f"- Write exactly {number_of_questions} interview questions.\n"
        f"- For each question write a beginner-friendly answer.\n"
        f"- If an answer needs a code example, include a short code block inside the answer string.\n"
        f"- Keep formatting clean; no text outside the JSON.\n\n"
        f"[OUTPUT FORMAT]\n"
        f'{{"questions": [{{"question": "Question here?", "answer": "Answer here."}}]}}'
    )
    return prompt


def build_explanation_prompt(question: str) -> str:
    """Prompt for a concept explanation of an interview question.

    Output expectation (model side): {"title": ..., "explanation": ...}
    """
    prompt = (
        f"[INSTRUCTIONS]\n"
        f"- Explain the concept behind the following interview question in depth, as if teaching a beginner.\n"
        f"- Question: \"{question}\"\n"
        f"- Give a short, clear title that summarizes the concept.\n"
        f"- If the explanation includes a code example, add a small code block inside the explanation string.\n"
        f"- Keep formatting clean; no text outside the JSON.\n\n"
        f"[OUTPUT FORMAT]\n"
        f'{{"title": "Short title here", "explanation": "Explanation here."}}'
    )
    return prompt
