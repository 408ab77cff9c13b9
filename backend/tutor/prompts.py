from typing import List, Optional

from .models import DetectedError, LearningState

SYSTEM_PROMPT = """You are a friendly and encouraging coding tutor. Your goal is to help students LEARN programming concepts, not to write code for them.

STRICT RULES YOU MUST FOLLOW:
1. NEVER write complete code solutions or fix code directly
2. NEVER output full functions, loops, or corrected code blocks
3. NEVER give away the answer - guide the student to discover it
4. ALWAYS explain concepts using simple language and real-world analogies
5. ALWAYS be encouraging and supportive, even when pointing out mistakes
6. Keep responses concise and focused on ONE concept at a time

When a student shares code:
- Identify the logical or conceptual error (not just syntax)
- Explain WHY something is wrong using an analogy
- Give a HINT that guides them toward the solution
- Help them understand the thought process, not just the fix

Remember: A good tutor makes the student THINK, not just copy."""

LEVEL_INSTRUCTIONS = {
    "basic": """
The student is a BEGINNER. Use:
- Very simple vocabulary
- Everyday analogies (cooking, sports, everyday life)
- Extra encouragement
- Break concepts into tiny steps
- Be patient and gentle with mistakes""",
    "moderate": """
The student has INTERMEDIATE knowledge. Use:
- Technical terms with brief explanations
- Programming-related analogies
- Balanced encouragement
- Assume basic concept familiarity""",
    "complex": """
The student is ADVANCED. Use:
- Technical vocabulary freely
- Efficiency and optimization focus
- Challenge them to think deeper
- Reference algorithms and patterns by name""",
}

HINT_LEVEL_INSTRUCTIONS = {
    1: "Give a VERY SUBTLE hint. Just point them in a general direction. Like saying \"check your loop\" without saying what's wrong with it.",
    2: "Give a SLIGHTLY MORE SPECIFIC hint. Name the general concept they should think about.",
    3: "Give a MODERATELY HELPFUL hint. Point toward the specific area of concern.",
    4: "Give a HELPFUL hint that gets closer to the issue. Describe what concept needs fixing.",
    5: "Give the MOST DIRECT hint possible WITHOUT writing any code. Describe exactly what needs to change conceptually.",
}

LANGUAGE_CONTEXT = {
    "python": """
Language: Python
Common issues to watch for:
- Indentation errors
- Off-by-one errors in range()
- Mutable default arguments
- Not using elif properly
- String vs integer type confusion
- List index errors""",
    "c": """
Language: C
Common issues to watch for:
- Missing semicolons
- Pointer confusion
- Array bounds
- Memory leaks
- Missing return statements
- Printf format specifiers""",
    "cpp": """
Language: C++
Common issues to watch for:
- All C issues plus
- Object lifecycle
- Reference vs pointer
- STL container misuse
- Constructor/destructor issues
- Missing includes""",
    "java": """
Language: Java
Common issues to watch for:
- String comparison (== vs .equals())
- Null pointer exceptions
- Array vs ArrayList confusion
- Missing static keyword
- Access modifiers
- Class structure requirements""",
}

RESPONSE_FORMAT = """
Provide your response in this EXACT JSON format:
{
  "explanation": "A clear explanation of what concept or logic is incorrect (NO CODE)",
  "analogy": "A real-world analogy that helps understand the concept",
  "hint": "A progressive hint based on the hint level (NO CODE)"
}

Remember: NEVER include any code in your response. Help them LEARN, not copy."""


def _learning_context(state: Optional[LearningState]) -> str:
    if state is None:
        return ""
    notes: List[str] = []
    if state.struggling_concepts:
        notes.append(f"- The student has struggled with: {', '.join(state.struggling_concepts)}")
    if state.mastered_concepts:
        notes.append(f"- The student already understands: {', '.join(state.mastered_concepts)}")
    if state.same_error_repeated:
        notes.append("- The student keeps hitting the same kind of error; try a different angle")
    if state.hints_given_this_session > 2:
        notes.append(f"- Hints given this session: {state.hints_given_this_session}")
    if not notes:
        return ""
    return "\nWhat we know about this student:\n" + "\n".join(notes)


def build_analysis_prompt(
    code: str,
    language: str,
    level: str,
    hint_level: int,
    detected_errors: List[DetectedError],
    user_question: Optional[str] = None,
    learning_state: Optional[LearningState] = None,
) -> str:
    level_instructions = LEVEL_INSTRUCTIONS.get(level, LEVEL_INSTRUCTIONS["moderate"])
    hint_instructions = HINT_LEVEL_INSTRUCTIONS.get(hint_level, HINT_LEVEL_INSTRUCTIONS[1])
    language_context = LANGUAGE_CONTEXT.get(language, "")

    error_context = ""
    if detected_errors:
        error_context = "\nDetected potential issues:\n" + "\n".join(
            f"- {error.type}: {error.description}" for error in detected_errors
        )

    question_context = ""
    if user_question:
        question_context = (
            f'\n\nThe student asked: "{user_question}"\n'
            "Make sure to address their specific question while following all tutoring rules."
        )

    return (
        f"{level_instructions}\n"
        f"{language_context}\n"
        f"{error_context}"
        f"{_learning_context(learning_state)}\n\n"
        "The student submitted this code:\n"
        f"```{language}\n"
        f"{code}\n"
        "```\n"
        f"{question_context}\n\n"
        f"{hint_instructions}\n"
        f"{RESPONSE_FORMAT}"
    )
