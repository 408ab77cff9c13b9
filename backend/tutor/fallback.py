"""Canned tutoring text used when no LLM answer is available.

Everything is table driven: explanations by (error type, level), analogies
and five-step hint progressions by error type, keyword routes for free-text
questions. Hint progressions are indexed by ``hint_level - 1`` and clamp at
both ends, so any integer hint level is safe.
"""
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .models import AnalysisRequest, DetectedError, LearningState

EXPLANATIONS = {
    "syntax": {
        "basic": "There's a small grammar mistake in your code. Just like English has rules about periods and commas, programming languages have rules about certain symbols.",
        "moderate": "There's a syntax error in your code. The computer needs certain symbols to understand where statements begin and end.",
        "complex": "Syntax error detected. The parser expects specific tokens at certain positions in your code.",
    },
    "logic": {
        "basic": "The code will run, but it might not do what you expect! It's like following a recipe but mixing up 'teaspoon' and 'tablespoon'.",
        "moderate": "There's a logical issue here. The code executes, but the behavior may not match your intent.",
        "complex": "Logic error identified. The semantics of your code differ from the likely intended behavior.",
    },
    "typo": {
        "basic": "Oops! Looks like there might be a spelling mistake. Computers are very picky about exact spelling!",
        "moderate": "There appears to be a typo. Programming languages require exact keyword spelling.",
        "complex": "Potential identifier typo detected. Verify your keyword and function name spellings.",
    },
    "structure": {
        "basic": "Your code is missing some important building blocks. Think of it like a house - you need a foundation before you can add the rooms!",
        "moderate": "The code structure is incomplete. Most programs need certain required elements to work.",
        "complex": "Structural element missing. Ensure your code has the required program entry point and declarations.",
    },
    "style": {
        "basic": "Your code will work, but it could be cleaner! Good style makes code easier to read and find mistakes.",
        "moderate": "Style issue detected. While not breaking functionality, clean code prevents future bugs.",
        "complex": "Code style inconsistency. Maintaining consistent formatting aids maintainability.",
    },
}

ANALOGIES = {
    "syntax": "It's like forgetting a period at the end of a sentence. The reader (computer) gets confused about where one thought ends and another begins.",
    "logic": "Imagine giving someone directions to your house, but accidentally telling them to turn left when you meant right. They'll follow your directions perfectly... to the wrong place!",
    "typo": "Like writing 'recieve' instead of 'receive' - you know what you meant, but spell-check doesn't!",
    "structure": "Think of building with LEGO - you need the base plate before you can stack blocks on top.",
    "style": "Like having a messy room - you can still find things, but it's much harder than if everything was organized.",
}

HINT_PROGRESSIONS = {
    "syntax": [
        "Look carefully at the end of your lines...",
        "Some statements need specific punctuation to end properly.",
        "Check if you're missing any required symbols after your statements.",
        "In this language, certain keywords require specific characters afterward.",
        "Look for missing semicolons, colons, or brackets at the end of statements.",
    ],
    "logic": [
        "Think about what your code actually does vs. what you want it to do.",
        "Walk through your code line by line - what value does each variable have?",
        "Consider: is there a difference between assigning a value and comparing values?",
        "Check your operators carefully - are you using the right one for the job?",
        "You might be using a single equals when you need a double equals, or vice versa.",
    ],
    "typo": [
        "Read your code out loud - does everything sound right?",
        "Check your spelling of function and variable names.",
        "Compare your keywords with the official documentation spelling.",
        "Look for common letter swaps in your keywords.",
        "There's a misspelling - check words that look similar to common keywords.",
    ],
    "structure": [
        "Think about what pieces every program in this language needs.",
        "Most programs need a starting point - where does yours begin?",
        "Check if your code has all the required components for this language.",
        "In this language, there's a specific function that runs first.",
        "You may be missing the main function or class structure.",
    ],
}

GENERIC_HINTS = [
    "Start by reading your code from the top. Does each line make sense?",
    "Think about the inputs and outputs. What goes in? What should come out?",
    "Consider edge cases. What happens with empty input? Very large numbers?",
    "Trace through your code with a specific example. Does it produce the right result?",
    "Break the problem into smaller steps. Which step isn't working correctly?",
]

QUESTION_HINTS = [
    "Here's something to think about - read your code from the top. Does each line make sense in the context of what you're trying to do?",
    "Think about the inputs and outputs. What goes in? What should come out? Are you handling that correctly?",
    "Consider the edge cases. What happens with empty input? Very large numbers? Unexpected values?",
    "Try tracing through your code with a specific example. Does it actually produce what you expect?",
    "Break the problem into smaller steps. Which step isn't quite working the way you want?",
]

NEXT_CONCEPTS = {
    "syntax": "language-syntax-rules",
    "logic": "debugging-techniques",
    "typo": "code-reading-skills",
    "structure": "program-organization",
}

SYNTAX_GUIDANCE = {
    "general": "Review statement boundaries and required symbols for this language.",
    "syntax": "Check required punctuation and block delimiters for this construct.",
    "logic": "Syntax may be correct, but verify operators and conditions match intent.",
    "typo": "Keywords and identifiers must be spelled exactly.",
    "structure": "Confirm required program structure for this language.",
}

LANGUAGE_SYNTAX_GUIDANCE = {
    "python": {
        "syntax": "Python blocks require consistent indentation and a colon after statements.",
        "structure": "Functions and classes must be indented consistently under their headers.",
    },
    "c": {
        "syntax": "C statements typically end with semicolons; blocks use braces.",
        "structure": "C programs require a main entry point.",
    },
    "cpp": {
        "syntax": "C++ statements typically end with semicolons; blocks use braces.",
        "structure": "C++ programs require a main entry point.",
    },
    "java": {
        "syntax": "Java statements typically end with semicolons; blocks use braces.",
        "structure": "Java code must be inside a class; entry point is a main method.",
    },
}

NEXT_STEPS = {
    "general": [
        "Trace the flow with a small example and describe each step in words.",
        "Write down what the code should do at each step, then compare it to what it does.",
        "Identify the first point where actual behavior diverges from expected behavior.",
    ],
    "syntax": [
        "Find the exact line where the parser would stop and confirm the required token.",
        "Check the line end and block delimiters around the error area.",
        "Verify the statement format against the language's standard pattern.",
    ],
    "logic": [
        "Pick a sample input and simulate each step, noting variable values.",
        "Compare your intended condition with the operator you used.",
        "List the expected output for a simple case and verify the path matches.",
    ],
    "typo": [
        "Compare each keyword with the official spelling in the docs.",
        "Scan for near-miss spellings of functions or variables.",
        "Search for repeated identifiers and confirm they match exactly.",
    ],
    "structure": [
        "List the required structural elements and check which one is missing.",
        "Confirm the entry point signature for this language.",
        "Ensure the code is wrapped in the required container (function/class).",
    ],
}

GREETING_REPLY = (
    "Hey! 👋 I'm your coding mentor. What are you working on today?\n\n"
    "• Paste code and I'll explain it\n"
    "• Ask for help with a problem\n"
    "• Request hints when stuck\n\n"
    "What would you like to learn?"
)

_GREETING = re.compile(r"^(hi|hello|hey)!?$", re.IGNORECASE)


def pick(progression: Sequence[str], hint_level: int) -> str:
    index = max(0, min(hint_level - 1, len(progression) - 1))
    return progression[index]


def get_hint_for_error(error: DetectedError, hint_level: int) -> str:
    return pick(HINT_PROGRESSIONS.get(error.type, HINT_PROGRESSIONS["logic"]), hint_level)


def get_generic_hint(hint_level: int) -> str:
    return pick(GENERIC_HINTS, hint_level)


def get_explanation_for_error(error: DetectedError, level: str) -> str:
    by_level = EXPLANATIONS.get(error.type, EXPLANATIONS["logic"])
    return by_level.get(level, EXPLANATIONS["logic"]["moderate"])


def get_analogy_for_error(error: DetectedError) -> str:
    return ANALOGIES.get(error.type, ANALOGIES["logic"])


def get_next_concept(error_type: str) -> str:
    return NEXT_CONCEPTS.get(error_type, "fundamentals")


def get_syntax_guidance(error_type: str, language: str) -> str:
    specific = LANGUAGE_SYNTAX_GUIDANCE.get(language.lower(), {})
    return specific.get(error_type) or SYNTAX_GUIDANCE.get(error_type) or SYNTAX_GUIDANCE["general"]


def get_next_step(error_type: str, level: str) -> str:
    candidates = NEXT_STEPS.get(error_type, NEXT_STEPS["general"])
    return candidates[min(1 if level == "complex" else 0, len(candidates) - 1)]


def is_greeting(question: Optional[str]) -> bool:
    return bool(question) and bool(_GREETING.match(question.strip()))


def build_greeting_response() -> Dict[str, Any]:
    return {
        "mode": "general",
        "reply": GREETING_REPLY,
        "explanation": "",
        "analogy": "",
        "hint": "",
        "syntax": "",
        "nextStep": "",
    }


# Question routes ---------------------------------------------------------


def _reply_analyze(hint_level: int, state: LearningState) -> str:
    reply = "Alright, let me take a look at what's happening here. I'll walk you through this step by step."
    if state.previous_explanations:
        reply += " Building on what we discussed before..."
    reply += (
        " Start by reading through your code line by line - what does each line actually do?"
        " Does it match up with what you're trying to accomplish?"
    )
    return reply


def _reply_explain(hint_level: int, state: LearningState) -> str:
    reply = (
        "Sure, let's break this down together. Instead of just telling you what it does, "
        "let me guide you through understanding it."
    )
    if state.mastered_concepts:
        reply += f" You already understand {state.mastered_concepts[0]}, so let's build on that."
    reply += " Try tracing through the code mentally - what happens first? Then what? What are the values at each step?"
    return reply


def _reply_hint(hint_level: int, state: LearningState) -> str:
    hint = pick(QUESTION_HINTS, hint_level)
    if state.same_error_repeated:
        hint = (
            "Let's try a different approach. "
            + hint
            + " Sometimes stepping back and thinking about the problem differently helps."
        )
    return hint


def _reply_logic(hint_level: int, state: LearningState) -> str:
    return (
        "Let's think about the logic together. What are you actually trying to accomplish? "
        "Now look at your code - does each step make sense towards that goal? Sometimes it helps "
        "to write out in plain English what you want to happen, then compare that to what your code actually does."
    )


def _reply_default(hint_level: int, state: LearningState) -> str:
    reply = (
        "Great question! Let me help you think through this. "
        "The key to really learning this is working through it yourself."
    )
    if state.hints_given_this_session > 2:
        reply += (
            " I notice you've asked for a few hints already - that's totally fine!"
            " Let's approach this from a different angle."
        )
    reply += " What's your initial thought about what's happening here? Let's talk through it together."
    return reply


QUESTION_ROUTES: List[Tuple[Tuple[str, ...], Callable[[int, LearningState], str]]] = [
    (("analyze", "issue", "wrong"), _reply_analyze),
    (("explain", "what", "does"), _reply_explain),
    (("hint",), _reply_hint),
    (("logic",), _reply_logic),
]


def generate_question_response(question: str, hint_level: int, state: Optional[LearningState] = None) -> Dict[str, str]:
    state = state or LearningState()
    lowered = question.lower()
    for keywords, reply in QUESTION_ROUTES:
        if any(keyword in lowered for keyword in keywords):
            return {"reply": reply(hint_level, state)}
    return {"reply": _reply_default(hint_level, state)}


def build_fallback(
    request: AnalysisRequest,
    detected_errors: List[DetectedError],
    learning_state: Optional[LearningState] = None,
) -> Dict[str, Any]:
    state = learning_state or request.learning_state or LearningState()
    language = request.language
    level = request.level

    if request.user_question:
        response = generate_question_response(request.user_question, request.hint_level, state)
        response.update(
            {
                "syntax": get_syntax_guidance("general", language),
                "nextStep": get_next_step("general", level),
                "conceptsTaught": ["general-guidance"],
                "suggestedNextConcept": "problem-decomposition",
            }
        )
        return response

    if not detected_errors:
        explanation = "Your code looks structurally sound! Let's think about the logic together."
        if state.struggling_concepts:
            explanation += (
                f" Since you've been working on {state.struggling_concepts[0]},"
                " let's make sure that part is working correctly."
            )
        else:
            explanation += " Consider: What should happen at each step? Are you handling all edge cases?"
        return {
            "explanation": explanation,
            "analogy": "Like proofreading a letter - the spelling might be correct, but does the message make sense?",
            "hint": get_generic_hint(request.hint_level),
            "syntax": get_syntax_guidance("general", language),
            "nextStep": get_next_step("general", level),
            "conceptsTaught": ["code-review", "logic-analysis"],
            "suggestedNextConcept": "edge-cases",
        }

    # Detection order decides priority; there is no severity ranking.
    main_error = detected_errors[0]
    return {
        "explanation": get_explanation_for_error(main_error, level),
        "analogy": get_analogy_for_error(main_error),
        "hint": get_hint_for_error(main_error, request.hint_level),
        "syntax": get_syntax_guidance(main_error.type, language),
        "nextStep": get_next_step(main_error.type, level),
        "conceptsTaught": [main_error.type],
        "suggestedNextConcept": get_next_concept(main_error.type),
    }
