"""Fallback responder: deterministic replies when no provider can answer.

Pure functions with no I/O or shared state: the same input always yields
the same reply.
"""

from __future__ import annotations

# Iteration order decides substring matches.
FALLBACK_REPLIES: dict[str, str] = {
    "hi": "Hello! How can I help you today?",
    "hello": "Hi there! What would you like to know?",
    "hey": "Hey! I'm here to assist you.",
    "how are you": "I'm doing well, thank you for asking! How can I assist you?",
    "what can you do": (
        "I can help you with questions, provide information, assist with "
        "problem-solving, and have conversations on various topics. "
        "What would you like to explore?"
    ),
    "help": (
        "I'm here to help! You can ask me questions about any topic, request "
        "explanations, get assistance with problems, or just have a friendly "
        "conversation."
    ),
    "thank you": "You're welcome! Is there anything else I can help you with?",
    "thanks": "You're welcome! Feel free to ask me anything else.",
    "bye": "Goodbye! Have a great day!",
    "goodbye": "Take care! Feel free to come back anytime.",
}

CODING_KEYWORDS: tuple[str, ...] = ("code", "programming")

CODING_REPLY = (
    "I can help with coding questions! While I'm currently running in basic "
    "mode, I can still provide guidance on programming concepts, help debug "
    "issues, and explain code. What specific coding topic can I assist you with?"
)

QUESTION_TEMPLATE = (
    "That's an interesting question! While I'm currently operating with "
    "limited AI capabilities, I'm still here to help. Could you provide more "
    'context about "{excerpt}"? I\'ll do my best to assist you.'
)

ACKNOWLEDGEMENT_TEMPLATE = (
    'I understand you\'re asking about "{excerpt}". While I\'m currently '
    "operating with limited AI capabilities, I'm still here to help! Could you "
    "tell me more about what you'd like to know?"
)

EXCERPT_LENGTH = 50


def excerpt(text: str, length: int = EXCERPT_LENGTH) -> str:
    """First ``length`` characters of ``text``, with ``...`` if cut."""
    if len(text) > length:
        return text[:length] + "..."
    return text


def respond(text: str) -> str:
    """Map raw user input to a canned or templated reply."""
    normalized = text.strip().lower()

    exact = FALLBACK_REPLIES.get(normalized)
    if exact is not None:
        return exact

    for phrase, reply in FALLBACK_REPLIES.items():
        if phrase in normalized:
            return reply

    if any(keyword in normalized for keyword in CODING_KEYWORDS):
        return CODING_REPLY

    if "?" in normalized:
        return QUESTION_TEMPLATE.format(excerpt=excerpt(text))

    return ACKNOWLEDGEMENT_TEMPLATE.format(excerpt=excerpt(text))
