"""Canned level descriptions and study recommendations."""

from adaptive_duo.models.placement import PlacementResult
from adaptive_duo.models.profile import CEFRLevel

# Short phrase used inside placement reasoning text
LEVEL_SUMMARIES: dict[CEFRLevel, str] = {
    CEFRLevel.A1: "basic user with elementary understanding",
    CEFRLevel.A2: "basic user with pre-intermediate skills",
    CEFRLevel.B1: "independent user at intermediate level",
    CEFRLevel.B2: "independent user at upper-intermediate level",
    CEFRLevel.C1: "proficient user with advanced capabilities",
    CEFRLevel.C2: "proficient user with mastery-level competence",
}

LEVEL_DESCRIPTIONS: dict[CEFRLevel, str] = {
    CEFRLevel.A1: (
        "Beginner - Can understand and use familiar everyday expressions "
        "and very basic phrases."
    ),
    CEFRLevel.A2: (
        "Elementary - Can communicate in simple and routine tasks requiring "
        "a simple and direct exchange of information."
    ),
    CEFRLevel.B1: (
        "Intermediate - Can deal with most situations likely to arise while "
        "traveling in an area where the language is spoken."
    ),
    CEFRLevel.B2: (
        "Upper-Intermediate - Can interact with a degree of fluency and "
        "spontaneity with native speakers."
    ),
    CEFRLevel.C1: (
        "Advanced - Can express ideas fluently and spontaneously, use language "
        "flexibly for social, academic, and professional purposes."
    ),
    CEFRLevel.C2: (
        "Proficiency - Can understand virtually everything heard or read, "
        "express themselves very fluently and precisely."
    ),
}

RECOMMENDATIONS: dict[CEFRLevel, list[str]] = {
    CEFRLevel.A1: [
        "Start with basic grammar: present simple, common verbs",
        "Learn essential vocabulary (100-200 words)",
        "Practice simple conversations and greetings",
        "Focus on pronunciation of common words",
    ],
    CEFRLevel.A2: [
        "Expand vocabulary to everyday topics",
        "Master past simple and future forms",
        "Practice reading short texts",
        "Work on basic writing skills",
    ],
    CEFRLevel.B1: [
        "Study intermediate grammar: present perfect, conditionals",
        "Learn phrasal verbs and connectors",
        "Practice expressing opinions",
        "Work on listening comprehension",
    ],
    CEFRLevel.B2: [
        "Master complex grammar: passive voice, reported speech",
        "Expand vocabulary with idioms and collocations",
        "Practice formal and informal writing",
        "Focus on fluency in speaking",
    ],
    CEFRLevel.C1: [
        "Study advanced structures: inversions, cleft sentences",
        "Master nuanced vocabulary and register",
        "Practice academic writing and presentations",
        "Work on understanding native-level content",
    ],
    CEFRLevel.C2: [
        "Refine subtle language distinctions",
        "Master stylistic variations and genre-specific language",
        "Perfect academic and professional communication",
        "Focus on near-native fluency",
    ],
}


def get_level_description(level: CEFRLevel) -> str:
    return LEVEL_DESCRIPTIONS[level]


def get_recommendations(result: PlacementResult | CEFRLevel) -> list[str]:
    """Study tips for a placement result or a bare level."""
    level = result.determined_level if isinstance(result, PlacementResult) else result
    return list(RECOMMENDATIONS.get(level, RECOMMENDATIONS[CEFRLevel.B1]))
