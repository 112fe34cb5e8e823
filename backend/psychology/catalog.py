"""
Static catalog for the psychology engine: metric dimensions, the seven
cognitive archetypes and the twelve puzzles.

Archetype centroids are points in the five-dimension metric space, in
DIMENSIONS order. Each puzzle trains exactly one dimension.
"""

DIMENSIONS = ("decisiveness", "exploration", "persistence", "reflection", "impulsivity")

# Dimensions where a high value is the thing to work on.
INVERTED_DIMENSIONS = {"impulsivity"}

BEHAVIOURAL_EVENTS = ("move", "choice", "backtrack", "hint_request", "pause", "reveal")

ARCHETYPES: dict[str, dict] = {
    "architect": {
        "centroid": (0.8, 0.4, 0.8, 0.7, 0.1),
        "summary": "builds a plan before the first move and follows it through",
    },
    "explorer": {
        "centroid": (0.5, 0.9, 0.6, 0.3, 0.4),
        "summary": "maps the whole space before committing to a path",
    },
    "strategist": {
        "centroid": (0.9, 0.5, 0.7, 0.5, 0.2),
        "summary": "commits early to well-reasoned choices and rarely backtracks",
    },
    "intuitive": {
        "centroid": (0.8, 0.5, 0.5, 0.1, 0.7),
        "summary": "trusts fast pattern recognition over deliberate analysis",
    },
    "perfectionist": {
        "centroid": (0.3, 0.4, 0.9, 0.8, 0.1),
        "summary": "revisits decisions until every piece fits",
    },
    "reflector": {
        "centroid": (0.5, 0.3, 0.6, 0.9, 0.0),
        "summary": "pauses to weigh each option before acting",
    },
    "improviser": {
        "centroid": (0.4, 0.7, 0.3, 0.2, 0.8),
        "summary": "adapts on the fly and learns by trying",
    },
}

PUZZLES: dict[str, dict] = {
    "ego_labyrinth": {"dimension": "exploration", "title": "The Ego Labyrinth"},
    "pattern_storm": {"dimension": "exploration", "title": "Pattern Storm"},
    "empathy_lens": {"dimension": "exploration", "title": "Empathy Lens"},
    "decision_fork": {"dimension": "decisiveness", "title": "Decision Fork"},
    "bias_mirror": {"dimension": "decisiveness", "title": "Bias Mirror"},
    "logic_cascade": {"dimension": "persistence", "title": "Logic Cascade"},
    "memory_palace": {"dimension": "persistence", "title": "Memory Palace"},
    "perspective_shift": {"dimension": "reflection", "title": "Perspective Shift"},
    "moral_maze": {"dimension": "reflection", "title": "Moral Maze"},
    "impulse_gate": {"dimension": "impulsivity", "title": "Impulse Gate"},
    "time_perception": {"dimension": "impulsivity", "title": "Time Perception"},
    "attention_split": {"dimension": "impulsivity", "title": "Attention Split"},
}

DEFAULT_PUZZLE = "ego_labyrinth"

# Number of cognitive biases the puzzle set is designed to surface.
BIASES_DETECTED = 24


def puzzles_for(dimension: str) -> list[str]:
    return [name for name, puzzle in PUZZLES.items() if puzzle["dimension"] == dimension]
