"""Hypothesis strategies for property-based testing."""

from hypothesis import strategies as st

ID_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789-"


@st.composite
def generate_segment_dict(draw):
    """Generate a raw generator-output element with string text/imagePrompt."""
    return {
        "text": draw(st.text(max_size=80)),
        "imagePrompt": draw(st.text(max_size=80)),
    }


@st.composite
def generate_segment_list(draw, min_size=0, max_size=15):
    return draw(st.lists(generate_segment_dict(), min_size=min_size, max_size=max_size))


@st.composite
def generate_message_plan(draw):
    """A batch plan: (message_id, story_id, should_fail) triples with unique ids."""
    n = draw(st.integers(min_value=0, max_value=8))
    plan = []
    for i in range(n):
        plan.append((f"m{i}", f"s{i}", draw(st.booleans())))
    return plan
