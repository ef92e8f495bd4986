"""
Hypothesis Strategies for Property-Based Testing

Custom strategies for generating domain objects and test data.
Used by property-based tests to verify universal properties.
"""

import string

from hypothesis import strategies as st

from shareable.domain.items import DEFAULT_ALPHABET, ItemProps

# 2000-01-01 .. 2100-01-01
MIN_TIMESTAMP = 946684800
MAX_TIMESTAMP = 4102444800


# =============================================================================
# Primitive Strategies
# =============================================================================

def timestamps():
    """Generate Unix timestamps in a realistic range."""
    return st.integers(min_value=MIN_TIMESTAMP, max_value=MAX_TIMESTAMP)


def encoded_strings():
    """Generate canonical encoder output (no leading zero character)."""
    return st.text(alphabet=DEFAULT_ALPHABET, min_size=1, max_size=12).filter(
        lambda s: s == DEFAULT_ALPHABET[0] or not s.startswith(DEFAULT_ALPHABET[0])
    )


def valid_item_ids():
    """Generate valid custom item IDs."""
    return st.text(alphabet=string.ascii_letters + string.digits + ".-=", min_size=1, max_size=20)


def invalid_item_ids():
    """Generate IDs containing at least one forbidden character."""
    return st.builds(
        lambda prefix, bad, suffix: prefix + bad + suffix,
        valid_item_ids() | st.just(""),
        st.sampled_from(["/", " ", "_", "?", "#", "%", "ä", "\\"]),
        valid_item_ids() | st.just(""),
    )


# =============================================================================
# Domain Object Strategies
# =============================================================================

@st.composite
def item_props(draw) -> ItemProps:
    """Generate consistent item properties."""
    created = draw(timestamps())
    expires = draw(st.none() | st.integers(min_value=created, max_value=MAX_TIMESTAMP))
    timeout = draw(st.none() | st.integers(min_value=0, max_value=90 * 86400))
    activity = None
    if timeout is not None:
        activity = draw(st.none() | st.integers(min_value=created, max_value=MAX_TIMESTAMP))

    return ItemProps(
        filename="file.txt",
        created=created,
        expires=expires,
        timeout=timeout,
        activity=activity,
        downloads=draw(st.integers(min_value=0, max_value=10**6)),
        user="admin",
    )
