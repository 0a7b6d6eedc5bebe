"""UI utilities for the face label client."""

import json
import streamlit as st
from typing import Any

# Constants
SUPPORTED_FORMATS = ["jpg", "jpeg", "png", "webp"]

def display_json(data: Any) -> None:
    """Display formatted JSON data."""
    if data:
        st.code(json.dumps(data, indent=2), language="json")
