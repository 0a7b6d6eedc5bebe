"""
Streamlit UI for the face label server.
Run by `streamlit run streamlit_app.py`.
"""

import streamlit as st
import sys
import os

# Add this directory to the Python path for component imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from ui_config import API_URL, MATCH_THRESHOLD
from components.register import register_face_ui
from components.recognize import recognize_face_ui
from components.sms import send_sms_ui

st.set_page_config(
    page_title="Face Labels",
    layout="wide",
    initial_sidebar_state="expanded"
)

def main():
    """Main application entry point."""
    st.title("Face Labels – Register & Recognize")

    task = st.sidebar.radio(
        "Select task",
        ("Register a face", "Recognize a face", "Send SMS"),
        key="task_selection"
    )

    st.sidebar.write("---")
    st.sidebar.info(
        "Register photos under a label, then recognize faces against the "
        "labeled descriptors served by the backend."
    )
    st.sidebar.caption(f"Backend: {API_URL}")

    if task == "Register a face":
        register_face_ui(API_URL)
    elif task == "Recognize a face":
        recognize_face_ui(API_URL, MATCH_THRESHOLD)
    elif task == "Send SMS":
        send_sms_ui(API_URL)

if __name__ == "__main__":
    main()
