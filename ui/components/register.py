"""Face registration component for the face label client."""

import streamlit as st

from utils.api import upload_image
from utils.ui import SUPPORTED_FORMATS

def register_face_ui(api_url: str) -> None:
    """UI for uploading photos of a person under a label.

    Args:
        api_url: Base URL for the API
    """
    st.subheader("Register a Face")

    st.write("""
    Upload one or more photos of a person. Photos with the same label are
    grouped together; letters, digits, spaces, `_` and `-` only.
    """)

    label = st.text_input("Person label")
    files = st.file_uploader(
        "Photo(s)",
        type=SUPPORTED_FORMATS,
        accept_multiple_files=True
    )

    if not st.button("Upload") or not label or not files:
        return

    uploaded = 0
    with st.spinner("Uploading…"):
        for file in files:
            if upload_image(label, file, api_url) is not None:
                uploaded += 1

    if uploaded:
        st.success(f"Uploaded {uploaded} of {len(files)} photos for '{label}'")
        cols = st.columns(min(len(files), 4))
        for i, file in enumerate(files):
            with cols[i % len(cols)]:
                st.image(file, caption=f"{label} - Image {i+1}", use_container_width=True)
