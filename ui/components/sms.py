"""SMS component for the face label client."""

import streamlit as st

from utils.api import send_sms

def send_sms_ui(api_url: str) -> None:
    """UI for sending a text message through the backend."""
    st.subheader("Send SMS")

    to = st.text_input("To (E.164, e.g. +15551234567)")
    message = st.text_area("Message")

    if not st.button("Send") or not to or not message:
        return

    with st.spinner("Sending…"):
        result = send_sms(to, message, api_url)

    if result is not None:
        st.success(result)
