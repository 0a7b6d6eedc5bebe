"""API utilities for the face label client."""

import requests
import streamlit as st
from typing import Dict, List, Optional, Any


def _report_error(e: requests.exceptions.RequestException) -> None:
    st.error(f"API Error: {str(e)}")
    if getattr(e, "response", None) is not None:
        st.error(f"Response Status: {e.response.status_code}")
        st.error(f"Response Text: {e.response.text}")


def _as_upload(file) -> tuple:
    """Turn a Streamlit UploadedFile (or camera snapshot) into a requests file tuple."""
    return (file.name, file.getvalue(), file.type or "image/jpeg")


def upload_image(label: str, file, api_url: str) -> Optional[str]:
    """Upload one photo under ``label``.

    Returns:
        Server response text or None on error
    """
    try:
        response = requests.post(
            f"{api_url}/upload",
            params={"label": label},
            files={"image": _as_upload(file)},
        )
        response.raise_for_status()
        return response.text
    except requests.exceptions.RequestException as e:
        _report_error(e)
        return None


def describe_face(photo, api_url: str) -> Optional[List[Dict[str, Any]]]:
    """Ask the backend for the descriptor of the face in ``photo`` (0 or 1 faces)."""
    try:
        response = requests.post(f"{api_url}/describe", files={"image": _as_upload(photo)})
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        _report_error(e)
        return None


def get_labeled_faces(api_url: str) -> Optional[List[Dict[str, Any]]]:
    """Fetch the labeled descriptors, making sure the backend has built them first."""
    try:
        # The recognition page triggers the lazy registry build
        requests.get(f"{api_url}/real-time-face-recognition").raise_for_status()
        response = requests.get(f"{api_url}/get-labeled-faces")
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        _report_error(e)
        return None


def send_sms(to: str, message: str, api_url: str) -> Optional[str]:
    """Send a text message through the backend."""
    try:
        response = requests.post(f"{api_url}/send-sms", json={"to": to, "message": message})
        response.raise_for_status()
        return response.text
    except requests.exceptions.RequestException as e:
        _report_error(e)
        return None
