"""Face recognition component for the face label client.

The backend only extracts descriptors; matching against the labeled
descriptors happens here.
"""

import streamlit as st
from PIL import Image

from utils.api import describe_face, get_labeled_faces
from utils.image import draw_bbox_with_label
from utils.matching import FaceMatcher, UNKNOWN
from utils.ui import display_json, SUPPORTED_FORMATS

def recognize_face_ui(api_url: str, threshold: float) -> None:
    """UI for recognizing a face from the camera or an uploaded photo.

    Args:
        api_url: Base URL for the API
        threshold: Default Euclidean distance threshold for a match
    """
    st.subheader("Recognize a Face")

    if st.button("🔄 Reload labeled faces") or "labeled_faces" not in st.session_state:
        with st.spinner("Loading labeled faces…"):
            st.session_state.labeled_faces = get_labeled_faces(api_url) or []

    labeled_faces = st.session_state.labeled_faces
    st.write(f"**{len(labeled_faces)}** labels enrolled.")
    if not labeled_faces:
        st.warning("No labeled faces yet. Use 'Register a face' first.")
        return

    threshold = st.slider("Match distance threshold", 0.1, 1.5, threshold, 0.05,
                          help="Lower = stricter matching")

    snapshot = st.camera_input("Take a photo")
    uploaded = st.file_uploader("…or upload one", type=SUPPORTED_FORMATS)
    photo = snapshot or uploaded
    if not photo:
        return

    with st.spinner("Extracting descriptor…"):
        faces = describe_face(photo, api_url)

    if faces is None:
        return
    if not faces:
        st.info("No face detected.")
        return

    matcher = FaceMatcher(labeled_faces, threshold=threshold)
    face = faces[0]
    match = matcher.best_match(face["descriptor"])
    status = "unknown" if match.label == UNKNOWN else "match"

    image = draw_bbox_with_label(Image.open(photo), face["bounding_box"],
                                 f"{match.label} ({match.distance:.2f})", status)
    st.image(image, use_container_width=True)

    if status == "match":
        st.success(f"Recognized **{match.label}** (distance {match.distance:.2f})")
    else:
        st.warning(f"Unknown face (closest distance {match.distance:.2f})")

    with st.expander("Face details"):
        display_json({k: v for k, v in face.items() if k != "descriptor"})
