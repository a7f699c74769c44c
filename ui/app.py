import os
import httpx
import streamlit as st

API_BASE = os.getenv("API_BASE_URL", "http://localhost:5000").rstrip("/")

st.set_page_config(page_title="Notes-to-Quiz", layout="wide")
st.title("📝 Notes-to-Quiz")
st.caption("Upload a PDF → get a quiz and flashcards")

left, right = st.columns([1, 2], gap="large")

with left:
    st.subheader("Service Status")
    if st.button("🔄 Refresh health"):
        st.session_state.pop("health", None)

    if "health" not in st.session_state:
        try:
            with httpx.Client(timeout=5.0) as c:
                r = c.get(f"{API_BASE}/health")
                st.session_state.health = (r.status_code, r.json())
        except Exception as e:
            st.session_state.health = (None, {"error": str(e)})

    code, data = st.session_state.health
    if code == 200 and data.get("api_key_configured"):
        st.success(f"Healthy ✅ ({data.get('model')})")
    elif code == 200:
        st.warning("API up, but no OpenRouter key configured ⚠️")
    elif code is None:
        st.error("UI can't reach API ❌")
    else:
        st.warning(f"Degraded (HTTP {code}) ⚠️")

    st.write("API Base:", API_BASE)

    st.divider()
    st.subheader("Generate")

    uploaded = st.file_uploader("PDF", type=["pdf"])
    quiz_type = st.radio("Quiz type", ["mcq", "descriptive"], horizontal=True)
    num_questions = st.number_input("Number of questions", min_value=1, max_value=50, value=10)

    if uploaded is not None and st.button("✨ Generate"):
        files = {"file": (uploaded.name, uploaded.getvalue(), uploaded.type or "application/pdf")}
        form = {"quizType": quiz_type, "numQuestions": str(int(num_questions))}
        try:
            with st.spinner("Asking the model..."):
                with httpx.Client(timeout=180.0) as c:
                    r = c.post(f"{API_BASE}/upload", files=files, data=form)
            if r.status_code >= 400:
                st.error(f"Generation failed (HTTP {r.status_code})")
                st.code(r.text)
            else:
                st.session_state.result = r.json()
                st.session_state.result_type = quiz_type
        except Exception as e:
            st.error(str(e))

with right:
    result = st.session_state.get("result")
    if not result:
        st.info("Results show up here.")
    else:
        quiz_tab, cards_tab, raw_tab = st.tabs(["Quiz", "Flashcards", "JSON"])

        with quiz_tab:
            for i, item in enumerate(result.get("quiz", []), start=1):
                st.markdown(f"**{i}. {item.get('question', '')}**")
                options = item.get("options")
                if options:
                    for opt in options:
                        st.write(f"- {opt}")
                with st.expander("Answer"):
                    st.write(item.get("answer", ""))

        with cards_tab:
            for card in result.get("flashcards", []):
                with st.expander(card.get("front", "")):
                    st.write(card.get("back", ""))

        with raw_tab:
            st.json(result)
