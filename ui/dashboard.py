# ui/dashboard.py
import os
import re

import pandas as pd
import requests
import streamlit as st

# -------------------- CONFIG --------------------
API_URL = os.getenv("API_URL", "http://localhost:8000")
st.set_page_config(page_title="Resume Tailor", page_icon="📄", layout="wide")
st.title("📄 AI Resume Tailor")

st.markdown(
    "Upload your resume, save the jobs you are targeting, and generate a tailored version "
    "with a match score and concrete suggested changes."
)

# -------------------- SESSION STATE --------------------
if "api_url" not in st.session_state:
    st.session_state.api_url = API_URL

if "access_token" not in st.session_state:
    st.session_state.access_token = ""

# Persist the last tailoring result so it survives reruns
if "last_tailored" not in st.session_state:
    st.session_state.last_tailored = None


def _request(method: str, path: str, **kwargs) -> requests.Response:
    headers = kwargs.pop("headers", {})
    if st.session_state.access_token:
        headers["Authorization"] = f"Bearer {st.session_state.access_token}"
    try:
        return requests.request(
            method, f"{st.session_state.api_url}{path}", headers=headers,
            timeout=kwargs.pop("timeout", 60), **kwargs,
        )
    except requests.exceptions.RequestException as e:
        st.error(f"❌ Connection error: {e}")
        st.stop()


def api(method: str, path: str, **kwargs):
    """Call the API with the current session token; returns (status, body or text)."""
    r = _request(method, path, **kwargs)
    try:
        body = r.json()
    except ValueError:
        body = r.text
    return r.status_code, body


def error_detail(body) -> str:
    return body.get("detail", str(body)) if isinstance(body, dict) else str(body)


def fetch_list(path: str) -> list:
    """GET a collection; shows the error and returns [] on anything but a list."""
    status, body = api("GET", path)
    if status != 200 or not isinstance(body, list):
        st.error(f"❌ Could not load {path}: {error_detail(body)}")
        return []
    return body


def fetch_download(path: str):
    """Fetch a server-side attachment; returns (bytes, filename) or (None, None)."""
    r = _request("GET", path)
    if r.status_code != 200:
        st.error(f"❌ Download failed: {r.text}")
        return None, None
    m = re.search(r'filename="([^"]+)"', r.headers.get("content-disposition", ""))
    return r.content, (m.group(1) if m else "download")


def download_button(label: str, path: str, key: str):
    # fetched on click so the list renders without one request per row
    if st.button(label, key=f"prep_{key}"):
        data, file_name = fetch_download(path)
        if data is not None:
            st.download_button("💾 Save file", data=data, file_name=file_name, key=f"save_{key}")


# -------------------- SIDEBAR: SIGN IN --------------------
with st.sidebar:
    st.header("🔐 Account")
    st.session_state.api_url = st.text_input("API URL", value=st.session_state.api_url)

    with st.form("magic_link_form"):
        email = st.text_input("Email")
        if st.form_submit_button("Send magic link") and email:
            status, body = api("POST", "/auth/magic-link", json={"email": email})
            if status == 200:
                st.success("✅ Check your inbox for the sign-in link.")
            else:
                st.error(error_detail(body))

    st.session_state.access_token = st.text_input(
        "Access token", value=st.session_state.access_token, type="password"
    )

    signed_in = False
    if st.session_state.access_token:
        status, me = api("GET", "/me")
        if status == 200:
            signed_in = True
            st.caption(f"Signed in as {me.get('email') or me['id']}")
            if st.button("Sign out"):
                api("POST", "/auth/sign-out")
                st.session_state.access_token = ""
                st.rerun()
        else:
            st.warning(f"Token rejected ({error_detail(me)}). Request a new magic link.")

if not signed_in:
    st.info("Sign in from the sidebar to get started.")
    st.stop()

# -------------------- TABS --------------------
tab0, tab1, tab2, tab3, tab4 = st.tabs(
    ["📊 Overview", "📤 Resumes", "🧾 Job Descriptions", "✨ Tailor", "🕘 History"]
)

# ==================== TAB 0: Overview ====================
with tab0:
    status, stats = api("GET", "/dashboard/stats")
    if status == 200:
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Resumes", stats["totalResumes"])
        c2.metric("Job Descriptions", stats["totalJobs"])
        c3.metric("Tailored Resumes", stats["tailoredResumes"])
        c4.metric("Avg. Match Score", f"{stats['avgMatchScore']}%")
        st.caption(f"{stats['thisWeek']} documents created this week")
    else:
        st.error(error_detail(stats))

    left, right = st.columns(2)
    with left:
        st.markdown("### 📄 Recent Resumes")
        recent = fetch_list("/resumes/history")[:3]
        if not recent:
            st.caption("No resumes yet.")
        for r in recent:
            st.markdown(f"**{r['title']}** · {r['status']} · {(r.get('createdAt') or '')[:10]}")
    with right:
        st.markdown("### 🧾 Recent Jobs")
        recent = fetch_list("/jobs")[:3]
        if not recent:
            st.caption("No job descriptions yet.")
        for j in recent:
            st.markdown(f"**{j['title']}** @ {j['company']} · {j['location']}")

# ==================== TAB 1: Resumes ====================
with tab1:
    st.subheader("Upload Resume")

    with st.form("upload_form", clear_on_submit=False):
        resume_file = st.file_uploader("Upload Resume (PDF, DOCX, or TXT)", type=["pdf", "docx", "txt"])
        pasted = st.text_area("...or paste your resume text", height=200)
        submitted = st.form_submit_button("Upload Resume")

    if submitted:
        if not resume_file and not pasted.strip():
            st.warning("Please upload a file or paste your resume first.")
        else:
            files = {"file": (resume_file.name, resume_file, resume_file.type)} if resume_file else None
            with st.spinner("⏳ Uploading and extracting text..."):
                status, body = api("POST", "/upload", files=files, data={"text": pasted}, timeout=90)
            if status == 200:
                resume = body["data"]
                st.success(f"✅ Saved “{resume['title']}”")
                contact = resume.get("contact") or {}
                st.markdown(f"**👤 Name:** {contact.get('name') or '—'}")
                st.markdown(f"**📧 Email:** {contact.get('email') or '—'}")
                st.markdown(f"**📱 Phone:** {contact.get('phone') or '—'}")
                st.markdown(f"**🧠 Skills:** {', '.join(resume.get('skills', [])) or '—'}")
                with st.expander("📜 Extracted text"):
                    st.text(resume.get("content", ""))
            else:
                st.error(f"❌ Upload failed: {error_detail(body)}")

    st.markdown("### 📁 Saved Resumes")
    resumes = fetch_list("/resumes/history")
    if not resumes:
        st.caption("No resumes yet.")
    for r in resumes:
        with st.expander(f"{r['title']} ({r['fileType']}, v{r['version']})"):
            with st.form(f"edit_resume_{r['id']}"):
                new_title = st.text_input("Title", value=r["title"] or "")
                new_content = st.text_area("Content", value=r["content"] or "", height=250)
                if st.form_submit_button("💾 Save changes"):
                    status, body = api(
                        "PUT", f"/resumes/{r['id']}",
                        json={"title": new_title.strip(), "content": new_content},
                    )
                    if status == 200:
                        st.success("✅ Resume updated")
                        st.rerun()
                    else:
                        st.error(f"❌ Update failed: {error_detail(body)}")
            col_dl, col_del = st.columns(2)
            with col_dl:
                download_button("⬇️ Download JSON", f"/resumes/{r['id']}/download", f"resume_{r['id']}")
            with col_del:
                if st.button("🗑️ Delete", key=f"del_resume_{r['id']}"):
                    api("DELETE", f"/resumes/{r['id']}")
                    st.rerun()

# ==================== TAB 2: Job Descriptions ====================
with tab2:
    st.subheader("Add Job Description")

    with st.form("job_form", clear_on_submit=True):
        col_a, col_b = st.columns(2)
        title = col_a.text_input("Job Title")
        company = col_b.text_input("Company")
        location = col_a.text_input("Location")
        description = st.text_area("Job Description", height=200)
        requirements = st.text_input("Requirements (comma-separated, optional)")
        preferences = st.text_input("Nice-to-have (comma-separated, optional)")
        submitted_jd = st.form_submit_button("Save Job")

    if submitted_jd:
        payload = {
            "title": title.strip(),
            "company": company.strip(),
            "location": location.strip(),
            "description": description.strip(),
            "requirements": [s.strip() for s in requirements.split(",") if s.strip()],
            "preferences": [s.strip() for s in preferences.split(",") if s.strip()],
        }
        status, body = api("POST", "/jobs", json=payload)
        if status == 200:
            st.success("✅ Job saved!")
        else:
            st.error(f"❌ Job creation failed: {error_detail(body)}")

    st.markdown("### 📁 Saved Jobs")
    jobs = fetch_list("/jobs")
    if not jobs:
        st.caption("No job descriptions yet.")
    for job in jobs:
        with st.expander(f"{job['title']} — {job['company']} ({job['location']})"):
            with st.form(f"edit_job_{job['id']}"):
                col_a, col_b = st.columns(2)
                e_title = col_a.text_input("Job Title", value=job["title"])
                e_company = col_b.text_input("Company", value=job["company"])
                e_location = col_a.text_input("Location", value=job["location"])
                e_description = st.text_area("Job Description", value=job["description"], height=200)
                e_requirements = st.text_input("Requirements", value=", ".join(job["requirements"]))
                e_preferences = st.text_input("Nice-to-have", value=", ".join(job["preferences"]))
                if st.form_submit_button("💾 Save changes"):
                    status, body = api("PUT", f"/jobs/{job['id']}", json={
                        "title": e_title.strip(),
                        "company": e_company.strip(),
                        "location": e_location.strip(),
                        "description": e_description.strip(),
                        "requirements": [s.strip() for s in e_requirements.split(",") if s.strip()],
                        "preferences": [s.strip() for s in e_preferences.split(",") if s.strip()],
                    })
                    if status == 200:
                        st.success("✅ Job updated")
                        st.rerun()
                    else:
                        st.error(f"❌ Update failed: {error_detail(body)}")
            if st.button("🗑️ Delete", key=f"del_job_{job['id']}"):
                api("DELETE", f"/jobs/{job['id']}")
                st.rerun()

# ==================== TAB 3: Tailor ====================
with tab3:
    st.subheader("Tailor a Resume to a Job")
    resumes = fetch_list("/resumes/history")
    jobs = fetch_list("/jobs")

    if not resumes or not jobs:
        st.warning("⚠️ You need at least one resume and one job description.")
    else:
        resume_options = {f"{r['id']} – {r['title']}": r["id"] for r in resumes}
        job_options = {f"{j['id']} – {j['title']} @ {j['company']}": j["id"] for j in jobs}
        selected_resume = st.selectbox("Resume", options=list(resume_options.keys()))
        selected_job = st.selectbox("Job", options=list(job_options.keys()))

        if st.button("✨ Tailor Resume"):
            with st.spinner("Tailoring with AI..."):
                status, body = api(
                    "POST", "/resumes/tailor",
                    json={"resumeId": resume_options[selected_resume], "jobId": job_options[selected_job]},
                    timeout=120,
                )
            if status == 200:
                st.session_state.last_tailored = body
                st.success("✅ Resume tailored successfully!")
            else:
                st.error(f"❌ {error_detail(body)}")

    result = st.session_state.get("last_tailored")
    if result:
        with st.container(border=True):
            st.metric("Match Score", f"{result['matchScore']}%")
            if result.get("missingKeywords"):
                st.caption("Missing keywords: " + ", ".join(result["missingKeywords"]))

            changes = result.get("suggestedChanges", [])
            if changes:
                st.markdown("### 🧩 Suggested Changes")
                st.table(pd.DataFrame(changes, columns=["type", "section", "description"]))

            st.markdown("### 📝 Tailored Resume")
            st.text_area("Tailored content", value=result["tailoredContent"], height=400)
            download_button(
                "⬇️ Download .txt", f"/resumes/tailored/{result['id']}/download", f"tailored_{result['id']}"
            )

# ==================== TAB 4: History ====================
with tab4:
    st.subheader("History")
    filter_by = st.radio("Show", ["all", "original", "tailored"], horizontal=True)

    resumes = fetch_list("/resumes/history")
    tailored = fetch_list("/resumes/tailored")

    rows = []
    if filter_by in ("all", "original"):
        rows += [
            {"id": r["id"], "type": "original", "title": r["title"], "matchScore": None,
             "createdAt": r["createdAt"]}
            for r in resumes
        ]
    if filter_by in ("all", "tailored"):
        rows += [
            {"id": t["id"], "type": "tailored", "title": f"{t['jobTitle']} @ {t['company']}",
             "matchScore": t["matchScore"], "createdAt": t["createdAt"]}
            for t in tailored
        ]

    if not rows:
        st.caption("Nothing here yet.")
    else:
        df = pd.DataFrame(rows).sort_values("createdAt", ascending=False)
        st.dataframe(df, use_container_width=True, hide_index=True)

        selected = st.selectbox(
            "Select an entry", options=[""] + [f"{r['type']}:{r['id']}" for r in rows]
        )
        if selected:
            kind, record_id = selected.split(":")
            base = f"/resumes/{record_id}" if kind == "original" else f"/resumes/tailored/{record_id}"
            col_dl, col_del = st.columns(2)
            with col_dl:
                download_button("⬇️ Download", f"{base}/download", f"history_{kind}_{record_id}")
            with col_del:
                if st.button("🗑️ Delete selected"):
                    status, body = api("DELETE", base)
                    if status == 200:
                        st.success("Deleted.")
                        st.rerun()
                    else:
                        st.error(error_detail(body))
